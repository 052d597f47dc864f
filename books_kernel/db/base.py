"""
Module: books_kernel.db.base
Responsibility: Declarative base for the SQLAlchemy ORM tables that hold a
    company's books (chart_of_accounts, journal, manual_journal_entries).
Architecture position: Kernel > DB.  Lowest-level import target for the
    ORM tables.  MUST NOT import from selectors/ or outer layers.

Invariants enforced:
    - Decimal precision: type_annotation_map maps Python Decimal to
      Numeric(19, 4), the precision of the store's amount columns.
      NEVER use float for monetary amounts.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import Date, DateTime, Numeric, String
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for all ORM tables.

    Guarantees:
        - Decimal maps to Numeric(19, 4).
        - date maps to Date, datetime to DateTime(timezone=True).
        - str maps to String(255).
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(19, 4),
        date: Date,
        datetime: DateTime(timezone=True),
        str: String(255),
    }
