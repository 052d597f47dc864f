"""
Module: books_kernel.db.models
Responsibility: ORM mappings for the three tables a report snapshot is read
    from.  Ids are stored as strings so UUID and non-UUID keys both work.
Architecture position: Kernel > DB.  May import from db/base.py only.

Invariants enforced:
    - debit and credit default to 0 and are Numeric, never float.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from books_kernel.db.base import Base


class ChartOfAccountsRow(Base):
    """One chart-of-accounts node; ``type`` holds the AccountType value."""

    __tablename__ = "chart_of_accounts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    company_id: Mapped[str | None] = mapped_column(String(64), index=True)
    name: Mapped[str]
    type: Mapped[str] = mapped_column(String(32))
    subtype: Mapped[str | None]
    parent_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("chart_of_accounts.id"), nullable=True
    )


class JournalRow(Base):
    """A line of the imported/categorised transaction journal."""

    __tablename__ = "journal"
    __table_args__ = (
        Index("idx_journal_company_date", "company_id", "date"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    company_id: Mapped[str | None] = mapped_column(String(64))
    transaction_id: Mapped[str | None] = mapped_column(String(64))
    date: Mapped[date]
    description: Mapped[str | None] = mapped_column(Text)
    chart_account_id: Mapped[str | None] = mapped_column(String(64))
    debit: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    credit: Mapped[Decimal] = mapped_column(default=Decimal("0"))


class ManualJournalEntryRow(Base):
    """
    A line of a manually entered journal entry.

    reference_number groups the lines of one entry; je_name is the entry's
    display name.
    """

    __tablename__ = "manual_journal_entries"
    __table_args__ = (
        Index("idx_manual_journal_entries_company_date", "company_id", "date"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    company_id: Mapped[str | None] = mapped_column(String(64))
    date: Mapped[date]
    description: Mapped[str | None] = mapped_column(Text)
    je_name: Mapped[str | None]
    chart_account_id: Mapped[str | None] = mapped_column(String(64))
    debit: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    credit: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    reference_number: Mapped[str | None]
