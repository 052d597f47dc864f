"""Database layer: ORM tables and engine/session management."""

from books_kernel.db.base import Base
from books_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from books_kernel.db.models import ChartOfAccountsRow, JournalRow, ManualJournalEntryRow

__all__ = [
    "Base",
    "ChartOfAccountsRow",
    "JournalRow",
    "ManualJournalEntryRow",
    "create_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]
