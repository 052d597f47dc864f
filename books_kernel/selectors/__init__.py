"""Read-only views over the chart of accounts and the ledger."""

from books_kernel.selectors.account_index import AccountIndex
from books_kernel.selectors.ledger_index import LedgerIndex

__all__ = ["AccountIndex", "LedgerIndex"]
