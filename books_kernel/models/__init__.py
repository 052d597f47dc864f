"""Immutable snapshot records: accounts and ledger lines."""

from books_kernel.models.account import Account, AccountType, NormalBalance
from books_kernel.models.transaction import (
    Transaction,
    TransactionSource,
    parse_amount,
    parse_date,
)

__all__ = [
    "Account",
    "AccountType",
    "NormalBalance",
    "Transaction",
    "TransactionSource",
    "parse_amount",
    "parse_date",
]
