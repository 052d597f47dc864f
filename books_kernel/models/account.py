"""
Module: books_kernel.models.account
Responsibility: Immutable chart-of-accounts node and the closed set of
    account types the reporting engine understands.
Architecture position: Kernel > Models.  May import from exceptions only.

Invariants enforced:
    - account_type is always an AccountType member; unknown type strings
      are rejected at construction (UnknownAccountTypeError) instead of
      contributing zero to every total.

Failure modes:
    - UnknownAccountTypeError for a type string outside AccountType.
"""

from __future__ import annotations

import dataclasses
from enum import Enum

from books_kernel.exceptions import UnknownAccountTypeError


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts.

    Values match the strings stored in the chart_of_accounts table.
    """

    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    COGS = "COGS"
    EXPENSE = "Expense"
    BANK_ACCOUNT = "Bank Account"
    CREDIT_CARD = "Credit Card"

    @classmethod
    def parse(cls, value: str | AccountType, account_id: str | None = None) -> AccountType:
        """Resolve a stored type string, tolerating case and spacing.

        "Bank Account", "BankAccount", "bank_account" and "BANK_ACCOUNT"
        all resolve to BANK_ACCOUNT.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise UnknownAccountTypeError(repr(value), account_id)
        key = value.replace(" ", "").replace("_", "").lower()
        try:
            return _TYPE_LOOKUP[key]
        except KeyError:
            raise UnknownAccountTypeError(value, account_id) from None


_TYPE_LOOKUP: dict[str, AccountType] = {
    t.value.replace(" ", "").lower(): t for t in AccountType
}


class NormalBalance(str, Enum):
    """Normal balance side for an account."""

    DEBIT = "debit"
    CREDIT = "credit"


@dataclasses.dataclass(frozen=True)
class Account:
    """
    A single node in the chart-of-accounts forest.

    parent_id is an ownership edge to another Account of the same company;
    None marks a root. subtype is carried for display only.
    """

    account_id: str
    name: str
    account_type: AccountType
    parent_id: str | None = None
    company_id: str | None = None
    subtype: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.account_type, AccountType):
            object.__setattr__(
                self,
                "account_type",
                AccountType.parse(self.account_type, self.account_id),
            )
        # Empty-string parent is how the store writes "no parent"
        if self.parent_id == "":
            object.__setattr__(self, "parent_id", None)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None
