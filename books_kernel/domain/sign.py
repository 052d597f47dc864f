"""
Sign convention -- debit-normal vs credit-normal account types.

Responsibility:
    Maps each AccountType to its normal balance side and converts a
    (debit, credit) pair into the amount a report displays for that type.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - Total over AccountType: every member has exactly one normal side.
    - Linear: normalized_amount(t, d1 + d2, c1 + c2)
      == normalized_amount(t, d1, c1) + normalized_amount(t, d2, c2).
"""

from decimal import Decimal

from books_kernel.models.account import AccountType, NormalBalance

DEBIT_NORMAL_TYPES: frozenset[AccountType] = frozenset({
    AccountType.ASSET,
    AccountType.COGS,
    AccountType.EXPENSE,
    AccountType.BANK_ACCOUNT,
})

CREDIT_NORMAL_TYPES: frozenset[AccountType] = frozenset({
    AccountType.LIABILITY,
    AccountType.EQUITY,
    AccountType.REVENUE,
    AccountType.CREDIT_CARD,
})


def normal_balance_for(account_type: AccountType) -> NormalBalance:
    """Return the side on which balances of this account type increase."""
    if account_type in DEBIT_NORMAL_TYPES:
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT


def normalized_amount(
    account_type: AccountType,
    debit: Decimal,
    credit: Decimal,
) -> Decimal:
    """
    Compute the displayed amount for a debit/credit pair.

    DEBIT-normal (Asset, COGS, Expense, Bank Account): debit - credit
    CREDIT-normal (Liability, Equity, Revenue, Credit Card): credit - debit

    Result is positive when the account moves in its normal direction.
    """
    if normal_balance_for(account_type) == NormalBalance.DEBIT:
        return debit - credit
    return credit - debit
