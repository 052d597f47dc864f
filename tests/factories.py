"""Account and ledger line factories shared by the test suite."""

from datetime import date
from itertools import count

from books_kernel.models.account import Account, AccountType
from books_kernel.models.transaction import Transaction, TransactionSource

_line_ids = count(1)


def make_account(
    account_id: str,
    name: str,
    account_type: AccountType | str,
    parent_id: str | None = None,
    company_id: str | None = None,
) -> Account:
    return Account(
        account_id=account_id,
        name=name,
        account_type=account_type,
        parent_id=parent_id,
        company_id=company_id,
    )


def make_line(
    account_id: str,
    day: date | str,
    debit: str | int = 0,
    credit: str | int = 0,
    line_id: str | None = None,
    description: str = "",
    source: TransactionSource = TransactionSource.JOURNAL,
    company_id: str | None = None,
) -> Transaction:
    """Ledger line; a unique id is generated when none is given."""
    return Transaction(
        transaction_line_id=line_id or f"line-{next(_line_ids)}",
        date=day,
        chart_account_id=account_id,
        debit=debit,
        credit=credit,
        description=description,
        source=source,
        company_id=company_id,
    )


def small_business_chart() -> list[Account]:
    """
    A small chart with nesting under most types.

    Checking (Bank Account), Savings (Asset, name-classified bank),
    Equipment > Vehicles (Asset), Credit Card, Loans (Liability),
    Owner Equity, Sales > Online Sales (Revenue), Materials (COGS),
    Operating > Rent / Utilities (Expense).
    """
    return [
        make_account("chk", "Checking", AccountType.BANK_ACCOUNT),
        make_account("sav", "Savings", AccountType.ASSET),
        make_account("eqp", "Equipment", AccountType.ASSET),
        make_account("veh", "Vehicles", AccountType.ASSET, parent_id="eqp"),
        make_account("cc", "Visa", AccountType.CREDIT_CARD),
        make_account("loan", "Loans", AccountType.LIABILITY),
        make_account("own", "Owner Equity", AccountType.EQUITY),
        make_account("sales", "Sales", AccountType.REVENUE),
        make_account("online", "Online Sales", AccountType.REVENUE, parent_id="sales"),
        make_account("mat", "Materials", AccountType.COGS),
        make_account("opex", "Operating", AccountType.EXPENSE),
        make_account("rent", "Rent", AccountType.EXPENSE, parent_id="opex"),
        make_account("util", "Utilities", AccountType.EXPENSE, parent_id="opex"),
    ]
