"""
Drill-down: the ledger lines behind a displayed figure.

A drill-down uses the same account-subtree and date-range predicate as the
figure it explains, so its total always equals that figure.  Lines are in
date order with a running balance that restarts at zero.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from books_kernel.domain.sign import normalized_amount
from books_kernel.models.account import AccountType
from books_kernel.models.transaction import ZERO, Transaction
from books_kernel.selectors.account_index import AccountIndex
from books_kernel.selectors.ledger_index import LedgerIndex
from books_reporting.models import DrillDownLine, DrillDownReport


def subtree_union(accounts: AccountIndex, account_ids: Iterable[str]) -> tuple[str, ...]:
    """Ids of the given accounts and their descendants, each once, pre-order."""
    seen: set[str] = set()
    ordered: list[str] = []
    for root_id in account_ids:
        for aid in accounts.subtree_ids(root_id):
            if aid not in seen:
                seen.add(aid)
                ordered.append(aid)
    return tuple(ordered)


def contributing_lines(
    accounts: AccountIndex,
    ledger: LedgerIndex,
    account_ids: Iterable[str],
    start: date,
    end: date,
) -> list[Transaction]:
    """
    Lines posted anywhere under ``account_ids`` in [start, end], date-ordered.

    Same-date lines keep subtree pre-order, then ledger input order.
    """
    lines: list[Transaction] = []
    for aid in subtree_union(accounts, account_ids):
        lines.extend(ledger.in_range(aid, start, end))
    lines.sort(key=lambda tx: tx.date)
    return lines


def build_drill_down(
    accounts: AccountIndex,
    ledger: LedgerIndex,
    label: str,
    account_ids: Iterable[str],
    start: date,
    end: date,
    sign_as: AccountType | None = None,
) -> DrillDownReport:
    """
    Drill-down for one account, a group of accounts, or a synthetic line.

    Each line is signed by the type of the account it is posted to, which
    is how rollups sign it.  ``sign_as`` signs every line by one type
    instead; retained earnings uses Revenue so expense lines come out
    negative.
    """
    ids = tuple(account_ids)
    running = ZERO
    out: list[DrillDownLine] = []
    for tx in contributing_lines(accounts, ledger, ids, start, end):
        account = accounts.get(tx.chart_account_id)
        amount = normalized_amount(sign_as or account.account_type, tx.debit, tx.credit)
        running += amount
        out.append(
            DrillDownLine(
                transaction_line_id=tx.transaction_line_id,
                transaction_id=tx.transaction_id,
                date=tx.date,
                description=tx.description,
                account_id=account.account_id,
                account_name=account.name,
                source=tx.source.value,
                debit=tx.debit,
                credit=tx.credit,
                amount=amount,
                running_balance=running,
            )
        )
    return DrillDownReport(
        label=label,
        account_ids=ids,
        start=start,
        end=end,
        lines=tuple(out),
        total=running,
    )
