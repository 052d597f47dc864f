"""
Display tree: turns computed totals into the rows a report shows.

Responsibility:
    Walks the account hierarchy under a set of top-level accounts and
    emits ReportRows according to the collapse state:

    * A child is shown only if its subtree has activity in scope.  An
      account with shown children is a parent.
    * A collapsed parent emits one row carrying rollup figures.
    * An expanded parent emits its own row with direct figures, then its
      children one level deeper, then a "Total <name>" row carrying rollup
      figures.
    * A non-parent row whose figure is below the zero threshold is omitted.

Architecture position:
    Modules > Reporting -- reads from a RollupAggregator; never computes or
    alters a total itself, so the collapse state cannot change any figure.

Invariants enforced:
    - Collapse non-interference: collapsed ids only select which rows are
      emitted and whether a row shows direct or rollup figures.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from books_kernel.models.account import Account
from books_kernel.selectors.account_index import AccountIndex
from books_kernel.selectors.ledger_index import LedgerIndex
from books_reporting.models import ReportRow, RowKind
from books_reporting.percentages import Percentage, percentage_of
from books_reporting.periods import Bucket
from books_reporting.rollup import RollupAggregator

CollapseState = frozenset[str]

EXPANDED: CollapseState = frozenset()


def toggle(collapsed: CollapseState, account_id: str) -> CollapseState:
    """Collapse an expanded account or expand a collapsed one."""
    if account_id in collapsed:
        return collapsed - {account_id}
    return collapsed | {account_id}


def collapse_all(
    accounts: AccountIndex,
    ledger: LedgerIndex,
    start: date | None = None,
    end: date | None = None,
) -> CollapseState:
    """Every account that renders as a parent, collapsed."""
    return frozenset(
        a.account_id for a in accounts.parent_accounts(ledger, start, end)
    )


@dataclass(frozen=True)
class PercentageBase:
    """Denominators for percentage columns: one per bucket plus the total."""

    amounts: dict[str, Decimal]
    total: Decimal

    def for_amounts(self, amounts: dict[str, Decimal]) -> dict[str, Percentage]:
        return {
            token: percentage_of(value, self.amounts.get(token, Decimal("0")))
            for token, value in amounts.items()
        }

    def for_total(self, total: Decimal) -> Percentage:
        return percentage_of(total, self.total)


class DisplayTreeBuilder:
    """
    Emits display rows for one report.

    ``start``/``end`` bound both the figures and the activity filter; for
    balance sheets pass the inception date and the as-of date.
    """

    def __init__(
        self,
        aggregator: RollupAggregator,
        start: date,
        end: date,
        buckets: tuple[Bucket, ...] = (),
        collapsed: CollapseState = EXPANDED,
        zero_threshold: Decimal = Decimal("0.01"),
        percentage_base: PercentageBase | None = None,
    ):
        self.aggregator = aggregator
        self.accounts = aggregator.accounts
        self.ledger = aggregator.ledger
        self.start = start
        self.end = end
        self.buckets = buckets
        self.collapsed = collapsed
        self.zero_threshold = zero_threshold
        self.percentage_base = percentage_base

    def shown_children(self, account_id: str) -> tuple[Account, ...]:
        return self.accounts.active_children(account_id, self.ledger, self.start, self.end)

    def build(self, roots: Iterable[Account], level: int = 0) -> tuple[ReportRow, ...]:
        rows: list[ReportRow] = []
        for account in roots:
            rows.extend(self.rows_for(account, level))
        return tuple(rows)

    def rows_for(self, account: Account, level: int = 0) -> list[ReportRow]:
        """Rows for one account and, when expanded, its shown descendants."""
        children = self.shown_children(account.account_id)
        is_parent = bool(children)
        is_collapsed = account.account_id in self.collapsed

        if is_parent and is_collapsed:
            return [self._row(account, level, RowKind.ACCOUNT, rollup=True,
                              is_parent=True, is_collapsed=True)]

        head = self._row(account, level, RowKind.ACCOUNT, rollup=False,
                         is_parent=is_parent, is_collapsed=is_collapsed)
        if not is_parent:
            if abs(head.total) < self.zero_threshold:
                return []
            return [head]

        rows = [head]
        for child in children:
            rows.extend(self.rows_for(child, level + 1))
        rows.append(self._row(account, level, RowKind.TOTAL, rollup=True,
                              is_parent=True, is_collapsed=False))
        return rows

    def _row(
        self,
        account: Account,
        level: int,
        kind: RowKind,
        rollup: bool,
        is_parent: bool,
        is_collapsed: bool,
    ) -> ReportRow:
        aid = account.account_id
        amounts = self.aggregator.bucket_totals(aid, self.buckets, rollup=rollup)
        total = self.aggregator.total(aid, self.start, self.end, rollup=rollup)
        label = f"Total {account.name}" if kind == RowKind.TOTAL else account.name
        return ReportRow(
            label=label,
            account_id=aid,
            level=level,
            kind=kind,
            amounts=amounts,
            total=total,
            is_parent=is_parent,
            is_collapsed=is_collapsed,
            percentages=(
                self.percentage_base.for_amounts(amounts) if self.percentage_base else None
            ),
            total_percentage=(
                self.percentage_base.for_total(total) if self.percentage_base else None
            ),
        )
