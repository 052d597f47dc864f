"""
Pure financial statement builders.

These functions turn an immutable snapshot (through a RollupAggregator)
into profit & loss, balance sheet and cash flow reports.  ZERO I/O.
ZERO side effects beyond the aggregator's own memo.

All monetary values are Decimal.  All outputs are frozen dataclasses.

Functions in this module:
- No database access
- No clock access (metadata is built by the caller)
- Deterministic: same snapshot and parameters always produce same output
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Sequence
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum

from books_kernel.domain.sign import normalized_amount
from books_kernel.exceptions import ReportCancelledError
from books_kernel.models.account import Account, AccountType
from books_kernel.models.transaction import ZERO
from books_kernel.selectors.account_index import AccountIndex
from books_reporting.config import DEFAULT_BANK_NAME_KEYWORDS
from books_reporting.display import (
    EXPANDED,
    CollapseState,
    DisplayTreeBuilder,
    PercentageBase,
)
from books_reporting.models import (
    BalanceSheetReport,
    CashFlowFigures,
    CashFlowReport,
    FinancingActivities,
    InvestingActivities,
    OperatingActivities,
    ProfitAndLossReport,
    ReportMetadata,
    ReportRow,
    RowKind,
    StatementSection,
)
from books_reporting.percentages import NO_DATA
from books_reporting.periods import EPOCH, Bucket, Period
from books_reporting.rollup import RollupAggregator

CancelCheck = Callable[[], bool]

RETAINED_EARNINGS_LABEL = "Retained Earnings"


# =========================================================================
# Shared helpers
# =========================================================================


def _top_level(
    aggregator: RollupAggregator,
    types: Sequence[AccountType],
    start: date,
    end: date,
) -> tuple[Account, ...]:
    """Top-level accounts of the given types with activity in scope, name-ordered."""
    roots: list[Account] = []
    for account_type in types:
        roots.extend(
            aggregator.accounts.top_level(account_type, aggregator.ledger, start, end)
        )
    return tuple(sorted(roots, key=lambda a: (a.name.casefold(), a.account_id)))


def _root_ids(accounts: AccountIndex, *types: AccountType) -> tuple[str, ...]:
    return tuple(a.account_id for t in types for a in accounts.roots(t))


def _direct_sum(
    aggregator: RollupAggregator,
    account_ids: Iterable[str],
    start: date,
    end: date,
) -> Decimal:
    """Sum of direct totals; every line under the set counts exactly once."""
    return sum(
        (aggregator.direct_total(aid, start, end) for aid in account_ids),
        ZERO,
    )


def _check_cancel(should_cancel: CancelCheck | None, report_type: str) -> None:
    if should_cancel is not None and should_cancel():
        raise ReportCancelledError(report_type)


def build_section(
    label: str,
    roots: Sequence[Account],
    builder: DisplayTreeBuilder,
    report_type: str,
    should_cancel: CancelCheck | None = None,
    level: int = 0,
) -> StatementSection:
    """
    Rows and totals for a group of top-level accounts.

    Section figures are the sum of the roots' rollups; the cancel check
    runs once per top-level account.
    """
    aggregator = builder.aggregator
    rows: list[ReportRow] = []
    for account in roots:
        _check_cancel(should_cancel, report_type)
        rows.extend(builder.rows_for(account, level))

    ids = tuple(a.account_id for a in roots)
    amounts = {
        bucket.token: aggregator.group_total(ids, bucket.start, bucket.end)
        for bucket in builder.buckets
    }
    total = aggregator.group_total(ids, builder.start, builder.end)
    base = builder.percentage_base
    return StatementSection(
        label=label,
        rows=tuple(rows),
        amounts=amounts,
        total=total,
        account_ids=ids,
        percentages=base.for_amounts(amounts) if base else None,
        total_percentage=base.for_total(total) if base else None,
    )


# =========================================================================
# 1. PROFIT & LOSS
# =========================================================================


def build_profit_and_loss(
    aggregator: RollupAggregator,
    metadata: ReportMetadata,
    period: Period,
    buckets: tuple[Bucket, ...] = (),
    collapsed: CollapseState = EXPANDED,
    with_percentages: bool = False,
    zero_threshold: Decimal = Decimal("0.01"),
    should_cancel: CancelCheck | None = None,
) -> ProfitAndLossReport:
    """
    Profit & loss over ``period`` with optional bucket columns.

    Revenue, COGS and Expense sections list top-level accounts with
    activity in the period.  Percentages are relative to the same column's
    total revenue.
    """
    start, end = period.start, period.end
    report_type = metadata.report_type.value

    revenue_ids = _root_ids(aggregator.accounts, AccountType.REVENUE)
    base = None
    if with_percentages:
        base = PercentageBase(
            amounts={
                b.token: aggregator.group_total(revenue_ids, b.start, b.end)
                for b in buckets
            },
            total=aggregator.group_total(revenue_ids, start, end),
        )
    builder = DisplayTreeBuilder(
        aggregator, start, end, buckets, collapsed, zero_threshold, base
    )

    def section(label: str, account_type: AccountType) -> StatementSection:
        roots = _top_level(aggregator, (account_type,), start, end)
        return build_section(label, roots, builder, report_type, should_cancel)

    revenue = section("Revenue", AccountType.REVENUE)
    cogs = section("Cost of Goods Sold", AccountType.COGS)
    expenses = section("Expenses", AccountType.EXPENSE)

    gross_profit = {
        b.token: revenue.amounts[b.token] - cogs.amounts[b.token] for b in buckets
    }
    net_income = {
        b.token: gross_profit[b.token] - expenses.amounts[b.token] for b in buckets
    }
    gross_profit_total = revenue.total - cogs.total
    net_income_total = gross_profit_total - expenses.total

    return ProfitAndLossReport(
        metadata=metadata,
        buckets=buckets,
        revenue=revenue,
        cogs=cogs,
        expenses=expenses,
        gross_profit=gross_profit,
        gross_profit_total=gross_profit_total,
        net_income=net_income,
        net_income_total=net_income_total,
        gross_profit_percentage=base.for_total(gross_profit_total) if base else None,
        net_income_percentage=base.for_total(net_income_total) if base else None,
    )


# =========================================================================
# 2. BALANCE SHEET
# =========================================================================


def point_in_time_balance(
    aggregator: RollupAggregator,
    account_id: str,
    as_of: date,
    epoch: date = EPOCH,
) -> Decimal:
    """Rollup of everything posted to the subtree from inception through as_of."""
    return aggregator.rollup_total(account_id, epoch, as_of)


def retained_earnings(
    aggregator: RollupAggregator,
    as_of: date,
    epoch: date = EPOCH,
) -> Decimal:
    """Revenue - COGS - Expense rollups over [epoch, as_of]."""
    accounts = aggregator.accounts
    revenue = aggregator.group_total(_root_ids(accounts, AccountType.REVENUE), epoch, as_of)
    cogs = aggregator.group_total(_root_ids(accounts, AccountType.COGS), epoch, as_of)
    expenses = aggregator.group_total(_root_ids(accounts, AccountType.EXPENSE), epoch, as_of)
    return revenue - cogs - expenses


def build_balance_sheet(
    aggregator: RollupAggregator,
    metadata: ReportMetadata,
    as_of: date,
    epoch: date = EPOCH,
    collapsed: CollapseState = EXPANDED,
    with_percentages: bool = False,
    zero_threshold: Decimal = Decimal("0.01"),
    should_cancel: CancelCheck | None = None,
) -> BalanceSheetReport:
    """
    Point-in-time balance sheet as of ``as_of``.

    Assets = Asset + Bank Account; Liabilities = Liability + Credit Card;
    Equity = Equity plus a synthetic Retained Earnings line.  Percentages
    are relative to total assets.  Nothing enforces A = L + E.
    """
    report_type = metadata.report_type.value
    asset_types = (AccountType.ASSET, AccountType.BANK_ACCOUNT)
    liability_types = (AccountType.LIABILITY, AccountType.CREDIT_CARD)

    total_assets = aggregator.group_total(
        _root_ids(aggregator.accounts, *asset_types), epoch, as_of
    )
    base = PercentageBase({}, total_assets) if with_percentages else None
    builder = DisplayTreeBuilder(
        aggregator, epoch, as_of, (), collapsed, zero_threshold, base
    )

    assets = build_section(
        "Assets", _top_level(aggregator, asset_types, epoch, as_of),
        builder, report_type, should_cancel,
    )
    liabilities = build_section(
        "Liabilities", _top_level(aggregator, liability_types, epoch, as_of),
        builder, report_type, should_cancel,
    )
    equity_accounts = build_section(
        "Equity", _top_level(aggregator, (AccountType.EQUITY,), epoch, as_of),
        builder, report_type, should_cancel,
    )

    earnings = retained_earnings(aggregator, as_of, epoch)
    earnings_row = ReportRow(
        label=RETAINED_EARNINGS_LABEL,
        account_id=None,
        level=0,
        kind=RowKind.SYNTHETIC,
        amounts={},
        total=earnings,
        percentages={} if base else None,
        total_percentage=base.for_total(earnings) if base else None,
    )
    total_equity = equity_accounts.total + earnings
    equity = dataclasses.replace(
        equity_accounts,
        rows=equity_accounts.rows + (earnings_row,),
        total=total_equity,
        total_percentage=base.for_total(total_equity) if base else None,
    )

    total_liabilities_and_equity = liabilities.total + total_equity
    return BalanceSheetReport(
        metadata=metadata,
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        retained_earnings=earnings,
        total_assets=assets.total,
        total_liabilities=liabilities.total,
        total_equity=total_equity,
        total_liabilities_and_equity=total_liabilities_and_equity,
        is_balanced=assets.total == total_liabilities_and_equity,
    )


# =========================================================================
# 3. CASH FLOW
# =========================================================================


def is_bank_account(
    account: Account,
    keywords: Sequence[str] = DEFAULT_BANK_NAME_KEYWORDS,
) -> bool:
    """
    Whether an account holds cash for cash flow purposes.

    Bank Account typed accounts always do.  Any other account does when
    its name contains one of ``keywords`` (case-insensitive), whatever its
    type: a Liability named "Bank Loan" counts as a bank account.
    """
    if account.account_type == AccountType.BANK_ACCOUNT:
        return True
    name = account.name.lower()
    return any(keyword in name for keyword in keywords)


@dataclasses.dataclass(frozen=True)
class CashFlowClassification:
    """Account ids (every depth) per cash flow role."""

    bank: tuple[str, ...]
    investing: tuple[str, ...]
    liabilities: tuple[str, ...]
    equity: tuple[str, ...]
    operating: tuple[str, ...]


def classify_for_cash_flow(
    accounts: AccountIndex,
    keywords: Sequence[str] = DEFAULT_BANK_NAME_KEYWORDS,
) -> CashFlowClassification:
    """Split the chart into bank, investing, financing and operating accounts."""
    bank: list[str] = []
    investing: list[str] = []
    liabilities: list[str] = []
    equity: list[str] = []
    operating: list[str] = []
    for account in accounts:
        t = account.account_type
        if is_bank_account(account, keywords):
            bank.append(account.account_id)
        elif t == AccountType.ASSET:
            investing.append(account.account_id)
        elif t in (AccountType.LIABILITY, AccountType.CREDIT_CARD):
            liabilities.append(account.account_id)
        elif t == AccountType.EQUITY:
            equity.append(account.account_id)
        else:
            operating.append(account.account_id)
    return CashFlowClassification(
        bank=tuple(bank),
        investing=tuple(investing),
        liabilities=tuple(liabilities),
        equity=tuple(equity),
        operating=tuple(operating),
    )


def operating_activities(
    aggregator: RollupAggregator,
    start: date,
    end: date,
) -> OperatingActivities:
    """Revenue, COGS and Expense rollups over the top-level accounts."""
    accounts = aggregator.accounts
    revenue = aggregator.group_total(_root_ids(accounts, AccountType.REVENUE), start, end)
    cogs = aggregator.group_total(_root_ids(accounts, AccountType.COGS), start, end)
    expenses = aggregator.group_total(_root_ids(accounts, AccountType.EXPENSE), start, end)
    return OperatingActivities(
        revenue=revenue,
        cogs=cogs,
        expenses=expenses,
        net_income=revenue - cogs - expenses,
    )


def investing_activities(
    aggregator: RollupAggregator,
    classification: CashFlowClassification,
    start: date,
    end: date,
) -> InvestingActivities:
    """An increase in non-bank assets is cash spent, hence the negation."""
    increase = _direct_sum(aggregator, classification.investing, start, end)
    return InvestingActivities(
        increase_in_assets=increase,
        decrease_in_assets=-increase,
        net_investing_change=-increase,
    )


def financing_activities(
    aggregator: RollupAggregator,
    classification: CashFlowClassification,
    start: date,
    end: date,
) -> FinancingActivities:
    """
    Liability/Credit Card and Equity movements, both credit-normal.

    Distributions are not tracked separately: owner_distributions is the
    negated owner_contributions figure.
    """
    liabilities = _direct_sum(aggregator, classification.liabilities, start, end)
    contributions = _direct_sum(aggregator, classification.equity, start, end)
    return FinancingActivities(
        increase_in_liabilities=liabilities,
        owner_contributions=contributions,
        owner_distributions=-contributions,
        net_financing_change=liabilities + contributions,
    )


def bank_balance_as_of(
    aggregator: RollupAggregator,
    classification: CashFlowClassification,
    as_of: date,
    epoch: date = EPOCH,
) -> Decimal:
    """
    Balance of all bank accounts from inception through as_of.

    Every bank account is read debit-normal, including name-classified
    accounts of a credit-normal type.
    """
    total = ZERO
    for account_id in classification.bank:
        debit, credit = aggregator.ledger.debit_credit_totals(account_id, epoch, as_of)
        total += normalized_amount(AccountType.BANK_ACCOUNT, debit, credit)
    return total


def cash_flow_figures(
    aggregator: RollupAggregator,
    classification: CashFlowClassification,
    start: date,
    end: date,
    epoch: date = EPOCH,
) -> CashFlowFigures:
    """Activity figures for [start, end] plus cumulative bank balances."""
    operating = operating_activities(aggregator, start, end)
    investing = investing_activities(aggregator, classification, start, end)
    financing = financing_activities(aggregator, classification, start, end)
    return CashFlowFigures(
        start=start,
        end=end,
        operating=operating,
        investing=investing,
        financing=financing,
        net_change_in_cash=(
            operating.net_income
            + investing.net_investing_change
            + financing.net_financing_change
        ),
        beginning_balance=bank_balance_as_of(
            aggregator, classification, start - timedelta(days=1), epoch
        ),
        ending_balance=bank_balance_as_of(aggregator, classification, end, epoch),
    )


def _revenue_base(figures: CashFlowFigures) -> Decimal:
    return figures.operating.revenue


def _investing_base(figures: CashFlowFigures) -> Decimal:
    return figures.investing.increase_in_assets


def _financing_base(figures: CashFlowFigures) -> Decimal:
    return figures.financing.net_financing_change


def build_cash_flow(
    aggregator: RollupAggregator,
    metadata: ReportMetadata,
    period: Period,
    buckets: tuple[Bucket, ...] = (),
    bank_name_keywords: Sequence[str] = DEFAULT_BANK_NAME_KEYWORDS,
    epoch: date = EPOCH,
    collapsed: CollapseState = EXPANDED,
    with_percentages: bool = False,
    zero_threshold: Decimal = Decimal("0.01"),
    should_cancel: CancelCheck | None = None,
) -> CashFlowReport:
    """
    Cash flow statement for ``period``.

    Each bucket column carries bucket-scoped activity figures and bank
    balances cumulative to the bucket's bounds, except that the first
    column opens with the report's beginning balance (the day before
    ``period.start``), so a range starting mid-month opens where the
    report does.  Detail sections list the top-level accounts behind each
    activity, with bank accounts left out; operating rows are relative
    to revenue, investing rows to the increase in assets and financing
    rows to the net financing change.
    """
    start, end = period.start, period.end
    report_type = metadata.report_type.value
    accounts = aggregator.accounts
    classification = classify_for_cash_flow(accounts, bank_name_keywords)

    columns = {
        b.token: cash_flow_figures(aggregator, classification, b.start, b.end, epoch)
        for b in buckets
    }
    total = cash_flow_figures(aggregator, classification, start, end, epoch)
    if buckets:
        first = buckets[0].token
        columns[first] = dataclasses.replace(
            columns[first], beginning_balance=total.beginning_balance
        )

    def base_for(pick: Callable[[CashFlowFigures], Decimal]) -> PercentageBase | None:
        if not with_percentages:
            return None
        return PercentageBase(
            {token: pick(figures) for token, figures in columns.items()},
            pick(total),
        )

    def section(
        label: str,
        roots: Sequence[Account],
        pick: Callable[[CashFlowFigures], Decimal],
    ) -> StatementSection:
        builder = DisplayTreeBuilder(
            aggregator, start, end, buckets, collapsed, zero_threshold, base_for(pick)
        )
        return build_section(label, roots, builder, report_type, should_cancel, level=1)

    bank = set(classification.bank)

    def roots_of(account_type: AccountType) -> tuple[Account, ...]:
        return _top_level(aggregator, (account_type,), start, end)

    def non_bank_roots(account_type: AccountType) -> tuple[Account, ...]:
        return tuple(a for a in roots_of(account_type) if a.account_id not in bank)

    sections = (
        section("Revenue", roots_of(AccountType.REVENUE), _revenue_base),
        section("Cost of Goods Sold", roots_of(AccountType.COGS), _revenue_base),
        section("Expenses", roots_of(AccountType.EXPENSE), _revenue_base),
        section("Changes in Non-Bank Assets", non_bank_roots(AccountType.ASSET), _investing_base),
        section("Credit Cards", non_bank_roots(AccountType.CREDIT_CARD), _financing_base),
        section("Liabilities", non_bank_roots(AccountType.LIABILITY), _financing_base),
        section("Equity", non_bank_roots(AccountType.EQUITY), _financing_base),
    )

    return CashFlowReport(
        metadata=metadata,
        buckets=buckets,
        columns=columns,
        total=total,
        bank_account_ids=classification.bank,
        sections=sections,
    )


# =========================================================================
# Serialization
# =========================================================================


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    Convert any report dataclass to a plain dict for JSON serialization.

    Handles:
    - Decimal -> str (preserving precision)
    - date -> ISO format string
    - NO_DATA -> None
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    """
    if obj is None or obj is NO_DATA:
        return None
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
