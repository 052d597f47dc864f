"""
Financial Reporting Domain Models (``books_reporting.models``).

Responsibility
--------------
Frozen dataclass value objects for report output: display rows, statement
sections, profit & loss, balance sheet, cash flow and drill-down.

Architecture position
---------------------
**Reporting layer** -- pure data definitions with ZERO I/O.  Produced by
the statement builders and ``ReportingService``; consumed by renderers and
exporters, which need raw Decimal values rather than formatted strings.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* Per-bucket maps are keyed by bucket token ("2024-01", "2024-Q1") in
  chronological order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from books_reporting.percentages import Percentage
from books_reporting.periods import Bucket, Granularity


# =========================================================================
# Enums
# =========================================================================


class ReportType(str, Enum):
    """Types of financial reports."""

    PROFIT_AND_LOSS = "profit_and_loss"
    BALANCE_SHEET = "balance_sheet"
    CASH_FLOW = "cash_flow"
    DRILL_DOWN = "drill_down"


class RowKind(str, Enum):
    """What a display row stands for."""

    ACCOUNT = "account"
    TOTAL = "total"  # "Total <parent>" row closing an expanded parent
    SYNTHETIC = "synthetic"  # computed line with no stored account


# =========================================================================
# Report Metadata (common to all reports)
# =========================================================================


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every report."""

    report_id: str
    report_type: ReportType
    entity_name: str
    generated_at: str  # ISO format timestamp from injected clock
    period_start: date | None = None
    period_end: date | None = None
    as_of_date: date | None = None
    granularity: Granularity = Granularity.TOTAL
    company_id: str | None = None


# =========================================================================
# Display rows and sections
# =========================================================================


@dataclass(frozen=True)
class ReportRow:
    """
    One displayed line.

    An expanded parent shows its direct figures; its "Total" row and a
    collapsed parent show rollup figures.
    """

    label: str
    account_id: str | None
    level: int
    kind: RowKind
    amounts: dict[str, Decimal]
    total: Decimal
    is_parent: bool = False
    is_collapsed: bool = False
    percentages: dict[str, Percentage] | None = None
    total_percentage: Percentage | None = None


@dataclass(frozen=True)
class StatementSection:
    """
    A group of top-level accounts (e.g. Revenue) with its total line.

    account_ids are the top-level accounts shown, used for the section's
    group drill-down.
    """

    label: str
    rows: tuple[ReportRow, ...]
    amounts: dict[str, Decimal]
    total: Decimal
    account_ids: tuple[str, ...] = ()
    percentages: dict[str, Percentage] | None = None
    total_percentage: Percentage | None = None


# =========================================================================
# Profit & Loss
# =========================================================================


@dataclass(frozen=True)
class ProfitAndLossReport:
    """
    Profit & loss over a period.

    gross_profit = revenue - cogs; net_income = gross_profit - expenses,
    per bucket and in total.  Percentages are relative to total revenue
    of the same column.
    """

    metadata: ReportMetadata
    buckets: tuple[Bucket, ...]
    revenue: StatementSection
    cogs: StatementSection
    expenses: StatementSection
    gross_profit: dict[str, Decimal]
    gross_profit_total: Decimal
    net_income: dict[str, Decimal]
    net_income_total: Decimal
    gross_profit_percentage: Percentage | None = None
    net_income_percentage: Percentage | None = None


# =========================================================================
# Balance Sheet
# =========================================================================


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Point-in-time balance sheet as of metadata.as_of_date.

    Equity includes the synthetic retained earnings line.  is_balanced is
    informational: nothing enforces assets == liabilities + equity.
    """

    metadata: ReportMetadata
    assets: StatementSection
    liabilities: StatementSection
    equity: StatementSection
    retained_earnings: Decimal
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal
    is_balanced: bool


# =========================================================================
# Cash Flow
# =========================================================================


@dataclass(frozen=True)
class OperatingActivities:
    revenue: Decimal
    cogs: Decimal
    expenses: Decimal
    net_income: Decimal


@dataclass(frozen=True)
class InvestingActivities:
    increase_in_assets: Decimal
    decrease_in_assets: Decimal
    net_investing_change: Decimal


@dataclass(frozen=True)
class FinancingActivities:
    """owner_distributions is the negation of owner_contributions."""

    increase_in_liabilities: Decimal
    owner_contributions: Decimal
    owner_distributions: Decimal
    net_financing_change: Decimal


@dataclass(frozen=True)
class CashFlowFigures:
    """
    Cash flow figures for one column.

    Activity figures are scoped to the column's range; beginning and
    ending balances are cumulative bank balances to date.
    """

    start: date
    end: date
    operating: OperatingActivities
    investing: InvestingActivities
    financing: FinancingActivities
    net_change_in_cash: Decimal
    beginning_balance: Decimal
    ending_balance: Decimal


@dataclass(frozen=True)
class CashFlowReport:
    """Cash flow statement with per-bucket columns and a whole-period total."""

    metadata: ReportMetadata
    buckets: tuple[Bucket, ...]
    columns: dict[str, CashFlowFigures]
    total: CashFlowFigures
    bank_account_ids: tuple[str, ...]
    sections: tuple[StatementSection, ...] = field(default_factory=tuple)


# =========================================================================
# Drill-down
# =========================================================================


@dataclass(frozen=True)
class DrillDownLine:
    """A contributing ledger line and the running balance after it."""

    transaction_line_id: str
    transaction_id: str | None
    date: date
    description: str
    account_id: str
    account_name: str
    source: str
    debit: Decimal
    credit: Decimal
    amount: Decimal
    running_balance: Decimal


@dataclass(frozen=True)
class DrillDownReport:
    """Chronological lines behind one displayed figure; total equals the figure."""

    label: str
    account_ids: tuple[str, ...]
    start: date
    end: date
    lines: tuple[DrillDownLine, ...]
    total: Decimal
