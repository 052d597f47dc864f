"""
Financial Reporting (``books_reporting``).

Responsibility
--------------
Read-only package that turns a books snapshot into profit & loss, balance
sheet and cash flow reports with monthly or quarterly bucket columns,
collapsible account hierarchies, percentages and drill-downs.

Architecture position
---------------------
**Reporting layer** -- pure computation over ``books_kernel`` indexes.
``ReportingService`` is the entry point; ``statements.py`` holds the
builders as pure functions.

Invariants enforced
-------------------
* Every displayed figure derives from the immutable snapshot; nothing is
  stored between requests.
* Collapse state changes presentation only, never totals.

Failure modes
-------------
* Integrity errors surface from ``ReportingService`` construction.
* Unset period bounds -> ``None`` report ("no data").
"""

from books_reporting.config import ReportingConfig
from books_reporting.display import EXPANDED, CollapseState, DisplayTreeBuilder, toggle
from books_reporting.drilldown import build_drill_down
from books_reporting.loader import load_snapshot, parse_snapshot
from books_reporting.models import (
    BalanceSheetReport,
    CashFlowFigures,
    CashFlowReport,
    DrillDownLine,
    DrillDownReport,
    FinancingActivities,
    InvestingActivities,
    OperatingActivities,
    ProfitAndLossReport,
    ReportMetadata,
    ReportRow,
    ReportType,
    RowKind,
    StatementSection,
)
from books_reporting.percentages import NO_DATA, format_percentage, percentage_of
from books_reporting.periods import (
    Bucket,
    Granularity,
    Period,
    PeriodPreset,
    previous_period,
    resolve_period,
    resolve_preset,
)
from books_reporting.rollup import RollupAggregator
from books_reporting.service import ReportingService
from books_reporting.statements import render_to_dict

__all__ = [
    # Service
    "ReportingService",
    # Config
    "ReportingConfig",
    # Periods
    "Period",
    "PeriodPreset",
    "Granularity",
    "Bucket",
    "previous_period",
    "resolve_period",
    "resolve_preset",
    # Computation
    "RollupAggregator",
    "DisplayTreeBuilder",
    "CollapseState",
    "EXPANDED",
    "toggle",
    "build_drill_down",
    "NO_DATA",
    "percentage_of",
    "format_percentage",
    # Snapshot files
    "load_snapshot",
    "parse_snapshot",
    # Models
    "ReportType",
    "RowKind",
    "ReportMetadata",
    "ReportRow",
    "StatementSection",
    "ProfitAndLossReport",
    "BalanceSheetReport",
    "OperatingActivities",
    "InvestingActivities",
    "FinancingActivities",
    "CashFlowFigures",
    "CashFlowReport",
    "DrillDownLine",
    "DrillDownReport",
    "render_to_dict",
]
