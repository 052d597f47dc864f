"""
Command-line report viewer (``books-report``).

Loads a YAML/JSON snapshot and prints a profit & loss, balance sheet or
cash flow report as a text table or as JSON.

Usage:
    books-report pnl books.yaml --preset thisQuarter --granularity month
    books-report balance-sheet books.yaml --as-of 2024-06-30 --percentages
    books-report cash-flow books.yaml --start 2024-01-01 --end 2024-03-31 --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from decimal import Decimal
from pathlib import Path

from books_kernel.exceptions import BooksKernelError
from books_kernel.logging_config import configure_logging
from books_reporting.config import ReportingConfig
from books_reporting.display import EXPANDED
from books_reporting.loader import load_snapshot
from books_reporting.models import (
    BalanceSheetReport,
    CashFlowFigures,
    CashFlowReport,
    ProfitAndLossReport,
    StatementSection,
)
from books_reporting.percentages import format_percentage
from books_reporting.periods import Bucket, Granularity, PeriodPreset
from books_reporting.service import ReportingService
from books_reporting.statements import render_to_dict

# ===================================================================
# Pretty-print helpers
# ===================================================================

W = 72  # total line width for single-column reports
LABEL_W = 40
AMT_W = 16


def _fmt(v) -> str:
    """Format a Decimal as $1,234.56, negatives in parentheses."""
    if v is None:
        return ""
    d = Decimal(str(v))
    formatted = f"${abs(d):,.2f}"
    return f"({formatted})" if d < 0 else f" {formatted} "


def _hdr(title: str, subtitle: str = "") -> list[str]:
    return ["", "=" * W, title.center(W), subtitle.center(W), "=" * W]


def _line(label: str, cells: Sequence[str], indent: int = 0) -> str:
    name = f"{'  ' * indent}{label}"
    return f"  {name:<{LABEL_W}}" + "".join(f"{c:>{AMT_W}}" for c in cells)


def _columns(buckets: Sequence[Bucket]) -> list[str]:
    return [b.token for b in buckets]


def _amount_cells(amounts: dict[str, Decimal], total: Decimal, tokens: list[str]) -> list[str]:
    return [_fmt(amounts.get(t, Decimal("0"))) for t in tokens] + [_fmt(total)]


def _section_lines(
    section: StatementSection,
    tokens: list[str],
    with_percentages: bool,
    places: int,
) -> list[str]:
    out = [f"  {section.label}"]
    for row in section.rows:
        cells = _amount_cells(row.amounts, row.total, tokens)
        if with_percentages:
            cells.append(format_percentage(row.total_percentage, places))
        label = f"{row.label} [+]" if row.is_collapsed else row.label
        out.append(_line(label, cells, indent=row.level + 1))
    cells = _amount_cells(section.amounts, section.total, tokens)
    if with_percentages:
        cells.append(format_percentage(section.total_percentage, places))
    out.append(_line(f"Total {section.label}", cells, indent=1))
    out.append("")
    return out


def _header_line(buckets: Sequence[Bucket], with_percentages: bool) -> str:
    cells = [b.label for b in buckets] + ["Total"]
    if with_percentages:
        cells.append("%")
    return _line("", cells)


# ===================================================================
# Report renderers
# ===================================================================


def render_profit_and_loss(
    report: ProfitAndLossReport,
    with_percentages: bool = False,
    places: int = 1,
) -> str:
    meta = report.metadata
    tokens = _columns(report.buckets)
    out = _hdr(
        "PROFIT AND LOSS",
        f"{meta.period_start} to {meta.period_end}  -  {meta.entity_name}",
    )
    out.append(_header_line(report.buckets, with_percentages))
    for section in (report.revenue, report.cogs):
        out.extend(_section_lines(section, tokens, with_percentages, places))
    cells = _amount_cells(report.gross_profit, report.gross_profit_total, tokens)
    if with_percentages:
        cells.append(format_percentage(report.gross_profit_percentage, places))
    out.append(_line("GROSS PROFIT", cells))
    out.append("")
    out.extend(_section_lines(report.expenses, tokens, with_percentages, places))
    cells = _amount_cells(report.net_income, report.net_income_total, tokens)
    if with_percentages:
        cells.append(format_percentage(report.net_income_percentage, places))
    out.append(_line("NET INCOME", cells))
    return "\n".join(out)


def render_balance_sheet(
    report: BalanceSheetReport,
    with_percentages: bool = False,
    places: int = 1,
) -> str:
    meta = report.metadata
    out = _hdr("BALANCE SHEET", f"As of {meta.as_of_date}  -  {meta.entity_name}")
    out.append(_header_line((), with_percentages))
    for section in (report.assets, report.liabilities, report.equity):
        out.extend(_section_lines(section, [], with_percentages, places))
    out.append(_line("TOTAL LIABILITIES & EQUITY", [_fmt(report.total_liabilities_and_equity)]))
    tag = "OK" if report.is_balanced else "OUT OF BALANCE"
    out.append(f"  [{tag}] Assets = Liabilities + Equity")
    return "\n".join(out)


def _figure_rows(figures: Sequence[CashFlowFigures]) -> list[tuple[str, list[Decimal], int]]:
    def pick(getter):
        return [getter(f) for f in figures]

    return [
        ("Operating Activities", [], 0),
        ("Revenue", pick(lambda f: f.operating.revenue), 1),
        ("Cost of Goods Sold", pick(lambda f: f.operating.cogs), 1),
        ("Expenses", pick(lambda f: f.operating.expenses), 1),
        ("Net Income", pick(lambda f: f.operating.net_income), 1),
        ("Investing Activities", [], 0),
        ("Increase in Non-Bank Assets", pick(lambda f: f.investing.increase_in_assets), 1),
        ("Net Investing Change", pick(lambda f: f.investing.net_investing_change), 1),
        ("Financing Activities", [], 0),
        ("Increase in Liabilities", pick(lambda f: f.financing.increase_in_liabilities), 1),
        ("Owner Contributions", pick(lambda f: f.financing.owner_contributions), 1),
        ("Owner Distributions", pick(lambda f: f.financing.owner_distributions), 1),
        ("Net Financing Change", pick(lambda f: f.financing.net_financing_change), 1),
        ("Net Change in Cash", pick(lambda f: f.net_change_in_cash), 0),
        ("Beginning Bank Balance", pick(lambda f: f.beginning_balance), 0),
        ("Ending Bank Balance", pick(lambda f: f.ending_balance), 0),
    ]


def render_cash_flow(
    report: CashFlowReport,
    with_percentages: bool = False,
    places: int = 1,
) -> str:
    meta = report.metadata
    out = _hdr(
        "CASH FLOW",
        f"{meta.period_start} to {meta.period_end}  -  {meta.entity_name}",
    )
    out.append(_header_line(report.buckets, with_percentages))
    figures = [report.columns[b.token] for b in report.buckets] + [report.total]
    for label, values, indent in _figure_rows(figures):
        out.append(_line(label, [_fmt(v) for v in values], indent=indent))
    out.append("")
    tokens = _columns(report.buckets)
    for section in report.sections:
        out.extend(_section_lines(section, tokens, with_percentages, places))
    return "\n".join(out)


# ===================================================================
# Entry point
# ===================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="books-report",
        description="Print financial reports from a books snapshot (YAML or JSON).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "report",
        choices=("pnl", "balance-sheet", "cash-flow"),
        help="Report to generate.",
    )
    parser.add_argument("snapshot", type=Path, help="Path to the snapshot file.")
    parser.add_argument(
        "--preset",
        choices=[p.value for p in PeriodPreset],
        default=None,
        help="Named period (default: configured preset).",
    )
    parser.add_argument("--start", default=None, help="Period start (YYYY-MM-DD).")
    parser.add_argument("--end", default=None, help="Period end (YYYY-MM-DD).")
    parser.add_argument(
        "--as-of",
        default=None,
        help="Balance sheet date (YYYY-MM-DD). Default: end of the preset period.",
    )
    parser.add_argument(
        "--granularity",
        choices=("month", "quarter", "total"),
        default=None,
        help="Bucket columns (default: configured granularity).",
    )
    parser.add_argument(
        "--percentages",
        action="store_true",
        help="Show percent of revenue (P&L) or of total assets (balance sheet).",
    )
    parser.add_argument(
        "--collapse",
        action="extend",
        nargs="+",
        default=[],
        metavar="ACCOUNT_ID",
        help="Show these parent accounts rolled up.",
    )
    parser.add_argument(
        "--collapse-all",
        action="store_true",
        help="Show every parent account rolled up.",
    )
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of a table.")
    parser.add_argument("--config", type=Path, default=None, help="Reporting config YAML.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Structured log level on stderr (default: WARNING).",
    )
    return parser


def _run(args: argparse.Namespace) -> int:
    config = (
        ReportingConfig.from_yaml(args.config) if args.config else ReportingConfig.with_defaults()
    )
    snapshot = load_snapshot(args.snapshot)
    service = ReportingService.from_snapshot(snapshot, config=config)
    granularity = Granularity.parse(args.granularity) if args.granularity else None

    period = None
    if args.report != "balance-sheet":
        period = service.resolve_period(args.preset, args.start, args.end)
        if period is None:
            print("No data: the report period is not set.")
            return 0

    collapsed = frozenset(args.collapse) or EXPANDED
    if args.collapse_all:
        collapsed = service.collapse_all(period)

    if args.report == "pnl":
        report = service.profit_and_loss(
            period,
            granularity=granularity,
            collapsed=collapsed,
            with_percentages=args.percentages,
        )
        text = render_profit_and_loss(report, args.percentages, config.percentage_places)
    elif args.report == "balance-sheet":
        report = service.balance_sheet(
            args.as_of,
            preset=args.preset,
            collapsed=collapsed,
            with_percentages=args.percentages,
        )
        if report is None:
            print("No data: the report period is not set.")
            return 0
        text = render_balance_sheet(report, args.percentages, config.percentage_places)
    else:
        report = service.cash_flow(
            period,
            granularity=granularity,
            collapsed=collapsed,
            with_percentages=args.percentages,
        )
        text = render_cash_flow(report, args.percentages, config.percentage_places)

    if args.json:
        print(json.dumps(render_to_dict(report), indent=2))
    else:
        print(text)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=getattr(logging, args.log_level), stream=sys.stderr)

    try:
        return _run(args)
    except FileNotFoundError as exc:
        print(f"ERROR: File not found: {exc.filename}", file=sys.stderr)
        return 1
    except (BooksKernelError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
