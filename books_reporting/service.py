"""
Reporting Service (``books_reporting.service``).

Responsibility
--------------
Orchestrates report generation -- profit & loss, balance sheet, cash flow
and drill-downs -- over one company's snapshot.  Validates the snapshot
once by building the AccountIndex and LedgerIndex, then hands each request
to the pure builders in ``statements.py`` with a fresh RollupAggregator.

Architecture position
---------------------
**Reporting layer** -- thin glue.  ``ReportingService`` is the public entry
point for report generation.  Constructor: snapshot + ``clock`` + ``config``.

Invariants enforced
-------------------
* Integrity errors (unknown/cross-company references, cycles, duplicate
  ids) are raised from the constructor, before any report is computed.
* Rollup memoisation never outlives one report request.
* Collapse state is a per-call parameter, never service state.

Failure modes
-------------
* Integrity errors from ``books_kernel.exceptions`` at construction.
* Unset or half-set period bounds -> the method returns ``None`` ("no
  data") and logs ``report_skipped_unset_period``.
* ``ReportCancelledError`` when ``should_cancel`` returns True between
  top-level accounts.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from uuid import uuid4

from books_kernel.domain.clock import Clock, SystemClock
from books_kernel.logging_config import LogContext, get_logger
from books_kernel.models.account import Account, AccountType
from books_kernel.models.transaction import Transaction, parse_date
from books_kernel.selectors.account_index import AccountIndex
from books_kernel.selectors.ledger_index import LedgerIndex
from books_kernel.selectors.snapshot_selector import BooksSnapshot
from books_reporting.config import ReportingConfig
from books_reporting.display import EXPANDED, CollapseState, collapse_all
from books_reporting.drilldown import build_drill_down
from books_reporting.models import (
    BalanceSheetReport,
    CashFlowReport,
    DrillDownReport,
    ProfitAndLossReport,
    ReportMetadata,
    ReportType,
)
from books_reporting.periods import (
    Granularity,
    Period,
    PeriodPreset,
    bucket_bounds,
    buckets_for,
    previous_period,
    resolve_period,
)
from books_reporting.rollup import RollupAggregator
from books_reporting.statements import (
    CancelCheck,
    RETAINED_EARNINGS_LABEL,
    build_balance_sheet,
    build_cash_flow,
    build_profit_and_loss,
)

logger = get_logger("reporting.service")

_PNL_TYPES = (AccountType.REVENUE, AccountType.COGS, AccountType.EXPENSE)


class ReportingService:
    """
    Report generation over an immutable books snapshot.

    Contract
    --------
    * Every report method returns a typed report DTO, or ``None`` when the
      period bounds are unset.
    * Independent calls share no mutable state and may run concurrently.

    Guarantees
    ----------
    * No financial logic lives in this class; it resolves periods, builds
      metadata and delegates to ``statements.py``.
    * Clock is injectable for deterministic preset resolution.
    """

    def __init__(
        self,
        accounts: Iterable[Account],
        transactions: Iterable[Transaction],
        *,
        company_id: str | None = None,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._company_id = company_id

        with LogContext.bind(company_id=company_id):
            self.accounts = AccountIndex.build(accounts)
            self.ledger = LedgerIndex.build(transactions, self.accounts, company_id)
            logger.info(
                "reporting_service_initialized",
                extra={
                    "entity_name": self._config.entity_name,
                    "account_count": len(self.accounts),
                    "line_count": len(self.ledger),
                },
            )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: BooksSnapshot,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ) -> ReportingService:
        return cls(
            snapshot.accounts,
            snapshot.transactions,
            company_id=snapshot.company_id,
            clock=clock,
            config=config,
        )

    @property
    def config(self) -> ReportingConfig:
        return self._config

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _aggregator(self) -> RollupAggregator:
        return RollupAggregator(self.accounts, self.ledger)

    def _build_metadata(
        self,
        report_type: ReportType,
        report_id: str,
        period: Period | None = None,
        as_of_date: date | None = None,
        granularity: Granularity = Granularity.TOTAL,
    ) -> ReportMetadata:
        """Build report metadata with injected clock timestamp."""
        return ReportMetadata(
            report_id=report_id,
            report_type=report_type,
            entity_name=self._config.entity_name,
            generated_at=self._clock.now().isoformat(),
            period_start=period.start if period else None,
            period_end=period.end if period else None,
            as_of_date=as_of_date,
            granularity=granularity,
            company_id=self._company_id,
        )

    def _period_or_none(
        self,
        report_type: ReportType,
        period: Period | None,
        preset: PeriodPreset | str | None,
        start: date | str | None,
        end: date | str | None,
    ) -> Period | None:
        if period is not None:
            return period
        resolved = self.resolve_period(preset, start, end)
        if resolved is None:
            logger.info(
                "report_skipped_unset_period",
                extra={
                    "report_type": report_type.value,
                    "preset": str(preset) if preset else None,
                    "start": str(start) if start else None,
                    "end": str(end) if end else None,
                },
            )
        return resolved

    # =========================================================================
    # Periods and collapse state
    # =========================================================================

    def resolve_period(
        self,
        preset: PeriodPreset | str | None = None,
        start: date | str | None = None,
        end: date | str | None = None,
    ) -> Period | None:
        """Manual bounds override the preset; the configured default preset applies otherwise."""
        return resolve_period(
            self._clock.today(),
            preset or self._config.default_preset,
            start,
            end,
        )

    def previous_period(self, period: Period) -> Period:
        return previous_period(period)

    def collapse_all(self, period: Period | None = None) -> CollapseState:
        """Collapse state with every parent row (activity in ``period``) collapsed."""
        if period is None:
            return collapse_all(self.accounts, self.ledger)
        return collapse_all(self.accounts, self.ledger, period.start, period.end)

    # =========================================================================
    # Public API
    # =========================================================================

    def profit_and_loss(
        self,
        period: Period | None = None,
        *,
        preset: PeriodPreset | str | None = None,
        start: date | str | None = None,
        end: date | str | None = None,
        granularity: Granularity | str | None = None,
        collapsed: CollapseState = EXPANDED,
        with_percentages: bool = False,
        should_cancel: CancelCheck | None = None,
    ) -> ProfitAndLossReport | None:
        """
        Generate a profit & loss report.

        Args:
            period: Explicit period; otherwise resolved from preset/start/end.
            granularity: Bucket columns (defaults to config).
            collapsed: Account ids shown in rolled-up form.
            with_percentages: Add percent-of-revenue figures.
            should_cancel: Polled between top-level accounts.
        """
        report_type = ReportType.PROFIT_AND_LOSS
        period = self._period_or_none(report_type, period, preset, start, end)
        if period is None:
            return None
        granularity = Granularity.parse(granularity or self._config.default_granularity)
        report_id = str(uuid4())

        with LogContext.bind(
            company_id=self._company_id,
            report_id=report_id,
            report_type=report_type.value,
        ):
            metadata = self._build_metadata(report_type, report_id, period, granularity=granularity)
            report = build_profit_and_loss(
                self._aggregator(),
                metadata,
                period,
                buckets_for(period, granularity),
                collapsed=collapsed,
                with_percentages=with_percentages,
                zero_threshold=self._config.zero_threshold,
                should_cancel=should_cancel,
            )
            logger.info(
                "profit_and_loss_generated",
                extra={
                    "period_start": period.start.isoformat(),
                    "period_end": period.end.isoformat(),
                    "bucket_count": len(report.buckets),
                    "total_revenue": str(report.revenue.total),
                    "net_income": str(report.net_income_total),
                },
            )
        return report

    def balance_sheet(
        self,
        as_of: date | str | None = None,
        *,
        preset: PeriodPreset | str | None = None,
        collapsed: CollapseState = EXPANDED,
        with_percentages: bool = False,
        should_cancel: CancelCheck | None = None,
    ) -> BalanceSheetReport | None:
        """
        Generate a point-in-time balance sheet.

        Without ``as_of`` the end of the preset period (or the configured
        default preset) is used.
        """
        report_type = ReportType.BALANCE_SHEET
        if as_of in (None, ""):
            period = self._period_or_none(report_type, None, preset, None, None)
            if period is None:
                return None
            as_of_date = period.end
        else:
            as_of_date = parse_date(as_of)
        report_id = str(uuid4())

        with LogContext.bind(
            company_id=self._company_id,
            report_id=report_id,
            report_type=report_type.value,
        ):
            metadata = self._build_metadata(report_type, report_id, as_of_date=as_of_date)
            report = build_balance_sheet(
                self._aggregator(),
                metadata,
                as_of_date,
                epoch=self._config.epoch,
                collapsed=collapsed,
                with_percentages=with_percentages,
                zero_threshold=self._config.zero_threshold,
                should_cancel=should_cancel,
            )
            logger.info(
                "balance_sheet_generated",
                extra={
                    "as_of_date": as_of_date.isoformat(),
                    "total_assets": str(report.total_assets),
                    "total_liabilities": str(report.total_liabilities),
                    "total_equity": str(report.total_equity),
                    "is_balanced": report.is_balanced,
                },
            )
            if not report.is_balanced:
                logger.warning(
                    "balance_sheet_out_of_balance",
                    extra={
                        "difference": str(
                            report.total_assets - report.total_liabilities_and_equity
                        ),
                    },
                )
        return report

    def cash_flow(
        self,
        period: Period | None = None,
        *,
        preset: PeriodPreset | str | None = None,
        start: date | str | None = None,
        end: date | str | None = None,
        granularity: Granularity | str | None = None,
        collapsed: CollapseState = EXPANDED,
        with_percentages: bool = False,
        should_cancel: CancelCheck | None = None,
    ) -> CashFlowReport | None:
        """Generate a cash flow statement with per-bucket columns."""
        report_type = ReportType.CASH_FLOW
        period = self._period_or_none(report_type, period, preset, start, end)
        if period is None:
            return None
        granularity = Granularity.parse(granularity or self._config.default_granularity)
        report_id = str(uuid4())

        with LogContext.bind(
            company_id=self._company_id,
            report_id=report_id,
            report_type=report_type.value,
        ):
            metadata = self._build_metadata(report_type, report_id, period, granularity=granularity)
            report = build_cash_flow(
                self._aggregator(),
                metadata,
                period,
                buckets_for(period, granularity),
                bank_name_keywords=self._config.bank_name_keywords,
                epoch=self._config.epoch,
                collapsed=collapsed,
                with_percentages=with_percentages,
                zero_threshold=self._config.zero_threshold,
                should_cancel=should_cancel,
            )
            logger.info(
                "cash_flow_generated",
                extra={
                    "period_start": period.start.isoformat(),
                    "period_end": period.end.isoformat(),
                    "bank_account_count": len(report.bank_account_ids),
                    "beginning_balance": str(report.total.beginning_balance),
                    "ending_balance": str(report.total.ending_balance),
                },
            )
        return report

    # =========================================================================
    # Drill-down
    # =========================================================================

    def drill_down(
        self,
        account_ids: str | Iterable[str],
        start: date | str,
        end: date | str,
        label: str | None = None,
    ) -> DrillDownReport:
        """Lines behind an account's (or group's) rollup over [start, end]."""
        ids = (account_ids,) if isinstance(account_ids, str) else tuple(account_ids)
        if label is None:
            label = ", ".join(self.accounts.get(aid).name for aid in ids)
        report = build_drill_down(
            self.accounts, self.ledger, label, ids, parse_date(start), parse_date(end)
        )
        logger.debug(
            "drill_down_generated",
            extra={"account_ids": ids, "line_count": len(report.lines)},
        )
        return report

    def drill_down_bucket(self, account_id: str, token: str) -> DrillDownReport:
        """Lines behind one bucket cell, e.g. ("acct-1", "2024-Q1")."""
        start, end = bucket_bounds(token)
        return self.drill_down(account_id, start, end)

    def drill_down_section(
        self,
        account_types: AccountType | Iterable[AccountType],
        start: date | str,
        end: date | str,
        label: str,
    ) -> DrillDownReport:
        """Lines behind a whole section total (all top-level accounts of the types)."""
        types = (account_types,) if isinstance(account_types, AccountType) else tuple(account_types)
        ids = [a.account_id for t in types for a in self.accounts.roots(t)]
        return self.drill_down(ids, start, end, label=label)

    def retained_earnings_drill_down(self, as_of: date | str) -> DrillDownReport:
        """Revenue, COGS and Expense lines since inception, signed as earnings."""
        ids = [a.account_id for t in _PNL_TYPES for a in self.accounts.roots(t)]
        return build_drill_down(
            self.accounts,
            self.ledger,
            RETAINED_EARNINGS_LABEL,
            ids,
            self._config.epoch,
            parse_date(as_of),
            sign_as=AccountType.REVENUE,
        )
