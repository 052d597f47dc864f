"""
Tests for the pure statement builders.

Profit & loss, balance sheet and cash flow over small hand-checked
ledgers built on the shared small-business chart.
"""

import json
from datetime import date
from decimal import Decimal

import pytest

from books_kernel.exceptions import ReportCancelledError
from books_kernel.models.account import AccountType
from books_kernel.selectors.account_index import AccountIndex
from books_kernel.selectors.ledger_index import LedgerIndex
from books_reporting.models import ReportMetadata, ReportType, RowKind
from books_reporting.percentages import NO_DATA
from books_reporting.periods import Granularity, Period, buckets_for
from books_reporting.rollup import RollupAggregator
from books_reporting.statements import (
    RETAINED_EARNINGS_LABEL,
    build_balance_sheet,
    build_cash_flow,
    build_profit_and_loss,
    classify_for_cash_flow,
    is_bank_account,
    point_in_time_balance,
    render_to_dict,
    retained_earnings,
)
from factories import make_account, make_line, small_business_chart

Q1 = Period(date(2024, 1, 1), date(2024, 3, 31))


def _aggregator(lines, accounts=None) -> RollupAggregator:
    index = AccountIndex.build(accounts or small_business_chart())
    return RollupAggregator(index, LedgerIndex.build(lines, index))


def _metadata(report_type: ReportType) -> ReportMetadata:
    return ReportMetadata(
        report_id="report-1",
        report_type=report_type,
        entity_name="Test Co",
        generated_at="2024-06-15T12:00:00+00:00",
    )


@pytest.fixture
def trading_ledger():
    """Sales of 1000 in January paid into checking, rent of 300 in February."""
    return [
        make_line("chk", "2024-01-15", debit=1000),
        make_line("sales", "2024-01-15", credit=1000),
        make_line("rent", "2024-02-10", debit=300),
        make_line("chk", "2024-02-10", credit=300),
    ]


# =============================================================================
# Profit & Loss
# =============================================================================


class TestProfitAndLoss:
    """Tests for build_profit_and_loss."""

    def test_net_income(self, trading_ledger):
        report = build_profit_and_loss(
            _aggregator(trading_ledger),
            _metadata(ReportType.PROFIT_AND_LOSS),
            Q1,
            buckets_for(Q1, Granularity.MONTH),
        )
        assert report.revenue.total == Decimal("1000")
        assert report.cogs.total == Decimal("0")
        assert report.expenses.total == Decimal("300")
        assert report.gross_profit_total == Decimal("1000")
        assert report.net_income_total == Decimal("700")
        assert report.net_income == {
            "2024-01": Decimal("1000"),
            "2024-02": Decimal("-300"),
            "2024-03": Decimal("0"),
        }

    def test_sections_list_active_top_level_accounts(self, trading_ledger):
        report = build_profit_and_loss(
            _aggregator(trading_ledger), _metadata(ReportType.PROFIT_AND_LOSS), Q1
        )
        assert report.revenue.account_ids == ("sales",)
        assert report.cogs.rows == ()
        assert [r.label for r in report.expenses.rows] == [
            "Operating", "Rent", "Total Operating",
        ]

    def test_outside_period_excluded(self, trading_ledger):
        report = build_profit_and_loss(
            _aggregator(trading_ledger),
            _metadata(ReportType.PROFIT_AND_LOSS),
            Period(date(2024, 2, 1), date(2024, 2, 29)),
        )
        assert report.revenue.total == Decimal("0")
        assert report.net_income_total == Decimal("-300")

    def test_nested_revenue_rolls_up(self):
        lines = [
            make_line("sales", "2024-01-05", credit=100),
            make_line("online", "2024-01-06", credit=250),
            make_line("online", "2024-01-07", debit=50),
        ]
        report = build_profit_and_loss(
            _aggregator(lines), _metadata(ReportType.PROFIT_AND_LOSS), Q1
        )
        rows = {(r.label, r.kind): r for r in report.revenue.rows}
        assert rows[("Sales", RowKind.ACCOUNT)].total == Decimal("100")
        assert rows[("Online Sales", RowKind.ACCOUNT)].total == Decimal("200")
        assert rows[("Total Sales", RowKind.TOTAL)].total == Decimal("300")
        assert report.revenue.total == Decimal("300")

    def test_collapsed_section_total_unchanged(self, trading_ledger):
        aggregator = _aggregator(trading_ledger)
        metadata = _metadata(ReportType.PROFIT_AND_LOSS)
        expanded = build_profit_and_loss(aggregator, metadata, Q1)
        collapsed = build_profit_and_loss(
            aggregator, metadata, Q1, collapsed=frozenset({"opex"})
        )
        assert [r.label for r in collapsed.expenses.rows] == ["Operating"]
        assert collapsed.expenses.total == expanded.expenses.total
        assert collapsed.net_income_total == expanded.net_income_total

    def test_percentages_relative_to_revenue(self, trading_ledger):
        report = build_profit_and_loss(
            _aggregator(trading_ledger),
            _metadata(ReportType.PROFIT_AND_LOSS),
            Q1,
            buckets_for(Q1, Granularity.MONTH),
            with_percentages=True,
        )
        assert report.expenses.total_percentage == Decimal("30")
        assert report.net_income_percentage == Decimal("70")
        assert report.revenue.percentages["2024-01"] == Decimal("100")
        # No revenue in February or March
        assert report.expenses.percentages["2024-02"] is NO_DATA
        assert report.revenue.percentages["2024-03"] is NO_DATA

    def test_cancellation(self, trading_ledger):
        with pytest.raises(ReportCancelledError) as exc_info:
            build_profit_and_loss(
                _aggregator(trading_ledger),
                _metadata(ReportType.PROFIT_AND_LOSS),
                Q1,
                should_cancel=lambda: True,
            )
        assert exc_info.value.code == "REPORT_CANCELLED"
        assert exc_info.value.report_type == "profit_and_loss"

    def test_cancel_check_polled_per_top_level_account(self, trading_ledger):
        calls = []

        def should_cancel():
            calls.append(1)
            return False

        build_profit_and_loss(
            _aggregator(trading_ledger),
            _metadata(ReportType.PROFIT_AND_LOSS),
            Q1,
            should_cancel=should_cancel,
        )
        # Sales and Operating
        assert len(calls) == 2


# =============================================================================
# Balance sheet
# =============================================================================


class TestBalanceSheet:
    """Tests for build_balance_sheet."""

    def test_bank_deposit(self):
        lines = [
            make_line("chk", "2024-03-01", debit=500),
            make_line("own", "2024-03-01", credit=500),
        ]
        report = build_balance_sheet(
            _aggregator(lines), _metadata(ReportType.BALANCE_SHEET), date(2024, 6, 30)
        )
        assert report.total_assets == Decimal("500")
        assert report.total_liabilities == Decimal("0")
        assert report.total_equity == Decimal("500")
        assert report.retained_earnings == Decimal("0")
        assert report.is_balanced

    def test_retained_earnings_line(self, trading_ledger):
        report = build_balance_sheet(
            _aggregator(trading_ledger),
            _metadata(ReportType.BALANCE_SHEET),
            date(2024, 6, 30),
        )
        assert report.total_assets == Decimal("700")
        assert report.retained_earnings == Decimal("700")
        last = report.equity.rows[-1]
        assert last.label == RETAINED_EARNINGS_LABEL
        assert last.kind == RowKind.SYNTHETIC
        assert last.account_id is None
        assert report.total_equity == Decimal("700")
        assert report.is_balanced

    def test_point_in_time(self, trading_ledger):
        report = build_balance_sheet(
            _aggregator(trading_ledger),
            _metadata(ReportType.BALANCE_SHEET),
            date(2024, 1, 31),
        )
        assert report.total_assets == Decimal("1000")
        assert report.retained_earnings == Decimal("1000")

    def test_liabilities_include_credit_cards(self):
        lines = [
            make_line("veh", "2024-01-20", debit=400),
            make_line("cc", "2024-01-20", credit=400),
            make_line("chk", "2024-01-21", debit=1000),
            make_line("loan", "2024-01-21", credit=1000),
        ]
        report = build_balance_sheet(
            _aggregator(lines), _metadata(ReportType.BALANCE_SHEET), date(2024, 1, 31)
        )
        assert report.total_liabilities == Decimal("1400")
        assert report.total_assets == Decimal("1400")
        assert [r.label for r in report.liabilities.rows] == ["Loans", "Visa"]

    def test_out_of_balance_reported_not_raised(self):
        lines = [make_line("chk", "2024-01-05", debit=250)]
        report = build_balance_sheet(
            _aggregator(lines), _metadata(ReportType.BALANCE_SHEET), date(2024, 1, 31)
        )
        assert not report.is_balanced
        assert report.total_assets - report.total_liabilities_and_equity == Decimal("250")

    def test_percentages_relative_to_total_assets(self):
        lines = [
            make_line("chk", "2024-01-05", debit=750),
            make_line("sav", "2024-01-05", debit=250),
            make_line("own", "2024-01-05", credit=1000),
        ]
        report = build_balance_sheet(
            _aggregator(lines),
            _metadata(ReportType.BALANCE_SHEET),
            date(2024, 1, 31),
            with_percentages=True,
        )
        by_label = {r.label: r for r in report.assets.rows}
        assert by_label["Checking"].total_percentage == Decimal("75")
        assert by_label["Savings"].total_percentage == Decimal("25")
        assert report.equity.total_percentage == Decimal("100")

    def test_retained_earnings_helper(self, trading_ledger):
        aggregator = _aggregator(trading_ledger)
        assert retained_earnings(aggregator, date(2024, 12, 31)) == Decimal("700")
        assert retained_earnings(aggregator, date(2023, 12, 31)) == Decimal("0")


# =============================================================================
# Cash flow
# =============================================================================


class TestBankClassification:
    """Tests for is_bank_account and classify_for_cash_flow."""

    @pytest.mark.parametrize(
        "name, account_type, expected",
        [
            ("Operating Account", AccountType.BANK_ACCOUNT, True),
            ("Petty Cash", AccountType.ASSET, True),
            ("BANK of Somewhere", AccountType.ASSET, True),
            ("Equipment", AccountType.ASSET, False),
            ("Bank Loan", AccountType.LIABILITY, True),
            ("Bank Fees", AccountType.EXPENSE, True),
            ("Loans", AccountType.LIABILITY, False),
        ],
    )
    def test_is_bank_account(self, name, account_type, expected):
        assert is_bank_account(make_account("x", name, account_type)) is expected

    def test_custom_keywords(self):
        account = make_account("x", "Till", AccountType.ASSET)
        assert not is_bank_account(account)
        assert is_bank_account(account, ("till",))

    def test_classification(self):
        classification = classify_for_cash_flow(AccountIndex.build(small_business_chart()))
        assert set(classification.bank) == {"chk", "sav"}
        assert set(classification.investing) == {"eqp", "veh"}
        assert set(classification.liabilities) == {"cc", "loan"}
        assert classification.equity == ("own",)

    def test_name_match_overrides_liability_type(self):
        accounts = small_business_chart() + [
            make_account("bl", "Bank Loan", AccountType.LIABILITY),
        ]
        classification = classify_for_cash_flow(AccountIndex.build(accounts))
        assert "bl" in classification.bank
        assert "bl" not in classification.liabilities
        assert set(classification.operating) == {
            "sales", "online", "mat", "opex", "rent", "util",
        }


class TestCashFlow:
    """Tests for build_cash_flow."""

    @pytest.fixture
    def ledger(self):
        return [
            # Opening deposit before the period
            make_line("chk", "2023-12-01", debit=1000),
            make_line("own", "2023-12-01", credit=1000),
            make_line("chk", "2024-01-10", debit=200),
            make_line("sales", "2024-01-10", credit=200),
            # Vehicle bought on the card
            make_line("veh", "2024-01-20", debit=400),
            make_line("cc", "2024-01-20", credit=400),
        ]

    def _report(self, ledger, **kwargs):
        period = Period(date(2024, 1, 1), date(2024, 1, 31))
        return build_cash_flow(
            _aggregator(ledger),
            _metadata(ReportType.CASH_FLOW),
            period,
            buckets_for(period, Granularity.MONTH),
            **kwargs,
        )

    def test_balances(self, ledger):
        report = self._report(ledger)
        assert report.total.beginning_balance == Decimal("1000")
        assert report.total.ending_balance == Decimal("1200")

    def test_activities(self, ledger):
        total = self._report(ledger).total
        assert total.operating.net_income == Decimal("200")
        assert total.investing.increase_in_assets == Decimal("400")
        assert total.investing.net_investing_change == Decimal("-400")
        assert total.financing.increase_in_liabilities == Decimal("400")
        assert total.financing.owner_contributions == Decimal("0")
        assert total.net_change_in_cash == Decimal("200")
        assert total.beginning_balance + total.net_change_in_cash == total.ending_balance

    def test_owner_distribution_is_negated_contribution(self, ledger):
        period = Period(date(2023, 12, 1), date(2023, 12, 31))
        report = build_cash_flow(
            _aggregator(ledger), _metadata(ReportType.CASH_FLOW), period
        )
        financing = report.total.financing
        assert financing.owner_contributions == Decimal("1000")
        assert financing.owner_distributions == Decimal("-1000")
        assert report.total.beginning_balance == Decimal("0")

    def test_bucket_columns(self):
        lines = [
            make_line("chk", "2024-01-10", debit=100),
            make_line("sales", "2024-01-10", credit=100),
            make_line("chk", "2024-02-10", debit=50),
            make_line("sales", "2024-02-10", credit=50),
        ]
        period = Period(date(2024, 1, 1), date(2024, 2, 29))
        report = build_cash_flow(
            _aggregator(lines),
            _metadata(ReportType.CASH_FLOW),
            period,
            buckets_for(period, Granularity.MONTH),
        )
        jan, feb = report.columns["2024-01"], report.columns["2024-02"]
        assert (jan.beginning_balance, jan.ending_balance) == (Decimal("0"), Decimal("100"))
        assert (feb.beginning_balance, feb.ending_balance) == (Decimal("100"), Decimal("150"))
        assert feb.operating.revenue == Decimal("50")
        assert report.total.operating.revenue == Decimal("150")

    def test_detail_sections(self, ledger):
        report = self._report(ledger, with_percentages=True)
        sections = {s.label: s for s in report.sections}
        investing = sections["Changes in Non-Bank Assets"]
        assert investing.account_ids == ("eqp",)
        assert investing.total == Decimal("400")
        assert investing.total_percentage == Decimal("100")
        assert sections["Credit Cards"].total == Decimal("400")
        assert sections["Revenue"].total_percentage == Decimal("100")
        # Savings is a bank account by name, so never an investing row
        assert "sav" not in investing.account_ids

    def test_first_column_opens_at_report_start(self):
        lines = [
            make_line("chk", "2024-01-05", debit=100),
            make_line("sales", "2024-01-05", credit=100),
            make_line("chk", "2024-01-20", debit=50),
            make_line("sales", "2024-01-20", credit=50),
        ]
        period = Period(date(2024, 1, 15), date(2024, 2, 29))
        report = build_cash_flow(
            _aggregator(lines),
            _metadata(ReportType.CASH_FLOW),
            period,
            buckets_for(period, Granularity.MONTH),
        )
        jan = report.columns["2024-01"]
        # The January 5 deposit predates the range, so it opens the report
        assert report.total.beginning_balance == Decimal("100")
        assert jan.beginning_balance == report.total.beginning_balance
        assert jan.ending_balance == Decimal("150")
        assert report.columns["2024-02"].beginning_balance == Decimal("150")

    def test_bank_named_liability_reads_debit_normal(self):
        accounts = [
            make_account("chk", "Checking", AccountType.BANK_ACCOUNT),
            make_account("bl", "Bank Loan", AccountType.LIABILITY),
            make_account("own", "Owner Equity", AccountType.EQUITY),
        ]
        lines = [
            make_line("chk", "2024-01-02", debit=1000),
            make_line("bl", "2024-01-02", debit=200),
            make_line("own", "2024-01-02", credit=1200),
        ]
        period = Period(date(2024, 1, 1), date(2024, 1, 31))
        report = build_cash_flow(
            _aggregator(lines, accounts),
            _metadata(ReportType.CASH_FLOW),
            period,
            buckets_for(period, Granularity.MONTH),
        )
        assert is_bank_account(accounts[1])
        assert set(report.bank_account_ids) == {"chk", "bl"}
        assert report.total.ending_balance == Decimal("1200")
        assert report.total.financing.increase_in_liabilities == Decimal("0")
        sections = {s.label: s for s in report.sections}
        assert "bl" not in sections["Liabilities"].account_ids

    def test_bank_account_ids(self, ledger):
        assert set(self._report(ledger).bank_account_ids) == {"chk", "sav"}


# =============================================================================
# Serialization
# =============================================================================


class TestRenderToDict:
    """Tests for render_to_dict."""

    def test_profit_and_loss(self, trading_ledger):
        report = build_profit_and_loss(
            _aggregator(trading_ledger),
            _metadata(ReportType.PROFIT_AND_LOSS),
            Q1,
            buckets_for(Q1, Granularity.QUARTER),
            with_percentages=True,
        )
        data = render_to_dict(report)
        assert data["net_income_total"] == "700"
        assert data["metadata"]["report_type"] == "profit_and_loss"
        assert data["buckets"][0]["token"] == "2024-Q1"
        assert data["revenue"]["rows"][0]["kind"] == "account"
        json.dumps(data)

    def test_no_data_becomes_none(self):
        report = build_profit_and_loss(
            _aggregator([make_line("rent", "2024-01-05", debit=10)]),
            _metadata(ReportType.PROFIT_AND_LOSS),
            Q1,
            with_percentages=True,
        )
        assert render_to_dict(report)["net_income_percentage"] is None


# =============================================================================
# Reference scenarios
# =============================================================================


class TestReferenceScenarios:
    """Small worked examples with exact expected figures."""

    def test_profit_and_loss_months(self):
        accounts = [
            make_account("sales", "Sales", AccountType.REVENUE),
            make_account("rent", "Rent", AccountType.EXPENSE),
        ]
        lines = [
            make_line("sales", "2024-01-10", credit=1000),
            make_line("rent", "2024-02-05", debit=300),
        ]
        period = Period(date(2024, 1, 1), date(2024, 2, 29))
        report = build_profit_and_loss(
            _aggregator(lines, accounts),
            _metadata(ReportType.PROFIT_AND_LOSS),
            period,
            buckets_for(period, Granularity.MONTH),
        )
        sales = report.revenue.rows[0]
        rent = report.expenses.rows[0]
        assert sales.amounts == {"2024-01": Decimal("1000"), "2024-02": Decimal("0")}
        assert sales.total == Decimal("1000")
        assert rent.amounts == {"2024-01": Decimal("0"), "2024-02": Decimal("300")}
        assert rent.total == Decimal("300")
        assert report.net_income_total == Decimal("700")

    def test_point_in_time_balance_ignores_nominal_start(self):
        accounts = [make_account("chk", "Checking", AccountType.ASSET)]
        lines = [make_line("chk", "2024-01-01", debit=500)]
        aggregator = _aggregator(lines, accounts)
        assert point_in_time_balance(aggregator, "chk", date(2024, 6, 30)) == Decimal("500")
        report = build_balance_sheet(
            aggregator, _metadata(ReportType.BALANCE_SHEET), date(2024, 6, 30)
        )
        assert report.total_assets == Decimal("500")

    def test_cash_flow_balances(self):
        accounts = [make_account("chk", "Checking", AccountType.BANK_ACCOUNT)]
        lines = [
            make_line("chk", "2024-01-01", debit=1000),
            make_line("chk", "2024-02-15", debit=200),
        ]
        report = build_cash_flow(
            _aggregator(lines, accounts),
            _metadata(ReportType.CASH_FLOW),
            Period(date(2024, 2, 1), date(2024, 2, 28)),
        )
        assert report.total.beginning_balance == Decimal("1000")
        assert report.total.ending_balance == Decimal("1200")
