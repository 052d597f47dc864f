"""
Tests for SnapshotSelector against an in-memory SQLite store.

Covers paging, the until bound, company filtering and the manual entry
description / group id fallbacks.
"""

from datetime import date
from decimal import Decimal

import pytest

from books_kernel.db.models import ChartOfAccountsRow, JournalRow, ManualJournalEntryRow
from books_kernel.models.account import AccountType
from books_kernel.models.transaction import TransactionSource
from books_kernel.selectors.snapshot_selector import (
    MANUAL_ENTRY_DESCRIPTION,
    SnapshotSelector,
)


@pytest.fixture
def seeded(session):
    session.add_all([
        ChartOfAccountsRow(id="chk", company_id="acme", name="Checking", type="Bank Account"),
        ChartOfAccountsRow(id="sales", company_id="acme", name="Sales", type="Revenue"),
        ChartOfAccountsRow(
            id="online", company_id="acme", name="Online", type="Revenue", parent_id="sales"
        ),
        ChartOfAccountsRow(id="x", company_id="other", name="Elsewhere", type="Asset"),
    ])
    session.flush()
    session.add_all([
        JournalRow(
            id="j1", company_id="acme", transaction_id="T1", date=date(2024, 1, 10),
            description="Invoice 1", chart_account_id="online",
            debit=Decimal("0"), credit=Decimal("1000"),
        ),
        JournalRow(
            id="j2", company_id="acme", transaction_id="T1", date=date(2024, 1, 10),
            description="Invoice 1", chart_account_id="chk",
            debit=Decimal("1000"), credit=Decimal("0"),
        ),
        JournalRow(
            id="j3", company_id="acme", transaction_id="T2", date=date(2024, 3, 1),
            description=None, chart_account_id="chk",
            debit=Decimal("5"), credit=Decimal("0"),
        ),
        JournalRow(
            id="j9", company_id="other", transaction_id="T9", date=date(2024, 1, 1),
            description="Not ours", chart_account_id="x",
            debit=Decimal("1"), credit=Decimal("0"),
        ),
    ])
    session.add_all([
        ManualJournalEntryRow(
            id="m1", company_id="acme", date=date(2024, 1, 10), description=None,
            je_name="Owner top-up", chart_account_id="chk",
            debit=Decimal("200"), credit=Decimal("0"), reference_number="JE-7",
        ),
        ManualJournalEntryRow(
            id="m2", company_id="acme", date=date(2024, 2, 1), description=None,
            je_name=None, chart_account_id="chk",
            debit=Decimal("0"), credit=Decimal("20"), reference_number=None,
        ),
    ])
    session.commit()
    return session


class TestSnapshotSelector:
    """Tests for reading a company's books."""

    def test_accounts_for_company(self, seeded):
        accounts = SnapshotSelector(seeded).accounts("acme")
        assert {a.account_id for a in accounts} == {"chk", "sales", "online"}
        online = next(a for a in accounts if a.account_id == "online")
        assert online.parent_id == "sales"
        assert online.account_type is AccountType.REVENUE

    def test_load_merges_date_ascending(self, seeded):
        snapshot = SnapshotSelector(seeded).load("acme")
        assert snapshot.company_id == "acme"
        ids = [tx.transaction_line_id for tx in snapshot.transactions]
        # journal lines stay ahead of manual lines on the same date
        assert ids == ["j1", "j2", "m1", "m2", "j3"]

    def test_provenance_tagged(self, seeded):
        snapshot = SnapshotSelector(seeded).load("acme")
        sources = {tx.transaction_line_id: tx.source for tx in snapshot.transactions}
        assert sources["j1"] is TransactionSource.JOURNAL
        assert sources["m1"] is TransactionSource.MANUAL

    def test_manual_fallbacks(self, seeded):
        lines = {tx.transaction_line_id: tx for tx in SnapshotSelector(seeded).manual_lines("acme")}
        assert lines["m1"].description == "Owner top-up"
        assert lines["m1"].transaction_id == "JE-7"
        assert lines["m2"].description == MANUAL_ENTRY_DESCRIPTION
        assert lines["m2"].transaction_id == "m2"

    def test_journal_missing_description_is_empty(self, seeded):
        lines = {tx.transaction_line_id: tx for tx in SnapshotSelector(seeded).journal_lines("acme")}
        assert lines["j3"].description == ""
        assert lines["j1"].credit == Decimal("1000")

    def test_until_bound(self, seeded):
        snapshot = SnapshotSelector(seeded).load("acme", until=date(2024, 1, 31))
        assert {tx.transaction_line_id for tx in snapshot.transactions} == {"j1", "j2", "m1"}

    def test_paging_reads_every_row(self, seeded):
        selector = SnapshotSelector(seeded, page_size=1)
        assert len(selector.journal_lines("acme")) == 3
        assert len(selector.manual_lines("acme")) == 2

    def test_no_company_reads_everything(self, seeded):
        snapshot = SnapshotSelector(seeded).load(None)
        assert len(snapshot.accounts) == 4
        assert len(snapshot.transactions) == 6
