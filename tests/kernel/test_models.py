"""
Tests for the snapshot records: Account and Transaction.

Amount and date parsing must reject bad values instead of coercing them
to zero.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from books_kernel.exceptions import (
    InvalidAmountError,
    InvalidDateError,
    UnknownAccountTypeError,
)
from books_kernel.models.account import Account, AccountType
from books_kernel.models.transaction import (
    Transaction,
    TransactionSource,
    parse_amount,
    parse_date,
)


class TestAccountType:
    """Tests for AccountType.parse."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Asset", AccountType.ASSET),
            ("asset", AccountType.ASSET),
            ("Bank Account", AccountType.BANK_ACCOUNT),
            ("BankAccount", AccountType.BANK_ACCOUNT),
            ("BANK_ACCOUNT", AccountType.BANK_ACCOUNT),
            ("Credit Card", AccountType.CREDIT_CARD),
            ("CreditCard", AccountType.CREDIT_CARD),
            ("cogs", AccountType.COGS),
        ],
    )
    def test_tolerant_spellings(self, raw, expected):
        assert AccountType.parse(raw) is expected

    def test_member_passes_through(self):
        assert AccountType.parse(AccountType.EQUITY) is AccountType.EQUITY

    def test_unknown_type_rejected(self):
        with pytest.raises(UnknownAccountTypeError) as exc_info:
            AccountType.parse("Other Current Asset", account_id="a1")
        assert exc_info.value.account_type == "Other Current Asset"
        assert exc_info.value.account_id == "a1"

    def test_non_string_rejected(self):
        with pytest.raises(UnknownAccountTypeError):
            AccountType.parse(42)


class TestAccount:
    """Tests for the Account record."""

    def test_type_string_is_parsed(self):
        account = Account("a1", "Checking", "Bank Account")
        assert account.account_type is AccountType.BANK_ACCOUNT

    def test_empty_parent_means_root(self):
        account = Account("a1", "Checking", AccountType.ASSET, parent_id="")
        assert account.parent_id is None
        assert account.is_root

    def test_child_is_not_root(self):
        account = Account("a2", "Vehicles", AccountType.ASSET, parent_id="a1")
        assert not account.is_root

    def test_unknown_type_names_account(self):
        with pytest.raises(UnknownAccountTypeError) as exc_info:
            Account("a9", "Mystery", "Suspense")
        assert exc_info.value.account_id == "a9"

    def test_frozen(self):
        account = Account("a1", "Checking", AccountType.ASSET)
        with pytest.raises(AttributeError):
            account.name = "Other"


class TestParseAmount:
    """Tests for debit/credit parsing."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, Decimal("0")),
            ("", Decimal("0")),
            ("  ", Decimal("0")),
            (0, Decimal("0")),
            (12, Decimal("12")),
            ("12.50", Decimal("12.50")),
            (Decimal("3.25"), Decimal("3.25")),
            (0.1, Decimal("0.1")),
        ],
    )
    def test_valid_values(self, raw, expected):
        assert parse_amount(raw) == expected

    def test_float_goes_through_str(self):
        assert parse_amount(0.1) == Decimal("0.1")
        assert parse_amount(0.1) != Decimal(0.1)

    @pytest.mark.parametrize(
        "raw",
        [True, False, "abc", "1,000", float("nan"), float("inf"), "-Infinity",
         Decimal("NaN"), -1, "-0.01", [1], object()],
    )
    def test_invalid_values_raise(self, raw):
        with pytest.raises(InvalidAmountError):
            parse_amount(raw, "debit", "t1")

    def test_error_carries_context(self):
        with pytest.raises(InvalidAmountError) as exc_info:
            parse_amount("oops", "credit", "line-7")
        err = exc_info.value
        assert err.field == "credit"
        assert err.transaction_line_id == "line-7"
        assert err.value == "'oops'"
        assert err.code == "INVALID_AMOUNT"


class TestParseDate:
    """Tests for date parsing."""

    def test_date_passes_through(self):
        assert parse_date(date(2024, 1, 5)) == date(2024, 1, 5)

    def test_datetime_truncated(self):
        assert parse_date(datetime(2024, 1, 5, 23, 59)) == date(2024, 1, 5)

    def test_iso_string(self):
        assert parse_date("2024-01-05") == date(2024, 1, 5)

    def test_timestamp_string_uses_date_part(self):
        assert parse_date("2024-01-05T10:30:00Z") == date(2024, 1, 5)

    @pytest.mark.parametrize("raw", ["", "05/01/2024", "2024-13-01", None, 20240105])
    def test_invalid_dates_raise(self, raw):
        with pytest.raises(InvalidDateError):
            parse_date(raw)


class TestTransaction:
    """Tests for the Transaction record."""

    def test_normalizes_fields(self):
        tx = Transaction(
            transaction_line_id="t1",
            date="2024-03-01",
            chart_account_id="a1",
            debit="100",
            credit=None,
            source="manual",
        )
        assert tx.date == date(2024, 3, 1)
        assert tx.debit == Decimal("100")
        assert tx.credit == Decimal("0")
        assert tx.source is TransactionSource.MANUAL

    def test_transaction_id_defaults_to_line_id(self):
        tx = Transaction("t1", date(2024, 1, 1), "a1", debit=1)
        assert tx.transaction_id == "t1"

    def test_ledger_alias_is_journal(self):
        tx = Transaction("t1", date(2024, 1, 1), "a1", debit=1, source="ledger")
        assert tx.source is TransactionSource.JOURNAL

    def test_negative_amount_rejected_with_line_id(self):
        with pytest.raises(InvalidAmountError) as exc_info:
            Transaction("t9", date(2024, 1, 1), "a1", debit=-5)
        assert exc_info.value.transaction_line_id == "t9"
