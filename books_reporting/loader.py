"""
Snapshot Loader (``books_reporting.loader``).

Responsibility
--------------
Loads a company's books from a YAML or JSON document and parses them into
a ``BooksSnapshot`` of domain objects.  JSON is read through the same
``yaml.safe_load`` call since it is a YAML subset.

Architecture position
---------------------
**Reporting layer** -- file-based counterpart of
``books_kernel.selectors.snapshot_selector``.  Used by the CLI and tests.

Expected document shape::

    company_id: acme            # optional
    accounts:
      - id: "1000"
        name: Checking
        type: Bank Account
        parent_id: null         # optional
    transactions:
      - id: t1
        date: 2024-01-15
        chart_account_id: "1000"
        debit: 500
        credit: 0
    manual_journal_entries:     # optional
      - id: m1
        date: 2024-02-01
        chart_account_id: "1000"
        credit: 20
        je_name: Bank fee

Invariants enforced
-------------------
* The document and each record must be mappings; required keys present.
* Amount, date and account type validation is done by the domain models,
  so their typed errors propagate unchanged.

Failure modes
-------------
* Missing file  -> ``FileNotFoundError`` propagates.
* Malformed YAML/JSON, wrong shape, missing keys -> ``SnapshotFormatError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from books_kernel.exceptions import SnapshotFormatError
from books_kernel.logging_config import get_logger
from books_kernel.models.account import Account
from books_kernel.models.transaction import Transaction, TransactionSource
from books_kernel.selectors.snapshot_selector import (
    MANUAL_ENTRY_DESCRIPTION,
    BooksSnapshot,
)

logger = get_logger("reporting.loader")


def _text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _require(record: dict[str, Any], *keys: str, source: str) -> Any:
    """First present key among ``keys`` (aliases), else SnapshotFormatError."""
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    raise SnapshotFormatError(source, f"missing required key {keys[0]!r} in {record!r}")


def _records(data: dict[str, Any], key: str, source: str) -> list[dict[str, Any]]:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise SnapshotFormatError(source, f"{key!r} must be a list")
    for item in items:
        if not isinstance(item, dict):
            raise SnapshotFormatError(source, f"{key!r} entries must be mappings")
    return items


def parse_account(data: dict[str, Any], source: str = "<document>") -> Account:
    """Parse an Account from a dict (``id``/``account_id``, ``type``/``account_type``)."""
    return Account(
        account_id=str(_require(data, "id", "account_id", source=source)),
        name=str(_require(data, "name", source=source)),
        account_type=_require(data, "type", "account_type", source=source),
        parent_id=_text(data.get("parent_id")),
        company_id=_text(data.get("company_id")),
        subtype=_text(data.get("subtype")),
    )


def parse_transaction(data: dict[str, Any], source: str = "<document>") -> Transaction:
    """Parse a journal line from a dict."""
    line_id = str(_require(data, "id", "transaction_line_id", source=source))
    return Transaction(
        transaction_line_id=line_id,
        date=_require(data, "date", source=source),
        chart_account_id=str(_require(data, "chart_account_id", source=source)),
        debit=data.get("debit"),
        credit=data.get("credit"),
        description=str(data.get("description") or ""),
        transaction_id=_text(data.get("transaction_id")),
        source=data.get("source") or TransactionSource.JOURNAL,
        company_id=_text(data.get("company_id")),
    )


def parse_manual_entry(data: dict[str, Any], source: str = "<document>") -> Transaction:
    """
    Parse a manual journal entry line.

    Description falls back to ``je_name`` then "Manual Entry"; the group id
    falls back to ``reference_number`` then the line id.
    """
    line_id = str(_require(data, "id", "transaction_line_id", source=source))
    return Transaction(
        transaction_line_id=line_id,
        date=_require(data, "date", source=source),
        chart_account_id=str(_require(data, "chart_account_id", source=source)),
        debit=data.get("debit"),
        credit=data.get("credit"),
        description=str(
            data.get("description") or data.get("je_name") or MANUAL_ENTRY_DESCRIPTION
        ),
        transaction_id=_text(data.get("reference_number")),
        source=TransactionSource.MANUAL,
        company_id=_text(data.get("company_id")),
    )


def parse_snapshot(data: Any, source: str = "<document>") -> BooksSnapshot:
    """
    Build a BooksSnapshot from an already-parsed document.

    Journal and manual lines are merged date-ascending, stable on input
    order.
    """
    if not isinstance(data, dict):
        raise SnapshotFormatError(source, "document must be a mapping")
    if "accounts" not in data:
        raise SnapshotFormatError(source, "missing 'accounts'")

    accounts = tuple(
        parse_account(item, source) for item in _records(data, "accounts", source)
    )
    lines = [
        parse_transaction(item, source)
        for item in _records(data, "transactions", source)
    ]
    lines.extend(
        parse_manual_entry(item, source)
        for item in _records(data, "manual_journal_entries", source)
    )
    lines.sort(key=lambda tx: tx.date)

    snapshot = BooksSnapshot(
        company_id=_text(data.get("company_id")),
        accounts=accounts,
        transactions=tuple(lines),
    )
    logger.info(
        "snapshot_parsed",
        extra={
            "source": source,
            "account_count": len(snapshot.accounts),
            "line_count": len(snapshot.transactions),
        },
    )
    return snapshot


def load_snapshot(path: str | Path) -> BooksSnapshot:
    """Read and parse a YAML or JSON snapshot file."""
    path = Path(path)
    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise SnapshotFormatError(str(path), str(exc)) from exc
    return parse_snapshot(data, str(path))
