"""
Pytest fixtures for the books test suite.

Provides:
- Structured logging configuration and log capture
- LogContext isolation between tests
- Deterministic clock
- In-memory SQLite sessions for the snapshot store
"""

import json
import logging
from collections.abc import Generator
from datetime import date
from io import StringIO

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

import books_kernel.db.models  # noqa: F401  registers the snapshot tables
from books_kernel.db.base import Base
from books_kernel.domain.clock import DeterministicClock
from books_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture books_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.profit_and_loss(...)
            logs = captured_logs()
            assert any(r["message"] == "profit_and_loss_generated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("books_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """Clock fixed at 2024-06-15 12:00 UTC."""
    return DeterministicClock.on(date(2024, 6, 15))


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """Fresh in-memory SQLite database with the snapshot tables."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    sess = Session(bind=engine, expire_on_commit=False)
    yield sess
    sess.close()
    engine.dispose()

