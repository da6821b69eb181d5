"""
Pytest fixtures for the statement import test suite.

Provides:
- Structured logging configured once per session, LogContext cleared per test
- captured_logs: finance_statements log records as parsed JSON dicts
- Deterministic clock, user and category ids
- SQLite-backed session factory in tmp_path (no server needed)
- store: parametrized over the in-memory and SQL UploadStore implementations
- coordinator wired to the store and an InMemoryEventPublisher
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from finance_statements.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from finance_statements.domain.clock import DeterministicClock
from finance_statements.domain.types import ParsedLine, ParserResult
from finance_statements.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from finance_statements.services.import_coordinator import ImportCoordinator
from finance_statements.services.publishers import InMemoryEventPublisher
from finance_statements.services.upload_store import InMemoryUploadStore, SqlUploadStore
from finance_statements.settings import ImportSettings


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
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
    Capture finance_statements logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, coordinator):
            coordinator.confirm(...)
            logs = captured_logs()
            assert any(r["message"] == "import_confirmed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("finance_statements")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Identity / time fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock()


@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture
def other_user_id():
    return uuid4()


@pytest.fixture
def category_ids():
    """Three distinct category ids: groceries, dining, transport."""
    return {"groceries": uuid4(), "dining": uuid4(), "transport": uuid4()}


@pytest.fixture
def make_line(category_ids):
    """Factory for ParsedLine with sensible defaults."""

    def _make(
        description: str = "CORNER STORE",
        amount: str = "12.50",
        category: str = "groceries",
        day: int = 3,
        currency: str = "USD",
    ) -> ParsedLine:
        return ParsedLine(
            date=date(2026, 1, day),
            description=description,
            amount=Decimal(amount),
            currency=currency,
            suggested_category_id=category_ids[category],
            original_text=f"01/{day:02d} {description} {amount}",
        )

    return _make


@pytest.fixture
def three_lines(make_line):
    return (
        make_line("FRESH MARKET", "42.10", "groceries", day=2),
        make_line("CITY BISTRO", "18.75", "dining", day=5),
        make_line("METRO TRANSIT", "2.75", "transport", day=9),
    )


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def sqlite_session_factory(tmp_path):
    """Fresh SQLite database file with all tables, per test."""
    init_engine_from_url(f"sqlite:///{tmp_path / 'statements.db'}")
    create_tables()
    yield get_session_factory()
    drop_tables()
    reset_engine()


@pytest.fixture
def sql_store(sqlite_session_factory):
    return SqlUploadStore(sqlite_session_factory)


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Each test using this runs against both UploadStore implementations."""
    if request.param == "memory":
        return InMemoryUploadStore()
    return SqlUploadStore(request.getfixturevalue("sqlite_session_factory"))


@pytest.fixture
def publisher():
    return InMemoryEventPublisher()


@pytest.fixture
def import_settings():
    return ImportSettings()


@pytest.fixture
def coordinator(store, publisher, deterministic_clock, import_settings):
    return ImportCoordinator(
        store, publisher, clock=deterministic_clock, settings=import_settings,
    )


@pytest.fixture
def upload_in_review(coordinator, user_id, three_lines):
    """An upload driven to PENDING_REVIEW with three transactions."""
    upload = coordinator.start_upload(user_id, "january.pdf")
    coordinator.begin_parsing(upload.upload_id, user_id)
    return coordinator.attach_parsed_transactions(
        upload.upload_id, user_id, ParserResult(three_lines),
    )
