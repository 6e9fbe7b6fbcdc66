"""
Pytest fixtures for the roster cost engine test suite.

Provides:
- Database sessions with per-test rollback isolation
- Service, selector and engine fixtures wired to a deterministic clock
- Factories for projects, staff and roster entries
- Structured log capture

Environment Variables:
- DATABASE_URL: SQLAlchemy URL of the test database.  Defaults to an
  in-memory SQLite database; point it at PostgreSQL to exercise the
  production locking behaviour (tests marked ``postgres`` need it).
"""

import json
import logging
import os
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from roster_config.schema import EngineConfig
from roster_kernel.db.engine import (
    create_tables,
    drop_tables,
    init_engine_from_url,
    reset_engine,
)
from roster_kernel.domain.clock import DeterministicClock
from roster_kernel.domain.period import Period
from roster_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from roster_kernel.selectors.project_selector import ProjectSelector
from roster_kernel.selectors.roster_selector import RosterSelector
from roster_kernel.selectors.staff_selector import StaffSelector
from roster_kernel.services.project_service import ProjectService
from roster_kernel.services.roster_service import EntryInput, RosterService
from roster_kernel.services.staff_service import StaffService
from roster_services.cost_engine import CostEngine

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

DEFAULT_TEST_URL = "sqlite:///:memory:"


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
    Capture roster_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, project_service):
            project_service.add_sharing(...)
            logs = captured_logs()
            assert any(r["message"] == "sharing_edge_added" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("roster_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )
    config.addinivalue_line(
        "markers", "slow_locks: mark test as potentially waiting for DB locks"
    )


def get_database_url() -> str:
    """Get database URL from environment, or the in-memory SQLite default."""
    return os.environ.get("DATABASE_URL", DEFAULT_TEST_URL)


# =============================================================================
# Session-scoped DB infrastructure (create engine + tables ONCE per suite)
# =============================================================================


@pytest.fixture(scope="session")
def db_engine():
    """Single engine for the entire test session."""
    eng = init_engine_from_url(
        get_database_url(), echo=False,
        pool_size=10, max_overflow=10, pool_timeout=10,
    )
    yield eng
    reset_engine()


@pytest.fixture(scope="session")
def db_tables(db_engine):
    """Create all tables once per session, drop once at end."""
    drop_tables()
    create_tables()
    yield
    drop_tables()


# =============================================================================
# Per-test session with automatic rollback
# =============================================================================


@pytest.fixture(scope="function")
def session(db_tables, db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing.

    The session joins an outer connection-level transaction; any
    ``session.commit()`` inside a test only releases a savepoint, and the
    outer transaction is rolled back at teardown.
    """
    conn = db_engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
    yield sess
    try:
        sess.close()
    finally:
        try:
            trans.rollback()
        finally:
            conn.close()


@pytest.fixture
def test_actor_id() -> UUID:
    """Provide a consistent test actor ID."""
    return TEST_ACTOR_ID


# Clock and configuration fixtures


@pytest.fixture
def deterministic_clock():
    """Clock fixed at 2025-06-15 12:00 UTC: June 2025 is the current period."""
    return DeterministicClock()


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig.with_defaults()


# Service fixtures


@pytest.fixture
def project_service(session, deterministic_clock):
    return ProjectService(session, clock=deterministic_clock)


@pytest.fixture
def staff_service(session):
    return StaffService(session)


@pytest.fixture
def roster_service(session):
    return RosterService(session)


@pytest.fixture
def project_selector(session):
    return ProjectSelector(session)


@pytest.fixture
def staff_selector(session):
    return StaffSelector(session)


@pytest.fixture
def roster_selector(session):
    return RosterSelector(session)


@pytest.fixture
def cost_engine(session, engine_config, deterministic_clock):
    return CostEngine(session, engine_config, deterministic_clock)


# Data factories


@pytest.fixture
def create_project(project_service, test_actor_id):
    """Factory creating a project; returns its ProjectInfo."""

    def _create(name: str | None = None, **kwargs):
        return project_service.create_project(
            name or f"Project {uuid4().hex[:6]}", test_actor_id, **kwargs,
        )

    return _create


@pytest.fixture
def create_staff(staff_service, test_actor_id):
    """Factory creating a staff member; returns its StaffInfo."""

    def _create(project, daily_wage="450", name: str | None = None, **kwargs):
        return staff_service.create_staff(
            project.id,
            name or f"Staff {uuid4().hex[:6]}",
            Decimal(daily_wage),
            test_actor_id,
            **kwargs,
        )

    return _create


@pytest.fixture
def record_shifts(roster_service, test_actor_id):
    """
    Write roster cells for one staff member.

    ``shifts`` maps day -> shift code, or day -> (shift code, is_late).
    Returns the RosterInfo the cells were written to.
    """

    def _record(staff, period: Period, shifts: dict):
        roster = roster_service.get_or_create_roster(staff.project_id, period, test_actor_id)
        cells = []
        for day, value in shifts.items():
            code, late = value if isinstance(value, tuple) else (value, False)
            cells.append(EntryInput(staff.id, day, code, is_late=late))
        if cells:
            roster_service.batch_upsert_entries(roster.id, cells, test_actor_id)
        return roster

    return _record


@pytest.fixture
def work_days(record_shifts):
    """Record a morning shift on every day in ``days``."""

    def _work(staff, period: Period, days, code: str = "1"):
        return record_shifts(staff, period, {day: code for day in days})

    return _work
