"""Pytest configuration and shared fixtures.

Unit tests use SQLite in memory (fast).
Integration tests use real PostgreSQL via testcontainers (slow, marked).
"""

import os
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from services.coordination.src.coordination.db.models import metadata
from services.coordination.src.coordination.domains.schemas import Actor
from services.coordination.src.coordination.schemas.enums import ActorRole

T0 = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    """Configure test environment before collection."""
    os.environ.setdefault("RUN_MIGRATIONS", "false")
    os.environ.setdefault("RUN_SWEEPER", "false")

    # Register integration marker
    config.addinivalue_line(
        "markers", "integration: tests that require real PostgreSQL (slow)"
    )


# =============================================================================
# UNIT TEST FIXTURES (fast, SQLite in memory)
# =============================================================================

@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    metadata.create_all(eng)
    return eng


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def patient() -> Actor:
    return Actor(id="patient-1", display_name="Ada Patient", role=ActorRole.PATIENT)


@pytest.fixture
def doctor() -> Actor:
    return Actor(id="doctor-1", display_name="Dr. Grey", role=ActorRole.DOCTOR)


@pytest.fixture
def specialist() -> Actor:
    return Actor(id="doctor-2", display_name="Dr. House", role=ActorRole.DOCTOR)


@pytest.fixture
def health_worker() -> Actor:
    return Actor(id="worker-1", display_name="Sam Worker", role=ActorRole.HEALTH_WORKER)


@pytest.fixture
def admin() -> Actor:
    return Actor(id="admin-1", display_name="Admin", role=ActorRole.ADMIN)


# =============================================================================
# INTEGRATION TEST FIXTURES (slow, real PostgreSQL)
# =============================================================================

@pytest.fixture(scope="session")
def postgres_container():
    """Create a PostgreSQL container for integration tests.

    Only created if integration tests are being run.
    """
    from testcontainers.postgres import PostgresContainer

    with PostgresContainer("postgres:15-alpine") as postgres:
        yield postgres


@pytest.fixture
def pg_engine(postgres_container):
    """Create a fresh PostgreSQL engine for each integration test."""
    url = postgres_container.get_connection_url()
    eng = create_engine(url)

    metadata.create_all(eng)

    yield eng

    metadata.drop_all(eng)
    eng.dispose()
