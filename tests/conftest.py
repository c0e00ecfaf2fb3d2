"""
Pytest configuration and shared fixtures for the test suite.

Provides:
- Pytest markers for test categorization
- In-memory SQLite engine with the test schema
- Mocked executor fixtures for loader tests
- Record factories and a sample loader subclass
"""

from typing import Optional
from unittest.mock import MagicMock

import pytest
from sqlalchemy import Integer, String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from bulk_process.bulk import BulkLoader
from bulk_process.config import settings
from bulk_process.db import close_engines
from bulk_process.executor import SqlExecutor, TableQuery, reset_default_executor


# =============================================================================
# PYTEST MARKERS CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests that run against a real (SQLite) database",
    )


# =============================================================================
# SETTINGS ISOLATION
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Ignore any developer .env / shell overrides and reset shared state."""
    for name in ("DATABASE_URL", "ALLOW_SQLITE_FALLBACK", "SQLITE_PATH", "BULK_CHUNK_LIMIT", "DEBUG"):
        monkeypatch.delenv(name, raising=False)
    settings.cache_clear()
    yield
    settings.cache_clear()
    reset_default_executor()
    close_engines()


# =============================================================================
# SCHEMA
# =============================================================================


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner: Mapped[str] = mapped_column(String(255))


@pytest.fixture
def user_model():
    return User


@pytest.fixture
def account_model():
    return Account


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across connections."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def executor(engine):
    return SqlExecutor(engine)


@pytest.fixture
def mock_executor():
    """
    Executor double whose ``table()`` always returns the same TableQuery mock.

    Usage:
        def test_something(mock_executor):
            query = mock_executor.table.return_value
            ...
            query.insert.assert_called_once()
    """
    executor = MagicMock(spec=SqlExecutor)
    executor.table.return_value = MagicMock(spec=TableQuery)
    return executor


# =============================================================================
# RECORD FIXTURES
# =============================================================================


class EmailLoader(BulkLoader):
    """Loads user dicts; rejects anything without an email address."""

    default_table = "users"

    def validate(self, item):
        return isinstance(item, dict) and "@" in str(item.get("email", ""))

    def format(self, item):
        return {"email": item["email"].lower(), "name": item.get("name")}


@pytest.fixture
def email_loader_cls():
    return EmailLoader


@pytest.fixture
def make_rows():
    """Factory fixture for valid user dicts."""

    def _make_rows(count: int, start: int = 0):
        return [
            {"email": f"User{i}@Example.com", "name": f"User {i}"}
            for i in range(start, start + count)
        ]

    return _make_rows
