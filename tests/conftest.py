"""Shared test fixtures."""

import os

# Settings require a JWT secret; set one before anything imports config.settings.
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")

from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402

from tests.fakes import FakeClock  # noqa: E402


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mock_db() -> MagicMock:
    """Stand-in AsyncSession: begin_nested() works as an async context manager."""
    return MagicMock()
