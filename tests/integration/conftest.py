"""Integration-test fixtures.

These tests need a migrated PostgreSQL (``alembic upgrade head``) reachable
through DATABASE_URL. They are skipped unless WB_INTEGRATION_DB=1.

All integration tests share a single event loop so that the module-level
SQLAlchemy async engine pool (created at import time) stays valid across
the whole session.
"""

import os
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import text

from src.wb_common.database import async_session_factory, engine

_HERE = Path(__file__).parent


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if os.environ.get("WB_INTEGRATION_DB") == "1":
        return
    skip = pytest.mark.skip(reason="set WB_INTEGRATION_DB=1 to run against PostgreSQL")
    for item in items:
        if _HERE in Path(str(item.fspath)).parents:
            item.add_marker(skip)


@pytest_asyncio.fixture(loop_scope="session", scope="session", autouse=True)
async def _dispose_engine() -> AsyncIterator[None]:
    yield
    await engine.dispose()


@pytest_asyncio.fixture(loop_scope="session")
async def make_user_row() -> Callable[..., Awaitable[str]]:
    """Insert a verified user directly; returns its id."""

    async def _make(role: str = "user") -> str:
        uid = uuid.uuid4().hex[:8]
        async with async_session_factory() as db:
            row = await db.execute(
                text("""
                    INSERT INTO users (username, email, password_hash, first_name, last_name,
                                       role, is_email_verified, email_verified_at)
                    VALUES (:username, :email, 'x', 'Test', 'User', :role, TRUE, NOW())
                    RETURNING id
                """),
                {"username": f"u_{uid}", "email": f"{uid}@example.com", "role": role},
            )
            user_id = str(row.scalar_one())
            await db.commit()
        return user_id

    return _make
