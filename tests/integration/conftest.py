"""Integration test conftest - fixtures requiring live services.

Requires:
    - PostgreSQL with migrations applied (alembic upgrade head), reachable
      at TEST_DATABASE_URL (postgresql+asyncpg://...)

Usage:
    TEST_DATABASE_URL=... pytest tests/integration/ -m integration
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from src.infra.db import create_db_engine, create_session_factory

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


@pytest.fixture
async def live_session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory bound to the test database; skipped when unset."""
    url = os.environ.get("TEST_DATABASE_URL", "")
    if not url:
        pytest.skip("TEST_DATABASE_URL not set")
    engine = create_db_engine(url, pool_size=2, max_overflow=0)
    try:
        yield create_session_factory(engine)
    finally:
        await engine.dispose()
