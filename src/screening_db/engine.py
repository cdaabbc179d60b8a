"""Async engine, session factory and transactional session scope.

One engine per process, built on first use from ``get_async_url()`` and the
``PG_POOL_*`` variables.  The API commits through ``get_db``; scripts such
as the catalog seeder use ``session_scope()`` instead.
"""

import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from screening_db.config import get_async_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolSettings:
    size: int = 5
    max_overflow: int = 10
    recycle_seconds: int = 1800
    echo: bool = False


def pool_settings_from_env() -> PoolSettings:
    """Read pool sizing from ``PG_POOL_SIZE``, ``PG_MAX_OVERFLOW``, ``PG_POOL_RECYCLE`` and ``PG_ECHO``."""
    return PoolSettings(
        size=int(os.getenv("PG_POOL_SIZE", "5")),
        max_overflow=int(os.getenv("PG_MAX_OVERFLOW", "10")),
        recycle_seconds=int(os.getenv("PG_POOL_RECYCLE", "1800")),
        echo=os.getenv("PG_ECHO", "").lower() in ("1", "true", "yes"),
    )


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        pool = pool_settings_from_env()
        _engine = create_async_engine(
            get_async_url(),
            echo=pool.echo,
            pool_size=pool.size,
            max_overflow=pool.max_overflow,
            pool_recycle=pool.recycle_seconds,
            pool_pre_ping=True,
        )
        logger.info(
            "Database engine created (pool_size=%d, max_overflow=%d)",
            pool.size, pool.max_overflow,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        # Rows stay readable after commit so services can return them
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Yield a session that commits on success and rolls back on error."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _session_factory = None
