"""
Database Engine & Session Management
=============================================================================
CONCEPT: Async SQLAlchemy, built on demand

The SQL store is OPTIONAL: most deployments use the remote record store,
so nothing here connects at import time. The adapter factory calls
`build_engine(settings.database_url)` only when a database URL is
configured, and owns the engine for the life of the process.

POOL SETTINGS (server databases only):
  - pool_size=10 / max_overflow=5: the portal is low-traffic internal tooling
  - pool_pre_ping=True: check a pooled connection is alive before use
  - pool_recycle=3600: replace connections after an hour

SQLite URLs (sqlite+aiosqlite://, used by the tests and local demos) get no
pool arguments: SQLite's async driver uses its own static pool.
=============================================================================
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)
    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=10,
        max_overflow=5,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: rows stay readable after commit without a reload
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_models(engine: AsyncEngine) -> None:
    """
    Create all tables that do not exist yet.

    Production schemas are managed by Alembic (migrations/); this is for
    SQLite demos and the test-suite.
    """
    # Registers the *Record classes on Base.metadata
    from ops_portal.db import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
