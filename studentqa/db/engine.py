# =============================================================================
# Database Engine & Session Management
# =============================================================================
#
# Two engines share one schema:
#   - async engine (asyncpg) for the FastAPI process and the SQL storage
#     backend
#   - sync engine (psycopg2) for Celery beat tasks, which are synchronous
#
# Both are created lazily on first use: with STORAGE_BACKEND=memory neither
# driver needs to be installed.
#
# SESSION LIFECYCLE:
#   create → yield → commit (or rollback on error) → close
# =============================================================================

from collections.abc import AsyncGenerator, Generator
from contextlib import asynccontextmanager, contextmanager

from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import Session, sessionmaker

from studentqa.config import settings
from studentqa.db.models import Base

# ---------------------------------------------------------------------------
# Async Engine
# ---------------------------------------------------------------------------
# One engine (and session factory) per database URL, so a Settings object
# other than the module-level one gets its own connection pool.

_async_engines: dict[str, AsyncEngine] = {}
_async_session_factories: dict[str, async_sessionmaker[AsyncSession]] = {}


def get_async_engine(url: str | None = None) -> AsyncEngine:
    """Lazily create and cache the async SQLAlchemy engine for `url`."""
    resolved_url = url or settings.database_url
    if resolved_url not in _async_engines:
        kwargs: dict = {"echo": settings.debug}
        if resolved_url.startswith("postgresql"):
            kwargs.update(pool_size=5, max_overflow=10)
        _async_engines[resolved_url] = create_async_engine(resolved_url, **kwargs)
    return _async_engines[resolved_url]


def get_async_session_factory(
    url: str | None = None,
) -> async_sessionmaker[AsyncSession]:
    """
    Lazily create and cache the async session factory for `url`.

    expire_on_commit=False keeps loaded attributes readable after commit,
    which async sessions cannot lazy-load.
    """
    resolved_url = url or settings.database_url
    if resolved_url not in _async_session_factories:
        _async_session_factories[resolved_url] = async_sessionmaker(
            bind=get_async_engine(resolved_url),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _async_session_factories[resolved_url]


async def create_all_tables(engine: AsyncEngine | None = None) -> None:
    """Create any missing tables. Used at startup for the SQL backend."""
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_async_engine() -> None:
    for engine in _async_engines.values():
        await engine.dispose()
    _async_engines.clear()
    _async_session_factories.clear()


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Async session that commits on success and rolls back on error.

    Usage:
        async with session_scope(factory) as session:
            session.add(row)
    """
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ---------------------------------------------------------------------------
# Sync Engine - For Celery Workers
# ---------------------------------------------------------------------------

_sync_engine = None
_sync_session_factory = None


def _get_sync_engine():
    """Lazily create and cache the sync SQLAlchemy engine."""
    global _sync_engine
    if _sync_engine is None:
        _sync_engine = create_engine(
            settings.database_url_sync,
            echo=settings.debug,
            pool_size=5,
            max_overflow=10,
        )
    return _sync_engine


def _get_sync_session_factory():
    """Lazily create and cache the sync session factory."""
    global _sync_session_factory
    if _sync_session_factory is None:
        _sync_session_factory = sessionmaker(
            bind=_get_sync_engine(),
            class_=Session,
            expire_on_commit=False,
        )
    return _sync_session_factory


@contextmanager
def get_sync_session() -> Generator[Session, None, None]:
    """
    Context manager that provides a sync database session for Celery tasks.

    Usage:
        with get_sync_session() as session:
            session.execute(delete(OTPCodeRow).where(...))
            # Auto-commits on exit, auto-rollbacks on exception
    """
    factory = _get_sync_session_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
