"""Engine and session handling for the settings database."""

from collections.abc import AsyncGenerator

import logfire
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from inkwell.core.config import get_settings

# Created on first use so importing the API never needs a database
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the configured database, created on first call."""
    global _engine, _session_factory
    if _session_factory is None:
        settings = get_settings()
        _engine = create_async_engine(
            str(settings.database_url),
            echo=settings.debug,
            pool_pre_ping=True,
        )
        _session_factory = async_sessionmaker(bind=_engine, expire_on_commit=False)
        logfire.debug("Database engine created", environment=settings.environment)
    return _session_factory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request.

    The store helpers only flush; the commit happens here once the route
    returned, and any exception rolls the whole request back.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def close_db() -> None:
    """Dispose of the engine; the next session creates a new one."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
