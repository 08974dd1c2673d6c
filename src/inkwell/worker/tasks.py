"""Celery tasks for background processing."""

import asyncio
from typing import Any

import logfire
from celery import Task
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inkwell.db.session import get_session_factory
from inkwell.db.store import clear_installation as clear_installation_settings
from inkwell.worker.celery_app import celery_app


class AsyncTask(Task):
    """Base class for async Celery tasks."""

    _session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Lazy-loaded session factory."""
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory


def run_async(coro: Any) -> Any:
    """Run an async function in a sync context."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@celery_app.task(bind=True, base=AsyncTask, max_retries=3)
def clear_installation(self: AsyncTask, installation_id: int) -> dict[str, Any]:
    """Forget an uninstalled GitHub App installation.

    Clears the installation reference from every user's settings so later
    publishes fail fast with "not connected".

    Args:
        installation_id: The deleted GitHub App installation ID

    Returns:
        Dict with the number of settings rows updated
    """
    return run_async(_clear_installation_async(self, installation_id))


async def _clear_installation_async(task: AsyncTask, installation_id: int) -> dict[str, Any]:
    """Async implementation of installation cleanup."""
    async with task.session_factory() as session:
        try:
            updated = await clear_installation_settings(session, installation_id)
            await session.commit()
        except Exception as e:
            await session.rollback()
            logfire.error(
                "Failed to clear installation",
                installation_id=installation_id,
                error=str(e),
                exc_info=True,
            )
            raise

    if updated == 0:
        logfire.info("No settings referenced installation", installation_id=installation_id)

    return {"installation_id": installation_id, "settings_updated": updated}
