"""Celery application for background GitHub housekeeping."""

from celery import Celery

from inkwell.core.config import get_settings

GITHUB_QUEUE = "github"


def create_celery_app() -> Celery:
    """Create the Celery app, using the configured Redis as broker and backend."""
    settings = get_settings()
    redis_url = str(settings.redis_url)

    app = Celery(
        "inkwell",
        broker=redis_url,
        backend=redis_url,
        include=["inkwell.worker.tasks"],
    )

    app.conf.update(
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone="UTC",
        enable_utc=True,
        # Cleanup tasks are idempotent, so redelivery after a crash is safe
        task_acks_late=True,
        task_reject_on_worker_lost=True,
        result_expires=24 * 3600,
        task_default_queue=GITHUB_QUEUE,
        task_routes={"inkwell.worker.tasks.*": {"queue": GITHUB_QUEUE}},
    )

    return app


celery_app = create_celery_app()
