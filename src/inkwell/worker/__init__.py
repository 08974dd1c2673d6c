"""Background worker module for Inkwell."""

from inkwell.worker.celery_app import celery_app
from inkwell.worker.tasks import clear_installation

__all__ = [
    "celery_app",
    "clear_installation",
]
