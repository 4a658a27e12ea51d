"""Celery application for the QuickKart orders service.

Only the outbox relay runs here.  Settings come from Django (``CELERY_``
prefix), so ``DJANGO_SETTINGS_MODULE`` is set before the app exists.
"""

import os

import structlog
from celery import Celery
from celery.signals import task_prerun

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("quickkart")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


@task_prerun.connect
def bind_task_context(task_id=None, task=None, **kwargs):
    """Tag every log line of a task run with the task id and name."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(task_id=task_id, task_name=task.name)
