"""Celery application bootstrap."""

from __future__ import annotations

import os

from celery import Celery
from celery.schedules import crontab

from billing_portal.core.config import get_config

config = get_config()

celery_app = Celery(
    "billing_portal",
    broker=config.CELERY_BROKER_URL,
    backend=config.CELERY_RESULT_BACKEND,
    include=["billing_portal.tasks.billing_tasks"],
)
celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    beat_schedule={
        "generate-due-invoices-daily": {
            "task": "billing.generate_due_invoices",
            "schedule": crontab(hour=config.BILLING_CRON_HOUR, minute=0),
        },
    },
)

# Local/dev convenience: run tasks synchronously when requested.
if os.getenv("CELERY_TASK_ALWAYS_EAGER", "false").lower() in {"1", "true", "yes", "on"}:
    celery_app.conf.task_always_eager = True
