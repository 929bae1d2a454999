"""Scheduled billing tasks."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from billing_portal.core.dependencies import get_billing_run_service
from billing_portal.schemas.billing import sweep_response
from billing_portal.tasks.celery_app import celery_app
from billing_portal.tasks.hooks import after_task, before_task

logger = logging.getLogger(__name__)

TASK_KEY = "billing.generate_due_invoices"


def run_billing_sweep(tenant_id: str | None = None) -> dict[str, Any]:
    """Run the scheduled billing pass and return the JSON report."""
    context = {"tenant_id": tenant_id, "run_id": f"run-{uuid.uuid4().hex}", "trace_id": uuid.uuid4().hex}
    logger.info("task.start", extra=before_task(TASK_KEY, context))
    try:
        report = get_billing_run_service().run_scheduled(tenant_id)
    except Exception:
        logger.exception("task.failed", extra=after_task(TASK_KEY, context, status="failed"))
        raise
    logger.info(
        "task.finish",
        extra=after_task(
            TASK_KEY,
            context,
            status="succeeded",
            tenant_count=report.tenant_count,
            total_generated=report.total_generated,
            total_errors=report.total_errors,
        ),
    )
    return sweep_response(report).model_dump(mode="json", by_alias=True, exclude_none=True)


@celery_app.task(name=TASK_KEY)
def generate_due_invoices(tenant_id: str | None = None) -> dict[str, Any]:
    return run_billing_sweep(tenant_id)
