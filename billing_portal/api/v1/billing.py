"""Billing run and notification endpoints for API v1."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from billing_portal.api.v1._authz import authenticate, raise_http, verify_cron_secret
from billing_portal.auth.tenant_context import TenantContext, resolve_tenant_context
from billing_portal.core.dependencies import get_billing_run_service, get_db_session, get_notification_dispatcher
from billing_portal.core.exceptions import PortalException, RateLimitError
from billing_portal.models.base import utcnow
from billing_portal.schemas.billing import (
    AdminEmailResponse,
    GenerateInvoicesRequest,
    GenerationRunResponse,
    SendTestEmailRequest,
    sweep_response,
)
from billing_portal.services.billing_run_service import BillingRunService
from billing_portal.services.membership_service import MembershipService
from billing_portal.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(tags=["billing"])


def _operator_context(db: Session, authorization: str | None, tenant_id: str | None = None) -> TenantContext:
    try:
        identity = authenticate(authorization)
        return resolve_tenant_context(
            MembershipService(db=db),
            identity.uid,
            requested_tenant_id=tenant_id,
            require_operator=True,
        )
    except PortalException as exc:
        raise_http(exc)


@router.post("/admin/generate-invoices")
def admin_generate_invoices(
    payload: GenerateInvoicesRequest | None = None,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    service: BillingRunService = Depends(get_billing_run_service),
) -> dict:
    context = _operator_context(db, authorization, tenant_id=payload.tenant_id if payload else None)
    try:
        result = service.run_for_tenant(context.tenant_id)
    except Exception as exc:
        logger.exception(
            "billing.admin_run.failed",
            extra={"event": "billing.admin_run.failed", "tenant_id": context.tenant_id},
        )
        raise_http(exc)
    return GenerationRunResponse.model_validate(result).model_dump(mode="json", by_alias=True)


@router.get("/cron/generate-invoices")
def cron_generate_invoices(
    tenant_id: str | None = Query(default=None, alias="tenantId"),
    x_cron_secret: str | None = Header(default=None, alias="x-cron-secret"),
    authorization: str | None = Header(default=None, alias="Authorization"),
    service: BillingRunService = Depends(get_billing_run_service),
) -> dict:
    try:
        verify_cron_secret(x_cron_secret, authorization)
    except PortalException as exc:
        raise_http(exc)

    ran_at = utcnow()
    single_tenant_id = (tenant_id or "").strip() or None
    try:
        report = service.run_scheduled(single_tenant_id, now=ran_at)
    except Exception as exc:
        logger.exception(
            "billing.cron_run.failed",
            extra={"event": "billing.cron_run.failed", "tenant_id": single_tenant_id},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"ranAt": ran_at.isoformat(), "error": str(exc) or "Generation failed"},
        ) from exc
    return sweep_response(report).model_dump(mode="json", by_alias=True, exclude_none=True)


@router.post("/admin/test-email")
def admin_test_email(
    payload: SendTestEmailRequest | None = None,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> dict:
    context = _operator_context(db, authorization)
    try:
        result = dispatcher.send_test_notification(context.tenant_id, override_to=payload.to if payload else None)
    except RateLimitError as exc:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"error": str(exc), "email": {"attempted": False, "sent": False, "to": None, "error": None}},
        ) from exc
    return {"email": AdminEmailResponse.model_validate(result).model_dump(mode="json", by_alias=True)}
