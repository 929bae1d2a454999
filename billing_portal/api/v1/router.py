"""Root API router for v1 endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from billing_portal.api.v1 import billing, health, invoices
from billing_portal.core.config import get_config

api_router = APIRouter(prefix=get_config().API_PREFIX)
api_router.include_router(health.router)
api_router.include_router(billing.router)
api_router.include_router(invoices.router)


def get_api_router() -> APIRouter:
    return api_router
