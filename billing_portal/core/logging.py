"""Structured log payloads for billing runs and notifications."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class LogContext:
    """Identifiers attached to every billing log line.

    A run-level context is narrowed with ``for_subscription`` or
    ``for_client`` as the run moves through its rows.
    """

    tenant_id: str | None = None
    run_id: str | None = None
    task_name: str | None = None
    subscription_id: str | None = None
    client_id: str | None = None
    user_id: str | None = None
    trace_id: str | None = None

    def for_subscription(self, subscription_id: str) -> "LogContext":
        return replace(self, subscription_id=subscription_id, client_id=None)

    def for_client(self, client_id: str) -> "LogContext":
        return replace(self, client_id=client_id, subscription_id=None)


_ID_FIELDS = ("tenant_id", "run_id", "task_name", "subscription_id", "client_id", "user_id", "trace_id")


def build_log_event(event: str, context: LogContext, **fields: Any) -> dict[str, Any]:
    """Build the ``extra`` payload for one log line.

    Unset identifiers are left out so a tenant-level line does not carry
    empty subscription or client keys.
    """
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
    }
    for name in _ID_FIELDS:
        value = getattr(context, name)
        if value is not None:
            payload[name] = value
    payload.update(fields)
    return payload
