"""Shared service base for session-scoped lookups."""

from __future__ import annotations

from sqlalchemy.orm import Session

from billing_portal.database.db import get_session_factory


class BaseService:
    """Base class for services that operate on a SQLAlchemy session."""

    def __init__(self, db: Session | None = None) -> None:
        self.db = db or get_session_factory()()
