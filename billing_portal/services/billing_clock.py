"""Calendar arithmetic for subscription billing dates."""

from __future__ import annotations

import calendar
from datetime import datetime

from billing_portal.core.enums import BillingInterval


def _clamped(value: datetime, year: int, month: int) -> datetime:
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last_day))


def add_months(value: datetime, months: int) -> datetime:
    """Shift by whole calendar months, clamping to the target month's last day."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    return _clamped(value, year, month)


def advance_monthly(value: datetime) -> datetime:
    """One calendar month later; Jan 31 becomes Feb 28 or Feb 29."""
    return add_months(value, 1)


def advance_yearly(value: datetime) -> datetime:
    """One calendar year later; Feb 29 becomes Feb 28 in non-leap years."""
    return _clamped(value, value.year + 1, value.month)


def advance(value: datetime, interval: str | BillingInterval) -> datetime:
    interval = BillingInterval(interval)
    if interval is BillingInterval.MONTHLY:
        return advance_monthly(value)
    return advance_yearly(value)


def period_key(value: datetime) -> str:
    """`YYYY-MM` label of the calendar month containing ``value``."""
    return f"{value.year:04d}-{value.month:02d}"
