"""Deadline and validity arithmetic.

Day offsets are fixed 24h periods. Month and year offsets follow calendar
rules and clamp to the last day of a shorter month.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta

from dateutil.relativedelta import relativedelta

INSPECTION_SCHEDULED_DEADLINE_DAYS = 7
FINAL_DECISION_DEADLINE_DAYS = 3

SECONDS_PER_DAY = 24 * 60 * 60


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def compute_deadline(base_time: datetime, offset_days: int) -> datetime:
    return as_utc(base_time) + timedelta(days=offset_days)


def add_months(base_time: datetime, months: int) -> datetime:
    return as_utc(base_time) + relativedelta(months=months)


def add_years(base_time: datetime, years: int) -> datetime:
    return as_utc(base_time) + relativedelta(years=years)


def days_until(target: datetime, now: datetime) -> int:
    """Whole days remaining, rounded up; negative once the target has passed."""
    remaining = (as_utc(target) - as_utc(now)).total_seconds()
    return math.ceil(remaining / SECONDS_PER_DAY)


def is_past(deadline: datetime | None, now: datetime) -> bool:
    if deadline is None:
        return False
    return as_utc(deadline) < as_utc(now)
