from __future__ import annotations

import os
from dataclasses import dataclass

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_INSPECTION_DEADLINE_DAYS = 7
DEFAULT_FOLLOWUP_DEADLINE_DAYS = 5
DEFAULT_LICENSE_RENEWAL_REMINDER_DAYS = 30
DEFAULT_NOC_VALIDITY_MONTHS = 12
DEFAULT_LICENSE_VALIDITY_YEARS = 1
DEFAULT_OVERDUE_CHECK_INTERVAL_SECONDS = 3600


def env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("config.invalid_int", name=name, value=raw, default=default)
        return default


def env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class WorkflowSettings:
    inspection_deadline_days: int = DEFAULT_INSPECTION_DEADLINE_DAYS
    followup_deadline_days: int = DEFAULT_FOLLOWUP_DEADLINE_DAYS
    license_renewal_reminder_days: int = DEFAULT_LICENSE_RENEWAL_REMINDER_DAYS
    noc_validity_months: int = DEFAULT_NOC_VALIDITY_MONTHS
    license_validity_years: int = DEFAULT_LICENSE_VALIDITY_YEARS
    scheduler_enabled: bool = False
    overdue_check_interval_seconds: int = DEFAULT_OVERDUE_CHECK_INTERVAL_SECONDS

    @classmethod
    def from_env(cls) -> WorkflowSettings:
        return cls(
            inspection_deadline_days=env_int("INSPECTION_DEADLINE_DAYS", DEFAULT_INSPECTION_DEADLINE_DAYS),
            followup_deadline_days=env_int("FOLLOWUP_DEADLINE_DAYS", DEFAULT_FOLLOWUP_DEADLINE_DAYS),
            license_renewal_reminder_days=env_int(
                "LICENSE_RENEWAL_REMINDER_DAYS",
                DEFAULT_LICENSE_RENEWAL_REMINDER_DAYS,
            ),
            noc_validity_months=env_int("NOC_VALIDITY_MONTHS", DEFAULT_NOC_VALIDITY_MONTHS),
            license_validity_years=env_int("LICENSE_VALIDITY_YEARS", DEFAULT_LICENSE_VALIDITY_YEARS),
            scheduler_enabled=env_flag("SCHEDULER_ENABLED"),
            overdue_check_interval_seconds=env_int(
                "OVERDUE_CHECK_INTERVAL_SECONDS",
                DEFAULT_OVERDUE_CHECK_INTERVAL_SECONDS,
            ),
        )
