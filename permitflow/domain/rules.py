from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from permitflow.domain.deadlines import add_years, as_utc, days_until
from permitflow.domain.models import ComplianceStatus, License, LicenseStatus


def overall_compliance(checklist_items: Sequence[dict[str, Any]]) -> int | None:
    if not checklist_items:
        return None
    compliant = sum(1 for item in checklist_items if item.get("status") == ComplianceStatus.COMPLIANT)
    total = len(checklist_items)
    # Half-up rounding: 5 of 8 compliant reports 63, not 62.
    return (200 * compliant + total) // (2 * total)


def needs_renewal_reminder(license: License, now: datetime, reminder_days: int) -> bool:
    if license.status != LicenseStatus.ACTIVE or license.reminder_sent:
        return False
    remaining = days_until(license.valid_until, now)
    return 0 < remaining <= reminder_days


def renew(license: License, *, years: int, now: datetime, actor_id: str | None) -> dict[str, Any]:
    """Extend from the current expiry, not from now, and record the renewal."""
    previous_expiry = as_utc(license.valid_until)
    new_expiry = add_years(previous_expiry, years)
    entry = {
        "renewed_at": now.isoformat(),
        "previous_expiry": previous_expiry.isoformat(),
        "new_expiry": new_expiry.isoformat(),
        "actor_id": actor_id,
    }
    license.valid_until = new_expiry
    license.status = LicenseStatus.ACTIVE
    license.reminder_sent = False
    license.renewal_history = [*license.renewal_history, entry]
    license.updated_at = now
    return entry
