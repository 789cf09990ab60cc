from __future__ import annotations

from datetime import datetime
from typing import Any

from permitflow.domain.deadlines import (
    FINAL_DECISION_DEADLINE_DAYS,
    INSPECTION_SCHEDULED_DEADLINE_DAYS,
    compute_deadline,
    is_past,
)
from permitflow.domain.errors import ConflictError, PreconditionFailedError
from permitflow.domain.models import Application
from permitflow.domain.state_machine import (
    FOLLOW_UP_PENDING_STATUSES,
    INSPECTION_PENDING_STATUSES,
    ApplicationStatus,
    can_transition,
)


def parse_status(value: str) -> ApplicationStatus:
    try:
        return ApplicationStatus(value)
    except ValueError as exc:
        raise PreconditionFailedError(f"unknown application status: {value}") from exc


def timeline_entry(
    status: ApplicationStatus,
    now: datetime,
    actor_id: str | None,
    remarks: str | None,
) -> dict[str, Any]:
    return {
        "status": status.value,
        "timestamp": now.isoformat(),
        "actor_id": actor_id,
        "remarks": remarks,
    }


def is_breaching(application: Application, now: datetime) -> bool:
    """Whether the overdue sweep would select this application, ignoring the flag itself."""
    status = parse_status(application.status)
    if status in INSPECTION_PENDING_STATUSES and is_past(application.inspection_deadline, now):
        return True
    if status in FOLLOW_UP_PENDING_STATUSES and is_past(application.follow_up_deadline, now):
        return True
    return False


def refresh_overdue_flag(application: Application, now: datetime) -> None:
    # The sweep is the only writer of True; a status change may only lower it.
    if application.is_overdue and not is_breaching(application, now):
        application.is_overdue = False


def record_status(
    application: Application,
    new_status: ApplicationStatus,
    *,
    now: datetime,
    actor_id: str | None,
    remarks: str | None,
) -> None:
    """Set the status and append one timeline entry, without deadline side effects."""
    application.status = new_status
    application.timeline = [
        *application.timeline,
        timeline_entry(new_status, now, actor_id, remarks),
    ]
    application.updated_at = now
    refresh_overdue_flag(application, now)


def apply_transition(
    application: Application,
    new_status: ApplicationStatus | str,
    *,
    now: datetime,
    actor_id: str | None,
    remarks: str | None,
    followup_deadline_days: int,
) -> None:
    target = parse_status(new_status)
    current = parse_status(application.status)
    if not can_transition(current, target):
        raise ConflictError(f"illegal transition: {current} -> {target}")

    application.status = target
    application.timeline = [
        *application.timeline,
        timeline_entry(target, now, actor_id, remarks),
    ]
    application.updated_at = now

    if target == ApplicationStatus.INSPECTION_SCHEDULED:
        application.inspection_deadline = compute_deadline(now, INSPECTION_SCHEDULED_DEADLINE_DAYS)
    elif target == ApplicationStatus.FOLLOW_UP_REQUIRED:
        application.follow_up_deadline = compute_deadline(now, followup_deadline_days)
    elif target == ApplicationStatus.FOLLOW_UP_COMPLETED:
        apply_transition(
            application,
            ApplicationStatus.APPROVED,
            now=now,
            actor_id=actor_id,
            remarks=remarks,
            followup_deadline_days=followup_deadline_days,
        )
        return
    elif target == ApplicationStatus.APPROVED:
        application.final_decision_deadline = compute_deadline(now, FINAL_DECISION_DEADLINE_DAYS)
    elif target == ApplicationStatus.REJECTED:
        application.inspection_deadline = None
        application.follow_up_deadline = None
        application.final_decision_deadline = None

    refresh_overdue_flag(application, now)
