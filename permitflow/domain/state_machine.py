from __future__ import annotations

from enum import StrEnum


class ApplicationStatus(StrEnum):
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    INSPECTION_SCHEDULED = "inspection_scheduled"
    INSPECTION_COMPLETED = "inspection_completed"
    FOLLOW_UP_REQUIRED = "follow_up_required"
    FOLLOW_UP_COMPLETED = "follow_up_completed"
    APPROVED = "approved"
    REJECTED = "rejected"
    NOC_ISSUED = "noc_issued"
    LICENSE_ISSUED = "license_issued"


# noc_issued and license_issued are entered only by certificate and license
# issuance, which records the status directly.
ALLOWED_TRANSITIONS: dict[ApplicationStatus, set[ApplicationStatus]] = {
    ApplicationStatus.SUBMITTED: {
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.INSPECTION_SCHEDULED,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.UNDER_REVIEW: {
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.INSPECTION_SCHEDULED,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.INSPECTION_SCHEDULED: {
        ApplicationStatus.INSPECTION_SCHEDULED,
        ApplicationStatus.INSPECTION_COMPLETED,
        ApplicationStatus.FOLLOW_UP_REQUIRED,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.INSPECTION_COMPLETED: {
        ApplicationStatus.FOLLOW_UP_REQUIRED,
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.FOLLOW_UP_REQUIRED: {
        ApplicationStatus.FOLLOW_UP_REQUIRED,
        ApplicationStatus.FOLLOW_UP_COMPLETED,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.FOLLOW_UP_COMPLETED: {
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.APPROVED: set(),
    ApplicationStatus.REJECTED: set(),
    ApplicationStatus.NOC_ISSUED: set(),
    ApplicationStatus.LICENSE_ISSUED: set(),
}

# Statuses that no longer count towards an inspector's open load.
CLOSED_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.NOC_ISSUED,
        ApplicationStatus.LICENSE_ISSUED,
    }
)

INSPECTION_PENDING_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {
        ApplicationStatus.SUBMITTED,
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.INSPECTION_SCHEDULED,
    }
)

FOLLOW_UP_PENDING_STATUSES: frozenset[ApplicationStatus] = frozenset({ApplicationStatus.FOLLOW_UP_REQUIRED})

NOC_ELIGIBLE_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {
        ApplicationStatus.INSPECTION_COMPLETED,
        ApplicationStatus.FOLLOW_UP_COMPLETED,
        ApplicationStatus.APPROVED,
    }
)


def can_transition(source: ApplicationStatus, target: ApplicationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(source, set())
