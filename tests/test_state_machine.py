from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from permitflow.domain.errors import ConflictError, PreconditionFailedError
from permitflow.domain.models import Application, ApplicationType
from permitflow.domain.state_machine import ApplicationStatus, can_transition
from permitflow.domain.workflow import apply_transition, is_breaching, record_status

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


def _application(status: ApplicationStatus = ApplicationStatus.SUBMITTED, **overrides: object) -> Application:
    values: dict[str, object] = {
        "application_number": "FD2025000001",
        "application_type": ApplicationType.FIRE_INSPECTION,
        "applicant_id": "user-1",
        "status": status,
        "inspection_deadline": NOW + timedelta(days=7),
    }
    values.update(overrides)
    return Application(**values)


def _move(application: Application, status: ApplicationStatus | str, now: datetime = NOW) -> None:
    apply_transition(application, status, now=now, actor_id="actor-1", remarks=None, followup_deadline_days=5)


def test_transition_table_rules() -> None:
    assert can_transition(ApplicationStatus.SUBMITTED, ApplicationStatus.UNDER_REVIEW)
    assert can_transition(ApplicationStatus.INSPECTION_SCHEDULED, ApplicationStatus.INSPECTION_SCHEDULED)
    assert not can_transition(ApplicationStatus.REJECTED, ApplicationStatus.UNDER_REVIEW)
    assert not can_transition(ApplicationStatus.SUBMITTED, ApplicationStatus.APPROVED)
    assert not can_transition(ApplicationStatus.LICENSE_ISSUED, ApplicationStatus.REJECTED)
    assert not can_transition(ApplicationStatus.INSPECTION_COMPLETED, ApplicationStatus.NOC_ISSUED)
    assert not can_transition(ApplicationStatus.APPROVED, ApplicationStatus.NOC_ISSUED)
    assert not can_transition(ApplicationStatus.NOC_ISSUED, ApplicationStatus.LICENSE_ISSUED)


def test_inspection_scheduled_sets_fixed_inspection_deadline() -> None:
    application = _application(inspection_deadline=NOW + timedelta(days=2))
    _move(application, ApplicationStatus.INSPECTION_SCHEDULED)

    assert application.status == ApplicationStatus.INSPECTION_SCHEDULED
    assert application.inspection_deadline == NOW + timedelta(days=7)
    assert application.timeline[-1]["status"] == "inspection_scheduled"


def test_follow_up_required_sets_follow_up_deadline() -> None:
    application = _application(ApplicationStatus.INSPECTION_SCHEDULED)
    _move(application, ApplicationStatus.FOLLOW_UP_REQUIRED)

    assert application.follow_up_deadline == NOW + timedelta(days=5)


def test_follow_up_completed_is_persisted_as_approved() -> None:
    application = _application(ApplicationStatus.FOLLOW_UP_REQUIRED, follow_up_deadline=NOW)
    _move(application, ApplicationStatus.FOLLOW_UP_COMPLETED)

    assert application.status == ApplicationStatus.APPROVED
    assert application.final_decision_deadline == NOW + timedelta(days=3)
    assert [entry["status"] for entry in application.timeline] == ["follow_up_completed", "approved"]


def test_rejection_clears_all_deadlines() -> None:
    application = _application(
        ApplicationStatus.INSPECTION_SCHEDULED,
        follow_up_deadline=NOW + timedelta(days=5),
        final_decision_deadline=NOW + timedelta(days=3),
    )
    _move(application, ApplicationStatus.REJECTED)

    assert application.status == ApplicationStatus.REJECTED
    assert application.deadlines.inspection is None
    assert application.deadlines.follow_up is None
    assert application.deadlines.final_decision is None


def test_illegal_transition_is_refused_and_leaves_record_untouched() -> None:
    application = _application(ApplicationStatus.REJECTED)
    with pytest.raises(ConflictError):
        _move(application, ApplicationStatus.UNDER_REVIEW)
    assert application.status == ApplicationStatus.REJECTED
    assert application.timeline == []


def test_unknown_status_is_a_precondition_failure() -> None:
    with pytest.raises(PreconditionFailedError):
        _move(_application(), "archived")


def test_overdue_flag_clears_once_breach_is_resolved() -> None:
    application = _application(inspection_deadline=NOW - timedelta(days=1), is_overdue=True)
    assert is_breaching(application, NOW)

    _move(application, ApplicationStatus.INSPECTION_SCHEDULED)

    assert application.is_overdue is False


def test_rejection_clears_overdue_flag() -> None:
    application = _application(
        ApplicationStatus.FOLLOW_UP_REQUIRED,
        follow_up_deadline=NOW - timedelta(days=1),
        is_overdue=True,
    )
    later = NOW + timedelta(days=10)
    _move(application, ApplicationStatus.REJECTED, now=later)
    assert application.is_overdue is False


def test_record_status_appends_without_touching_deadlines() -> None:
    application = _application(ApplicationStatus.APPROVED, final_decision_deadline=NOW + timedelta(days=3))
    record_status(application, ApplicationStatus.NOC_ISSUED, now=NOW, actor_id="admin-1", remarks="NOC issued")

    assert application.status == ApplicationStatus.NOC_ISSUED
    assert application.final_decision_deadline == NOW + timedelta(days=3)
    assert application.timeline[-1]["remarks"] == "NOC issued"
