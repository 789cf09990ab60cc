from __future__ import annotations

import structlog
from sqlmodel import col

from permitflow.domain.deadlines import compute_deadline
from permitflow.domain.errors import ConflictError, PreconditionFailedError
from permitflow.domain.models import (
    Application,
    Inspection,
    InspectionCreate,
    InspectionRescheduleRequest,
    InspectionStatus,
    InspectionUpdate,
    User,
    UserRole,
)
from permitflow.domain.rules import overall_compliance
from permitflow.domain.state_machine import ApplicationStatus
from permitflow.domain.workflow import apply_transition
from permitflow.infra.clock import Clock, SystemClock
from permitflow.infra.dispatcher import NotificationDispatcher
from permitflow.infra.settings import WorkflowSettings
from permitflow.infra.store import EntityStore
from permitflow.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)


class InspectionService:
    def __init__(
        self,
        *,
        clock: Clock | None = None,
        dispatcher: NotificationDispatcher | None = None,
        settings: WorkflowSettings | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._settings = settings or WorkflowSettings.from_env()
        self._notifications = NotificationService(dispatcher)

    def schedule_inspection(self, payload: InspectionCreate, actor_id: str) -> tuple[Inspection, Application]:
        now = self._clock.now()
        inspector_id = payload.inspector_id or actor_id
        with EntityStore.open() as store:
            application = store.get(Application, payload.application_id, for_update=True, label="application")
            if application.inspection_id is not None:
                raise ConflictError("inspection already scheduled for application; reschedule it instead")
            inspector = store.get(User, inspector_id, label="inspector")
            if inspector.role == UserRole.CITIZEN or not inspector.is_active:
                raise PreconditionFailedError("inspection must be assigned to an active inspector")

            inspection = Inspection(
                application_id=application.id,
                inspector_id=inspector.id,
                inspection_date=payload.inspection_date,
                status=InspectionStatus.SCHEDULED,
                created_at=now,
                updated_at=now,
            )
            store.create(inspection)
            apply_transition(
                application,
                ApplicationStatus.INSPECTION_SCHEDULED,
                now=now,
                actor_id=actor_id,
                remarks=f"Inspection scheduled for {payload.inspection_date.date().isoformat()}",
                followup_deadline_days=self._settings.followup_deadline_days,
            )
            application.inspection_id = inspection.id
            store.save(application)
            store.commit()

        logger.info(
            "inspection.scheduled",
            inspection_id=inspection.id,
            application_id=application.id,
            inspection_date=inspection.inspection_date.isoformat(),
        )
        self._notifications.inspection_scheduled(application, inspection)
        return inspection, application

    def get_inspection(self, inspection_id: str) -> Inspection:
        with EntityStore.open() as store:
            return store.get(Inspection, inspection_id, label="inspection")

    def list_inspections(
        self,
        *,
        status: InspectionStatus | None = None,
        inspector_id: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> list[Inspection]:
        criteria = []
        if status is not None:
            criteria.append(Inspection.status == status)
        if inspector_id is not None:
            criteria.append(Inspection.inspector_id == inspector_id)
        with EntityStore.open() as store:
            return store.find_many(
                Inspection,
                *criteria,
                order_by=col(Inspection.inspection_date).desc(),
                offset=(max(page, 1) - 1) * limit,
                limit=limit,
            )

    def update_inspection(self, inspection_id: str, payload: InspectionUpdate, actor_id: str) -> Inspection:
        now = self._clock.now()
        application: Application | None = None
        with EntityStore.open() as store:
            inspection = store.get(Inspection, inspection_id, for_update=True, label="inspection")
            if inspection.status == InspectionStatus.COMPLETED:
                raise ConflictError("inspection already completed")

            if payload.checklist_items is not None:
                inspection.checklist_items = [item.model_dump(mode="json") for item in payload.checklist_items]
                inspection.overall_compliance = overall_compliance(inspection.checklist_items)
            if payload.findings is not None:
                inspection.findings = payload.findings.model_dump(mode="json")
            if payload.inspector_remarks:
                inspection.inspector_remarks = payload.inspector_remarks
            if payload.requires_follow_up is not None:
                inspection.requires_follow_up = payload.requires_follow_up
            if payload.status is not None:
                inspection.status = payload.status
            if inspection.requires_follow_up and inspection.follow_up_deadline is None:
                inspection.follow_up_deadline = compute_deadline(now, self._settings.followup_deadline_days)
            inspection.updated_at = now

            if payload.status == InspectionStatus.COMPLETED:
                inspection.completed_at = now
                application = store.get(Application, inspection.application_id, for_update=True, label="application")
                target = (
                    ApplicationStatus.FOLLOW_UP_REQUIRED
                    if inspection.requires_follow_up
                    else ApplicationStatus.INSPECTION_COMPLETED
                )
                apply_transition(
                    application,
                    target,
                    now=now,
                    actor_id=actor_id,
                    remarks=f"Inspection completed. Overall compliance: {inspection.overall_compliance}%",
                    followup_deadline_days=self._settings.followup_deadline_days,
                )
                store.save(application)

            store.save(inspection)
            store.commit()

        logger.info(
            "inspection.updated",
            inspection_id=inspection.id,
            status=str(inspection.status),
            overall_compliance=inspection.overall_compliance,
        )
        if application is not None:
            self._notifications.status_update(application)
        return inspection

    def reschedule_inspection(
        self,
        inspection_id: str,
        payload: InspectionRescheduleRequest,
        actor_id: str,
    ) -> Inspection:
        now = self._clock.now()
        with EntityStore.open() as store:
            inspection = store.get(Inspection, inspection_id, for_update=True, label="inspection")
            if inspection.status == InspectionStatus.COMPLETED:
                raise ConflictError("completed inspection cannot be rescheduled")
            application = store.get(Application, inspection.application_id, for_update=True, label="application")

            inspection.inspection_date = payload.new_date
            inspection.status = InspectionStatus.RESCHEDULED
            inspection.inspector_remarks = f"Rescheduled: {payload.reason}"
            inspection.updated_at = now
            apply_transition(
                application,
                ApplicationStatus.INSPECTION_SCHEDULED,
                now=now,
                actor_id=actor_id,
                remarks=f"Inspection rescheduled to {payload.new_date.date().isoformat()}",
                followup_deadline_days=self._settings.followup_deadline_days,
            )
            store.save(inspection)
            store.save(application)
            store.commit()

        logger.info("inspection.rescheduled", inspection_id=inspection.id, new_date=payload.new_date.isoformat())
        self._notifications.inspection_scheduled(application, inspection)
        return inspection
