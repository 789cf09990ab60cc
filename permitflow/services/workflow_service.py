from __future__ import annotations

from datetime import datetime

import structlog
from sqlmodel import col

from permitflow.domain.assignment import pick_least_loaded
from permitflow.domain.deadlines import compute_deadline
from permitflow.domain.errors import ConflictError, PreconditionFailedError
from permitflow.domain.models import (
    Application,
    ApplicationCreate,
    ApplicationPriority,
    ApplicationType,
    FollowUpStatus,
    FollowUpUpdateRequest,
    User,
    UserRole,
)
from permitflow.domain.state_machine import CLOSED_STATUSES, ApplicationStatus
from permitflow.domain.workflow import apply_transition, timeline_entry
from permitflow.infra.clock import Clock, SystemClock
from permitflow.infra.dispatcher import NotificationDispatcher
from permitflow.infra.settings import WorkflowSettings
from permitflow.infra.store import EntityStore
from permitflow.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)

APPLICATION_NUMBER_PREFIX = "FD"


class WorkflowService:
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

    def create_application(self, applicant_id: str, payload: ApplicationCreate) -> Application:
        now = self._clock.now()
        with EntityStore.open() as store:
            _ = store.get(User, applicant_id, label="applicant")
            application = Application(
                application_number=store.next_number(APPLICATION_NUMBER_PREFIX, now),
                application_type=payload.application_type,
                applicant_id=applicant_id,
                property_details=payload.property_details.model_dump(mode="json"),
                documents=[item.model_dump(mode="json") for item in payload.documents],
                priority=payload.priority,
                remarks=payload.remarks,
                status=ApplicationStatus.SUBMITTED,
                timeline=[
                    timeline_entry(ApplicationStatus.SUBMITTED, now, applicant_id, "Application submitted"),
                ],
                inspection_deadline=compute_deadline(now, self._settings.inspection_deadline_days),
                created_at=now,
                updated_at=now,
            )
            store.create(application)
            store.commit()

        logger.info(
            "application.created",
            application_id=application.id,
            application_number=application.application_number,
        )
        self._notifications.application_submitted(application)
        return application

    def get_application(self, application_id: str) -> Application:
        with EntityStore.open() as store:
            return store.get(Application, application_id, label="application")

    def list_applications(
        self,
        *,
        status: ApplicationStatus | None = None,
        application_type: ApplicationType | None = None,
        priority: ApplicationPriority | None = None,
        applicant_id: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> list[Application]:
        criteria = []
        if status is not None:
            criteria.append(Application.status == status)
        if application_type is not None:
            criteria.append(Application.application_type == application_type)
        if priority is not None:
            criteria.append(Application.priority == priority)
        if applicant_id is not None:
            criteria.append(Application.applicant_id == applicant_id)
        with EntityStore.open() as store:
            return store.find_many(
                Application,
                *criteria,
                order_by=col(Application.created_at).desc(),
                offset=(max(page, 1) - 1) * limit,
                limit=limit,
            )

    def set_status(
        self,
        application_id: str,
        new_status: ApplicationStatus | str,
        actor_id: str | None,
        remarks: str | None = None,
    ) -> Application:
        now = self._clock.now()
        with EntityStore.open() as store:
            application = store.get(Application, application_id, for_update=True, label="application")
            apply_transition(
                application,
                new_status,
                now=now,
                actor_id=actor_id,
                remarks=remarks,
                followup_deadline_days=self._settings.followup_deadline_days,
            )
            if remarks:
                application.remarks = remarks
            if application.status == ApplicationStatus.REJECTED and remarks:
                application.rejection_reason = remarks
            store.save(application)
            store.commit()

        logger.info(
            "application.status_changed",
            application_id=application.id,
            requested_status=str(new_status),
            status=str(application.status),
        )
        self._notifications.status_update(application)
        return application

    def assign_application(self, application_id: str, inspector_id: str, actor_id: str | None) -> Application:
        now = self._clock.now()
        with EntityStore.open() as store:
            inspector = store.get(User, inspector_id, label="inspector")
            if inspector.role != UserRole.INSPECTOR or not inspector.is_active:
                raise PreconditionFailedError("assignee must be an active inspector")
            application = store.get(Application, application_id, for_update=True, label="application")
            self._assign(application, inspector, actor_id=actor_id, now=now)
            store.save(application)
            store.commit()

        logger.info("application.assigned", application_id=application.id, inspector_id=inspector_id)
        self._notifications.inspector_assigned(application)
        return application

    def auto_assign(self, application_id: str, actor_id: str | None = None) -> Application:
        now = self._clock.now()
        with EntityStore.open() as store:
            application = store.get(Application, application_id, for_update=True, label="application")
            inspectors = store.find_many(
                User,
                User.role == UserRole.INSPECTOR,
                col(User.is_active).is_(True),
                order_by=col(User.created_at),
            )
            loads = [
                (
                    inspector,
                    store.count(
                        Application,
                        Application.assigned_to == inspector.id,
                        col(Application.status).not_in(list(CLOSED_STATUSES)),
                    ),
                )
                for inspector in inspectors
            ]
            selected = pick_least_loaded(loads)
            if selected is None:
                logger.warning("application.auto_assign_no_inspectors", application_id=application_id)
                return application
            self._assign(application, selected, actor_id=actor_id, now=now)
            store.save(application)
            store.commit()

        logger.info(
            "application.auto_assigned",
            application_id=application.id,
            inspector_id=selected.id,
            loads={inspector.id: load for inspector, load in loads},
        )
        self._notifications.inspector_assigned(application)
        return application

    def _assign(self, application: Application, inspector: User, *, actor_id: str | None, now: datetime) -> None:
        apply_transition(
            application,
            ApplicationStatus.UNDER_REVIEW,
            now=now,
            actor_id=actor_id,
            remarks=f"Assigned to {inspector.name}",
            followup_deadline_days=self._settings.followup_deadline_days,
        )
        application.assigned_to = inspector.id

    def update_follow_up(
        self,
        application_id: str,
        payload: FollowUpUpdateRequest,
        actor_id: str | None,
    ) -> Application:
        if payload.requires_additional_follow_up:
            target = ApplicationStatus.FOLLOW_UP_REQUIRED
        elif payload.follow_up_status == FollowUpStatus.COMPLETED:
            target = ApplicationStatus.FOLLOW_UP_COMPLETED
        else:
            raise PreconditionFailedError("follow-up is neither completed nor requiring another visit")

        now = self._clock.now()
        with EntityStore.open() as store:
            application = store.get(Application, application_id, for_update=True, label="application")
            if application.status != ApplicationStatus.FOLLOW_UP_REQUIRED:
                raise ConflictError("application is not awaiting follow-up")
            apply_transition(
                application,
                target,
                now=now,
                actor_id=actor_id,
                remarks=payload.remarks,
                followup_deadline_days=self._settings.followup_deadline_days,
            )
            store.save(application)
            store.commit()

        logger.info("application.follow_up_updated", application_id=application.id, status=str(application.status))
        self._notifications.follow_up_update(application)
        return application

    def delete_application(self, application_id: str) -> None:
        with EntityStore.open() as store:
            application = store.get(Application, application_id, label="application")
            store.delete(application)
            store.commit()
        logger.info("application.deleted", application_id=application_id)
