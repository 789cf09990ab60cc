"""Periodic sweeps over deadlines, certificate/license expiry and renewal reminders.

Every sweep selects only records that are not yet in the target state, so a
repeated or overlapping run finds nothing left to do for records an earlier run
already handled. A failure on one record is logged and the pass continues.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy import or_
from sqlmodel import col

from permitflow.domain.deadlines import days_until
from permitflow.domain.errors import WorkflowError
from permitflow.domain.models import Application, Certificate, CertificateStatus, License, LicenseStatus
from permitflow.domain.rules import needs_renewal_reminder
from permitflow.domain.state_machine import FOLLOW_UP_PENDING_STATUSES, INSPECTION_PENDING_STATUSES
from permitflow.domain.workflow import is_breaching
from permitflow.infra.clock import Clock, SystemClock
from permitflow.infra.dispatcher import NotificationDispatcher
from permitflow.infra.settings import WorkflowSettings
from permitflow.infra.store import EntityStore
from permitflow.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ExpirySweepResult:
    certificates: int
    licenses: int


class SweeperService:
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

    def _overdue_candidate_ids(self, now: datetime) -> list[str]:
        inspection_breach = (
            col(Application.inspection_deadline).is_not(None)
            & (col(Application.inspection_deadline) < now)
            & col(Application.status).in_(list(INSPECTION_PENDING_STATUSES))
        )
        follow_up_breach = (
            col(Application.follow_up_deadline).is_not(None)
            & (col(Application.follow_up_deadline) < now)
            & col(Application.status).in_(list(FOLLOW_UP_PENDING_STATUSES))
        )
        with EntityStore.open() as store:
            rows = store.find_many(
                Application,
                col(Application.is_overdue).is_(False),
                or_(inspection_breach, follow_up_breach),
                order_by=col(Application.created_at),
            )
        return [row.id for row in rows]

    def run_overdue_sweep(self) -> int:
        now = self._clock.now()
        try:
            candidate_ids = self._overdue_candidate_ids(now)
        except WorkflowError:
            logger.exception("sweep.overdue_query_failed")
            return 0

        processed = 0
        for application_id in candidate_ids:
            try:
                application = self._mark_overdue(application_id, now)
            except Exception:
                logger.exception("sweep.overdue_record_failed", application_id=application_id)
                continue
            if application is None:
                continue
            processed += 1
            logger.info("application.marked_overdue", application_number=application.application_number)
            self._notifications.overdue(application)

        logger.info("sweep.overdue_completed", processed=processed, candidates=len(candidate_ids))
        return processed

    def _mark_overdue(self, application_id: str, now: datetime) -> Application | None:
        with EntityStore.open() as store:
            application = store.get(Application, application_id, for_update=True, label="application")
            # Re-check under the row lock; a concurrent run or transition may have got here first.
            if application.is_overdue or not is_breaching(application, now):
                return None
            application.is_overdue = True
            store.save(application)
            store.commit()
        return application

    def run_expiry_sweep(self) -> ExpirySweepResult:
        now = self._clock.now()
        certificates = self._expire(
            Certificate,
            [Certificate.status == CertificateStatus.ACTIVE, col(Certificate.valid_until) < now],
            {"status": CertificateStatus.EXPIRED, "updated_at": now},
        )
        licenses = self._expire(
            License,
            [License.status == LicenseStatus.ACTIVE, col(License.valid_until) < now],
            {"status": LicenseStatus.EXPIRED, "updated_at": now},
        )
        logger.info("sweep.expiry_completed", certificates=certificates, licenses=licenses)
        return ExpirySweepResult(certificates=certificates, licenses=licenses)

    def _expire(self, model: type[Certificate] | type[License], criteria: list, values: dict) -> int:
        try:
            with EntityStore.open() as store:
                modified = store.update_many(model, criteria, values)
                store.commit()
        except WorkflowError:
            logger.exception("sweep.expiry_failed", kind=model.__tablename__)
            return 0
        return modified

    def run_renewal_reminder_sweep(self) -> int:
        now = self._clock.now()
        reminder_days = self._settings.license_renewal_reminder_days
        try:
            with EntityStore.open() as store:
                candidates = store.find_many(
                    License,
                    License.status == LicenseStatus.ACTIVE,
                    col(License.reminder_sent).is_(False),
                    order_by=col(License.valid_until),
                )
        except WorkflowError:
            logger.exception("sweep.renewal_query_failed")
            return 0

        reminded = 0
        for candidate in candidates:
            if not needs_renewal_reminder(candidate, now, reminder_days):
                continue
            try:
                if self._remind(candidate.id, now, reminder_days):
                    reminded += 1
            except Exception:
                logger.exception("sweep.renewal_record_failed", license_id=candidate.id)

        logger.info("sweep.renewal_reminders_completed", reminded=reminded, candidates=len(candidates))
        return reminded

    def _remind(self, license_id: str, now: datetime, reminder_days: int) -> bool:
        with EntityStore.open() as store:
            license = store.get(License, license_id, for_update=True, label="license")
            if not needs_renewal_reminder(license, now, reminder_days):
                return False
            # Notify before marking: a crash in between repeats the reminder instead of losing it.
            self._notifications.renewal_reminder(license, days_until(license.valid_until, now))
            license.reminder_sent = True
            store.save(license)
            store.commit()
        logger.info("license.renewal_reminder_sent", license_number=license.license_number)
        return True
