from __future__ import annotations

import structlog
from sqlmodel import col

from permitflow.domain.deadlines import add_months
from permitflow.domain.errors import ConflictError, PreconditionFailedError
from permitflow.domain.models import (
    Application,
    Certificate,
    CertificateIssueRequest,
    CertificateStatus,
    NocType,
)
from permitflow.domain.state_machine import NOC_ELIGIBLE_STATUSES, ApplicationStatus
from permitflow.domain.workflow import record_status
from permitflow.infra.clock import Clock, SystemClock
from permitflow.infra.dispatcher import NotificationDispatcher
from permitflow.infra.settings import WorkflowSettings
from permitflow.infra.store import EntityStore
from permitflow.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)

NOC_NUMBER_PREFIX = "NOC"


class CertificateService:
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

    def issue_certificate(
        self,
        application_id: str,
        payload: CertificateIssueRequest,
        actor_id: str,
    ) -> tuple[Certificate, Application]:
        now = self._clock.now()
        with EntityStore.open() as store:
            application = store.get(Application, application_id, for_update=True, label="application")
            if application.noc_id is not None:
                raise ConflictError("certificate already issued for application")
            if application.status not in NOC_ELIGIBLE_STATUSES:
                raise PreconditionFailedError(
                    f"application is not eligible for NOC issuance (status: {application.status})"
                )

            validity_months = payload.validity_months or self._settings.noc_validity_months
            certificate = Certificate(
                noc_number=store.next_number(NOC_NUMBER_PREFIX, now),
                application_id=application.id,
                applicant_id=application.applicant_id,
                property_details=application.property_details,
                noc_type=payload.noc_type,
                issued_by=actor_id,
                issued_date=now,
                valid_until=add_months(now, validity_months),
                conditions=payload.conditions,
                restrictions=payload.restrictions,
                remarks=payload.remarks,
                created_at=now,
                updated_at=now,
            )
            store.create(certificate)
            application.noc_id = certificate.id
            record_status(
                application,
                ApplicationStatus.NOC_ISSUED,
                now=now,
                actor_id=actor_id,
                remarks=f"NOC issued: {certificate.noc_number}",
            )
            store.save(application)
            store.commit()

        logger.info(
            "certificate.issued",
            noc_number=certificate.noc_number,
            application_number=application.application_number,
            valid_until=certificate.valid_until.isoformat(),
        )
        self._notifications.certificate_issued(certificate)
        return certificate, application

    def get_certificate(self, certificate_id: str) -> Certificate:
        with EntityStore.open() as store:
            return store.get(Certificate, certificate_id, label="certificate")

    def list_certificates(
        self,
        *,
        status: CertificateStatus | None = None,
        noc_type: NocType | None = None,
        applicant_id: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> list[Certificate]:
        criteria = []
        if status is not None:
            criteria.append(Certificate.status == status)
        if noc_type is not None:
            criteria.append(Certificate.noc_type == noc_type)
        if applicant_id is not None:
            criteria.append(Certificate.applicant_id == applicant_id)
        with EntityStore.open() as store:
            return store.find_many(
                Certificate,
                *criteria,
                order_by=col(Certificate.issued_date).desc(),
                offset=(max(page, 1) - 1) * limit,
                limit=limit,
            )

    def revoke_certificate(self, certificate_id: str, reason: str, actor_id: str) -> Certificate:
        certificate = self._set_status(certificate_id, CertificateStatus.REVOKED, f"Revoked: {reason}", actor_id)
        self._notifications.certificate_revoked(certificate, reason)
        return certificate

    def suspend_certificate(self, certificate_id: str, reason: str, actor_id: str) -> Certificate:
        return self._set_status(certificate_id, CertificateStatus.SUSPENDED, f"Suspended: {reason}", actor_id)

    def _set_status(
        self,
        certificate_id: str,
        status: CertificateStatus,
        remarks: str,
        actor_id: str,
    ) -> Certificate:
        now = self._clock.now()
        with EntityStore.open() as store:
            certificate = store.get(Certificate, certificate_id, for_update=True, label="certificate")
            if certificate.status == CertificateStatus.REVOKED:
                raise ConflictError("certificate already revoked")
            certificate.status = status
            certificate.remarks = remarks
            certificate.updated_at = now
            store.save(certificate)
            store.commit()
        logger.info("certificate.status_changed", noc_number=certificate.noc_number, status=str(status), actor_id=actor_id)
        return certificate
