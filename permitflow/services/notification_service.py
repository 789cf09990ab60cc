from __future__ import annotations

from typing import Any

import structlog

from permitflow.domain.models import Application, Certificate, Inspection, License
from permitflow.infra.dispatcher import EventBusDispatcher, NotificationDispatcher

logger = structlog.get_logger(__name__)

ADMIN_CHANNEL = "admin"


class NotificationService:
    """Decides who is told about a workflow event and what they are told."""

    def __init__(self, dispatcher: NotificationDispatcher | None = None) -> None:
        self._dispatcher = dispatcher or EventBusDispatcher()

    def _send(self, recipient_id: str | None, event_kind: str, payload: dict[str, Any]) -> None:
        if not recipient_id:
            logger.info("notification.skipped_no_recipient", event_kind=event_kind)
            return
        try:
            self._dispatcher.notify(recipient_id, event_kind, payload)
        except Exception:
            logger.exception("notification.failed", recipient_id=recipient_id, event_kind=event_kind)

    def application_submitted(self, application: Application) -> None:
        self._send(
            application.applicant_id,
            "application_submitted",
            {
                "title": "Application Submitted",
                "message": f"Your application {application.application_number} has been submitted.",
                "application_id": application.id,
            },
        )
        self._send(
            ADMIN_CHANNEL,
            "new_application",
            {
                "title": "New Application",
                "message": f"New application received: {application.application_number}",
                "application_id": application.id,
            },
        )

    def status_update(self, application: Application) -> None:
        self._send(
            application.applicant_id,
            "status_update",
            {
                "title": "Status Updated",
                "message": f"Application status changed to: {application.status}",
                "application_id": application.id,
                "status": str(application.status),
            },
        )

    def follow_up_update(self, application: Application) -> None:
        self._send(
            application.applicant_id,
            "follow_up",
            {
                "title": "Follow-up Updated",
                "message": f"Follow-up updated for application {application.application_number}",
                "application_id": application.id,
                "status": str(application.status),
            },
        )

    def inspector_assigned(self, application: Application) -> None:
        self._send(
            application.assigned_to,
            "assignment",
            {
                "title": "New Assignment",
                "message": f"Application {application.application_number} assigned to you.",
                "application_id": application.id,
            },
        )

    def inspection_scheduled(self, application: Application, inspection: Inspection) -> None:
        self._send(
            application.applicant_id,
            "inspection_scheduled",
            {
                "title": "Inspection Scheduled",
                "message": f"Inspection scheduled for {inspection.inspection_date.date().isoformat()}",
                "application_id": application.id,
                "inspection_id": inspection.id,
            },
        )

    def overdue(self, application: Application) -> None:
        self._send(
            application.applicant_id,
            "overdue",
            {
                "title": "Application Overdue",
                "message": f"Application {application.application_number} is overdue.",
                "application_id": application.id,
            },
        )

    def certificate_issued(self, certificate: Certificate) -> None:
        self._send(
            certificate.applicant_id,
            "noc_issued",
            {
                "title": "NOC Issued",
                "message": f"NOC {certificate.noc_number} has been issued successfully.",
                "noc_id": certificate.id,
            },
        )

    def certificate_revoked(self, certificate: Certificate, reason: str) -> None:
        self._send(
            certificate.applicant_id,
            "noc_revoked",
            {
                "title": "NOC Revoked",
                "message": f"NOC {certificate.noc_number} has been revoked. Reason: {reason}",
                "noc_id": certificate.id,
            },
        )

    def license_issued(self, license: License) -> None:
        self._send(
            license.licensee_id,
            "license_issued",
            {
                "title": "License Issued",
                "message": f"License {license.license_number} has been issued successfully.",
                "license_id": license.id,
            },
        )

    def license_revoked(self, license: License, reason: str) -> None:
        self._send(
            license.licensee_id,
            "license_revoked",
            {
                "title": "License Revoked",
                "message": f"License {license.license_number} has been revoked. Reason: {reason}",
                "license_id": license.id,
            },
        )

    def renewal_reminder(self, license: License, days_remaining: int) -> None:
        """Raises on dispatch failure so the reminder sweep does not mark the license as reminded."""
        self._dispatcher.notify(
            license.licensee_id,
            "license_renewal_reminder",
            {
                "title": "License Renewal Reminder",
                "message": (
                    f"License {license.license_number} expires in {days_remaining} days. "
                    "Please renew it before expiry."
                ),
                "license_id": license.id,
                "valid_until": license.valid_until.isoformat(),
            },
        )
