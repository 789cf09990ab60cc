from __future__ import annotations

from typing import Any

import structlog
from sqlmodel import col

from permitflow.domain.deadlines import add_years
from permitflow.domain.errors import ConflictError, PreconditionFailedError
from permitflow.domain.models import (
    Application,
    License,
    LicenseFees,
    LicenseIssueRequest,
    LicenseStatus,
    LicenseType,
)
from permitflow.domain.rules import renew
from permitflow.domain.state_machine import ApplicationStatus
from permitflow.domain.workflow import record_status
from permitflow.infra.clock import Clock, SystemClock
from permitflow.infra.dispatcher import NotificationDispatcher
from permitflow.infra.settings import WorkflowSettings
from permitflow.infra.store import EntityStore
from permitflow.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)

LICENSE_NUMBER_PREFIX = "LIC"


class LicenseService:
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

    def issue_license(
        self,
        application_id: str,
        payload: LicenseIssueRequest,
        actor_id: str,
    ) -> tuple[License, Application]:
        now = self._clock.now()
        with EntityStore.open() as store:
            application = store.get(Application, application_id, for_update=True, label="application")
            if application.noc_id is None:
                raise PreconditionFailedError("NOC must be issued before license")
            if application.license_id is not None:
                raise ConflictError("license already issued for application")

            validity_years = payload.validity_years or self._settings.license_validity_years
            fees = payload.fees or LicenseFees()
            license = License(
                license_number=store.next_number(LICENSE_NUMBER_PREFIX, now),
                application_id=application.id,
                licensee_id=application.applicant_id,
                license_type=payload.license_type,
                property_details=application.property_details,
                issued_by=actor_id,
                issued_date=now,
                valid_from=now,
                valid_until=add_years(now, validity_years),
                conditions=payload.conditions,
                restrictions=payload.restrictions,
                fees=fees.model_dump(mode="json"),
                remarks=payload.remarks,
                created_at=now,
                updated_at=now,
            )
            store.create(license)
            application.license_id = license.id
            record_status(
                application,
                ApplicationStatus.LICENSE_ISSUED,
                now=now,
                actor_id=actor_id,
                remarks=f"License issued: {license.license_number}",
            )
            store.save(application)
            store.commit()

        logger.info(
            "license.issued",
            license_number=license.license_number,
            application_number=application.application_number,
            valid_until=license.valid_until.isoformat(),
        )
        self._notifications.license_issued(license)
        return license, application

    def get_license(self, license_id: str) -> License:
        with EntityStore.open() as store:
            return store.get(License, license_id, label="license")

    def list_licenses(
        self,
        *,
        status: LicenseStatus | None = None,
        license_type: LicenseType | None = None,
        licensee_id: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> list[License]:
        criteria = []
        if status is not None:
            criteria.append(License.status == status)
        if license_type is not None:
            criteria.append(License.license_type == license_type)
        if licensee_id is not None:
            criteria.append(License.licensee_id == licensee_id)
        with EntityStore.open() as store:
            return store.find_many(
                License,
                *criteria,
                order_by=col(License.issued_date).desc(),
                offset=(max(page, 1) - 1) * limit,
                limit=limit,
            )

    def renew_license(
        self,
        license_id: str,
        actor_id: str,
        validity_years: int | None = None,
        fees: dict[str, Any] | None = None,
    ) -> License:
        now = self._clock.now()
        with EntityStore.open() as store:
            license = store.get(License, license_id, for_update=True, label="license")
            if license.status == LicenseStatus.REVOKED:
                raise ConflictError("revoked license cannot be renewed")
            entry = renew(
                license,
                years=validity_years or self._settings.license_validity_years,
                now=now,
                actor_id=actor_id,
            )
            if fees:
                license.fees = {**license.fees, **fees}
            store.save(license)
            store.commit()

        logger.info(
            "license.renewed",
            license_number=license.license_number,
            previous_expiry=entry["previous_expiry"],
            new_expiry=entry["new_expiry"],
        )
        return license

    def suspend_license(self, license_id: str, reason: str, actor_id: str) -> License:
        return self._set_status(license_id, LicenseStatus.SUSPENDED, f"Suspended: {reason}", actor_id)

    def revoke_license(self, license_id: str, reason: str, actor_id: str) -> License:
        license = self._set_status(license_id, LicenseStatus.REVOKED, f"Revoked: {reason}", actor_id)
        self._notifications.license_revoked(license, reason)
        return license

    def _set_status(self, license_id: str, status: LicenseStatus, remarks: str, actor_id: str) -> License:
        now = self._clock.now()
        with EntityStore.open() as store:
            license = store.get(License, license_id, for_update=True, label="license")
            if license.status == LicenseStatus.REVOKED:
                raise ConflictError("license already revoked")
            license.status = status
            license.remarks = remarks
            license.updated_at = now
            store.save(license)
            store.commit()
        logger.info("license.status_changed", license_number=license.license_number, status=str(status), actor_id=actor_id)
        return license
