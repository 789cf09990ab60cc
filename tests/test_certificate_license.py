from __future__ import annotations

from datetime import UTC, datetime

import pytest

from permitflow.domain.deadlines import as_utc
from permitflow.domain.errors import ConflictError, NotFoundError, PreconditionFailedError
from permitflow.domain.models import (
    ApplicationCreate,
    ApplicationType,
    CertificateIssueRequest,
    CertificateStatus,
    LicenseFees,
    LicenseIssueRequest,
    LicenseStatus,
    PaymentStatus,
    PropertyDetails,
    PropertyType,
    UserRole,
)
from permitflow.domain.state_machine import ApplicationStatus
from permitflow.services.certificate_service import CertificateService
from permitflow.services.license_service import LicenseService
from permitflow.services.workflow_service import WorkflowService


@pytest.fixture()
def workflow(test_engine, clock, dispatcher, settings) -> WorkflowService:
    return WorkflowService(clock=clock, dispatcher=dispatcher, settings=settings)


@pytest.fixture()
def certificates(test_engine, clock, dispatcher, settings) -> CertificateService:
    return CertificateService(clock=clock, dispatcher=dispatcher, settings=settings)


@pytest.fixture()
def licenses(test_engine, clock, dispatcher, settings) -> LicenseService:
    return LicenseService(clock=clock, dispatcher=dispatcher, settings=settings)


@pytest.fixture()
def applicant(make_user):
    return make_user("Asha", UserRole.CITIZEN)


def _submit(workflow: WorkflowService, applicant_id: str) -> str:
    application = workflow.create_application(
        applicant_id,
        ApplicationCreate(
            application_type=ApplicationType.NOC,
            property_details=PropertyDetails(property_name="Grand Hotel", property_type=PropertyType.COMMERCIAL),
        ),
    )
    return application.id


def _inspected(workflow: WorkflowService, applicant_id: str) -> str:
    application_id = _submit(workflow, applicant_id)
    workflow.set_status(application_id, ApplicationStatus.INSPECTION_SCHEDULED, "inspector-1")
    workflow.set_status(application_id, ApplicationStatus.INSPECTION_COMPLETED, "inspector-1")
    return application_id


def test_certificate_requires_completed_inspection(workflow, certificates, applicant) -> None:
    application_id = _submit(workflow, applicant.id)

    with pytest.raises(PreconditionFailedError):
        certificates.issue_certificate(application_id, CertificateIssueRequest(), "admin-1")
    assert workflow.get_application(application_id).noc_id is None


def test_issue_certificate_after_inspection(workflow, certificates, applicant, clock, dispatcher) -> None:
    application_id = _inspected(workflow, applicant.id)

    certificate, application = certificates.issue_certificate(application_id, CertificateIssueRequest(), "admin-1")

    assert certificate.noc_number == "NOC2025000001"
    assert certificate.status == CertificateStatus.ACTIVE
    assert as_utc(certificate.valid_until) == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    assert certificate.property_details["property_name"] == "Grand Hotel"
    stored = workflow.get_application(application_id)
    assert stored.status == ApplicationStatus.NOC_ISSUED
    assert stored.noc_id == certificate.id
    assert dispatcher.kinds()[-1] == "noc_issued"


def test_certificate_custom_validity(workflow, certificates, applicant) -> None:
    application_id = _inspected(workflow, applicant.id)

    certificate, _ = certificates.issue_certificate(
        application_id,
        CertificateIssueRequest(validity_months=6),
        "admin-1",
    )

    assert as_utc(certificate.valid_until) == datetime(2025, 7, 1, 12, 0, tzinfo=UTC)


def test_certificate_issued_once(workflow, certificates, applicant) -> None:
    application_id = _inspected(workflow, applicant.id)
    certificates.issue_certificate(application_id, CertificateIssueRequest(), "admin-1")

    with pytest.raises(ConflictError):
        certificates.issue_certificate(application_id, CertificateIssueRequest(), "admin-1")


def test_approved_application_is_eligible_for_certificate(workflow, certificates, applicant) -> None:
    application_id = _submit(workflow, applicant.id)
    workflow.set_status(application_id, ApplicationStatus.INSPECTION_SCHEDULED, "inspector-1")
    workflow.set_status(application_id, ApplicationStatus.INSPECTION_COMPLETED, "inspector-1")
    workflow.set_status(application_id, ApplicationStatus.APPROVED, "admin-1")

    certificate, application = certificates.issue_certificate(application_id, CertificateIssueRequest(), "admin-1")

    assert application.status == ApplicationStatus.NOC_ISSUED
    assert application.noc_id == certificate.id


def test_revoke_certificate_is_final(workflow, certificates, applicant, dispatcher) -> None:
    application_id = _inspected(workflow, applicant.id)
    certificate, _ = certificates.issue_certificate(application_id, CertificateIssueRequest(), "admin-1")

    revoked = certificates.revoke_certificate(certificate.id, "Fraudulent documents", "admin-1")

    assert revoked.status == CertificateStatus.REVOKED
    assert revoked.remarks == "Revoked: Fraudulent documents"
    assert dispatcher.kinds()[-1] == "noc_revoked"
    with pytest.raises(ConflictError):
        certificates.suspend_certificate(certificate.id, "again", "admin-1")


def test_license_requires_certificate(workflow, licenses, applicant) -> None:
    application_id = _inspected(workflow, applicant.id)

    with pytest.raises(PreconditionFailedError, match="NOC must be issued before license"):
        licenses.issue_license(application_id, LicenseIssueRequest(), "admin-1")


def test_issue_license_after_certificate(workflow, certificates, licenses, applicant, dispatcher) -> None:
    application_id = _inspected(workflow, applicant.id)
    certificates.issue_certificate(application_id, CertificateIssueRequest(), "admin-1")

    license, application = licenses.issue_license(
        application_id,
        LicenseIssueRequest(fees=LicenseFees(amount=2500, payment_status=PaymentStatus.PAID)),
        "admin-1",
    )

    assert license.license_number == "LIC2025000001"
    assert license.licensee_id == applicant.id
    assert license.status == LicenseStatus.ACTIVE
    assert as_utc(license.valid_until) == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    assert license.fees["amount"] == 2500
    assert license.reminder_sent is False
    assert application.status == ApplicationStatus.LICENSE_ISSUED
    assert workflow.get_application(application_id).license_id == license.id
    assert dispatcher.kinds()[-1] == "license_issued"

    with pytest.raises(ConflictError):
        licenses.issue_license(application_id, LicenseIssueRequest(), "admin-1")


def test_renew_license_extends_from_expiry(workflow, certificates, licenses, applicant) -> None:
    application_id = _inspected(workflow, applicant.id)
    certificates.issue_certificate(application_id, CertificateIssueRequest(), "admin-1")
    license, _ = licenses.issue_license(application_id, LicenseIssueRequest(), "admin-1")

    renewed = licenses.renew_license(license.id, "admin-1", validity_years=2, fees={"amount": 900})

    assert as_utc(renewed.valid_until) == datetime(2028, 1, 1, 12, 0, tzinfo=UTC)
    assert len(renewed.renewal_history) == 1
    assert renewed.fees["amount"] == 900
    stored = licenses.get_license(license.id)
    assert len(stored.renewal_history) == 1
    assert as_utc(stored.valid_until) == datetime(2028, 1, 1, 12, 0, tzinfo=UTC)


def test_revoked_license_cannot_be_renewed(workflow, certificates, licenses, applicant) -> None:
    application_id = _inspected(workflow, applicant.id)
    certificates.issue_certificate(application_id, CertificateIssueRequest(), "admin-1")
    license, _ = licenses.issue_license(application_id, LicenseIssueRequest(), "admin-1")
    licenses.revoke_license(license.id, "Unsafe wiring", "admin-1")

    with pytest.raises(ConflictError):
        licenses.renew_license(license.id, "admin-1")


def test_unknown_license(licenses) -> None:
    with pytest.raises(NotFoundError):
        licenses.get_license("missing")
