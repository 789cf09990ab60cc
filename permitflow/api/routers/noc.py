from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from permitflow.api.deps import get_actor_id, raise_http_error
from permitflow.domain.errors import WorkflowError
from permitflow.domain.models import (
    CertificateIssueRequest,
    CertificateRead,
    CertificateStatus,
    NocType,
    StatusActionRequest,
)
from permitflow.services.certificate_service import CertificateService

router = APIRouter()


def get_certificate_service() -> CertificateService:
    return CertificateService()


Actor = Annotated[str, Depends(get_actor_id)]
Service = Annotated[CertificateService, Depends(get_certificate_service)]


@router.post("/{application_id}/issue", response_model=CertificateRead, status_code=status.HTTP_201_CREATED)
def issue_certificate(
    application_id: str,
    payload: CertificateIssueRequest,
    actor_id: Actor,
    service: Service,
) -> CertificateRead:
    try:
        certificate, _ = service.issue_certificate(application_id, payload, actor_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return CertificateRead.model_validate(certificate)


@router.get("", response_model=list[CertificateRead])
def list_certificates(
    service: Service,
    status_filter: Annotated[CertificateStatus | None, Query(alias="status")] = None,
    noc_type: NocType | None = None,
    applicant_id: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> list[CertificateRead]:
    rows = service.list_certificates(
        status=status_filter,
        noc_type=noc_type,
        applicant_id=applicant_id,
        page=page,
        limit=limit,
    )
    return [CertificateRead.model_validate(item) for item in rows]


@router.get("/{certificate_id}", response_model=CertificateRead)
def get_certificate(certificate_id: str, service: Service) -> CertificateRead:
    try:
        row = service.get_certificate(certificate_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return CertificateRead.model_validate(row)


@router.put("/{certificate_id}/revoke", response_model=CertificateRead)
def revoke_certificate(
    certificate_id: str,
    payload: StatusActionRequest,
    actor_id: Actor,
    service: Service,
) -> CertificateRead:
    try:
        row = service.revoke_certificate(certificate_id, payload.reason, actor_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return CertificateRead.model_validate(row)


@router.put("/{certificate_id}/suspend", response_model=CertificateRead)
def suspend_certificate(
    certificate_id: str,
    payload: StatusActionRequest,
    actor_id: Actor,
    service: Service,
) -> CertificateRead:
    try:
        row = service.suspend_certificate(certificate_id, payload.reason, actor_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return CertificateRead.model_validate(row)
