from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from permitflow.api.deps import get_actor_id, raise_http_error
from permitflow.domain.errors import WorkflowError
from permitflow.domain.models import (
    LicenseIssueRequest,
    LicenseRead,
    LicenseRenewRequest,
    LicenseStatus,
    LicenseType,
    StatusActionRequest,
)
from permitflow.services.license_service import LicenseService

router = APIRouter()


def get_license_service() -> LicenseService:
    return LicenseService()


Actor = Annotated[str, Depends(get_actor_id)]
Service = Annotated[LicenseService, Depends(get_license_service)]


@router.post("/{application_id}/issue", response_model=LicenseRead, status_code=status.HTTP_201_CREATED)
def issue_license(
    application_id: str,
    payload: LicenseIssueRequest,
    actor_id: Actor,
    service: Service,
) -> LicenseRead:
    try:
        license, _ = service.issue_license(application_id, payload, actor_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return LicenseRead.model_validate(license)


@router.get("", response_model=list[LicenseRead])
def list_licenses(
    service: Service,
    status_filter: Annotated[LicenseStatus | None, Query(alias="status")] = None,
    license_type: LicenseType | None = None,
    licensee_id: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> list[LicenseRead]:
    rows = service.list_licenses(
        status=status_filter,
        license_type=license_type,
        licensee_id=licensee_id,
        page=page,
        limit=limit,
    )
    return [LicenseRead.model_validate(item) for item in rows]


@router.get("/{license_id}", response_model=LicenseRead)
def get_license(license_id: str, service: Service) -> LicenseRead:
    try:
        row = service.get_license(license_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return LicenseRead.model_validate(row)


@router.post("/{license_id}/renew", response_model=LicenseRead)
def renew_license(
    license_id: str,
    payload: LicenseRenewRequest,
    actor_id: Actor,
    service: Service,
) -> LicenseRead:
    try:
        row = service.renew_license(license_id, actor_id, payload.validity_years, payload.fees)
    except WorkflowError as exc:
        raise_http_error(exc)
    return LicenseRead.model_validate(row)


@router.put("/{license_id}/suspend", response_model=LicenseRead)
def suspend_license(
    license_id: str,
    payload: StatusActionRequest,
    actor_id: Actor,
    service: Service,
) -> LicenseRead:
    try:
        row = service.suspend_license(license_id, payload.reason, actor_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return LicenseRead.model_validate(row)


@router.put("/{license_id}/revoke", response_model=LicenseRead)
def revoke_license(
    license_id: str,
    payload: StatusActionRequest,
    actor_id: Actor,
    service: Service,
) -> LicenseRead:
    try:
        row = service.revoke_license(license_id, payload.reason, actor_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return LicenseRead.model_validate(row)
