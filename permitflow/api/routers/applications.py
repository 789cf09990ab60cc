from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from permitflow.api.deps import get_actor_id, raise_http_error
from permitflow.domain.errors import WorkflowError
from permitflow.domain.models import (
    ApplicationAssignRequest,
    ApplicationCreate,
    ApplicationPriority,
    ApplicationRead,
    ApplicationStatusRequest,
    ApplicationType,
    FollowUpUpdateRequest,
)
from permitflow.domain.state_machine import ApplicationStatus
from permitflow.services.workflow_service import WorkflowService

router = APIRouter()


def get_workflow_service() -> WorkflowService:
    return WorkflowService()


Actor = Annotated[str, Depends(get_actor_id)]
Service = Annotated[WorkflowService, Depends(get_workflow_service)]


@router.post("", response_model=ApplicationRead, status_code=status.HTTP_201_CREATED)
def create_application(payload: ApplicationCreate, actor_id: Actor, service: Service) -> ApplicationRead:
    try:
        row = service.create_application(actor_id, payload)
    except WorkflowError as exc:
        raise_http_error(exc)
    return ApplicationRead.model_validate(row)


@router.get("", response_model=list[ApplicationRead])
def list_applications(
    service: Service,
    status_filter: Annotated[ApplicationStatus | None, Query(alias="status")] = None,
    application_type: ApplicationType | None = None,
    priority: ApplicationPriority | None = None,
    applicant_id: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> list[ApplicationRead]:
    rows = service.list_applications(
        status=status_filter,
        application_type=application_type,
        priority=priority,
        applicant_id=applicant_id,
        page=page,
        limit=limit,
    )
    return [ApplicationRead.model_validate(item) for item in rows]


@router.get("/{application_id}", response_model=ApplicationRead)
def get_application(application_id: str, service: Service) -> ApplicationRead:
    try:
        row = service.get_application(application_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return ApplicationRead.model_validate(row)


@router.put("/{application_id}/status", response_model=ApplicationRead)
def update_application_status(
    application_id: str,
    payload: ApplicationStatusRequest,
    actor_id: Actor,
    service: Service,
) -> ApplicationRead:
    try:
        row = service.set_status(application_id, payload.status, actor_id, payload.remarks)
    except WorkflowError as exc:
        raise_http_error(exc)
    return ApplicationRead.model_validate(row)


@router.put("/{application_id}/assign", response_model=ApplicationRead)
def assign_application(
    application_id: str,
    payload: ApplicationAssignRequest,
    actor_id: Actor,
    service: Service,
) -> ApplicationRead:
    try:
        row = service.assign_application(application_id, payload.inspector_id, actor_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return ApplicationRead.model_validate(row)


@router.post("/{application_id}/auto-assign", response_model=ApplicationRead)
def auto_assign_application(application_id: str, actor_id: Actor, service: Service) -> ApplicationRead:
    try:
        row = service.auto_assign(application_id, actor_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return ApplicationRead.model_validate(row)


@router.put("/{application_id}/followup", response_model=ApplicationRead)
def update_follow_up(
    application_id: str,
    payload: FollowUpUpdateRequest,
    actor_id: Actor,
    service: Service,
) -> ApplicationRead:
    try:
        row = service.update_follow_up(application_id, payload, actor_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return ApplicationRead.model_validate(row)


@router.delete("/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_application(application_id: str, _actor_id: Actor, service: Service) -> Response:
    try:
        service.delete_application(application_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
