from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from permitflow.api.deps import get_actor_id, raise_http_error
from permitflow.domain.errors import WorkflowError
from permitflow.domain.models import (
    InspectionCreate,
    InspectionRead,
    InspectionRescheduleRequest,
    InspectionStatus,
    InspectionUpdate,
)
from permitflow.services.inspection_service import InspectionService

router = APIRouter()


def get_inspection_service() -> InspectionService:
    return InspectionService()


Actor = Annotated[str, Depends(get_actor_id)]
Service = Annotated[InspectionService, Depends(get_inspection_service)]


@router.post("", response_model=InspectionRead, status_code=status.HTTP_201_CREATED)
def schedule_inspection(payload: InspectionCreate, actor_id: Actor, service: Service) -> InspectionRead:
    try:
        inspection, _ = service.schedule_inspection(payload, actor_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return InspectionRead.model_validate(inspection)


@router.get("", response_model=list[InspectionRead])
def list_inspections(
    service: Service,
    status_filter: Annotated[InspectionStatus | None, Query(alias="status")] = None,
    inspector_id: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> list[InspectionRead]:
    rows = service.list_inspections(status=status_filter, inspector_id=inspector_id, page=page, limit=limit)
    return [InspectionRead.model_validate(item) for item in rows]


@router.get("/{inspection_id}", response_model=InspectionRead)
def get_inspection(inspection_id: str, service: Service) -> InspectionRead:
    try:
        row = service.get_inspection(inspection_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return InspectionRead.model_validate(row)


@router.put("/{inspection_id}", response_model=InspectionRead)
def update_inspection(
    inspection_id: str,
    payload: InspectionUpdate,
    actor_id: Actor,
    service: Service,
) -> InspectionRead:
    try:
        row = service.update_inspection(inspection_id, payload, actor_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return InspectionRead.model_validate(row)


@router.put("/{inspection_id}/reschedule", response_model=InspectionRead)
def reschedule_inspection(
    inspection_id: str,
    payload: InspectionRescheduleRequest,
    actor_id: Actor,
    service: Service,
) -> InspectionRead:
    try:
        row = service.reschedule_inspection(inspection_id, payload, actor_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return InspectionRead.model_validate(row)
