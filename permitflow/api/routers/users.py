from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from permitflow.api.deps import raise_http_error
from permitflow.domain.errors import WorkflowError
from permitflow.domain.models import UserActivationRequest, UserCreate, UserRead, UserRole
from permitflow.services.user_service import UserService

router = APIRouter()


def get_user_service() -> UserService:
    return UserService()


Service = Annotated[UserService, Depends(get_user_service)]


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, service: Service) -> UserRead:
    try:
        row = service.create_user(payload)
    except WorkflowError as exc:
        raise_http_error(exc)
    return UserRead.model_validate(row)


@router.get("", response_model=list[UserRead])
def list_users(service: Service, role: UserRole | None = None, active_only: bool = False) -> list[UserRead]:
    return [UserRead.model_validate(item) for item in service.list_users(role=role, active_only=active_only)]


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: str, service: Service) -> UserRead:
    try:
        row = service.get_user(user_id)
    except WorkflowError as exc:
        raise_http_error(exc)
    return UserRead.model_validate(row)


@router.put("/{user_id}/active", response_model=UserRead)
def set_user_active(user_id: str, payload: UserActivationRequest, service: Service) -> UserRead:
    try:
        row = service.set_active(user_id, payload.is_active)
    except WorkflowError as exc:
        raise_http_error(exc)
    return UserRead.model_validate(row)
