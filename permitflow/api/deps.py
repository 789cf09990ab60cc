from __future__ import annotations

from typing import Annotated, NoReturn

from fastapi import Header, HTTPException, status

from permitflow.domain.errors import (
    ConflictError,
    NotFoundError,
    PreconditionFailedError,
    StoreError,
    WorkflowError,
)


def get_actor_id(x_actor_id: Annotated[str | None, Header()] = None) -> str:
    # Authentication happens upstream; the gateway forwards the acting user id.
    if not x_actor_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Actor-Id header is required",
        )
    return x_actor_id


def raise_http_error(exc: WorkflowError) -> NoReturn:
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, PreconditionFailedError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if isinstance(exc, ConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, StoreError):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    raise exc
