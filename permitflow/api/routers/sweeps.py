from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from permitflow.api.deps import get_actor_id
from permitflow.domain.models import ExpirySweepRead, SweepRunRead
from permitflow.services.sweeper_service import SweeperService

router = APIRouter()


def get_sweeper_service() -> SweeperService:
    return SweeperService()


Actor = Annotated[str, Depends(get_actor_id)]
Service = Annotated[SweeperService, Depends(get_sweeper_service)]


@router.post("/overdue", response_model=SweepRunRead)
def run_overdue_sweep(_actor_id: Actor, service: Service) -> SweepRunRead:
    return SweepRunRead(sweep="overdue", processed=service.run_overdue_sweep())


@router.post("/expiry", response_model=ExpirySweepRead)
def run_expiry_sweep(_actor_id: Actor, service: Service) -> ExpirySweepRead:
    result = service.run_expiry_sweep()
    return ExpirySweepRead(certificates=result.certificates, licenses=result.licenses)


@router.post("/renewal-reminders", response_model=SweepRunRead)
def run_renewal_reminder_sweep(_actor_id: Actor, service: Service) -> SweepRunRead:
    return SweepRunRead(sweep="renewal_reminders", processed=service.run_renewal_reminder_sweep())
