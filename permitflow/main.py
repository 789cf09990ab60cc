from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, HTTPException

from permitflow.api.routers import applications, inspections, licenses, noc, sweeps, users
from permitflow.infra.db import check_db_ready
from permitflow.infra.log_config import configure_logging
from permitflow.infra.scheduler import PeriodicScheduler
from permitflow.infra.settings import WorkflowSettings
from permitflow.services.sweeper_service import SweeperService

logger = structlog.get_logger(__name__)


def build_scheduler(settings: WorkflowSettings, sweeper: SweeperService | None = None) -> PeriodicScheduler:
    sweeper = sweeper or SweeperService(settings=settings)
    scheduler = PeriodicScheduler()
    scheduler.every(settings.overdue_check_interval_seconds, "overdue", sweeper.run_overdue_sweep)
    scheduler.daily_at_midnight("expiry", sweeper.run_expiry_sweep)
    scheduler.daily_at_midnight("renewal_reminders", sweeper.run_renewal_reminder_sweep)
    return scheduler


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    settings = WorkflowSettings.from_env()
    scheduler: PeriodicScheduler | None = None
    if settings.scheduler_enabled:
        scheduler = build_scheduler(settings)
        scheduler.start()
    else:
        logger.info("scheduler.disabled")
    try:
        yield
    finally:
        if scheduler is not None:
            await scheduler.stop()


app = FastAPI(
    title="permitflow",
    description="Fire-safety permit workflow: applications, inspections, NOCs and licenses.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(applications.router, prefix="/api/applications", tags=["applications"])
app.include_router(inspections.router, prefix="/api/inspections", tags=["inspections"])
app.include_router(noc.router, prefix="/api/noc", tags=["noc"])
app.include_router(licenses.router, prefix="/api/licenses", tags=["licenses"])
app.include_router(sweeps.router, prefix="/api/sweeps", tags=["sweeps"])


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/readyz")
def readyz() -> dict[str, object]:
    db_ok = check_db_ready()
    checks = {"db": "ok" if db_ok else "fail"}
    if not db_ok:
        raise HTTPException(
            status_code=503,
            detail={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}
