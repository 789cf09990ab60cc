from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import structlog

from permitflow.domain.deadlines import as_utc
from permitflow.infra.clock import Clock, SystemClock

logger = structlog.get_logger(__name__)

Job = Callable[[], Any]


@dataclass(frozen=True)
class ScheduledJob:
    name: str
    run: Job


def seconds_until_next_midnight(now: datetime) -> float:
    current = as_utc(now)
    midnight = (current + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return (midnight - current).total_seconds()


class PeriodicScheduler:
    """Runs sweep jobs on fixed intervals and at 00:00 UTC.

    Jobs are blocking callables executed in a worker thread. A failing tick is
    logged and the loop keeps going; jobs are safe to re-run.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._interval_jobs: list[tuple[ScheduledJob, float]] = []
        self._daily_jobs: list[ScheduledJob] = []
        self._tasks: list[asyncio.Task[None]] = []

    def every(self, seconds: float, name: str, run: Job) -> None:
        self._interval_jobs.append((ScheduledJob(name=name, run=run), seconds))

    def daily_at_midnight(self, name: str, run: Job) -> None:
        self._daily_jobs.append(ScheduledJob(name=name, run=run))

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._run_interval(job, seconds), name=f"scheduler:{job.name}")
            for job, seconds in self._interval_jobs
        ]
        if self._daily_jobs:
            self._tasks.append(asyncio.create_task(self._run_daily(), name="scheduler:daily"))
        logger.info(
            "scheduler.started",
            interval_jobs=[job.name for job, _ in self._interval_jobs],
            daily_jobs=[job.name for job in self._daily_jobs],
        )

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("scheduler.stopped")

    async def run_job(self, job: ScheduledJob) -> Any:
        logger.info("scheduler.tick", job=job.name)
        try:
            result = await asyncio.to_thread(job.run)
        except Exception:
            logger.exception("scheduler.job_failed", job=job.name)
            return None
        logger.info("scheduler.job_completed", job=job.name, result=str(result))
        return result

    async def _run_interval(self, job: ScheduledJob, seconds: float) -> None:
        while True:
            await asyncio.sleep(seconds)
            await self.run_job(job)

    async def _run_daily(self) -> None:
        while True:
            await asyncio.sleep(seconds_until_next_midnight(self._clock.now()))
            for job in self._daily_jobs:
                await self.run_job(job)
