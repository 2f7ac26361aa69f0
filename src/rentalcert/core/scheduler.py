"""
Background Job Scheduler

Provides scheduled task execution using APScheduler with AsyncIO support.
Handles job registration, execution, and graceful shutdown.

Design Principles:
- Jobs are idempotent (safe to run multiple times)
- Failed jobs are logged but don't crash the scheduler
- Jobs can be triggered manually for maintenance
- Scheduler integrates with FastAPI lifespan

Usage:
    register_job("certifications_expiry_sweep", sweep, IntervalTrigger(hours=1))
    await start_scheduler()
    ...
    await stop_scheduler()
"""

import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Coroutine[Any, Any, Any]]

_scheduler: AsyncIOScheduler | None = None


@dataclass
class _RegisteredJob:
    func: JobFunc
    trigger: BaseTrigger


# Registry of jobs, kept so the scheduler can be (re)started and jobs
# triggered manually without going through APScheduler.
_job_registry: dict[str, _RegisteredJob] = {}


class SchedulerConfig:
    """Configuration for the background scheduler."""

    TIMEZONE = "UTC"

    JOB_DEFAULTS = {
        "coalesce": True,  # Combine missed executions into one
        "max_instances": 1,
        "misfire_grace_time": 60 * 5,
    }


def _job_listener(event: JobExecutionEvent) -> None:
    if event.exception:
        logger.error(
            f"Job {event.job_id} failed with exception: {event.exception}",
            exc_info=event.exception,
        )
    else:
        logger.info(f"Job {event.job_id} executed successfully at {datetime.now(UTC).isoformat()}")


async def start_scheduler() -> AsyncIOScheduler:
    """
    Initialize and start the background scheduler.

    Every job already in the registry is scheduled before starting.
    """
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.warning("Scheduler already running, returning existing instance")
        return _scheduler

    logger.info("Initializing background job scheduler...")

    _scheduler = AsyncIOScheduler(
        timezone=SchedulerConfig.TIMEZONE,
        job_defaults=SchedulerConfig.JOB_DEFAULTS,
    )
    _scheduler.add_listener(_job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    for job_id, job in _job_registry.items():
        _scheduler.add_job(job.func, trigger=job.trigger, id=job_id, replace_existing=True)
        logger.info(f"Scheduled job: {job_id}")

    _scheduler.start()

    logger.info("Background job scheduler started successfully")
    return _scheduler


async def stop_scheduler() -> None:
    """Stop the scheduler, waiting for running jobs to finish."""
    global _scheduler

    if _scheduler is None or not _scheduler.running:
        logger.debug("Scheduler not running, nothing to stop")
        return

    logger.info("Stopping background job scheduler...")
    _scheduler.shutdown(wait=True)
    logger.info("Background job scheduler stopped")
    _scheduler = None


def register_job(job_id: str, func: JobFunc, trigger: BaseTrigger) -> None:
    """
    Register a job.

    Jobs registered before ``start_scheduler`` are scheduled on start; jobs
    registered afterwards are added to the running scheduler immediately.
    """
    _job_registry[job_id] = _RegisteredJob(func=func, trigger=trigger)

    if _scheduler is None:
        logger.debug(f"Scheduler not initialized, job {job_id} will be scheduled on start")
        return

    _scheduler.add_job(func, trigger=trigger, id=job_id, replace_existing=True)
    logger.info(f"Registered job: {job_id}")


async def trigger_job_manually(job_id: str) -> dict[str, Any]:
    """
    Run a registered job immediately, bypassing the schedule.

    Returns:
        Dict with job_id, status ("success" or "error"), executed_at and
        either the job's result or the error message.

    Raises:
        ValueError: If job_id is not found in the registry
    """
    if job_id not in _job_registry:
        raise ValueError(
            f"Job {job_id} not found in registry. Available jobs: {list(_job_registry.keys())}"
        )

    executed_at = datetime.now(UTC)
    logger.info(f"Manually triggering job: {job_id}")

    try:
        result = await _job_registry[job_id].func()
        logger.info(f"Manual execution of job {job_id} completed successfully")
        return {
            "job_id": job_id,
            "status": "success",
            "executed_at": executed_at.isoformat(),
            "result": result,
        }
    except Exception as e:
        logger.error(f"Manual execution of job {job_id} failed: {e}", exc_info=True)
        return {
            "job_id": job_id,
            "status": "error",
            "executed_at": executed_at.isoformat(),
            "error": str(e),
        }


def list_registered_jobs() -> list[dict[str, Any]]:
    """List registered jobs with their next run time when scheduled."""
    jobs = []

    for job_id in _job_registry:
        job_info: dict[str, Any] = {"job_id": job_id, "registered": True}

        if _scheduler is not None:
            scheduled_job = _scheduler.get_job(job_id)
            next_run = scheduled_job.next_run_time if scheduled_job else None
            job_info["next_run_time"] = next_run.isoformat() if next_run else None
            job_info["is_paused"] = next_run is None

        jobs.append(job_info)

    return jobs
