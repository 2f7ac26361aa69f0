"""
Certification Background Jobs

Scheduled expiry sweep:
1. Classify ACTIVE certifications into expiring soon / expired
2. Move expired ones to EXPIRED
3. Notify hosts of both groups

Design Principles:
- Idempotent: the EXPIRED update is guarded by status, so reruns are harmless
- Opens its own database session
- A failing notification never stops the sweep

Schedule:
- Runs every ``expiry_sweep_interval_minutes`` (default hourly)
- Can be triggered manually via /debug/jobs/{job_id}/trigger
"""

import logging
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from rentalcert.core.config import settings
from rentalcert.core.database import async_session_maker
from rentalcert.core.scheduler import register_job
from rentalcert.modules.certifications import lifecycle
from rentalcert.modules.shared.collaborators import build_collaborators, notify_safely

logger = logging.getLogger(__name__)

JOB_ID_EXPIRY_SWEEP = "certifications_expiry_sweep"


async def run_expiry_sweep() -> dict[str, Any]:
    """
    Expire overdue certifications and notify affected hosts.

    Returns:
        Summary dict with counts of expiring, expired and notified hosts
    """
    logger.info("Starting certification expiry sweep...")

    async with async_session_maker() as db:
        collaborators = build_collaborators(db)
        result = await lifecycle.check_expiry_status(db)

        notified = 0
        for item in result.expired:
            await notify_safely(
                collaborators.notifier,
                item.host_id,
                "CERTIFICATION_EXPIRED",
                {"certificate_number": item.certificate_number},
            )
            notified += 1

        for item in result.expiring_soon:
            await notify_safely(
                collaborators.notifier,
                item.host_id,
                "CERTIFICATION_EXPIRING_SOON",
                {
                    "certificate_number": item.certificate_number,
                    "expires_at": item.expires_at.isoformat(),
                    "days_until_expiry": item.days_until_expiry,
                },
            )
            notified += 1

    summary = {
        "expiring_soon": len(result.expiring_soon),
        "expired": len(result.expired),
        "marked_expired": result.marked_expired,
        "notifications": notified,
    }
    logger.info(
        f"Certification expiry sweep completed. Expired: {summary['marked_expired']}, "
        f"Expiring soon: {summary['expiring_soon']}"
    )
    return summary


def register_certification_jobs() -> None:
    """Register certification background jobs. Call before starting the scheduler."""
    interval = settings.expiry_sweep_interval_minutes
    register_job(
        job_id=JOB_ID_EXPIRY_SWEEP,
        func=run_expiry_sweep,
        trigger=IntervalTrigger(minutes=interval),
    )
    logger.info(f"Registered job: {JOB_ID_EXPIRY_SWEEP} (interval: {interval} minutes)")
