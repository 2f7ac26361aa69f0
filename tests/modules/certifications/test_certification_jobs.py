"""
Tests for the certification expiry sweep job.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from rentalcert.modules.certifications.jobs import (
    JOB_ID_EXPIRY_SWEEP,
    register_certification_jobs,
    run_expiry_sweep,
)
from rentalcert.modules.certifications.schemas import ExpiringCertification, ExpiryStatusResult

JOBS = "rentalcert.modules.certifications.jobs"


def _expiring(days: int) -> ExpiringCertification:
    return ExpiringCertification(
        id=uuid4(),
        certificate_number="CERT-2026-000001",
        host_id=uuid4(),
        expires_at=datetime.now(UTC) + timedelta(days=days),
        days_until_expiry=days,
    )


@pytest.fixture
def session_maker(mock_db):
    maker = MagicMock()
    maker.return_value.__aenter__.return_value = mock_db
    maker.return_value.__aexit__.return_value = False
    return maker


class TestExpirySweepJob:
    @pytest.mark.asyncio
    async def test_notifies_both_groups(self, session_maker, collaborators):
        result = ExpiryStatusResult(
            checked_at=datetime.now(UTC),
            warning_days=30,
            expiring_soon=[_expiring(10), _expiring(20)],
            expired=[_expiring(-1)],
            marked_expired=1,
        )

        with (
            patch(f"{JOBS}.async_session_maker", session_maker),
            patch(f"{JOBS}.build_collaborators", return_value=collaborators),
            patch(f"{JOBS}.lifecycle") as mock_lifecycle,
        ):
            mock_lifecycle.check_expiry_status = AsyncMock(return_value=result)

            summary = await run_expiry_sweep()

        assert summary == {
            "expiring_soon": 2,
            "expired": 1,
            "marked_expired": 1,
            "notifications": 3,
        }
        events = [call.args[1] for call in collaborators.notifier.notify.call_args_list]
        assert events == [
            "CERTIFICATION_EXPIRED",
            "CERTIFICATION_EXPIRING_SOON",
            "CERTIFICATION_EXPIRING_SOON",
        ]

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_stop_sweep(self, session_maker, collaborators):
        collaborators.notifier.notify.side_effect = ConnectionError("down")
        result = ExpiryStatusResult(
            checked_at=datetime.now(UTC),
            warning_days=30,
            expiring_soon=[],
            expired=[_expiring(-2), _expiring(-3)],
            marked_expired=2,
        )

        with (
            patch(f"{JOBS}.async_session_maker", session_maker),
            patch(f"{JOBS}.build_collaborators", return_value=collaborators),
            patch(f"{JOBS}.lifecycle") as mock_lifecycle,
        ):
            mock_lifecycle.check_expiry_status = AsyncMock(return_value=result)

            summary = await run_expiry_sweep()

        assert summary["marked_expired"] == 2
        assert collaborators.notifier.notify.await_count == 2


def test_register_certification_jobs():
    with patch(f"{JOBS}.register_job") as mock_register:
        register_certification_jobs()

    assert mock_register.call_args.kwargs["job_id"] == JOB_ID_EXPIRY_SWEEP
    assert mock_register.call_args.kwargs["func"] is run_expiry_sweep
