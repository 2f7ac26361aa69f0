"""
Tests for the certification lifecycle manager.

These tests verify:
- Revoke only from ACTIVE, with reason and revoker recorded
- Renewal from any status clears revocation and restarts the validity period
- Expiry sweep classification and idempotence
- Public verification for valid, revoked, expired and unknown identifiers
- Bulk operations collect per-item outcomes
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from rentalcert.core.exceptions import ForbiddenError
from rentalcert.modules.certifications.errors import (
    AlreadyRevokedError,
    CannotRevokeExpiredError,
    CertificationNotFoundError,
)
from rentalcert.modules.certifications.lifecycle import (
    bulk_revoke,
    check_expiry_status,
    get_certification,
    get_certification_stats,
    renew_certification,
    revoke_certification,
    verify_certification,
)
from rentalcert.modules.certifications.models import CertificationStatus

LIFECYCLE = "rentalcert.modules.certifications.lifecycle"


def _echo(_db, certification):
    return certification


# ============================================
# Revoke / Renew
# ============================================


class TestRevoke:
    @pytest.mark.asyncio
    async def test_revoke_active(self, mock_db, admin_actor, collaborators, make_certification):
        cert = make_certification()

        with patch(f"{LIFECYCLE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=cert)
            mock_repo.save = AsyncMock(side_effect=_echo)

            result = await revoke_certification(
                mock_db, cert.id, "Safety violation", admin_actor, collaborators
            )

        assert result.status == CertificationStatus.REVOKED
        assert result.revoked_by == admin_actor.id
        assert result.revoke_reason == "Safety violation"
        assert result.revoked_at is not None
        collaborators.notifier.notify.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_revoke_twice_fails(
        self, mock_db, admin_actor, collaborators, make_certification
    ):
        cert = make_certification()

        with patch(f"{LIFECYCLE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=cert)
            mock_repo.save = AsyncMock(side_effect=_echo)

            await revoke_certification(mock_db, cert.id, "First", admin_actor, collaborators)

            with pytest.raises(AlreadyRevokedError):
                await revoke_certification(mock_db, cert.id, "Second", admin_actor, collaborators)

        assert cert.revoke_reason == "First"

    @pytest.mark.asyncio
    async def test_revoke_expired_fails(
        self, mock_db, admin_actor, collaborators, make_certification
    ):
        cert = make_certification(
            status=CertificationStatus.EXPIRED, expires_in=timedelta(days=-3)
        )

        with patch(f"{LIFECYCLE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=cert)
            mock_repo.save = AsyncMock()

            with pytest.raises(CannotRevokeExpiredError):
                await revoke_certification(mock_db, cert.id, "Late", admin_actor, collaborators)

            mock_repo.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_host_cannot_revoke(self, mock_db, host_actor, collaborators):
        with pytest.raises(ForbiddenError):
            await revoke_certification(mock_db, uuid4(), "Nope", host_actor, collaborators)

    @pytest.mark.asyncio
    async def test_not_found(self, mock_db, admin_actor, collaborators):
        with patch(f"{LIFECYCLE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(CertificationNotFoundError):
                await revoke_certification(mock_db, uuid4(), "Gone", admin_actor, collaborators)


class TestRenew:
    @pytest.mark.asyncio
    async def test_revoke_then_renew(
        self, mock_db, admin_actor, collaborators, make_certification
    ):
        cert = make_certification(expires_in=timedelta(days=5))

        with (
            patch(f"{LIFECYCLE}.repository") as mock_repo,
            patch(f"{LIFECYCLE}.settings") as mock_settings,
        ):
            mock_settings.certification_validity_months = 12
            mock_repo.get_by_id = AsyncMock(return_value=cert)
            mock_repo.save = AsyncMock(side_effect=_echo)

            await revoke_certification(mock_db, cert.id, "Complaint", admin_actor, collaborators)
            result = await renew_certification(mock_db, cert.id, admin_actor, collaborators)

        assert result.status == CertificationStatus.ACTIVE
        assert result.revoked_at is None
        assert result.revoked_by is None
        assert result.revoke_reason is None
        assert result.expires_at > datetime.now(UTC) + timedelta(days=360)

    @pytest.mark.asyncio
    async def test_renew_expired(self, mock_db, admin_actor, collaborators, make_certification):
        cert = make_certification(
            status=CertificationStatus.EXPIRED, expires_in=timedelta(days=-10)
        )

        with patch(f"{LIFECYCLE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=cert)
            mock_repo.save = AsyncMock(side_effect=_echo)

            result = await renew_certification(mock_db, cert.id, None, collaborators)

        assert result.status == CertificationStatus.ACTIVE
        assert collaborators.audit.record.call_args.args[3] is None


class TestBulk:
    @pytest.mark.asyncio
    async def test_partial_failure_keeps_going(
        self, mock_db, admin_actor, collaborators, make_certification
    ):
        active = make_certification()
        revoked = make_certification(status=CertificationStatus.REVOKED)
        certs = {active.id: active, revoked.id: revoked}
        missing_id = uuid4()

        with patch(f"{LIFECYCLE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(side_effect=lambda _db, cid: certs.get(cid))
            mock_repo.save = AsyncMock(side_effect=_echo)

            result = await bulk_revoke(
                mock_db,
                [revoked.id, active.id, missing_id],
                "Audit sweep",
                admin_actor,
                collaborators,
            )

        assert result.success == 1
        assert result.failed == 2
        assert [r.status for r in result.results] == ["error", "success", "error"]
        assert result.results[0].error_code == "ALREADY_REVOKED"
        assert result.results[2].error_code == "CERTIFICATION_NOT_FOUND"
        assert active.status == CertificationStatus.REVOKED

    @pytest.mark.asyncio
    async def test_unexpected_error_rolls_back_item(
        self, mock_db, admin_actor, collaborators, make_certification
    ):
        cert = make_certification()

        with patch(f"{LIFECYCLE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=cert)
            mock_repo.save = AsyncMock(side_effect=RuntimeError("connection reset"))

            result = await bulk_revoke(mock_db, [cert.id], "Reason", admin_actor, collaborators)

        assert result.failed == 1
        assert result.results[0].error == "connection reset"
        mock_db.rollback.assert_awaited_once()


# ============================================
# Expiry
# ============================================


class TestExpirySweep:
    @pytest.mark.asyncio
    async def test_classifies_and_marks(self, mock_db, make_certification):
        soon = make_certification(expires_in=timedelta(days=10, hours=1))
        overdue = make_certification(expires_in=timedelta(days=-1))

        with patch(f"{LIFECYCLE}.repository") as mock_repo:
            mock_repo.get_active_expiring_between = AsyncMock(return_value=[soon])
            mock_repo.get_active_expired_before = AsyncMock(return_value=[overdue])
            mock_repo.mark_expired = AsyncMock(return_value=1)

            result = await check_expiry_status(mock_db, warning_days=30)

        assert [c.id for c in result.expiring_soon] == [soon.id]
        assert result.expiring_soon[0].days_until_expiry == 10
        assert [c.id for c in result.expired] == [overdue.id]
        assert result.marked_expired == 1
        mock_repo.mark_expired.assert_awaited_once_with(mock_db, [overdue.id])

        window_start, window_end = mock_repo.get_active_expiring_between.call_args.args[1:]
        assert window_end - window_start == timedelta(days=30)

    @pytest.mark.asyncio
    async def test_second_run_marks_nothing(self, mock_db):
        with patch(f"{LIFECYCLE}.repository") as mock_repo:
            mock_repo.get_active_expiring_between = AsyncMock(return_value=[])
            mock_repo.get_active_expired_before = AsyncMock(return_value=[])
            mock_repo.mark_expired = AsyncMock(return_value=0)

            result = await check_expiry_status(mock_db, warning_days=30)

        assert result.marked_expired == 0
        assert result.expired == []


# ============================================
# Verification & Reads
# ============================================


class TestVerify:
    @pytest.mark.asyncio
    async def test_valid_by_token(self, mock_db, make_certification):
        cert = make_certification()

        with (
            patch(f"{LIFECYCLE}.repository") as mock_repo,
            patch(f"{LIFECYCLE}.applications_repository") as mock_apps,
        ):
            mock_repo.get_by_verification_token = AsyncMock(return_value=cert)
            mock_apps.get_by_id = AsyncMock(return_value=None)

            result = await verify_certification(mock_db, cert.verification_token)

        assert result.found
        assert result.valid
        assert result.message == "This certification is valid and active"

    @pytest.mark.asyncio
    async def test_revoked_by_number(self, mock_db, make_certification):
        cert = make_certification(status=CertificationStatus.REVOKED)

        with (
            patch(f"{LIFECYCLE}.repository") as mock_repo,
            patch(f"{LIFECYCLE}.applications_repository") as mock_apps,
        ):
            mock_repo.get_by_verification_token = AsyncMock(return_value=None)
            mock_repo.get_by_certificate_number = AsyncMock(return_value=cert)
            mock_apps.get_by_id = AsyncMock(return_value=None)

            result = await verify_certification(mock_db, cert.certificate_number.lower())

        mock_repo.get_by_certificate_number.assert_awaited_once_with(
            mock_db, cert.certificate_number
        )
        assert result.found
        assert not result.valid
        assert result.is_revoked
        assert "revoked" in result.message

    @pytest.mark.asyncio
    async def test_expired_before_sweep_is_invalid(self, mock_db, make_certification):
        cert = make_certification(expires_in=timedelta(minutes=-5))

        with (
            patch(f"{LIFECYCLE}.repository") as mock_repo,
            patch(f"{LIFECYCLE}.applications_repository") as mock_apps,
        ):
            mock_repo.get_by_verification_token = AsyncMock(return_value=cert)
            mock_apps.get_by_id = AsyncMock(return_value=None)

            result = await verify_certification(mock_db, cert.verification_token)

        assert result.status == CertificationStatus.ACTIVE
        assert result.is_expired
        assert not result.valid
        assert result.message == "This certification has expired"

    @pytest.mark.asyncio
    async def test_unknown_identifier(self, mock_db):
        with patch(f"{LIFECYCLE}.repository") as mock_repo:
            mock_repo.get_by_verification_token = AsyncMock(return_value=None)
            mock_repo.get_by_certificate_number = AsyncMock()

            result = await verify_certification(mock_db, "no-such-token")

        assert not result.found
        assert not result.valid
        mock_repo.get_by_certificate_number.assert_not_awaited()


class TestReads:
    @pytest.mark.asyncio
    async def test_host_reads_only_own(self, mock_db, host_actor, make_certification):
        cert = make_certification()

        with patch(f"{LIFECYCLE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=cert)

            with pytest.raises(ForbiddenError):
                await get_certification(mock_db, cert.id, host_actor)

            cert.host_id = host_actor.id
            assert await get_certification(mock_db, cert.id, host_actor) is cert

    @pytest.mark.asyncio
    async def test_stats(self, mock_db):
        counts = {
            CertificationStatus.ACTIVE: 5,
            CertificationStatus.EXPIRED: 2,
            CertificationStatus.REVOKED: 1,
        }

        with patch(f"{LIFECYCLE}.repository") as mock_repo:
            mock_repo.count_by_status = AsyncMock(return_value=counts)
            mock_repo.count_active_expiring_between = AsyncMock(return_value=3)

            stats = await get_certification_stats(mock_db, warning_days=30)

        assert stats.total == 8
        assert stats.active == 5
        assert stats.expiring_soon == 3
