"""
Certification Lifecycle Manager

Status transitions after issuance:
- ACTIVE -> REVOKED (revoke)
- ACTIVE -> EXPIRED (expiry sweep)
- ACTIVE | EXPIRED | REVOKED -> ACTIVE (renew)

Renewal always uses the global ``certification_validity_months`` setting,
not the template that governed issuance.

The expiry sweep is a monotonic ACTIVE -> EXPIRED advance guarded in the
UPDATE itself, so repeated or concurrent runs are harmless. Verification
recomputes expiry and revocation at read time, independent of how recently
the sweep ran.

Bulk operations process items one by one and collect each outcome; a
failing item never stops or rolls back its siblings.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rentalcert.core.auth import Actor, require_reviewer
from rentalcert.core.config import settings
from rentalcert.core.exceptions import ForbiddenError, ServiceError
from rentalcert.modules.applications import repository as applications_repository
from rentalcert.modules.applications.helpers import get_property_name
from rentalcert.modules.certifications import repository
from rentalcert.modules.certifications.errors import (
    AlreadyRevokedError,
    CannotRevokeExpiredError,
    CertificationNotFoundError,
)
from rentalcert.modules.certifications.helpers import add_months, extract_certificate_number
from rentalcert.modules.certifications.models import Certification, CertificationStatus
from rentalcert.modules.certifications.schemas import (
    BulkItemResult,
    BulkOperationResult,
    CertificationStats,
    ExpiringCertification,
    ExpiryStatusResult,
    VerificationResult,
)
from rentalcert.modules.shared.collaborators import (
    Collaborators,
    notify_safely,
    record_audit_safely,
)

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "certification"


def _snapshot(certification: Certification) -> dict[str, str | None]:
    return {
        "status": certification.status.value,
        "expires_at": certification.expires_at.isoformat(),
        "revoke_reason": certification.revoke_reason,
    }


# ============================================
# Read Access
# ============================================


async def get_certification_or_404(db: AsyncSession, certification_id: UUID) -> Certification:
    certification = await repository.get_by_id(db, certification_id)
    if not certification:
        raise CertificationNotFoundError(certification_id)
    return certification


async def get_certification(
    db: AsyncSession, certification_id: UUID, actor: Actor
) -> Certification:
    certification = await get_certification_or_404(db, certification_id)
    if not actor.is_reviewer and certification.host_id != actor.id:
        raise ForbiddenError("You do not have access to this certification")
    return certification


async def list_certifications(
    db: AsyncSession,
    actor: Actor,
    *,
    status: CertificationStatus | None = None,
    host_id: UUID | None = None,
    skip: int = 0,
    limit: int = 20,
) -> dict:
    if not actor.is_reviewer:
        host_id = actor.id

    certifications, total = await repository.list_certifications(
        db, status=status, host_id=host_id, skip=skip, limit=limit
    )
    return {"certifications": certifications, "total": total, "skip": skip, "limit": limit}


# ============================================
# Revoke / Renew
# ============================================


async def revoke_certification(
    db: AsyncSession,
    certification_id: UUID,
    reason: str,
    actor: Actor,
    collaborators: Collaborators,
) -> Certification:
    """
    Revoke an ACTIVE certification.

    Raises:
        ForbiddenError: If the actor is not a reviewer
        CertificationNotFoundError
        AlreadyRevokedError: If already REVOKED
        CannotRevokeExpiredError: If EXPIRED
    """
    require_reviewer(actor)
    certification = await get_certification_or_404(db, certification_id)

    if certification.status == CertificationStatus.REVOKED:
        raise AlreadyRevokedError()
    if certification.status == CertificationStatus.EXPIRED:
        raise CannotRevokeExpiredError()

    old_values = _snapshot(certification)
    certification.status = CertificationStatus.REVOKED
    certification.revoked_at = datetime.now(UTC)
    certification.revoked_by = actor.id
    certification.revoke_reason = reason
    certification = await repository.save(db, certification)

    logger.info(f"Certification {certification.certificate_number} revoked by {actor}: {reason}")

    await record_audit_safely(
        collaborators.audit,
        "CERTIFICATION_REVOKED",
        RESOURCE_TYPE,
        certification.id,
        actor.id,
        old_values=old_values,
        new_values=_snapshot(certification),
    )
    await notify_safely(
        collaborators.notifier,
        certification.host_id,
        "CERTIFICATION_REVOKED",
        {"certificate_number": certification.certificate_number, "reason": reason},
    )

    return certification


async def renew_certification(
    db: AsyncSession,
    certification_id: UUID,
    actor: Actor | None,
    collaborators: Collaborators,
) -> Certification:
    """
    Renew a certification from now for the global validity period.

    Revocation metadata is cleared and the status set back to ACTIVE.
    ``actor`` is None when renewal is triggered by the system.
    """
    if actor is not None:
        require_reviewer(actor)
    certification = await get_certification_or_404(db, certification_id)

    old_values = _snapshot(certification)
    now = datetime.now(UTC)
    certification.expires_at = add_months(now, settings.certification_validity_months)
    certification.status = CertificationStatus.ACTIVE
    certification.revoked_at = None
    certification.revoked_by = None
    certification.revoke_reason = None
    certification = await repository.save(db, certification)

    logger.info(
        f"Certification {certification.certificate_number} renewed until "
        f"{certification.expires_at.isoformat()}"
    )

    await record_audit_safely(
        collaborators.audit,
        "CERTIFICATION_RENEWED",
        RESOURCE_TYPE,
        certification.id,
        actor.id if actor else None,
        old_values=old_values,
        new_values=_snapshot(certification),
    )
    await notify_safely(
        collaborators.notifier,
        certification.host_id,
        "CERTIFICATION_RENEWED",
        {
            "certificate_number": certification.certificate_number,
            "expires_at": certification.expires_at.isoformat(),
        },
    )

    return certification


async def _run_bulk(
    db: AsyncSession,
    certification_ids: list[UUID],
    operation: Callable[[UUID], Awaitable[Certification]],
    label: str,
) -> BulkOperationResult:
    result = BulkOperationResult()

    for certification_id in certification_ids:
        try:
            await operation(certification_id)
            result.success += 1
            result.results.append(
                BulkItemResult(certification_id=certification_id, status="success")
            )
        except ServiceError as e:
            result.failed += 1
            result.results.append(
                BulkItemResult(
                    certification_id=certification_id,
                    status="error",
                    error=e.message,
                    error_code=e.error_code,
                )
            )
        except Exception as e:
            logger.error(f"Bulk {label} failed for {certification_id}: {e}", exc_info=True)
            await db.rollback()
            result.failed += 1
            result.results.append(
                BulkItemResult(certification_id=certification_id, status="error", error=str(e))
            )

    logger.info(f"Bulk {label} completed. Success: {result.success}, Failed: {result.failed}")
    return result


async def bulk_revoke(
    db: AsyncSession,
    certification_ids: list[UUID],
    reason: str,
    actor: Actor,
    collaborators: Collaborators,
) -> BulkOperationResult:
    require_reviewer(actor)
    return await _run_bulk(
        db,
        certification_ids,
        lambda cid: revoke_certification(db, cid, reason, actor, collaborators),
        "revoke",
    )


async def bulk_renew(
    db: AsyncSession,
    certification_ids: list[UUID],
    actor: Actor,
    collaborators: Collaborators,
) -> BulkOperationResult:
    require_reviewer(actor)
    return await _run_bulk(
        db,
        certification_ids,
        lambda cid: renew_certification(db, cid, actor, collaborators),
        "renew",
    )


# ============================================
# Expiry
# ============================================


def _to_expiring(certification: Certification, now: datetime) -> ExpiringCertification:
    return ExpiringCertification(
        id=certification.id,
        certificate_number=certification.certificate_number,
        host_id=certification.host_id,
        expires_at=certification.expires_at,
        days_until_expiry=(certification.expires_at - now).days,
    )


async def check_expiry_status(
    db: AsyncSession,
    warning_days: int | None = None,
) -> ExpiryStatusResult:
    """
    Classify ACTIVE certifications and expire the overdue ones.

    - expiring_soon: now <= expires_at <= now + warning_days
    - expired: expires_at < now; these are moved to EXPIRED

    Safe to run repeatedly: a second run finds nothing left to expire.
    """
    now = datetime.now(UTC)
    if warning_days is None:
        warning_days = settings.certification_renewal_reminder_days

    expiring = await repository.get_active_expiring_between(
        db, now, now + timedelta(days=warning_days)
    )
    expired = await repository.get_active_expired_before(db, now)

    expiring_soon = [_to_expiring(c, now) for c in expiring]
    expired_items = [_to_expiring(c, now) for c in expired]

    marked = await repository.mark_expired(db, [c.id for c in expired])
    if marked:
        logger.info(f"Marked {marked} certifications as expired")

    return ExpiryStatusResult(
        checked_at=now,
        warning_days=warning_days,
        expiring_soon=expiring_soon,
        expired=expired_items,
        marked_expired=marked,
    )


# ============================================
# Verification & Stats
# ============================================


async def _find_by_identifier(db: AsyncSession, identifier: str) -> Certification | None:
    certification = await repository.get_by_verification_token(db, identifier)
    if certification:
        return certification

    number = extract_certificate_number(identifier)
    if number:
        return await repository.get_by_certificate_number(db, number)
    return None


async def verify_certification(db: AsyncSession, identifier: str) -> VerificationResult:
    """
    Verify a certification by verification token or certificate number.

    Unknown identifiers return ``found=False`` rather than raising, so the
    public endpoint answers the same way for every miss.
    """
    identifier = identifier.strip()
    certification = await _find_by_identifier(db, identifier) if identifier else None

    if certification is None:
        logger.info("Verification lookup found no certification")
        return VerificationResult(found=False, valid=False, message="Certification not found")

    now = datetime.now(UTC)
    is_expired = certification.expires_at < now
    is_revoked = certification.status == CertificationStatus.REVOKED
    valid = not is_expired and not is_revoked and certification.status == CertificationStatus.ACTIVE

    if is_revoked:
        message = "This certification has been revoked by the administrator"
    elif is_expired:
        message = "This certification has expired"
    elif valid:
        message = "This certification is valid and active"
    else:
        message = "This certification is not active"

    application = await applications_repository.get_by_id(db, certification.application_id)

    return VerificationResult(
        found=True,
        valid=valid,
        message=message,
        certificate_number=certification.certificate_number,
        status=certification.status,
        issued_at=certification.issued_at,
        expires_at=certification.expires_at,
        is_expired=is_expired,
        is_revoked=is_revoked,
        property_name=get_property_name(application) if application else None,
    )


async def get_certification_stats(
    db: AsyncSession,
    warning_days: int | None = None,
) -> CertificationStats:
    if warning_days is None:
        warning_days = settings.certification_renewal_reminder_days

    now = datetime.now(UTC)
    counts = await repository.count_by_status(db)
    expiring_soon = await repository.count_active_expiring_between(
        db, now, now + timedelta(days=warning_days)
    )

    return CertificationStats(
        total=sum(counts.values()),
        active=counts[CertificationStatus.ACTIVE],
        expired=counts[CertificationStatus.EXPIRED],
        revoked=counts[CertificationStatus.REVOKED],
        expiring_soon=expiring_soon,
    )
