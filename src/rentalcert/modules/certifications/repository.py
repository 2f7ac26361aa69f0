"""
Certifications Repository

Database operations for certifications and certificate templates.

Design Principles:
- Only database operations, no business rules
- Uniqueness (certificate number, token, one certification per
  application, one active template per property type) is owned by
  database constraints; callers handle IntegrityError
- Timezone-aware datetime handling (UTC)
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import CertificateTemplate, Certification, CertificationStatus


async def create(db: AsyncSession, **fields: Any) -> Certification:
    """
    Insert a certification.

    Raises:
        sqlalchemy.exc.IntegrityError: On a uniqueness violation; the caller
            is responsible for rolling back
    """
    certification = Certification(**fields)

    db.add(certification)
    await db.commit()
    await db.refresh(certification)

    return certification


async def get_by_id(db: AsyncSession, id: UUID) -> Certification | None:
    return await db.get(Certification, id)


async def get_by_application_id(db: AsyncSession, application_id: UUID) -> Certification | None:
    result = await db.execute(
        select(Certification).where(Certification.application_id == application_id)
    )
    return result.scalar_one_or_none()


async def get_by_verification_token(db: AsyncSession, token: str) -> Certification | None:
    result = await db.execute(
        select(Certification).where(Certification.verification_token == token)
    )
    return result.scalar_one_or_none()


async def get_by_certificate_number(db: AsyncSession, number: str) -> Certification | None:
    result = await db.execute(
        select(Certification).where(Certification.certificate_number == number)
    )
    return result.scalar_one_or_none()


async def certificate_number_exists(db: AsyncSession, number: str) -> bool:
    result = await db.execute(
        select(Certification.id).where(Certification.certificate_number == number).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def save(db: AsyncSession, certification: Certification) -> Certification:
    await db.commit()
    await db.refresh(certification)
    return certification


async def list_certifications(
    db: AsyncSession,
    *,
    status: CertificationStatus | None = None,
    host_id: UUID | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Certification], int]:
    conditions = []
    if status is not None:
        conditions.append(Certification.status == status)
    if host_id is not None:
        conditions.append(Certification.host_id == host_id)

    total = await db.scalar(select(func.count()).select_from(Certification).where(*conditions))
    result = await db.execute(
        select(Certification)
        .where(*conditions)
        .order_by(Certification.issued_at.desc())
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0


# ============================================
# Expiry Queries
# ============================================


async def get_active_expiring_between(
    db: AsyncSession, start: datetime, end: datetime
) -> list[Certification]:
    """ACTIVE certifications with start <= expires_at <= end."""
    result = await db.execute(
        select(Certification)
        .where(
            and_(
                Certification.status == CertificationStatus.ACTIVE,
                Certification.expires_at >= start,
                Certification.expires_at <= end,
            )
        )
        .order_by(Certification.expires_at)
    )
    return list(result.scalars().all())


async def get_active_expired_before(db: AsyncSession, moment: datetime) -> list[Certification]:
    result = await db.execute(
        select(Certification)
        .where(
            Certification.status == CertificationStatus.ACTIVE,
            Certification.expires_at < moment,
        )
        .order_by(Certification.expires_at)
    )
    return list(result.scalars().all())


async def mark_expired(db: AsyncSession, ids: list[UUID]) -> int:
    """
    Move the given certifications from ACTIVE to EXPIRED.

    Guarded by ``status = ACTIVE`` so a concurrent revoke or a second sweep
    is never overwritten. Returns the number of rows changed.
    """
    if not ids:
        return 0

    result = await db.execute(
        update(Certification)
        .where(
            Certification.id.in_(ids),
            Certification.status == CertificationStatus.ACTIVE,
        )
        .values(status=CertificationStatus.EXPIRED)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0


async def count_by_status(db: AsyncSession) -> dict[CertificationStatus, int]:
    result = await db.execute(
        select(Certification.status, func.count()).group_by(Certification.status)
    )
    counts = {status: 0 for status in CertificationStatus}
    for status, count in result.all():
        counts[status] = count
    return counts


async def count_active_expiring_between(db: AsyncSession, start: datetime, end: datetime) -> int:
    total = await db.scalar(
        select(func.count())
        .select_from(Certification)
        .where(
            Certification.status == CertificationStatus.ACTIVE,
            Certification.expires_at >= start,
            Certification.expires_at <= end,
        )
    )
    return total or 0


# ============================================
# Certificate Templates
# ============================================


async def get_template(db: AsyncSession, id: UUID) -> CertificateTemplate | None:
    return await db.get(CertificateTemplate, id)


async def get_active_templates(
    db: AsyncSession, property_type_id: UUID
) -> list[CertificateTemplate]:
    result = await db.execute(
        select(CertificateTemplate).where(
            CertificateTemplate.property_type_id == property_type_id,
            CertificateTemplate.is_active.is_(True),
        )
    )
    return list(result.scalars().all())


async def list_templates(
    db: AsyncSession,
    property_type_id: UUID | None = None,
    active_only: bool = False,
) -> list[CertificateTemplate]:
    stmt = select(CertificateTemplate).order_by(CertificateTemplate.created_at.desc())
    if property_type_id is not None:
        stmt = stmt.where(CertificateTemplate.property_type_id == property_type_id)
    if active_only:
        stmt = stmt.where(CertificateTemplate.is_active.is_(True))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def deactivate_templates_for_type(
    db: AsyncSession,
    property_type_id: UUID,
    except_id: UUID | None = None,
) -> None:
    """Stage deactivation of every active template of a type. Caller commits."""
    stmt = (
        update(CertificateTemplate)
        .where(
            CertificateTemplate.property_type_id == property_type_id,
            CertificateTemplate.is_active.is_(True),
        )
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    if except_id is not None:
        stmt = stmt.where(CertificateTemplate.id != except_id)
    await db.execute(stmt)
