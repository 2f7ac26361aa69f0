"""
Applications Repository

Database operations for applications, their checklist confirmations and
document records. All reads exclude soft-deleted applications.

Design Principles:
- Only database operations, no business rules
- Functions named ``add_*``/``replace_*`` stage changes; the caller commits
  so a step update lands in one transaction
- Timezone-aware datetime handling (UTC)
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    Application,
    ApplicationStatus,
    ApplicationStep,
    ComplianceChecklistRecord,
    Document,
    DocumentType,
)


async def create(
    db: AsyncSession,
    host_id: UUID,
    property_details: dict[str, Any],
) -> Application:
    """Create a DRAFT application at PROPERTY_DETAILS."""
    application = Application(
        host_id=host_id,
        property_details=property_details,
        status=ApplicationStatus.DRAFT,
        current_step=ApplicationStep.PROPERTY_DETAILS,
    )

    db.add(application)
    await db.commit()
    await db.refresh(application)

    return application


async def get_by_id(db: AsyncSession, id: UUID) -> Application | None:
    """Get a live (not soft-deleted) application by ID."""
    result = await db.execute(
        select(Application).where(Application.id == id, Application.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def list_applications(
    db: AsyncSession,
    *,
    host_id: UUID | None = None,
    reviewer_id: UUID | None = None,
    status: ApplicationStatus | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Application], int]:
    """List live applications with optional filters. Returns (page, total)."""
    conditions = [Application.deleted_at.is_(None)]
    if host_id is not None:
        conditions.append(Application.host_id == host_id)
    if reviewer_id is not None:
        conditions.append(Application.reviewed_by == reviewer_id)
    if status is not None:
        conditions.append(Application.status == status)

    total = await db.scalar(select(func.count()).select_from(Application).where(*conditions))

    result = await db.execute(
        select(Application)
        .where(*conditions)
        .order_by(Application.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0


async def save(db: AsyncSession, application: Application) -> Application:
    """Commit pending changes and refresh the application."""
    await db.commit()
    await db.refresh(application)
    return application


async def soft_delete(db: AsyncSession, application: Application) -> Application:
    application.deleted_at = datetime.now(UTC)
    return await save(db, application)


# ============================================
# Checklist Records
# ============================================


async def get_checklist_records(
    db: AsyncSession, application_id: UUID
) -> list[ComplianceChecklistRecord]:
    result = await db.execute(
        select(ComplianceChecklistRecord).where(
            ComplianceChecklistRecord.application_id == application_id
        )
    )
    return list(result.scalars().all())


async def replace_checklist_records(
    db: AsyncSession,
    application_id: UUID,
    checked_item_ids: Iterable[UUID],
) -> None:
    """
    Replace all checklist confirmations for an application.

    Delete-all-then-insert; not a merge. Concurrent replacements are last
    writer wins. Caller commits.
    """
    await db.execute(
        delete(ComplianceChecklistRecord).where(
            ComplianceChecklistRecord.application_id == application_id
        )
    )

    now = datetime.now(UTC)
    for item_id in checked_item_ids:
        db.add(
            ComplianceChecklistRecord(
                application_id=application_id,
                checklist_item_id=item_id,
                checked=True,
                checked_at=now,
            )
        )


# ============================================
# Documents
# ============================================


async def add_documents(
    db: AsyncSession,
    application_id: UUID,
    documents: Iterable[dict[str, Any]],
) -> list[Document]:
    """Stage new document records (append). Caller commits."""
    records = [Document(application_id=application_id, **data) for data in documents]
    db.add_all(records)
    return records


async def get_document_types(db: AsyncSession, application_id: UUID) -> set[DocumentType]:
    result = await db.execute(
        select(Document.document_type).where(Document.application_id == application_id).distinct()
    )
    return set(result.scalars().all())


# ============================================
# Review Queue Queries
# ============================================


async def count_by_status(db: AsyncSession) -> dict[ApplicationStatus, int]:
    result = await db.execute(
        select(Application.status, func.count())
        .where(Application.deleted_at.is_(None))
        .group_by(Application.status)
    )
    counts = {status: 0 for status in ApplicationStatus}
    for status, count in result.all():
        counts[status] = count
    return counts


async def count_assigned_under_review(db: AsyncSession, reviewer_id: UUID) -> int:
    total = await db.scalar(
        select(func.count())
        .select_from(Application)
        .where(
            Application.deleted_at.is_(None),
            Application.status == ApplicationStatus.UNDER_REVIEW,
            Application.reviewed_by == reviewer_id,
        )
    )
    return total or 0


async def count_under_review_submitted_before(db: AsyncSession, before: datetime) -> int:
    total = await db.scalar(
        select(func.count())
        .select_from(Application)
        .where(
            Application.deleted_at.is_(None),
            Application.status == ApplicationStatus.UNDER_REVIEW,
            Application.submitted_at < before,
        )
    )
    return total or 0


async def count_decided_since(
    db: AsyncSession, since: datetime, reviewer_id: UUID | None = None
) -> int:
    query = (
        select(func.count())
        .select_from(Application)
        .where(
            Application.deleted_at.is_(None),
            Application.status.in_([ApplicationStatus.APPROVED, ApplicationStatus.REJECTED]),
            Application.reviewed_at >= since,
        )
    )
    if reviewer_id:
        query = query.where(Application.reviewed_by == reviewer_id)
    total = await db.scalar(query)
    return total or 0
