"""
Collaborator Interfaces

The certification core talks to everything outside its own tables through
the protocols below. Default implementations cover what this service can do
on its own (reading document and payment rows, logging notifications and
audit entries); deployments swap in real integrations by building their own
``Collaborators`` bundle.

Notification and audit calls are fire-and-forget: ``notify_safely`` and
``record_audit_safely`` log failures and never raise, so a broken mail
relay or audit sink cannot undo a state transition.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentalcert.core.database import get_db
from rentalcert.modules.applications import repository as applications_repository
from rentalcert.modules.applications.models import (
    DocumentType,
    Payment,
    PaymentStatus,
)

logger = logging.getLogger(__name__)

# Documents every application must carry before submission and issuance
REQUIRED_DOCUMENT_TYPES: tuple[DocumentType, ...] = (
    DocumentType.ID_DOCUMENT,
    DocumentType.SAFETY_PERMIT,
    DocumentType.INSURANCE_CERTIFICATE,
    DocumentType.PROPERTY_DEED,
)


# ============================================
# Value types
# ============================================


@dataclass(frozen=True)
class DocumentStepResult:
    is_complete: bool
    message: str
    missing_required: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class BadgeDetails:
    certification_id: UUID
    certificate_number: str
    property_name: str | None
    host_id: UUID
    issued_at: datetime
    expires_at: datetime
    verification_url: str


@dataclass(frozen=True)
class BadgeUrls:
    badge_url: str = ""
    qr_code_url: str = ""


# ============================================
# Protocols
# ============================================


class DocumentCollaborator(Protocol):
    async def document_types_uploaded(self, application_id: UUID) -> set[DocumentType]: ...

    async def validate_document_step_completion(
        self, application_id: UUID
    ) -> DocumentStepResult: ...


class PaymentCollaborator(Protocol):
    async def has_completed_payment(self, application_id: UUID) -> bool: ...


class Notifier(Protocol):
    async def notify(self, user_id: UUID, event: str, payload: dict[str, Any]) -> None: ...


class BadgeGenerator(Protocol):
    async def generate_badge(self, details: BadgeDetails) -> BadgeUrls: ...


class AuditRecorder(Protocol):
    async def record(
        self,
        action: str,
        resource_type: str,
        resource_id: UUID,
        actor_id: UUID | None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> None: ...


# ============================================
# Default implementations
# ============================================


def missing_required_documents(uploaded: set[DocumentType]) -> list[str]:
    return [doc.value for doc in REQUIRED_DOCUMENT_TYPES if doc not in uploaded]


class SqlDocumentCollaborator:
    """Reads uploaded document types from the documents table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def document_types_uploaded(self, application_id: UUID) -> set[DocumentType]:
        return await applications_repository.get_document_types(self.db, application_id)

    async def validate_document_step_completion(self, application_id: UUID) -> DocumentStepResult:
        uploaded = await self.document_types_uploaded(application_id)
        missing = missing_required_documents(uploaded)
        if missing:
            return DocumentStepResult(
                is_complete=False,
                message=f"Missing required documents: {', '.join(missing)}",
                missing_required=missing,
            )
        return DocumentStepResult(is_complete=True, message="All required documents uploaded")


class SqlPaymentCollaborator:
    """Checks the payments table for a COMPLETED payment."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def has_completed_payment(self, application_id: UUID) -> bool:
        result = await self.db.execute(
            select(Payment.id)
            .where(
                Payment.application_id == application_id,
                Payment.status == PaymentStatus.COMPLETED,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None


class LoggingNotifier:
    """Records notifications in the log. Delivery belongs to a messaging service."""

    async def notify(self, user_id: UUID, event: str, payload: dict[str, Any]) -> None:
        logger.info(f"Notification {event} for user {user_id}: {payload}")


class NullBadgeGenerator:
    """Leaves badge and QR code URLs empty."""

    async def generate_badge(self, details: BadgeDetails) -> BadgeUrls:
        logger.debug(f"No badge generator configured for {details.certificate_number}")
        return BadgeUrls()


class LoggingAuditRecorder:
    async def record(
        self,
        action: str,
        resource_type: str,
        resource_id: UUID,
        actor_id: UUID | None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> None:
        logger.info(
            f"AUDIT {action} {resource_type}={resource_id} actor={actor_id} "
            f"old={old_values} new={new_values}"
        )


@dataclass
class Collaborators:
    documents: DocumentCollaborator
    payments: PaymentCollaborator
    notifier: Notifier
    badges: BadgeGenerator
    audit: AuditRecorder


def build_collaborators(db: AsyncSession) -> Collaborators:
    return Collaborators(
        documents=SqlDocumentCollaborator(db),
        payments=SqlPaymentCollaborator(db),
        notifier=LoggingNotifier(),
        badges=NullBadgeGenerator(),
        audit=LoggingAuditRecorder(),
    )


async def get_collaborators(db: AsyncSession = Depends(get_db)) -> Collaborators:
    """FastAPI dependency returning the default collaborators for the request session."""
    return build_collaborators(db)


# ============================================
# Fire-and-forget helpers
# ============================================


async def notify_safely(
    notifier: Notifier,
    user_id: UUID,
    event: str,
    payload: dict[str, Any] | None = None,
) -> None:
    try:
        await notifier.notify(user_id, event, payload or {})
    except Exception as e:
        logger.error(f"Failed to send {event} notification to {user_id}: {e}", exc_info=True)


async def record_audit_safely(
    audit: AuditRecorder,
    action: str,
    resource_type: str,
    resource_id: UUID,
    actor_id: UUID | None,
    old_values: dict[str, Any] | None = None,
    new_values: dict[str, Any] | None = None,
) -> None:
    try:
        await audit.record(action, resource_type, resource_id, actor_id, old_values, new_values)
    except Exception as e:
        logger.error(f"Failed to record audit entry {action} for {resource_id}: {e}", exc_info=True)
