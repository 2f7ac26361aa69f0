"""
Application Models

Database models for host certification applications and the records
collected while a host walks through the application steps:
- Application: the request itself, its status and current step
- ComplianceChecklistRecord: which checklist items the host confirmed
- Document: uploaded supporting documents (metadata only, bytes live in storage)
- Payment: payment records written by the payment integration, read-only here
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentalcert.core.database import Base


class ApplicationStatus(str, enum.Enum):
    """Status of a certification application."""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    MORE_INFO_REQUESTED = "MORE_INFO_REQUESTED"


class ApplicationStep(str, enum.Enum):
    """Ordered data-collection phases of an application."""

    PROPERTY_DETAILS = "PROPERTY_DETAILS"
    COMPLIANCE_CHECKLIST = "COMPLIANCE_CHECKLIST"
    DOCUMENT_UPLOAD = "DOCUMENT_UPLOAD"
    PAYMENT = "PAYMENT"
    SUBMISSION = "SUBMISSION"


class DocumentType(str, enum.Enum):
    ID_DOCUMENT = "ID_DOCUMENT"
    SAFETY_PERMIT = "SAFETY_PERMIT"
    INSURANCE_CERTIFICATE = "INSURANCE_CERTIFICATE"
    PROPERTY_DEED = "PROPERTY_DEED"
    OTHER = "OTHER"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"


class Application(Base):
    """
    Host certification application.

    Property details are stored as a JSON object with the keys
    property_name, address, property_type_id, bedrooms, bathrooms,
    max_guests and description. A draft may hold incomplete details;
    completeness is enforced when the host moves past PROPERTY_DETAILS.
    """

    __tablename__ = "applications"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    host_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    property_details: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, name="application_status"),
        nullable=False,
        default=ApplicationStatus.DRAFT,
    )
    current_step: Mapped[ApplicationStep] = mapped_column(
        Enum(ApplicationStep, name="application_step"),
        nullable=False,
        default=ApplicationStep.PROPERTY_DETAILS,
    )

    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # Assigned reviewer
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Soft delete
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    checklist_records: Mapped[list["ComplianceChecklistRecord"]] = relationship(
        "ComplianceChecklistRecord", back_populates="application", cascade="all, delete-orphan"
    )
    documents: Mapped[list["Document"]] = relationship(
        "Document", back_populates="application", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_applications_host_id", "host_id"),
        Index("ix_applications_status", "status"),
        Index("ix_applications_reviewed_by", "reviewed_by"),
    )

    @property
    def property_type_id(self) -> uuid.UUID | None:
        raw = (self.property_details or {}).get("property_type_id")
        return uuid.UUID(str(raw)) if raw else None


class ComplianceChecklistRecord(Base):
    """A host's confirmation of one checklist item for one application."""

    __tablename__ = "compliance_checklists"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    checklist_item_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("checklist_items.id", ondelete="CASCADE"),
        nullable=False,
    )
    checked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    checked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    application: Mapped["Application"] = relationship(
        "Application", back_populates="checklist_records"
    )

    __table_args__ = (
        UniqueConstraint(
            "application_id", "checklist_item_id", name="uq_compliance_checklists_app_item"
        ),
    )


class Document(Base):
    """Metadata for a document uploaded in the DOCUMENT_UPLOAD step."""

    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    document_type: Mapped[DocumentType] = mapped_column(
        Enum(DocumentType, name="document_type"), nullable=False
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    application: Mapped["Application"] = relationship("Application", back_populates="documents")

    __table_args__ = (Index("ix_documents_application_type", "application_id", "document_type"),)


class Payment(Base):
    """Payment record. Written by the payment integration; only read here."""

    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    host_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("ix_payments_application_status", "application_id", "status"),)
