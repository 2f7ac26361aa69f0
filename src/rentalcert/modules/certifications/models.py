"""
Certification Models

Issued certifications and the per-property-type templates governing issuance.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from rentalcert.core.database import Base


class CertificationStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"


class CertificateTemplate(Base):
    """
    Issuance configuration for a property type.

    At most one template per property type may be active. The partial unique
    index enforces it in storage; activation swaps inside one transaction.
    """

    __tablename__ = "certificate_templates"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    property_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("property_types.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    validity_months: Mapped[int] = mapped_column(Integer, nullable=False, default=12)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index(
            "uq_certificate_templates_active_per_type",
            "property_type_id",
            unique=True,
            postgresql_where=text("is_active"),
        ),
    )


class Certification(Base):
    """
    Credential issued for exactly one approved application.

    Created only by the issuer; revocation, renewal and expiry mutate it in
    place. Rows are never deleted.
    """

    __tablename__ = "certifications"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="RESTRICT"),
        unique=True,
        nullable=False,
    )
    host_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    certificate_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    verification_token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    verification_url: Mapped[str] = mapped_column(String(500), nullable=False)

    status: Mapped[CertificationStatus] = mapped_column(
        Enum(CertificationStatus, name="certification_status"),
        nullable=False,
        default=CertificationStatus.ACTIVE,
    )
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    revoke_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Filled in by badge generation; empty until then
    badge_url: Mapped[str] = mapped_column(String(1000), nullable=False, default="")
    qr_code_url: Mapped[str] = mapped_column(String(1000), nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_certifications_status_expires_at", "status", "expires_at"),
        Index("ix_certifications_host_id", "host_id"),
    )
