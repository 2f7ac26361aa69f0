"""
Certification Schemas

Pydantic schemas for certifications, templates, verification and lifecycle
results.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from rentalcert.modules.certifications.models import CertificationStatus

# ============================================
# Certifications
# ============================================


class CertificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    host_id: UUID
    certificate_number: str
    verification_url: str
    status: CertificationStatus
    issued_at: datetime
    expires_at: datetime
    revoked_at: datetime | None
    revoked_by: UUID | None
    revoke_reason: str | None
    badge_url: str
    qr_code_url: str


class CertificationListResponse(BaseModel):
    certifications: list[CertificationResponse]
    total: int
    skip: int
    limit: int


class IssueCertificationRequest(BaseModel):
    application_id: UUID


class RevokeRequest(BaseModel):
    reason: str = Field(..., min_length=3, max_length=1000)


class BulkRevokeRequest(BaseModel):
    certification_ids: list[UUID] = Field(..., min_length=1, max_length=200)
    reason: str = Field(..., min_length=3, max_length=1000)


class BulkRenewRequest(BaseModel):
    certification_ids: list[UUID] = Field(..., min_length=1, max_length=200)


class BulkItemResult(BaseModel):
    certification_id: UUID
    status: str  # "success" | "error"
    error: str | None = None
    error_code: str | None = None


class BulkOperationResult(BaseModel):
    """Per-item outcomes of a bulk operation. The batch is not transactional."""

    success: int = 0
    failed: int = 0
    results: list[BulkItemResult] = Field(default_factory=list)


class ExpiringCertification(BaseModel):
    id: UUID
    certificate_number: str
    host_id: UUID
    expires_at: datetime
    days_until_expiry: int


class ExpiryStatusResult(BaseModel):
    checked_at: datetime
    warning_days: int
    expiring_soon: list[ExpiringCertification]
    expired: list[ExpiringCertification]
    marked_expired: int


class VerificationResult(BaseModel):
    """
    Public verification outcome.

    ``is_expired`` and ``is_revoked`` are recomputed at query time so a
    certification past its expiry reads as invalid even before the sweep runs.
    """

    found: bool
    valid: bool
    message: str
    certificate_number: str | None = None
    status: CertificationStatus | None = None
    issued_at: datetime | None = None
    expires_at: datetime | None = None
    is_expired: bool = False
    is_revoked: bool = False
    property_name: str | None = None


class CertificationStats(BaseModel):
    total: int
    active: int
    expired: int
    revoked: int
    expiring_soon: int


# ============================================
# Templates
# ============================================


class TemplateCreate(BaseModel):
    property_type_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    validity_months: int = Field(12, ge=1, le=120)
    is_active: bool = False


class TemplateUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    validity_months: int | None = Field(None, ge=1, le=120)


class TemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    property_type_id: UUID
    name: str
    description: str | None
    validity_months: int
    is_active: bool
    created_by: UUID
    created_at: datetime
    updated_at: datetime
