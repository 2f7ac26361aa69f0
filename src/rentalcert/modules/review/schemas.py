"""
Review Schemas

Pydantic schemas for reviewer assignment, decisions and the review view.
"""

import enum
from uuid import UUID

from pydantic import BaseModel, Field

from rentalcert.modules.applications.models import ApplicationStatus, DocumentType
from rentalcert.modules.applications.schemas import ApplicationResponse
from rentalcert.modules.certifications.schemas import CertificationResponse


class ReviewDecision(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_MORE_INFO = "request_more_info"


class RiskLevel(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AssignReviewerRequest(BaseModel):
    reviewer_id: UUID


class ReviewDecisionRequest(BaseModel):
    decision: ReviewDecision
    notes: str = Field("", max_length=5000)


class RiskAssessment(BaseModel):
    """Informational only; never blocks a decision."""

    level: RiskLevel
    score: int
    factors: list[str]
    recommendations: list[str]


class ApplicationReviewResponse(BaseModel):
    application: ApplicationResponse
    document_types: list[DocumentType]
    risk_assessment: RiskAssessment


class ReviewDecisionResult(BaseModel):
    """
    Outcome of a review decision.

    ``partial_failure`` is set when an approval was recorded but issuing the
    certification failed; the approval stays in place.
    """

    success: bool
    partial_failure: bool = False
    application_id: UUID
    status: ApplicationStatus
    message: str
    certification: CertificationResponse | None = None
    error_code: str | None = None
    next_action: str | None = None


class ReviewQueueStats(BaseModel):
    total_under_review: int
    assigned_to_me: int
    urgent: int
    decided_today: int
