"""
Review Workflow Service

Admin-side handling of submitted applications.

This module implements:
1. Reviewer assignment (SUBMITTED / UNDER_REVIEW / MORE_INFO_REQUESTED -> UNDER_REVIEW)
2. Review decisions on UNDER_REVIEW applications:
   - approve: APPROVED, then the certification is issued
   - reject: REJECTED
   - request_more_info: MORE_INFO_REQUESTED
3. The review view with uploaded documents and a risk assessment
4. Review queue statistics

Approval and issuance are separate commits. When issuance fails after an
approval, the approval stays recorded and the result reports a partial
failure with the issuer's error code and ``next_action="contact_admin"``.

Access rules:
- Only ADMIN and SUPER_ADMIN may act here
- ADMIN sees and decides only applications assigned to them
"""

import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rentalcert.core.auth import Actor, require_reviewer
from rentalcert.core.exceptions import ServiceError
from rentalcert.modules.applications import repository as applications_repository
from rentalcert.modules.applications.errors import InvalidApplicationStateError
from rentalcert.modules.applications.helpers import (
    application_snapshot,
    find_missing_property_fields,
)
from rentalcert.modules.applications.models import (
    Application,
    ApplicationStatus,
    DocumentType,
)
from rentalcert.modules.applications.schemas import ApplicationResponse
from rentalcert.modules.applications.service import ensure_can_view, get_application_or_404
from rentalcert.modules.applications.state_machine import ApplicationEvent, next_status
from rentalcert.modules.certifications import issuer
from rentalcert.modules.certifications.schemas import CertificationResponse
from rentalcert.modules.review.schemas import (
    ApplicationReviewResponse,
    ReviewDecision,
    ReviewDecisionResult,
    ReviewQueueStats,
    RiskAssessment,
    RiskLevel,
)
from rentalcert.modules.shared.collaborators import (
    REQUIRED_DOCUMENT_TYPES,
    Collaborators,
    notify_safely,
    record_audit_safely,
)

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "application"

STALE_SUBMISSION_DAYS = 30
URGENT_REVIEW_DAYS = 7
HIGH_RISK_SCORE = 6
MEDIUM_RISK_SCORE = 3

CONTACT_ADMIN = "contact_admin"

_DECISION_EVENTS = {
    ReviewDecision.APPROVE: ApplicationEvent.APPROVE,
    ReviewDecision.REJECT: ApplicationEvent.REJECT,
    ReviewDecision.REQUEST_MORE_INFO: ApplicationEvent.REQUEST_MORE_INFO,
}

_DECISION_AUDIT_ACTIONS = {
    ReviewDecision.APPROVE: "APPLICATION_APPROVED",
    ReviewDecision.REJECT: "APPLICATION_REJECTED",
    ReviewDecision.REQUEST_MORE_INFO: "MORE_INFO_REQUESTED",
}


# ============================================
# Risk Assessment
# ============================================


def assess_risk(
    application: Application,
    uploaded: set[DocumentType],
    now: datetime | None = None,
) -> RiskAssessment:
    """
    Score an application for the reviewer.

    - +2 when any required property-details field is missing
    - +2 per missing required document type
    - +1 when submitted more than 30 days ago

    high >= 6, medium >= 3, otherwise low.
    """
    now = now or datetime.now(UTC)
    factors: list[str] = []
    recommendations: list[str] = []
    score = 0

    if find_missing_property_fields(application.property_details):
        factors.append("Incomplete property details")
        score += 2

    missing = [doc.value for doc in REQUIRED_DOCUMENT_TYPES if doc not in uploaded]
    if missing:
        factors.append(f"Missing required documents: {', '.join(missing)}")
        score += 2 * len(missing)

    if application.submitted_at and (now - application.submitted_at).days > STALE_SUBMISSION_DAYS:
        factors.append(f"Application is over {STALE_SUBMISSION_DAYS} days old")
        recommendations.append("Consider requesting updated documents")
        score += 1

    if score >= HIGH_RISK_SCORE:
        level = RiskLevel.HIGH
        recommendations.append("Detailed review required before approval")
    elif score >= MEDIUM_RISK_SCORE:
        level = RiskLevel.MEDIUM
        recommendations.append("Additional verification may be needed")
    else:
        level = RiskLevel.LOW
        recommendations.append("Standard review process applicable")

    return RiskAssessment(
        level=level, score=score, factors=factors, recommendations=recommendations
    )


# ============================================
# Review View & Assignment
# ============================================


async def get_application_for_review(
    db: AsyncSession,
    application_id: UUID,
    actor: Actor,
    collaborators: Collaborators,
) -> ApplicationReviewResponse:
    require_reviewer(actor)
    application = await get_application_or_404(db, application_id)
    ensure_can_view(application, actor)

    uploaded = await collaborators.documents.document_types_uploaded(application_id)

    return ApplicationReviewResponse(
        application=ApplicationResponse.model_validate(application),
        document_types=sorted(uploaded, key=lambda d: d.value),
        risk_assessment=assess_risk(application, uploaded),
    )


async def assign_reviewer(
    db: AsyncSession,
    application_id: UUID,
    reviewer_id: UUID,
    actor: Actor,
    collaborators: Collaborators,
) -> Application:
    """
    Assign a reviewer and move the application to UNDER_REVIEW.

    Raises:
        ForbiddenError: If the actor is not a reviewer
        ApplicationNotFoundError
        InvalidStatusTransitionError: If the application cannot be reviewed
    """
    require_reviewer(actor)
    application = await get_application_or_404(db, application_id)

    old_values = application_snapshot(application)
    application.status = next_status(application.status, ApplicationEvent.ASSIGN_REVIEWER)
    application.reviewed_by = reviewer_id
    application = await applications_repository.save(db, application)

    logger.info(f"Application {application_id} assigned to reviewer {reviewer_id} by {actor}")

    await record_audit_safely(
        collaborators.audit,
        "REVIEWER_ASSIGNED",
        RESOURCE_TYPE,
        application.id,
        actor.id,
        old_values=old_values,
        new_values=application_snapshot(application),
    )
    await notify_safely(
        collaborators.notifier,
        reviewer_id,
        "REVIEW_ASSIGNED",
        {"application_id": str(application.id)},
    )

    return application


# ============================================
# Decisions
# ============================================


async def _issue_after_approval(
    db: AsyncSession,
    application_id: UUID,
    actor: Actor,
    collaborators: Collaborators,
) -> ReviewDecisionResult:
    try:
        certification = await issuer.generate_certification(
            db, application_id, actor.id, collaborators
        )
    except ServiceError as e:
        logger.error(
            f"Application {application_id} approved but certification failed: "
            f"{e.error_code}: {e.message}"
        )
        return ReviewDecisionResult(
            success=False,
            partial_failure=True,
            application_id=application_id,
            status=ApplicationStatus.APPROVED,
            message=(
                "Application approved but certification generation failed: "
                f"{e.message} Please contact a system administrator."
            ),
            error_code=e.error_code,
            next_action=CONTACT_ADMIN,
        )
    except Exception as e:
        logger.error(
            f"Unexpected error issuing certification for approved application "
            f"{application_id}: {e}",
            exc_info=True,
        )
        await db.rollback()
        return ReviewDecisionResult(
            success=False,
            partial_failure=True,
            application_id=application_id,
            status=ApplicationStatus.APPROVED,
            message=(
                "Application approved but certification generation failed. "
                "Please contact a system administrator."
            ),
            error_code="CERTIFICATION_GENERATION_FAILED",
            next_action=CONTACT_ADMIN,
        )

    logger.info(
        f"Application {application_id} approved and certification "
        f"{certification.certificate_number} issued"
    )
    return ReviewDecisionResult(
        success=True,
        application_id=application_id,
        status=ApplicationStatus.APPROVED,
        message=(
            f"Application approved. Certification {certification.certificate_number} "
            "has been issued."
        ),
        certification=CertificationResponse.model_validate(certification),
    )


async def submit_review_decision(
    db: AsyncSession,
    application_id: UUID,
    decision: ReviewDecision,
    notes: str,
    actor: Actor,
    collaborators: Collaborators,
) -> ReviewDecisionResult:
    """
    Record a decision on an UNDER_REVIEW application.

    Approval commits first and issuance runs afterwards; an issuance failure
    is returned as a partial failure rather than raised.

    Raises:
        ForbiddenError: If the actor is not a reviewer
        ApplicationNotFoundError
        ApplicationAccessDeniedError: If an ADMIN is not the assigned reviewer
        InvalidApplicationStateError: If the application is not UNDER_REVIEW
    """
    require_reviewer(actor)
    application = await get_application_or_404(db, application_id)
    ensure_can_view(application, actor)

    if application.status != ApplicationStatus.UNDER_REVIEW:
        raise InvalidApplicationStateError(
            "Application must be under review to submit a decision.",
            expected_state=ApplicationStatus.UNDER_REVIEW.value,
        )

    old_values = application_snapshot(application)
    now = datetime.now(UTC)

    application.status = next_status(application.status, _DECISION_EVENTS[decision])
    application.review_notes = notes or None
    if decision != ReviewDecision.REQUEST_MORE_INFO:
        application.reviewed_at = now
        # The assignee stays recorded; the deciding actor goes to the audit entry
        if application.reviewed_by is None:
            application.reviewed_by = actor.id
    application = await applications_repository.save(db, application)

    # Issuance may roll back and expire the instance
    new_status = application.status
    host_id = application.host_id
    new_values = {
        **application_snapshot(application),
        "notes": notes,
        "decided_by": str(actor.id),
    }

    logger.info(f"Application {application_id} {decision.value} by {actor}")

    await record_audit_safely(
        collaborators.audit,
        _DECISION_AUDIT_ACTIONS[decision],
        RESOURCE_TYPE,
        application_id,
        actor.id,
        old_values=old_values,
        new_values=new_values,
    )
    await notify_safely(
        collaborators.notifier,
        host_id,
        _DECISION_AUDIT_ACTIONS[decision],
        {"application_id": str(application_id), "notes": notes},
    )

    if decision == ReviewDecision.APPROVE:
        return await _issue_after_approval(db, application_id, actor, collaborators)

    if decision == ReviewDecision.REJECT:
        message = "Application rejected. The host has been notified."
    else:
        message = "Additional information requested. The host has been notified."

    return ReviewDecisionResult(
        success=True,
        application_id=application_id,
        status=new_status,
        message=message,
    )


# ============================================
# Queue Stats
# ============================================


async def get_review_queue_stats(db: AsyncSession, actor: Actor) -> ReviewQueueStats:
    require_reviewer(actor)
    now = datetime.now(UTC)
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)

    counts = await applications_repository.count_by_status(db)
    assigned = await applications_repository.count_assigned_under_review(db, actor.id)
    urgent = await applications_repository.count_under_review_submitted_before(
        db, now - timedelta(days=URGENT_REVIEW_DAYS)
    )
    decided_today = await applications_repository.count_decided_since(
        db, start_of_day, reviewer_id=actor.id
    )

    return ReviewQueueStats(
        total_under_review=counts[ApplicationStatus.UNDER_REVIEW],
        assigned_to_me=assigned,
        urgent=urgent,
        decided_today=decided_today,
    )
