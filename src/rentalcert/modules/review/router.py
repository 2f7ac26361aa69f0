"""
Review Router

Admin endpoints for reviewing submitted applications.

Endpoints:
- GET /admin/applications/queue/stats - Review queue statistics
- GET /admin/applications/{id} - Application with documents and risk assessment
- POST /admin/applications/{id}/assign - Assign a reviewer
- POST /admin/applications/{id}/decision - Approve, reject or request more info
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from rentalcert.core.auth import Actor, get_current_reviewer
from rentalcert.core.database import get_db
from rentalcert.core.exceptions import ServiceError
from rentalcert.modules.applications.schemas import ApplicationResponse
from rentalcert.modules.review import service
from rentalcert.modules.review.schemas import (
    ApplicationReviewResponse,
    AssignReviewerRequest,
    ReviewDecisionRequest,
    ReviewDecisionResult,
    ReviewQueueStats,
)
from rentalcert.modules.shared.collaborators import Collaborators, get_collaborators
from rentalcert.modules.shared.http import service_error_to_http

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/queue/stats", response_model=ReviewQueueStats, summary="Review Queue Stats")
async def review_queue_stats(
    db: AsyncSession = Depends(get_db),
    reviewer: Actor = Depends(get_current_reviewer),
) -> ReviewQueueStats:
    return await service.get_review_queue_stats(db, reviewer)


@router.get(
    "/{application_id}",
    response_model=ApplicationReviewResponse,
    summary="Get Application For Review",
)
async def get_application_for_review(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    reviewer: Actor = Depends(get_current_reviewer),
    collaborators: Collaborators = Depends(get_collaborators),
) -> ApplicationReviewResponse:
    try:
        return await service.get_application_for_review(
            db, application_id, reviewer, collaborators
        )
    except ServiceError as e:
        raise service_error_to_http(e) from e


@router.post(
    "/{application_id}/assign",
    response_model=ApplicationResponse,
    summary="Assign Reviewer",
)
async def assign_reviewer(
    application_id: UUID,
    request: AssignReviewerRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: Actor = Depends(get_current_reviewer),
    collaborators: Collaborators = Depends(get_collaborators),
) -> ApplicationResponse:
    try:
        application = await service.assign_reviewer(
            db, application_id, request.reviewer_id, reviewer, collaborators
        )
        return ApplicationResponse.model_validate(application)
    except ServiceError as e:
        raise service_error_to_http(e) from e


@router.post(
    "/{application_id}/decision",
    response_model=ReviewDecisionResult,
    summary="Submit Review Decision",
    description="""
Approve, reject or request more information on an application under review.

An approval is kept even if the certification cannot be issued; the response
then has `partial_failure=true` and `next_action="contact_admin"`.
""",
)
async def submit_review_decision(
    application_id: UUID,
    request: ReviewDecisionRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: Actor = Depends(get_current_reviewer),
    collaborators: Collaborators = Depends(get_collaborators),
) -> ReviewDecisionResult:
    try:
        return await service.submit_review_decision(
            db, application_id, request.decision, request.notes, reviewer, collaborators
        )
    except ServiceError as e:
        raise service_error_to_http(e) from e
