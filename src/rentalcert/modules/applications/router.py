"""
Applications Router

Host-facing endpoints for creating and completing certification applications.

Endpoints:
- POST /applications - Create a draft application
- GET /applications - List applications visible to the caller
- GET /applications/steps/{step} - Describe a step
- GET /applications/{id} - Get an application
- GET /applications/{id}/progress - Step progress
- PATCH /applications/{id}/step - Move to a step and save its data
- POST /applications/{id}/submit - Submit a draft
- DELETE /applications/{id} - Soft-delete an application
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentalcert.core.auth import Actor, get_current_actor
from rentalcert.core.database import get_db
from rentalcert.core.exceptions import ServiceError
from rentalcert.modules.applications import service
from rentalcert.modules.applications.models import ApplicationStatus, ApplicationStep
from rentalcert.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationProgressResponse,
    ApplicationResponse,
    DeleteApplicationResponse,
    StepInfo,
    StepUpdateRequest,
)
from rentalcert.modules.applications.state_machine import get_step_info
from rentalcert.modules.shared.collaborators import Collaborators, get_collaborators
from rentalcert.modules.shared.http import internal_error, service_error_to_http

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Application",
    description="""
Create a draft certification application.

Only the property type must be valid at this point; the remaining property
details can be completed later in the PROPERTY_DETAILS step.
""",
)
async def create_application(
    data: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    collaborators: Collaborators = Depends(get_collaborators),
) -> ApplicationResponse:
    try:
        application = await service.create_application(db, data, actor, collaborators)
        return ApplicationResponse.model_validate(application)
    except ServiceError as e:
        raise service_error_to_http(e) from e


@router.get("", response_model=ApplicationListResponse, summary="List Applications")
async def list_applications(
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    host_id: UUID | None = Query(None),
    reviewer_id: UUID | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> ApplicationListResponse:
    result = await service.list_applications(
        db,
        actor,
        status=status_filter,
        host_id=host_id,
        reviewer_id=reviewer_id,
        skip=skip,
        limit=limit,
    )
    return ApplicationListResponse(
        applications=[ApplicationResponse.model_validate(a) for a in result["applications"]],
        total=result["total"],
        skip=result["skip"],
        limit=result["limit"],
    )


@router.get("/steps/{step}", response_model=StepInfo, summary="Describe Step")
async def describe_step(step: ApplicationStep) -> StepInfo:
    return StepInfo(**get_step_info(step))


@router.get("/{application_id}", response_model=ApplicationResponse, summary="Get Application")
async def get_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> ApplicationResponse:
    try:
        application = await service.get_application(db, application_id, actor)
        return ApplicationResponse.model_validate(application)
    except ServiceError as e:
        raise service_error_to_http(e) from e


@router.get(
    "/{application_id}/progress",
    response_model=ApplicationProgressResponse,
    summary="Get Application Progress",
)
async def get_application_progress(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> ApplicationProgressResponse:
    try:
        return await service.get_application_progress(db, application_id, actor)
    except ServiceError as e:
        raise service_error_to_http(e) from e


@router.patch(
    "/{application_id}/step",
    response_model=ApplicationResponse,
    summary="Update Application Step",
    description="""
Move a draft application to a step, saving the step's data.

**Rules:**
- Backward moves are always allowed
- Forward moves go one step at a time, except DOCUMENT_UPLOAD -> SUBMISSION
- The current step must be complete before moving forward
- Moving to SUBMISSION submits the application

**Step data:**
- `property_details` replaces the stored details
- `documents` are appended
- `checklist` must confirm every item and replaces prior confirmations
""",
    responses={
        400: {"description": "Step skipped or step data incomplete"},
        403: {"description": "Not the application owner"},
        404: {"description": "Application not found"},
        409: {"description": "Application is no longer a draft"},
    },
)
async def update_step(
    application_id: UUID,
    request: StepUpdateRequest,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    collaborators: Collaborators = Depends(get_collaborators),
) -> ApplicationResponse:
    try:
        application = await service.update_step(db, application_id, request, actor, collaborators)
        return ApplicationResponse.model_validate(application)
    except ServiceError as e:
        raise service_error_to_http(e) from e
    except Exception as e:
        raise internal_error(e, f"updating step of application {application_id}") from e


@router.post(
    "/{application_id}/submit",
    response_model=ApplicationResponse,
    summary="Submit Application",
)
async def submit_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    collaborators: Collaborators = Depends(get_collaborators),
) -> ApplicationResponse:
    try:
        application = await service.submit_application(db, application_id, actor, collaborators)
        return ApplicationResponse.model_validate(application)
    except ServiceError as e:
        raise service_error_to_http(e) from e


@router.delete(
    "/{application_id}",
    response_model=DeleteApplicationResponse,
    summary="Delete Application",
)
async def delete_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    collaborators: Collaborators = Depends(get_collaborators),
) -> DeleteApplicationResponse:
    try:
        application = await service.delete_application(db, application_id, actor, collaborators)
        return DeleteApplicationResponse(id=application.id, deleted_at=application.deleted_at)
    except ServiceError as e:
        raise service_error_to_http(e) from e
