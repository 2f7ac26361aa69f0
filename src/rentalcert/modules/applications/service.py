"""
Applications Service Layer

Business logic for host certification applications. Orchestrates the
repository, the step state machine, step validation and collaborators.

This module implements:
1. Creation:
   - Property type must exist; other details may be incomplete
   - New applications start as DRAFT at PROPERTY_DETAILS

2. Step Updates:
   - Host ownership (reviewer roles exempt) and DRAFT-only mutability
   - Progression checked against STEP_TRANSITIONS
   - Completion of the current step validated before moving forward
   - Property details overwritten, documents appended, checklist replaced
   - Moving to SUBMISSION submits the application

3. Submission, Soft Delete, Read Access and Progress

Access rules:
- HOST: only their own applications
- ADMIN: only applications assigned to them for review
- SUPER_ADMIN: all applications
"""

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rentalcert.core.auth import Actor, UserRole
from rentalcert.core.exceptions import ServiceError
from rentalcert.modules.applications import repository
from rentalcert.modules.applications.errors import (
    ApplicationAccessDeniedError,
    ApplicationNotFoundError,
    InvalidApplicationStateError,
    InvalidPropertyTypeError,
)
from rentalcert.modules.applications.helpers import application_snapshot, map_document_type
from rentalcert.modules.applications.models import Application, ApplicationStatus, ApplicationStep
from rentalcert.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationProgressResponse,
    StepInfo,
    StepUpdateRequest,
)
from rentalcert.modules.applications.state_machine import (
    ApplicationEvent,
    calculate_progress,
    completed_steps,
    get_next_step,
    get_step_info,
    is_forward_move,
    next_status,
    validate_step_progression,
)
from rentalcert.modules.applications.validation import (
    StepContext,
    validate_checklist_step,
    validate_step_completion,
)
from rentalcert.modules.catalog import repository as catalog_repository
from rentalcert.modules.shared.collaborators import (
    Collaborators,
    notify_safely,
    record_audit_safely,
)

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "application"


# ============================================
# Access Helpers
# ============================================


async def get_application_or_404(db: AsyncSession, application_id: UUID) -> Application:
    application = await repository.get_by_id(db, application_id)
    if not application:
        logger.warning(f"Application not found: {application_id}")
        raise ApplicationNotFoundError(application_id)
    return application


def ensure_can_view(application: Application, actor: Actor) -> None:
    """
    Raises:
        ApplicationAccessDeniedError: If the actor may not see the application
    """
    if actor.role == UserRole.SUPER_ADMIN:
        return
    if actor.role == UserRole.ADMIN:
        if application.reviewed_by != actor.id:
            raise ApplicationAccessDeniedError("This application is not assigned to you")
        return
    if application.host_id != actor.id:
        raise ApplicationAccessDeniedError()


def _ensure_owner_or_reviewer(application: Application, actor: Actor) -> None:
    if not actor.is_reviewer and application.host_id != actor.id:
        raise ApplicationAccessDeniedError("You can only update your own application steps")


async def _ensure_property_type_exists(db: AsyncSession, property_type_id: Any) -> None:
    if not property_type_id:
        raise InvalidPropertyTypeError("Property type is required")

    property_type = await catalog_repository.get_property_type(db, UUID(str(property_type_id)))
    if not property_type:
        raise InvalidPropertyTypeError("Invalid property type selected.")


# ============================================
# Create / Read
# ============================================


async def create_application(
    db: AsyncSession,
    data: ApplicationCreate,
    actor: Actor,
    collaborators: Collaborators,
) -> Application:
    """
    Create a DRAFT application for the calling host.

    Property details may be incomplete; only the property type is checked.

    Raises:
        InvalidPropertyTypeError: If no property type is given or it does not exist
    """
    details = data.property_details.to_storage()
    await _ensure_property_type_exists(db, details.get("property_type_id"))

    application = await repository.create(db, host_id=actor.id, property_details=details)
    logger.info(f"Created application {application.id} for host {actor.id}")

    await record_audit_safely(
        collaborators.audit,
        "APPLICATION_CREATED",
        RESOURCE_TYPE,
        application.id,
        actor.id,
        new_values=application_snapshot(application),
    )
    await notify_safely(
        collaborators.notifier,
        application.host_id,
        "APPLICATION_CREATED",
        {"application_id": str(application.id)},
    )

    return application


async def get_application(db: AsyncSession, application_id: UUID, actor: Actor) -> Application:
    application = await get_application_or_404(db, application_id)
    ensure_can_view(application, actor)
    return application


async def list_applications(
    db: AsyncSession,
    actor: Actor,
    *,
    status: ApplicationStatus | None = None,
    host_id: UUID | None = None,
    reviewer_id: UUID | None = None,
    skip: int = 0,
    limit: int = 20,
) -> dict[str, Any]:
    """
    List applications visible to the actor.

    Hosts always see only their own and admins only those assigned to them;
    the host and reviewer filters matter for super admins.
    """
    if actor.role == UserRole.HOST:
        host_id = actor.id
    elif actor.role == UserRole.ADMIN:
        reviewer_id = actor.id

    applications, total = await repository.list_applications(
        db,
        host_id=host_id,
        reviewer_id=reviewer_id,
        status=status,
        skip=skip,
        limit=limit,
    )
    return {"applications": applications, "total": total, "skip": skip, "limit": limit}


# ============================================
# Step Updates
# ============================================


async def update_step(
    db: AsyncSession,
    application_id: UUID,
    request: StepUpdateRequest,
    actor: Actor,
    collaborators: Collaborators,
) -> Application:
    """
    Move an application to ``request.step`` and apply the step's data.

    Steps:
    1. Ownership (reviewer roles exempt) and DRAFT-only check
    2. Progression check against the step transition table
    3. Checklist payload, if any, normalized and required complete
    4. New documents staged so completion checks see them
    5. Current step validated when moving forward; full submission
       validation when the target is SUBMISSION
    6. Writes applied in a single commit

    Raises:
        ApplicationNotFoundError, ApplicationAccessDeniedError,
        InvalidApplicationStateError, StepSkipError, or any step
        validation error
    """
    application = await get_application_or_404(db, application_id)
    _ensure_owner_or_reviewer(application, actor)

    if application.status != ApplicationStatus.DRAFT:
        raise InvalidApplicationStateError(
            "Cannot update steps for submitted applications.",
            expected_state=ApplicationStatus.DRAFT.value,
        )

    current_step = application.current_step
    target_step = request.step
    validate_step_progression(current_step, target_step)

    pending_details = None
    if request.property_details is not None:
        pending_details = request.property_details.to_storage()
        await _ensure_property_type_exists(db, pending_details.get("property_type_id"))

    ctx = StepContext(
        db=db,
        application=application,
        collaborators=collaborators,
        pending_details=pending_details,
        pending_checklist=request.checklist,
    )
    old_values = application_snapshot(application)

    try:
        checklist_result = None
        if request.checklist is not None:
            checklist_result = await validate_checklist_step(ctx)

        if request.documents:
            await repository.add_documents(
                db,
                application.id,
                [
                    {
                        "document_type": map_document_type(doc.document_type),
                        "file_name": doc.file_name,
                        "original_name": doc.original_name,
                        "mime_type": doc.mime_type,
                        "size": doc.size or 0,
                        "url": doc.url,
                    }
                    for doc in request.documents
                ],
            )
            await db.flush()

        if is_forward_move(current_step, target_step):
            await validate_step_completion(ctx, current_step)
        if target_step == ApplicationStep.SUBMISSION:
            await validate_step_completion(ctx, ApplicationStep.SUBMISSION)
    except ServiceError as e:
        logger.info(
            f"Step update {current_step.value} -> {target_step.value} rejected for "
            f"application {application_id}: {e.message}"
        )
        await db.rollback()
        raise

    if pending_details is not None:
        application.property_details = pending_details
    if checklist_result is not None:
        await repository.replace_checklist_records(db, application.id, checklist_result.checked_ids)

    application.current_step = target_step
    submitted = target_step == ApplicationStep.SUBMISSION
    if submitted:
        application.status = next_status(application.status, ApplicationEvent.SUBMIT)
        application.submitted_at = datetime.now(UTC)

    application = await repository.save(db, application)
    logger.info(
        f"Application {application_id} moved {current_step.value} -> {target_step.value}"
        + (" and submitted" if submitted else "")
    )

    await record_audit_safely(
        collaborators.audit,
        "APPLICATION_SUBMITTED" if submitted else "APPLICATION_STEP_UPDATED",
        RESOURCE_TYPE,
        application.id,
        actor.id,
        old_values=old_values,
        new_values=application_snapshot(application),
    )
    if submitted:
        await notify_safely(
            collaborators.notifier,
            application.host_id,
            "APPLICATION_SUBMITTED",
            {"application_id": str(application.id)},
        )

    return application


async def submit_application(
    db: AsyncSession,
    application_id: UUID,
    actor: Actor,
    collaborators: Collaborators,
) -> Application:
    """
    Submit a DRAFT application owned by the caller.

    Raises:
        ApplicationAccessDeniedError: If the caller does not own the application
        InvalidApplicationStateError: If the application is not a DRAFT
        ValidationError: If any step is incomplete
    """
    application = await get_application_or_404(db, application_id)

    if application.host_id != actor.id:
        raise ApplicationAccessDeniedError("You can only submit your own applications")

    if application.status != ApplicationStatus.DRAFT:
        raise InvalidApplicationStateError(
            "Application is not in draft status.",
            expected_state=ApplicationStatus.DRAFT.value,
        )

    ctx = StepContext(db=db, application=application, collaborators=collaborators)
    await validate_step_completion(ctx, ApplicationStep.SUBMISSION)

    old_values = application_snapshot(application)
    application.status = next_status(application.status, ApplicationEvent.SUBMIT)
    application.current_step = ApplicationStep.SUBMISSION
    application.submitted_at = datetime.now(UTC)
    application = await repository.save(db, application)

    logger.info(f"Application {application_id} submitted by host {actor.id}")

    await record_audit_safely(
        collaborators.audit,
        "APPLICATION_SUBMITTED",
        RESOURCE_TYPE,
        application.id,
        actor.id,
        old_values=old_values,
        new_values=application_snapshot(application),
    )
    await notify_safely(
        collaborators.notifier,
        application.host_id,
        "APPLICATION_SUBMITTED",
        {"application_id": str(application.id)},
    )

    return application


async def delete_application(
    db: AsyncSession,
    application_id: UUID,
    actor: Actor,
    collaborators: Collaborators,
) -> Application:
    """
    Soft-delete an application.

    Hosts may delete only their own drafts; reviewer roles may delete
    applications in any status.
    """
    application = await get_application_or_404(db, application_id)

    if not actor.is_reviewer:
        if application.host_id != actor.id:
            raise ApplicationAccessDeniedError("You can only delete your own applications")
        if application.status != ApplicationStatus.DRAFT:
            raise ApplicationAccessDeniedError(
                "Only administrators can delete submitted applications"
            )

    application = await repository.soft_delete(db, application)
    logger.info(f"Application {application_id} soft-deleted by {actor}")

    await record_audit_safely(
        collaborators.audit,
        "APPLICATION_DELETED",
        RESOURCE_TYPE,
        application.id,
        actor.id,
        new_values={"deleted_at": application.deleted_at.isoformat()},
    )

    return application


# ============================================
# Progress
# ============================================


async def get_application_progress(
    db: AsyncSession,
    application_id: UUID,
    actor: Actor,
) -> ApplicationProgressResponse:
    application = await get_application(db, application_id, actor)
    step = application.current_step

    return ApplicationProgressResponse(
        application_id=application.id,
        status=application.status,
        current_step=step,
        progress_percent=calculate_progress(step),
        completed_steps=completed_steps(step),
        next_step=get_next_step(step),
        current_step_info=StepInfo(**get_step_info(step)),
    )
