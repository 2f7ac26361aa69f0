"""
Certifications Routers

Endpoints:
- POST /admin/certifications - Issue a certification for an approved application
- GET /admin/certifications - List certifications
- GET /admin/certifications/stats - Counts by status
- POST /admin/certifications/expiry-check - Run the expiry sweep now
- POST /admin/certifications/bulk/revoke - Revoke many
- POST /admin/certifications/bulk/renew - Renew many
- GET /admin/certifications/{id} - Get one
- POST /admin/certifications/{id}/revoke - Revoke
- POST /admin/certifications/{id}/renew - Renew
- GET|POST|PATCH /admin/templates... - Template management (super admin)
- GET /verify/{identifier} - Public verification, rate limited
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentalcert.core.auth import Actor, get_current_actor, get_current_reviewer
from rentalcert.core.database import get_db
from rentalcert.core.exceptions import ServiceError
from rentalcert.core.rate_limit import limit_public_verification
from rentalcert.modules.certifications import issuer, lifecycle, templates
from rentalcert.modules.certifications.models import CertificationStatus
from rentalcert.modules.certifications.schemas import (
    BulkOperationResult,
    BulkRenewRequest,
    BulkRevokeRequest,
    CertificationListResponse,
    CertificationResponse,
    CertificationStats,
    ExpiryStatusResult,
    IssueCertificationRequest,
    RevokeRequest,
    TemplateCreate,
    TemplateResponse,
    TemplateUpdate,
    VerificationResult,
)
from rentalcert.modules.shared.collaborators import Collaborators, get_collaborators
from rentalcert.modules.shared.http import service_error_to_http

logger = logging.getLogger(__name__)

router = APIRouter()
templates_router = APIRouter()
verification_router = APIRouter()


# ============================================
# Certifications
# ============================================


@router.post(
    "",
    response_model=CertificationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue Certification",
    responses={
        400: {"description": "Payment or documents missing"},
        404: {"description": "Application not found"},
        409: {"description": "Not approved, template misconfigured, or already certified"},
        500: {"description": "Certificate number generation exhausted"},
    },
)
async def issue_certification(
    request: IssueCertificationRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: Actor = Depends(get_current_reviewer),
    collaborators: Collaborators = Depends(get_collaborators),
) -> CertificationResponse:
    try:
        certification = await issuer.generate_certification(
            db, request.application_id, reviewer.id, collaborators
        )
        return CertificationResponse.model_validate(certification)
    except ServiceError as e:
        raise service_error_to_http(e) from e


@router.get("", response_model=CertificationListResponse, summary="List Certifications")
async def list_certifications(
    status_filter: CertificationStatus | None = Query(None, alias="status"),
    host_id: UUID | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> CertificationListResponse:
    result = await lifecycle.list_certifications(
        db, actor, status=status_filter, host_id=host_id, skip=skip, limit=limit
    )
    return CertificationListResponse(
        certifications=[CertificationResponse.model_validate(c) for c in result["certifications"]],
        total=result["total"],
        skip=result["skip"],
        limit=result["limit"],
    )


@router.get("/stats", response_model=CertificationStats, summary="Certification Statistics")
async def certification_stats(
    db: AsyncSession = Depends(get_db),
    _reviewer: Actor = Depends(get_current_reviewer),
) -> CertificationStats:
    return await lifecycle.get_certification_stats(db)


@router.post(
    "/expiry-check",
    response_model=ExpiryStatusResult,
    summary="Run Expiry Check",
)
async def expiry_check(
    warning_days: int | None = Query(None, ge=0, le=365),
    db: AsyncSession = Depends(get_db),
    reviewer: Actor = Depends(get_current_reviewer),
) -> ExpiryStatusResult:
    result = await lifecycle.check_expiry_status(db, warning_days)
    logger.info(f"{reviewer} ran expiry check: {result.marked_expired} expired")
    return result


@router.post("/bulk/revoke", response_model=BulkOperationResult, summary="Bulk Revoke")
async def bulk_revoke(
    request: BulkRevokeRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: Actor = Depends(get_current_reviewer),
    collaborators: Collaborators = Depends(get_collaborators),
) -> BulkOperationResult:
    try:
        return await lifecycle.bulk_revoke(
            db, request.certification_ids, request.reason, reviewer, collaborators
        )
    except ServiceError as e:
        raise service_error_to_http(e) from e


@router.post("/bulk/renew", response_model=BulkOperationResult, summary="Bulk Renew")
async def bulk_renew(
    request: BulkRenewRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: Actor = Depends(get_current_reviewer),
    collaborators: Collaborators = Depends(get_collaborators),
) -> BulkOperationResult:
    try:
        return await lifecycle.bulk_renew(db, request.certification_ids, reviewer, collaborators)
    except ServiceError as e:
        raise service_error_to_http(e) from e


@router.get(
    "/{certification_id}", response_model=CertificationResponse, summary="Get Certification"
)
async def get_certification(
    certification_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> CertificationResponse:
    try:
        certification = await lifecycle.get_certification(db, certification_id, actor)
        return CertificationResponse.model_validate(certification)
    except ServiceError as e:
        raise service_error_to_http(e) from e


@router.post(
    "/{certification_id}/revoke",
    response_model=CertificationResponse,
    summary="Revoke Certification",
    responses={409: {"description": "Already revoked or expired"}},
)
async def revoke_certification(
    certification_id: UUID,
    request: RevokeRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: Actor = Depends(get_current_reviewer),
    collaborators: Collaborators = Depends(get_collaborators),
) -> CertificationResponse:
    try:
        certification = await lifecycle.revoke_certification(
            db, certification_id, request.reason, reviewer, collaborators
        )
        return CertificationResponse.model_validate(certification)
    except ServiceError as e:
        raise service_error_to_http(e) from e


@router.post(
    "/{certification_id}/renew",
    response_model=CertificationResponse,
    summary="Renew Certification",
)
async def renew_certification(
    certification_id: UUID,
    db: AsyncSession = Depends(get_db),
    reviewer: Actor = Depends(get_current_reviewer),
    collaborators: Collaborators = Depends(get_collaborators),
) -> CertificationResponse:
    try:
        certification = await lifecycle.renew_certification(
            db, certification_id, reviewer, collaborators
        )
        return CertificationResponse.model_validate(certification)
    except ServiceError as e:
        raise service_error_to_http(e) from e


# ============================================
# Templates
# ============================================


@templates_router.get("", response_model=list[TemplateResponse], summary="List Templates")
async def list_templates(
    property_type_id: UUID | None = Query(None),
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    _reviewer: Actor = Depends(get_current_reviewer),
) -> list[TemplateResponse]:
    items = await templates.list_templates(db, property_type_id, active_only)
    return [TemplateResponse.model_validate(t) for t in items]


@templates_router.post(
    "",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Template",
)
async def create_template(
    data: TemplateCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> TemplateResponse:
    try:
        return TemplateResponse.model_validate(await templates.create_template(db, data, actor))
    except ServiceError as e:
        raise service_error_to_http(e) from e


@templates_router.patch(
    "/{template_id}", response_model=TemplateResponse, summary="Update Template"
)
async def update_template(
    template_id: UUID,
    data: TemplateUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> TemplateResponse:
    try:
        template = await templates.update_template(db, template_id, data, actor)
        return TemplateResponse.model_validate(template)
    except ServiceError as e:
        raise service_error_to_http(e) from e


@templates_router.post(
    "/{template_id}/activate",
    response_model=TemplateResponse,
    summary="Activate Template",
    description="Activate a template and deactivate every other template of its property type.",
)
async def activate_template(
    template_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> TemplateResponse:
    try:
        template = await templates.activate_template(db, template_id, actor)
        return TemplateResponse.model_validate(template)
    except ServiceError as e:
        raise service_error_to_http(e) from e


@templates_router.post(
    "/{template_id}/deactivate",
    response_model=TemplateResponse,
    summary="Deactivate Template",
)
async def deactivate_template(
    template_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> TemplateResponse:
    try:
        template = await templates.deactivate_template(db, template_id, actor)
        return TemplateResponse.model_validate(template)
    except ServiceError as e:
        raise service_error_to_http(e) from e


# ============================================
# Public Verification
# ============================================


@verification_router.get(
    "/{identifier}",
    response_model=VerificationResult,
    summary="Verify Certification",
    description="""
Verify a certification by its verification token or certificate number.

No authentication required. Rate limited per client IP.
""",
    dependencies=[Depends(limit_public_verification)],
)
async def verify_certification(
    identifier: str,
    db: AsyncSession = Depends(get_db),
) -> VerificationResult:
    return await lifecycle.verify_certification(db, identifier)
