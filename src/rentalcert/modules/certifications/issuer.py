"""
Certification Issuer

Issues the certification credential for an approved application.

Preconditions, checked in order, each with its own error:
1. Application exists (ApplicationNotFoundError)
2. Application is APPROVED (InvalidApplicationStateError)
3. Application has a property type (PropertyTypeMissingError)
4. Exactly one active template for that type
   (NoActiveTemplateError / MultipleActiveTemplatesError)
5. No certification bound to the application yet (CertificationExistsError)
6. A COMPLETED payment exists (PaymentRequiredError)
7. All required document types uploaded (MissingDocumentsError)

Certificate numbers:
- Candidate ``CERT-<year>-<6 digits>`` is pre-checked, then inserted
- The unique constraint is the real guard: an IntegrityError rolls back and
  retries with a fresh candidate, up to ``certificate_number_max_attempts``
- A violation caused by a concurrent issuance for the same application is
  reported as CertificationExistsError instead of retried
- Exhausting the attempts raises CertificateNumberExhaustedError; there is
  no fallback numbering scheme

Badge generation, notification and audit never fail an issuance.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rentalcert.core.config import settings
from rentalcert.modules.applications import repository as applications_repository
from rentalcert.modules.applications.errors import (
    ApplicationNotFoundError,
    InvalidApplicationStateError,
)
from rentalcert.modules.applications.helpers import get_property_name
from rentalcert.modules.applications.models import ApplicationStatus
from rentalcert.modules.certifications import repository
from rentalcert.modules.certifications.errors import (
    CertificateNumberExhaustedError,
    CertificationExistsError,
    MissingDocumentsError,
    MultipleActiveTemplatesError,
    NoActiveTemplateError,
    PaymentRequiredError,
    PropertyTypeMissingError,
)
from rentalcert.modules.certifications.helpers import (
    add_months,
    build_verification_url,
    generate_certificate_number,
    generate_verification_token,
)
from rentalcert.modules.certifications.models import (
    CertificateTemplate,
    Certification,
    CertificationStatus,
)
from rentalcert.modules.shared.collaborators import (
    BadgeDetails,
    Collaborators,
    missing_required_documents,
    notify_safely,
    record_audit_safely,
)

logger = logging.getLogger(__name__)


async def _resolve_active_template(db: AsyncSession, property_type_id: UUID) -> CertificateTemplate:
    templates = await repository.get_active_templates(db, property_type_id)
    if not templates:
        raise NoActiveTemplateError(property_type_id)
    if len(templates) > 1:
        raise MultipleActiveTemplatesError(property_type_id, len(templates))
    return templates[0]


async def _insert_with_unique_number(
    db: AsyncSession,
    *,
    application_id: UUID,
    host_id: UUID,
    validity_months: int,
) -> Certification:
    max_attempts = settings.certificate_number_max_attempts

    for attempt in range(1, max_attempts + 1):
        issued_at = datetime.now(UTC)
        number = generate_certificate_number(issued_at)

        if await repository.certificate_number_exists(db, number):
            logger.warning(f"Certificate number {number} taken (attempt {attempt}/{max_attempts})")
            continue

        token = generate_verification_token()
        try:
            return await repository.create(
                db,
                application_id=application_id,
                host_id=host_id,
                certificate_number=number,
                verification_token=token,
                verification_url=build_verification_url(token),
                status=CertificationStatus.ACTIVE,
                issued_at=issued_at,
                expires_at=add_months(issued_at, validity_months),
                badge_url="",
                qr_code_url="",
            )
        except IntegrityError as e:
            await db.rollback()
            if await repository.get_by_application_id(db, application_id):
                raise CertificationExistsError(application_id) from e
            logger.warning(
                f"Unique constraint hit inserting {number} (attempt {attempt}/{max_attempts})"
            )

    logger.error(f"Certificate number generation exhausted for application {application_id}")
    raise CertificateNumberExhaustedError(max_attempts)


async def _attach_badge(
    db: AsyncSession,
    certification: Certification,
    property_name: str | None,
    collaborators: Collaborators,
) -> Certification:
    details = BadgeDetails(
        certification_id=certification.id,
        certificate_number=certification.certificate_number,
        property_name=property_name,
        host_id=certification.host_id,
        issued_at=certification.issued_at,
        expires_at=certification.expires_at,
        verification_url=certification.verification_url,
    )
    try:
        urls = await collaborators.badges.generate_badge(details)
        if urls.badge_url or urls.qr_code_url:
            certification.badge_url = urls.badge_url
            certification.qr_code_url = urls.qr_code_url
            certification = await repository.save(db, certification)
    except Exception as e:
        logger.error(
            f"Badge generation failed for {details.certificate_number}: {e}", exc_info=True
        )
        await db.rollback()
        await db.refresh(certification)
    return certification


async def generate_certification(
    db: AsyncSession,
    application_id: UUID,
    actor_id: UUID | None,
    collaborators: Collaborators,
) -> Certification:
    """
    Issue a certification for an approved application.

    Returns:
        The persisted ACTIVE certification

    Raises:
        ServiceError subclasses listed in the module docstring
    """
    application = await applications_repository.get_by_id(db, application_id)
    if not application:
        raise ApplicationNotFoundError(application_id)

    if application.status != ApplicationStatus.APPROVED:
        raise InvalidApplicationStateError(
            f"Cannot issue a certification for an application in status "
            f"{application.status.value}.",
            expected_state=ApplicationStatus.APPROVED.value,
        )

    property_type_id = application.property_type_id
    if property_type_id is None:
        raise PropertyTypeMissingError()

    template = await _resolve_active_template(db, property_type_id)

    if await repository.get_by_application_id(db, application_id):
        raise CertificationExistsError(application_id)

    if not await collaborators.payments.has_completed_payment(application_id):
        raise PaymentRequiredError()

    uploaded = await collaborators.documents.document_types_uploaded(application_id)
    missing = missing_required_documents(uploaded)
    if missing:
        raise MissingDocumentsError(missing)

    # Rollbacks during the insert loop expire ORM instances
    host_id = application.host_id
    property_name = get_property_name(application)
    validity_months = template.validity_months
    template_id = template.id

    certification = await _insert_with_unique_number(
        db,
        application_id=application_id,
        host_id=host_id,
        validity_months=validity_months,
    )
    logger.info(
        f"Issued certification {certification.certificate_number} for application "
        f"{application_id} (template {template_id}, {validity_months} months)"
    )

    certification = await _attach_badge(db, certification, property_name, collaborators)

    await record_audit_safely(
        collaborators.audit,
        "CERTIFICATION_ISSUED",
        "certification",
        certification.id,
        actor_id,
        new_values={
            "application_id": str(application_id),
            "certificate_number": certification.certificate_number,
            "expires_at": certification.expires_at.isoformat(),
        },
    )
    await notify_safely(
        collaborators.notifier,
        host_id,
        "CERTIFICATION_ISSUED",
        {
            "certification_id": str(certification.id),
            "certificate_number": certification.certificate_number,
            "verification_url": certification.verification_url,
        },
    )

    return certification
