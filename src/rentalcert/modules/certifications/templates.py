"""
Certificate template management.

Only super admins manage templates. Creating an active template or
activating an existing one deactivates every other active template of the
same property type in the same transaction; the partial unique index on
``(property_type_id) WHERE is_active`` backs this up in storage.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rentalcert.core.auth import Actor, require_super_admin
from rentalcert.core.exceptions import ConflictError
from rentalcert.modules.applications.errors import InvalidPropertyTypeError
from rentalcert.modules.catalog import repository as catalog_repository
from rentalcert.modules.certifications import repository
from rentalcert.modules.certifications.errors import TemplateNotFoundError
from rentalcert.modules.certifications.models import CertificateTemplate
from rentalcert.modules.certifications.schemas import TemplateCreate, TemplateUpdate

logger = logging.getLogger(__name__)


class ConcurrentActivationError(ConflictError):
    def __init__(self, property_type_id: UUID):
        super().__init__(
            f"Another template for property type {property_type_id} was activated concurrently",
            error_code="CONCURRENT_TEMPLATE_ACTIVATION",
        )


async def _get_template_or_404(db: AsyncSession, template_id: UUID) -> CertificateTemplate:
    template = await repository.get_template(db, template_id)
    if not template:
        raise TemplateNotFoundError(template_id)
    return template


async def _commit_activation(db: AsyncSession, template: CertificateTemplate) -> None:
    property_type_id = template.property_type_id
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConcurrentActivationError(property_type_id) from e
    await db.refresh(template)


async def create_template(
    db: AsyncSession, data: TemplateCreate, actor: Actor
) -> CertificateTemplate:
    require_super_admin(actor)

    if not await catalog_repository.get_property_type(db, data.property_type_id):
        raise InvalidPropertyTypeError("Invalid property type selected.")

    if data.is_active:
        await repository.deactivate_templates_for_type(db, data.property_type_id)

    template = CertificateTemplate(
        property_type_id=data.property_type_id,
        name=data.name.strip(),
        description=data.description,
        validity_months=data.validity_months,
        is_active=data.is_active,
        created_by=actor.id,
    )
    db.add(template)
    await _commit_activation(db, template)

    logger.info(
        f"Created certificate template {template.id} for property type "
        f"{template.property_type_id} (active={template.is_active})"
    )
    return template


async def update_template(
    db: AsyncSession, template_id: UUID, data: TemplateUpdate, actor: Actor
) -> CertificateTemplate:
    require_super_admin(actor)
    template = await _get_template_or_404(db, template_id)

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(template, key, value.strip() if key == "name" and value else value)

    await db.commit()
    await db.refresh(template)
    logger.info(f"Updated certificate template {template_id}")
    return template


async def activate_template(
    db: AsyncSession, template_id: UUID, actor: Actor
) -> CertificateTemplate:
    """Make this the only active template of its property type (single commit)."""
    require_super_admin(actor)
    template = await _get_template_or_404(db, template_id)

    await repository.deactivate_templates_for_type(
        db, template.property_type_id, except_id=template.id
    )
    template.is_active = True
    await _commit_activation(db, template)

    logger.info(f"Activated certificate template {template_id}")
    return template


async def deactivate_template(
    db: AsyncSession, template_id: UUID, actor: Actor
) -> CertificateTemplate:
    require_super_admin(actor)
    template = await _get_template_or_404(db, template_id)

    template.is_active = False
    await db.commit()
    await db.refresh(template)

    logger.info(f"Deactivated certificate template {template_id}")
    return template


async def list_templates(
    db: AsyncSession,
    property_type_id: UUID | None = None,
    active_only: bool = False,
) -> list[CertificateTemplate]:
    return await repository.list_templates(db, property_type_id, active_only)
