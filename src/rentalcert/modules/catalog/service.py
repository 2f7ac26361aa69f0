"""
Catalog Service

Property types and the compliance checklist items configured for each.
Reading is open to every authenticated actor; changes require SUPER_ADMIN.
Names are trimmed and must not be blank.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rentalcert.core.auth import Actor, require_super_admin
from rentalcert.core.exceptions import ConflictError, NotFoundError, ValidationError
from rentalcert.modules.catalog import repository
from rentalcert.modules.catalog.models import ChecklistItem, PropertyType
from rentalcert.modules.catalog.schemas import (
    ChecklistItemCreate,
    ChecklistItemUpdate,
    PropertyTypeCreate,
)

logger = logging.getLogger(__name__)


# ============================================
# Errors
# ============================================


class PropertyTypeNotFoundError(NotFoundError):
    def __init__(self, property_type_id: UUID):
        super().__init__(
            f"Property type not found: {property_type_id}",
            error_code="PROPERTY_TYPE_NOT_FOUND",
        )


class ChecklistItemNotFoundError(NotFoundError):
    def __init__(self, item_id: UUID):
        super().__init__(
            f"Checklist item not found: {item_id}",
            error_code="CHECKLIST_ITEM_NOT_FOUND",
        )


class DuplicateNameError(ConflictError):
    def __init__(self, kind: str, name: str):
        super().__init__(f"A {kind} named '{name}' already exists", error_code="DUPLICATE_NAME")


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Name is required", error_code="NAME_REQUIRED")
    return cleaned


async def _get_property_type_or_404(db: AsyncSession, property_type_id: UUID) -> PropertyType:
    property_type = await repository.get_property_type(db, property_type_id)
    if not property_type:
        raise PropertyTypeNotFoundError(property_type_id)
    return property_type


async def _get_item_or_404(db: AsyncSession, item_id: UUID) -> ChecklistItem:
    item = await repository.get_checklist_item(db, item_id)
    if not item:
        raise ChecklistItemNotFoundError(item_id)
    return item


# ============================================
# Property Types
# ============================================


async def create_property_type(
    db: AsyncSession, data: PropertyTypeCreate, actor: Actor
) -> PropertyType:
    require_super_admin(actor)
    name = _clean_name(data.name)

    if await repository.get_property_type_by_name(db, name):
        raise DuplicateNameError("property type", name)

    property_type = await repository.create_property_type(db, name, data.description)
    logger.info(f"Created property type {property_type.id} ({name})")
    return property_type


async def list_property_types(db: AsyncSession, active_only: bool = True) -> list[PropertyType]:
    return await repository.list_property_types(db, active_only)


# ============================================
# Checklist Items
# ============================================


async def list_checklist_items(db: AsyncSession, property_type_id: UUID) -> list[ChecklistItem]:
    await _get_property_type_or_404(db, property_type_id)
    return await repository.get_checklist_items(db, property_type_id)


async def create_checklist_item(
    db: AsyncSession,
    property_type_id: UUID,
    data: ChecklistItemCreate,
    actor: Actor,
) -> ChecklistItem:
    require_super_admin(actor)
    await _get_property_type_or_404(db, property_type_id)
    name = _clean_name(data.name)

    if await repository.get_checklist_item_by_name(db, property_type_id, name):
        raise DuplicateNameError("checklist item", name)

    item = await repository.create_checklist_item(
        db, property_type_id, name, data.description, data.position
    )
    logger.info(f"Created checklist item {item.id} ({name}) for property type {property_type_id}")
    return item


async def update_checklist_item(
    db: AsyncSession,
    item_id: UUID,
    data: ChecklistItemUpdate,
    actor: Actor,
) -> ChecklistItem:
    require_super_admin(actor)
    item = await _get_item_or_404(db, item_id)

    fields = data.model_dump(exclude_unset=True)
    if "name" in fields:
        fields["name"] = _clean_name(fields["name"])
        existing = await repository.get_checklist_item_by_name(
            db, item.property_type_id, fields["name"]
        )
        if existing and existing.id != item.id:
            raise DuplicateNameError("checklist item", fields["name"])

    item = await repository.update_checklist_item(db, item, **fields)
    logger.info(f"Updated checklist item {item_id}")
    return item


async def delete_checklist_item(db: AsyncSession, item_id: UUID, actor: Actor) -> None:
    require_super_admin(actor)
    item = await _get_item_or_404(db, item_id)
    await repository.delete_checklist_item(db, item)
    logger.info(f"Deleted checklist item {item_id}")
