"""
Catalog Repository

Database operations for property types and checklist items.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ChecklistItem, PropertyType


async def create_property_type(
    db: AsyncSession, name: str, description: str | None = None
) -> PropertyType:
    property_type = PropertyType(name=name, description=description)

    db.add(property_type)
    await db.commit()
    await db.refresh(property_type)

    return property_type


async def get_property_type(db: AsyncSession, id: UUID) -> PropertyType | None:
    return await db.get(PropertyType, id)


async def get_property_type_by_name(db: AsyncSession, name: str) -> PropertyType | None:
    result = await db.execute(
        select(PropertyType).where(func.lower(PropertyType.name) == name.lower())
    )
    return result.scalar_one_or_none()


async def list_property_types(db: AsyncSession, active_only: bool = True) -> list[PropertyType]:
    stmt = select(PropertyType).order_by(PropertyType.name)
    if active_only:
        stmt = stmt.where(PropertyType.is_active.is_(True))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_checklist_items(db: AsyncSession, property_type_id: UUID) -> list[ChecklistItem]:
    """Checklist items of a property type in configured order."""
    result = await db.execute(
        select(ChecklistItem)
        .where(ChecklistItem.property_type_id == property_type_id)
        .order_by(ChecklistItem.position, ChecklistItem.name)
    )
    return list(result.scalars().all())


async def get_checklist_item(db: AsyncSession, id: UUID) -> ChecklistItem | None:
    return await db.get(ChecklistItem, id)


async def get_checklist_item_by_name(
    db: AsyncSession, property_type_id: UUID, name: str
) -> ChecklistItem | None:
    result = await db.execute(
        select(ChecklistItem).where(
            ChecklistItem.property_type_id == property_type_id,
            ChecklistItem.name == name,
        )
    )
    return result.scalar_one_or_none()


async def create_checklist_item(
    db: AsyncSession,
    property_type_id: UUID,
    name: str,
    description: str | None = None,
    position: int | None = None,
) -> ChecklistItem:
    if position is None:
        current_max = await db.scalar(
            select(func.max(ChecklistItem.position)).where(
                ChecklistItem.property_type_id == property_type_id
            )
        )
        position = (current_max or 0) + 1

    item = ChecklistItem(
        property_type_id=property_type_id,
        name=name,
        description=description,
        position=position,
    )

    db.add(item)
    await db.commit()
    await db.refresh(item)

    return item


async def update_checklist_item(db: AsyncSession, item: ChecklistItem, **fields) -> ChecklistItem:
    for key, value in fields.items():
        if hasattr(item, key):
            setattr(item, key, value)

    await db.commit()
    await db.refresh(item)

    return item


async def delete_checklist_item(db: AsyncSession, item: ChecklistItem) -> None:
    await db.delete(item)
    await db.commit()
