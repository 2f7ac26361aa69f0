"""
Seed Catalog

Creates the starter property types, their compliance checklist items and one
active certificate template per type. Safe to run repeatedly: existing
property types are left untouched.

Usage:
    pip install -e .
    python scripts/seed_catalog.py
"""

import asyncio
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from rentalcert.core.config import settings
from rentalcert.modules.catalog.models import ChecklistItem, PropertyType
from rentalcert.modules.certifications.models import CertificateTemplate

# Templates created by the seed are attributed to this system actor
SYSTEM_ACTOR_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")

CATALOG: dict[str, list[str]] = {
    "Apartment": [
        "Smoke detectors installed",
        "Carbon monoxide detector installed",
        "Fire extinguisher accessible",
        "Emergency exit plan posted",
    ],
    "House": [
        "Smoke detectors installed",
        "Carbon monoxide detector installed",
        "Fire extinguisher accessible",
        "First aid kit available",
        "Pool or water hazards secured",
    ],
    "Guest House": [
        "Smoke detectors installed",
        "Fire extinguisher accessible",
        "Emergency exit plan posted",
        "Guest register maintained",
    ],
}


async def seed_catalog() -> None:
    """Create property types, checklist items and templates that don't exist yet."""
    engine = create_async_engine(settings.database_url, echo=False)
    async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as db:
        for type_name, items in CATALOG.items():
            result = await db.execute(select(PropertyType).where(PropertyType.name == type_name))
            if result.scalar_one_or_none():
                print(f"Property type already exists: {type_name}")
                continue

            property_type = PropertyType(name=type_name)
            db.add(property_type)
            await db.flush()

            for position, item_name in enumerate(items, start=1):
                db.add(
                    ChecklistItem(
                        property_type_id=property_type.id,
                        name=item_name,
                        position=position,
                    )
                )

            db.add(
                CertificateTemplate(
                    property_type_id=property_type.id,
                    name=f"{type_name} Certification",
                    validity_months=settings.certification_validity_months,
                    is_active=True,
                    created_by=SYSTEM_ACTOR_ID,
                )
            )

            await db.commit()
            print(f"Created property type {type_name} with {len(items)} checklist items")
            print(f"  ID: {property_type.id}")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_catalog())
