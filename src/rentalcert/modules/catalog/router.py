"""
Catalog Router

Endpoints:
- GET /catalog/property-types - List property types
- POST /catalog/property-types - Create a property type (super admin)
- GET /catalog/property-types/{id}/checklist - Checklist items in order
- POST /catalog/property-types/{id}/checklist - Add a checklist item (super admin)
- PATCH /catalog/checklist-items/{id} - Update a checklist item (super admin)
- DELETE /catalog/checklist-items/{id} - Delete a checklist item (super admin)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentalcert.core.auth import Actor, get_current_actor
from rentalcert.core.database import get_db
from rentalcert.core.exceptions import ServiceError
from rentalcert.modules.catalog import service
from rentalcert.modules.catalog.schemas import (
    ChecklistItemCreate,
    ChecklistItemResponse,
    ChecklistItemUpdate,
    PropertyTypeCreate,
    PropertyTypeResponse,
)
from rentalcert.modules.shared.http import service_error_to_http

router = APIRouter()


@router.get(
    "/property-types", response_model=list[PropertyTypeResponse], summary="List Property Types"
)
async def list_property_types(
    active_only: bool = Query(True),
    db: AsyncSession = Depends(get_db),
    _actor: Actor = Depends(get_current_actor),
) -> list[PropertyTypeResponse]:
    items = await service.list_property_types(db, active_only)
    return [PropertyTypeResponse.model_validate(p) for p in items]


@router.post(
    "/property-types",
    response_model=PropertyTypeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Property Type",
)
async def create_property_type(
    data: PropertyTypeCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> PropertyTypeResponse:
    try:
        property_type = await service.create_property_type(db, data, actor)
        return PropertyTypeResponse.model_validate(property_type)
    except ServiceError as e:
        raise service_error_to_http(e) from e


@router.get(
    "/property-types/{property_type_id}/checklist",
    response_model=list[ChecklistItemResponse],
    summary="List Checklist Items",
)
async def list_checklist_items(
    property_type_id: UUID,
    db: AsyncSession = Depends(get_db),
    _actor: Actor = Depends(get_current_actor),
) -> list[ChecklistItemResponse]:
    try:
        items = await service.list_checklist_items(db, property_type_id)
        return [ChecklistItemResponse.model_validate(i) for i in items]
    except ServiceError as e:
        raise service_error_to_http(e) from e


@router.post(
    "/property-types/{property_type_id}/checklist",
    response_model=ChecklistItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Checklist Item",
)
async def create_checklist_item(
    property_type_id: UUID,
    data: ChecklistItemCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> ChecklistItemResponse:
    try:
        item = await service.create_checklist_item(db, property_type_id, data, actor)
        return ChecklistItemResponse.model_validate(item)
    except ServiceError as e:
        raise service_error_to_http(e) from e


@router.patch(
    "/checklist-items/{item_id}",
    response_model=ChecklistItemResponse,
    summary="Update Checklist Item",
)
async def update_checklist_item(
    item_id: UUID,
    data: ChecklistItemUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> ChecklistItemResponse:
    try:
        item = await service.update_checklist_item(db, item_id, data, actor)
        return ChecklistItemResponse.model_validate(item)
    except ServiceError as e:
        raise service_error_to_http(e) from e


@router.delete(
    "/checklist-items/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Checklist Item",
)
async def delete_checklist_item(
    item_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> None:
    try:
        await service.delete_checklist_item(db, item_id, actor)
    except ServiceError as e:
        raise service_error_to_http(e) from e
