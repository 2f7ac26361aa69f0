"""
Catalog Schemas
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PropertyTypeCreate(BaseModel):
    name: str = Field(..., max_length=100)
    description: str | None = Field(None, max_length=2000)


class PropertyTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    is_active: bool
    created_at: datetime


class ChecklistItemCreate(BaseModel):
    name: str = Field(..., max_length=200)
    description: str | None = Field(None, max_length=2000)
    position: int | None = Field(None, ge=0)


class ChecklistItemUpdate(BaseModel):
    name: str | None = Field(None, max_length=200)
    description: str | None = Field(None, max_length=2000)
    position: int | None = Field(None, ge=0)


class ChecklistItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    property_type_id: UUID
    name: str
    description: str | None
    position: int
