"""
Application Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from rentalcert.modules.applications.models import ApplicationStatus, ApplicationStep


class PropertyDetails(BaseModel):
    """
    Property details as collected in the first step.

    Every field is optional so drafts can be saved partially; completeness
    is checked when the host moves past PROPERTY_DETAILS.
    """

    property_name: str | None = Field(None, max_length=200)
    address: str | None = Field(None, max_length=500)
    property_type_id: UUID | None = None
    bedrooms: int | None = Field(None, ge=0)
    bathrooms: int | None = Field(None, ge=0)
    max_guests: int | None = Field(None, ge=0)
    description: str | None = Field(None, max_length=2000)

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class ApplicationCreate(BaseModel):
    """Request body for POST /applications."""

    property_details: PropertyDetails


class DocumentUpload(BaseModel):
    """Metadata for a document already stored by the upload service."""

    document_type: str = Field(..., min_length=1, max_length=50)
    file_name: str = Field(..., min_length=1, max_length=255)
    original_name: str = Field(..., min_length=1, max_length=255)
    mime_type: str | None = Field(None, max_length=100)
    size: int | None = Field(None, ge=0)
    url: str = Field(..., min_length=1, max_length=1000)


class StepUpdateRequest(BaseModel):
    """
    Request body for PATCH /applications/{id}/step.

    ``checklist`` accepts a list of ``{id|name, checked}`` entries, a map of
    booleans keyed by item id or name, or an object with an ``items`` list.
    """

    step: ApplicationStep
    property_details: PropertyDetails | None = None
    checklist: list[dict[str, Any]] | dict[str, Any] | None = None
    documents: list[DocumentUpload] | None = None


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    host_id: UUID
    property_details: dict[str, Any] | None
    status: ApplicationStatus
    current_step: ApplicationStep
    submitted_at: datetime | None
    reviewed_at: datetime | None
    reviewed_by: UUID | None
    review_notes: str | None
    created_at: datetime
    updated_at: datetime


class ApplicationListResponse(BaseModel):
    applications: list[ApplicationResponse]
    total: int
    skip: int
    limit: int


class StepInfo(BaseModel):
    step: ApplicationStep
    title: str
    description: str
    requirements: list[str]
    order: int
    next_step: ApplicationStep | None
    previous_step: ApplicationStep | None


class ApplicationProgressResponse(BaseModel):
    application_id: UUID
    status: ApplicationStatus
    current_step: ApplicationStep
    progress_percent: int
    completed_steps: list[ApplicationStep]
    next_step: ApplicationStep | None
    current_step_info: StepInfo


class DeleteApplicationResponse(BaseModel):
    id: UUID
    deleted_at: datetime
    message: str = "Application deleted"
