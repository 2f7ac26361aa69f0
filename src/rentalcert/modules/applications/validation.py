"""
Step-completion validation.

Each step has a validator that decides whether the host may move past it.
Validators read the effective state of the application: data submitted in
the current request when present, otherwise what is already stored.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rentalcert.modules.applications import repository
from rentalcert.modules.applications.checklist import (
    ChecklistNormalization,
    KeyedSubmission,
    ensure_checklist_complete,
)
from rentalcert.modules.applications.errors import (
    DocumentsIncompleteError,
    IncompletePropertyDetailsError,
    InvalidPropertyTypeError,
)
from rentalcert.modules.applications.helpers import find_missing_property_fields
from rentalcert.modules.applications.models import Application, ApplicationStep
from rentalcert.modules.catalog import repository as catalog_repository
from rentalcert.modules.shared.collaborators import Collaborators


@dataclass
class StepContext:
    db: AsyncSession
    application: Application
    collaborators: Collaborators
    pending_details: dict[str, Any] | None = None
    pending_checklist: Any = None

    @property
    def property_details(self) -> dict[str, Any]:
        if self.pending_details is not None:
            return self.pending_details
        return self.application.property_details or {}

    @property
    def property_type_id(self) -> UUID | None:
        raw = self.property_details.get("property_type_id")
        try:
            return UUID(str(raw)) if raw else None
        except ValueError:
            return None


def validate_property_details(details: dict[str, Any] | None) -> None:
    """
    Raises:
        IncompletePropertyDetailsError: Listing every missing or invalid field
    """
    missing = find_missing_property_fields(details)
    if missing:
        raise IncompletePropertyDetailsError(missing)


async def _validate_property_details_step(ctx: StepContext) -> None:
    validate_property_details(ctx.property_details)


async def validate_checklist_step(ctx: StepContext) -> ChecklistNormalization:
    """Normalize the pending checklist, or the stored confirmations when none was sent."""
    property_type_id = ctx.property_type_id
    if property_type_id is None:
        raise InvalidPropertyTypeError("Property type must be set before completing the checklist")

    items = await catalog_repository.get_checklist_items(ctx.db, property_type_id)

    payload = ctx.pending_checklist
    if payload is None:
        records = await repository.get_checklist_records(ctx.db, ctx.application.id)
        payload = KeyedSubmission(
            flags={str(record.checklist_item_id): record.checked for record in records}
        )

    return ensure_checklist_complete(items, payload)


async def _validate_documents_step(ctx: StepContext) -> None:
    result = await ctx.collaborators.documents.validate_document_step_completion(
        ctx.application.id
    )
    if not result.is_complete:
        raise DocumentsIncompleteError(result.message, list(result.missing_required))


async def _validate_payment_step(ctx: StepContext) -> None:
    # Payment is checked at issuance, not here
    return None


async def _validate_submission_step(ctx: StepContext) -> None:
    for step in (
        ApplicationStep.PROPERTY_DETAILS,
        ApplicationStep.COMPLIANCE_CHECKLIST,
        ApplicationStep.DOCUMENT_UPLOAD,
    ):
        await validate_step_completion(ctx, step)


StepValidator = Callable[[StepContext], Awaitable[Any]]

STEP_VALIDATORS: dict[ApplicationStep, StepValidator] = {
    ApplicationStep.PROPERTY_DETAILS: _validate_property_details_step,
    ApplicationStep.COMPLIANCE_CHECKLIST: validate_checklist_step,
    ApplicationStep.DOCUMENT_UPLOAD: _validate_documents_step,
    ApplicationStep.PAYMENT: _validate_payment_step,
    ApplicationStep.SUBMISSION: _validate_submission_step,
}


async def validate_step_completion(ctx: StepContext, step: ApplicationStep) -> None:
    """Run the completion validator for ``step``; raises a ValidationError on failure."""
    await STEP_VALIDATORS[step](ctx)
