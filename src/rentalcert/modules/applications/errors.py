"""
Application errors.

Concrete ServiceError subclasses raised by the application state machine,
step validation and application service.
"""

from uuid import UUID

from rentalcert.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)


class ApplicationNotFoundError(NotFoundError):
    def __init__(self, application_id: UUID | None = None):
        message = (
            f"Application {application_id} not found" if application_id else "Application not found"
        )
        super().__init__(message, error_code="APPLICATION_NOT_FOUND")


class ApplicationAccessDeniedError(ForbiddenError):
    def __init__(self, message: str = "You do not have access to this application"):
        super().__init__(message, error_code="APPLICATION_ACCESS_DENIED")


class InvalidApplicationStateError(ConflictError):
    """Raised when an application is not in the expected state for an operation."""

    def __init__(self, message: str, expected_state: str | None = None):
        detail = message
        if expected_state:
            detail = f"{message} Expected state: {expected_state}"
        super().__init__(detail, error_code="INVALID_APPLICATION_STATE")


class StepSkipError(ValidationError):
    def __init__(self, current_step: str, target_step: str):
        super().__init__(
            "Cannot skip steps. Please complete the current step first.",
            error_code="STEP_SKIP_NOT_ALLOWED",
            details={"current_step": current_step, "target_step": target_step},
        )


class IncompletePropertyDetailsError(ValidationError):
    def __init__(self, missing_fields: list[str]):
        self.missing_fields = missing_fields
        super().__init__(
            f"Property details incomplete. Missing or invalid: {', '.join(missing_fields)}",
            error_code="PROPERTY_DETAILS_INCOMPLETE",
            details={"missing_fields": missing_fields},
        )


class ChecklistNotConfiguredError(ValidationError):
    def __init__(self):
        super().__init__(
            "No checklist items configured for this property type",
            error_code="CHECKLIST_NOT_CONFIGURED",
        )


class ChecklistIncompleteError(ValidationError):
    def __init__(self, missing_items: list[str]):
        self.missing_items = missing_items
        super().__init__(
            f"Checklist incomplete. Missing confirmations for: {', '.join(missing_items)}",
            error_code="CHECKLIST_INCOMPLETE",
            details={"missing_items": missing_items},
        )


class InvalidChecklistPayloadError(ValidationError):
    def __init__(self, message: str = "Checklist must be a list of entries or a map of booleans"):
        super().__init__(message, error_code="INVALID_CHECKLIST_PAYLOAD")


class DocumentsIncompleteError(ValidationError):
    def __init__(self, message: str, missing_required: list[str]):
        super().__init__(
            message,
            error_code="DOCUMENTS_INCOMPLETE",
            details={"missing_required": missing_required},
        )


class InvalidPropertyTypeError(ValidationError):
    def __init__(self, message: str = "A valid property type is required"):
        super().__init__(message, error_code="INVALID_PROPERTY_TYPE")


class InvalidStatusTransitionError(ConflictError):
    """Raised when an event is not allowed from the application's current status."""

    def __init__(self, current_status: str, event: str):
        self.current_status = current_status
        self.event = event
        super().__init__(
            f"Invalid status transition: {event} is not allowed from {current_status}",
            error_code="INVALID_STATUS_TRANSITION",
            details={"current_status": current_status, "event": event},
        )
