"""
Certification errors.
"""

from uuid import UUID

from rentalcert.core.exceptions import (
    ConflictError,
    ExhaustionError,
    NotFoundError,
    ValidationError,
)


class CertificationNotFoundError(NotFoundError):
    def __init__(self, certification_id: UUID | str | None = None):
        message = (
            f"Certification {certification_id} not found"
            if certification_id
            else "Certification not found"
        )
        super().__init__(message, error_code="CERTIFICATION_NOT_FOUND")


class TemplateNotFoundError(NotFoundError):
    def __init__(self, template_id: UUID):
        super().__init__(f"Certificate template {template_id} not found", "TEMPLATE_NOT_FOUND")


class PropertyTypeMissingError(ValidationError):
    def __init__(self):
        super().__init__(
            "Application has no property type; cannot select a certificate template",
            error_code="PROPERTY_TYPE_MISSING",
        )


class NoActiveTemplateError(ConflictError):
    def __init__(self, property_type_id: UUID):
        super().__init__(
            f"No active certificate template for property type {property_type_id}",
            error_code="NO_ACTIVE_TEMPLATE",
            details={"property_type_id": str(property_type_id)},
        )


class MultipleActiveTemplatesError(ConflictError):
    def __init__(self, property_type_id: UUID, count: int):
        super().__init__(
            f"{count} active certificate templates for property type {property_type_id}; "
            "exactly one is required",
            error_code="MULTIPLE_ACTIVE_TEMPLATES",
            details={"property_type_id": str(property_type_id), "count": count},
        )


class CertificationExistsError(ConflictError):
    def __init__(self, application_id: UUID):
        super().__init__(
            f"A certification already exists for application {application_id}",
            error_code="CERTIFICATION_EXISTS",
        )


class PaymentRequiredError(ValidationError):
    def __init__(self):
        super().__init__(
            "A completed payment is required before a certification can be issued",
            error_code="PAYMENT_REQUIRED",
        )


class MissingDocumentsError(ValidationError):
    def __init__(self, missing: list[str]):
        super().__init__(
            f"Missing required documents: {', '.join(missing)}",
            error_code="MISSING_REQUIRED_DOCUMENTS",
            details={"missing_required": missing},
        )


class CertificateNumberExhaustedError(ExhaustionError):
    def __init__(self, attempts: int):
        super().__init__(
            f"Could not generate a unique certificate number after {attempts} attempts",
            error_code="CERTIFICATE_NUMBER_EXHAUSTED",
        )


class AlreadyRevokedError(ConflictError):
    def __init__(self):
        super().__init__("Certification is already revoked", error_code="ALREADY_REVOKED")


class CannotRevokeExpiredError(ConflictError):
    def __init__(self):
        super().__init__(
            "Cannot revoke an expired certification", error_code="CANNOT_REVOKE_EXPIRED"
        )
