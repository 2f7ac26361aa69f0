"""
Application Shared Helpers

Pure helpers used by the application service, step validation and review.
"""

from typing import Any

from rentalcert.modules.applications.models import Application, DocumentType

# Client-side document type names that map onto canonical types
DOCUMENT_TYPE_ALIASES: dict[str, DocumentType] = {
    "PROPERTY_OWNERSHIP": DocumentType.PROPERTY_DEED,
    "SAFETY_CERTIFICATE": DocumentType.SAFETY_PERMIT,
}

REQUIRED_PROPERTY_TEXT_FIELDS = ("property_name", "address", "property_type_id")
REQUIRED_PROPERTY_COUNT_FIELDS = ("bedrooms", "bathrooms", "max_guests")


def map_document_type(raw: str | None) -> DocumentType:
    """
    Map a client-supplied document type to a canonical DocumentType.

    Known aliases are translated; anything unrecognised becomes OTHER.
    """
    if not raw:
        return DocumentType.OTHER

    key = raw.strip().upper()
    if key in DOCUMENT_TYPE_ALIASES:
        return DOCUMENT_TYPE_ALIASES[key]

    try:
        return DocumentType(key)
    except ValueError:
        return DocumentType.OTHER


def _as_positive_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number >= 1 else None


def find_missing_property_fields(details: dict[str, Any] | None) -> list[str]:
    """
    List every property-details field that is missing or invalid.

    Text fields must be non-empty; bedrooms, bathrooms and max_guests must
    each be at least 1. All violations are returned together.
    """
    details = details or {}
    missing: list[str] = []

    for name in REQUIRED_PROPERTY_TEXT_FIELDS:
        value = details.get(name)
        if value is None or not str(value).strip():
            missing.append(name)

    for name in REQUIRED_PROPERTY_COUNT_FIELDS:
        if _as_positive_int(details.get(name)) is None:
            missing.append(name)

    return missing


def get_property_name(application: Application) -> str | None:
    return (application.property_details or {}).get("property_name")


def application_snapshot(application: Application) -> dict[str, Any]:
    """Minimal state captured in audit entries."""
    return {
        "status": application.status.value,
        "current_step": application.current_step.value,
        "reviewed_by": str(application.reviewed_by) if application.reviewed_by else None,
    }
