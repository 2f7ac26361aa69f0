"""
Application State Machine

Two explicit tables drive every change to an application:

1. STEP_TRANSITIONS - which step a host may move to from the current one.
   Backward moves and staying put are always allowed; forward moves go one
   step at a time, with DOCUMENT_UPLOAD -> SUBMISSION as the single shortcut
   (PAYMENT carries no data of its own).

2. STATUS_TRANSITIONS - ``(status, event) -> status``. Anything not listed
   is rejected with InvalidStatusTransitionError.

Step metadata (titles, requirements, progress) lives here as well so the
service and API describe steps from one source.
"""

import enum
from typing import Any

from rentalcert.modules.applications.errors import InvalidStatusTransitionError, StepSkipError
from rentalcert.modules.applications.models import ApplicationStatus, ApplicationStep

STEP_ORDER: tuple[ApplicationStep, ...] = (
    ApplicationStep.PROPERTY_DETAILS,
    ApplicationStep.COMPLIANCE_CHECKLIST,
    ApplicationStep.DOCUMENT_UPLOAD,
    ApplicationStep.PAYMENT,
    ApplicationStep.SUBMISSION,
)

# Forward moves permitted in addition to any backward move or staying put
_FORWARD_SHORTCUTS: dict[ApplicationStep, set[ApplicationStep]] = {
    ApplicationStep.DOCUMENT_UPLOAD: {ApplicationStep.SUBMISSION},
}


def _build_step_transitions() -> dict[ApplicationStep, frozenset[ApplicationStep]]:
    table: dict[ApplicationStep, frozenset[ApplicationStep]] = {}
    for index, step in enumerate(STEP_ORDER):
        allowed = set(STEP_ORDER[: index + 1])
        if index + 1 < len(STEP_ORDER):
            allowed.add(STEP_ORDER[index + 1])
        allowed |= _FORWARD_SHORTCUTS.get(step, set())
        table[step] = frozenset(allowed)
    return table


STEP_TRANSITIONS: dict[ApplicationStep, frozenset[ApplicationStep]] = _build_step_transitions()


class ApplicationEvent(str, enum.Enum):
    SUBMIT = "SUBMIT"
    ASSIGN_REVIEWER = "ASSIGN_REVIEWER"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    REQUEST_MORE_INFO = "REQUEST_MORE_INFO"


STATUS_TRANSITIONS: dict[tuple[ApplicationStatus, ApplicationEvent], ApplicationStatus] = {
    (ApplicationStatus.DRAFT, ApplicationEvent.SUBMIT): ApplicationStatus.SUBMITTED,
    (ApplicationStatus.SUBMITTED, ApplicationEvent.ASSIGN_REVIEWER): ApplicationStatus.UNDER_REVIEW,
    (ApplicationStatus.UNDER_REVIEW, ApplicationEvent.ASSIGN_REVIEWER): (
        ApplicationStatus.UNDER_REVIEW
    ),
    (ApplicationStatus.MORE_INFO_REQUESTED, ApplicationEvent.ASSIGN_REVIEWER): (
        ApplicationStatus.UNDER_REVIEW
    ),
    (ApplicationStatus.UNDER_REVIEW, ApplicationEvent.APPROVE): ApplicationStatus.APPROVED,
    (ApplicationStatus.UNDER_REVIEW, ApplicationEvent.REJECT): ApplicationStatus.REJECTED,
    (ApplicationStatus.UNDER_REVIEW, ApplicationEvent.REQUEST_MORE_INFO): (
        ApplicationStatus.MORE_INFO_REQUESTED
    ),
}


def step_index(step: ApplicationStep) -> int:
    return STEP_ORDER.index(step)


def is_forward_move(current: ApplicationStep, target: ApplicationStep) -> bool:
    return step_index(target) > step_index(current)


def can_move_to_step(current: ApplicationStep, target: ApplicationStep) -> bool:
    return target in STEP_TRANSITIONS[current]


def validate_step_progression(current: ApplicationStep, target: ApplicationStep) -> None:
    """
    Raises:
        StepSkipError: If the move is not in STEP_TRANSITIONS
    """
    if not can_move_to_step(current, target):
        raise StepSkipError(current.value, target.value)


def next_status(status: ApplicationStatus, event: ApplicationEvent) -> ApplicationStatus:
    """
    Resolve the status an event leads to.

    Raises:
        InvalidStatusTransitionError: If the event is not allowed from ``status``
    """
    try:
        return STATUS_TRANSITIONS[(status, event)]
    except KeyError:
        raise InvalidStatusTransitionError(status.value, event.value) from None


def get_next_step(step: ApplicationStep) -> ApplicationStep | None:
    index = step_index(step)
    return STEP_ORDER[index + 1] if index + 1 < len(STEP_ORDER) else None


def get_previous_step(step: ApplicationStep) -> ApplicationStep | None:
    index = step_index(step)
    return STEP_ORDER[index - 1] if index > 0 else None


def calculate_progress(step: ApplicationStep) -> int:
    """Percent complete for an application sitting on ``step``."""
    return round((step_index(step) + 1) / len(STEP_ORDER) * 100)


def completed_steps(step: ApplicationStep) -> list[ApplicationStep]:
    return list(STEP_ORDER[: step_index(step)])


STEP_INFO: dict[ApplicationStep, dict[str, Any]] = {
    ApplicationStep.PROPERTY_DETAILS: {
        "title": "Property Details",
        "description": "Basic information about your rental property",
        "requirements": [
            "property_name",
            "address",
            "property_type_id",
            "bedrooms",
            "bathrooms",
            "max_guests",
        ],
    },
    ApplicationStep.COMPLIANCE_CHECKLIST: {
        "title": "Compliance Checklist",
        "description": "Confirm every safety and compliance requirement for your property type",
        "requirements": ["all checklist items confirmed"],
    },
    ApplicationStep.DOCUMENT_UPLOAD: {
        "title": "Document Upload",
        "description": "Upload identity, safety, insurance and ownership documents",
        "requirements": [
            "ID_DOCUMENT",
            "SAFETY_PERMIT",
            "INSURANCE_CERTIFICATE",
            "PROPERTY_DEED",
        ],
    },
    ApplicationStep.PAYMENT: {
        "title": "Payment",
        "description": "Pay the certification fee",
        "requirements": ["completed payment"],
    },
    ApplicationStep.SUBMISSION: {
        "title": "Submission",
        "description": "Review everything and submit your application",
        "requirements": ["all previous steps complete"],
    },
}


def get_step_info(step: ApplicationStep) -> dict[str, Any]:
    info = STEP_INFO[step]
    next_step = get_next_step(step)
    previous_step = get_previous_step(step)
    return {
        "step": step,
        "title": info["title"],
        "description": info["description"],
        "requirements": list(info["requirements"]),
        "order": step_index(step) + 1,
        "next_step": next_step,
        "previous_step": previous_step,
    }
