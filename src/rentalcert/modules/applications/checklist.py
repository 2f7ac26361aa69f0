"""
Checklist Normalizer

Hosts confirm compliance checklist items in whatever shape their client
produces. Three shapes are accepted:

1. A list of entries: ``[{"id": "...", "checked": true}, {"name": "Smoke alarm", "value": true}]``
2. A flat map of booleans keyed by item id or item name: ``{"<uuid>": true, "Smoke alarm": true}``
3. An object with an ``items`` list plus boolean keys, combining both of the above

The raw payload is parsed once into a tagged union (``EntryListSubmission`` or
``KeyedSubmission``) and then normalized against the configured items of the
property type into one ``item id -> satisfied`` map. Matching is by id first;
an entry falls back to its name only when its id is not a configured one. An
item is satisfied when any matching entry carries a truthy flag. Everything
here is pure so the same result can be used for validation and for persistence.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol
from uuid import UUID

from rentalcert.modules.applications.errors import (
    ChecklistIncompleteError,
    ChecklistNotConfiguredError,
    InvalidChecklistPayloadError,
)

_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})
_FLAG_KEYS = ("checked", "value")


class ChecklistItemLike(Protocol):
    id: UUID
    name: str


@dataclass(frozen=True)
class ChecklistEntry:
    """One confirmation, addressed by id and/or name."""

    id: str | None
    name: str | None
    checked: bool


@dataclass(frozen=True)
class EntryListSubmission:
    entries: tuple[ChecklistEntry, ...]


@dataclass(frozen=True)
class KeyedSubmission:
    flags: Mapping[str, bool]


ChecklistSubmission = EntryListSubmission | KeyedSubmission


@dataclass
class ChecklistNormalization:
    """Result of normalizing a submission against the configured items."""

    satisfied: dict[UUID, bool]
    missing: list[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing

    @property
    def checked_ids(self) -> list[UUID]:
        return [item_id for item_id, ok in self.satisfied.items() if ok]


def _is_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if isinstance(value, int | float):
        return value != 0
    return False


def _clean_key(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_entry(raw: Any) -> ChecklistEntry:
    if not isinstance(raw, Mapping):
        raise InvalidChecklistPayloadError("Checklist entries must be objects")

    item_id = _clean_key(raw.get("id") or raw.get("checklist_item_id"))
    name = _clean_key(raw.get("name"))
    if item_id is None and name is None:
        raise InvalidChecklistPayloadError("Checklist entries need an id or a name")

    checked = any(_is_truthy(raw.get(key)) for key in _FLAG_KEYS) or raw.get("status") is True
    return ChecklistEntry(id=item_id, name=name, checked=checked)


def parse_checklist_submission(raw: Any) -> ChecklistSubmission:
    """
    Parse a raw checklist payload into the tagged union.

    Raises:
        InvalidChecklistPayloadError: If the payload matches none of the accepted shapes
    """
    if isinstance(raw, EntryListSubmission | KeyedSubmission):
        return raw

    if isinstance(raw, Sequence) and not isinstance(raw, str | bytes):
        return EntryListSubmission(entries=tuple(_parse_entry(entry) for entry in raw))

    if isinstance(raw, Mapping):
        items = raw.get("items")
        if isinstance(items, Sequence) and not isinstance(items, str | bytes):
            entries = [_parse_entry(entry) for entry in items]
            # Loose boolean keys next to "items" address an item by id or name
            for key, value in raw.items():
                if key == "items":
                    continue
                clean = _clean_key(key)
                if clean is not None:
                    entries.append(ChecklistEntry(id=clean, name=clean, checked=_is_truthy(value)))
            return EntryListSubmission(entries=tuple(entries))

        flags = {}
        for key, value in raw.items():
            clean = _clean_key(key)
            if clean is not None:
                flags[clean] = _is_truthy(value)
        return KeyedSubmission(flags=flags)

    raise InvalidChecklistPayloadError()


def normalize_checklist(
    items: Sequence[ChecklistItemLike],
    raw: Any,
) -> ChecklistNormalization:
    """
    Reconcile a submission against the configured checklist items.

    Missing items are reported by name, in configured order.
    """
    submission = parse_checklist_submission(raw)
    known_ids = {str(item.id) for item in items}

    by_id: dict[str, bool] = {}
    by_name: dict[str, bool] = {}

    match submission:
        case EntryListSubmission(entries=entries):
            pairs = [(entry.id, entry.name, entry.checked) for entry in entries]
        case KeyedSubmission(flags=flags):
            pairs = [(key, key, checked) for key, checked in flags.items()]

    # A name only counts when the entry carries no id of a configured item
    for item_id, name, checked in pairs:
        if item_id in known_ids:
            by_id[item_id] = by_id.get(item_id, False) or checked
        elif name is not None:
            by_name[name] = by_name.get(name, False) or checked

    satisfied: dict[UUID, bool] = {}
    missing: list[str] = []

    for item in items:
        ok = by_id.get(str(item.id), False) or by_name.get(item.name.strip(), False)
        satisfied[item.id] = ok
        if not ok:
            missing.append(item.name)

    return ChecklistNormalization(satisfied=satisfied, missing=missing)


def ensure_checklist_complete(
    items: Sequence[ChecklistItemLike],
    raw: Any,
) -> ChecklistNormalization:
    """
    Normalize and require every configured item to be satisfied.

    Raises:
        ChecklistNotConfiguredError: If the property type has no items
        ChecklistIncompleteError: Listing the names of unsatisfied items
    """
    if not items:
        raise ChecklistNotConfiguredError()

    result = normalize_checklist(items, raw)
    if not result.is_complete:
        raise ChecklistIncompleteError(result.missing)
    return result
