"""Map free-text rejections from the Appointment service onto form fields.

The service only returns a message string, so the mapping is a substring
match against an ordered rule table. Every matching rule contributes its
fields; a message that matches nothing yields an empty mapping and the caller
shows it as a banner only.

TODO: replace with per-field error codes once the Appointment service's
ErrorResponse carries them.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .models import FieldErrors

SLOT_FIELDS = ("slotStart", "slotEnd")
_NOT_FOUND = ("not found", "does not exist", "inactive")


@dataclass(frozen=True)
class ErrorRule:
    """Marks ``fields`` when every clause has at least one substring in the message."""

    fields: Tuple[str, ...]
    clauses: Tuple[Tuple[str, ...], ...]

    def matches(self, lowered_message: str) -> bool:
        return all(
            any(needle in lowered_message for needle in clause) for clause in self.clauses
        )


DEFAULT_ERROR_RULES: Tuple[ErrorRule, ...] = (
    ErrorRule(
        SLOT_FIELDS,
        (("overlap", "slot not available", "already has an appointment", "slot overlaps"),),
    ),
    ErrorRule(("patientId",), (("patient",), _NOT_FOUND)),
    ErrorRule(("doctorId",), (("doctor",), _NOT_FOUND)),
    ErrorRule(("department",), (("department",),)),
    ErrorRule(("slotStart",), (("lead time", "2 hour", "at least 2"),)),
    ErrorRule(SLOT_FIELDS, (("clinic hours", "9", "6"),)),
)

RESCHEDULE_FIELD_NAMES = {"slotStart": "newSlotStart", "slotEnd": "newSlotEnd"}


def map_error(message: Optional[str], rules: Sequence[ErrorRule] = DEFAULT_ERROR_RULES) -> FieldErrors:
    if not message:
        return {}

    lowered = message.lower()
    errors: FieldErrors = {}
    for rule in rules:
        if rule.matches(lowered):
            for field in rule.fields:
                errors[field] = message
    return errors


def remap_for_reschedule(errors: FieldErrors) -> FieldErrors:
    """Rename slot fields for the reschedule form and drop the rest."""

    return {
        RESCHEDULE_FIELD_NAMES[field]: message
        for field, message in errors.items()
        if field in RESCHEDULE_FIELD_NAMES
    }
