"""Client-side validation of booking and reschedule drafts.

All rules are evaluated; when two rules target the same field the one listed
later wins, so the lead-time message replaces the clinic-hours message on the
start field and the closing-time message replaces the range message on the
end field.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from .models import BookingDraft, ClinicHours, FieldErrors, Identifier, RescheduleDraft
from .slots import LEAD_TIME


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_valid_id(value: Identifier) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    try:
        int(str(value).strip())
    except ValueError:
        return False
    return True


def _check_identifier(errors: FieldErrors, field: str, value: Identifier, label: str) -> None:
    if _is_blank(value):
        errors[field] = f"{label} is required"
    elif not _is_valid_id(value):
        errors[field] = f"{label} must be a valid ID"


def _check_slot(
    errors: FieldErrors,
    start: Optional[datetime],
    end: Optional[datetime],
    clinic_hours: ClinicHours,
    now: datetime,
    *,
    start_field: str,
    end_field: str,
    lead_time_message: str,
) -> None:
    if start is None:
        errors[start_field] = "Start time is required"
    if end is None:
        errors[end_field] = "End time is required"

    if start is not None and end is not None and end <= start:
        errors[end_field] = "End time must be after start time"

    hours_message = (
        f"Appointment must be within clinic hours: {clinic_hours.start}:00 - {clinic_hours.end}:00"
    )
    if start is not None and not (clinic_hours.start <= start.hour < clinic_hours.end):
        errors[start_field] = hours_message

    if end is not None:
        if not (clinic_hours.start <= end.hour <= clinic_hours.end):
            errors[end_field] = hours_message
        if end.hour >= clinic_hours.end:
            errors[end_field] = (
                f"Appointment must end before {clinic_hours.end}:00 (clinic closing time)"
            )

    if start is not None and start < now + LEAD_TIME:
        errors[start_field] = lead_time_message


def validate_booking(draft: BookingDraft, clinic_hours: ClinicHours, now: datetime) -> FieldErrors:
    """Return the field errors of ``draft``; an empty dict means it may be submitted."""

    errors: FieldErrors = {}
    _check_identifier(errors, "patientId", draft.patient_id, "Patient")
    _check_identifier(errors, "doctorId", draft.doctor_id, "Doctor")
    if _is_blank(draft.department):
        errors["department"] = "Department is required"

    _check_slot(
        errors,
        draft.slot_start,
        draft.slot_end,
        clinic_hours,
        now,
        start_field="slotStart",
        end_field="slotEnd",
        lead_time_message="Appointment must be at least 2 hours from now",
    )
    return errors


def validate_reschedule(draft: RescheduleDraft, clinic_hours: ClinicHours, now: datetime) -> FieldErrors:
    errors: FieldErrors = {}
    _check_slot(
        errors,
        draft.new_slot_start,
        draft.new_slot_end,
        clinic_hours,
        now,
        start_field="newSlotStart",
        end_field="newSlotEnd",
        lead_time_message="New slot must be at least 2 hours from now",
    )
    return errors
