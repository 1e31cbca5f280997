"""Appointment slot scheduling and validation."""

from .error_mapping import DEFAULT_ERROR_RULES, ErrorRule, map_error, remap_for_reschedule
from .models import (
    Appointment,
    AppointmentPage,
    AppointmentStatus,
    BookingDraft,
    ClinicHours,
    FieldErrors,
    RescheduleDraft,
    TimeSlot,
    clinic_hours_from_env,
)
from .slots import LEAD_TIME, SLOT_MINUTES, generate_end_slots, generate_start_slots, slot_datetime
from .validation import validate_booking, validate_reschedule

__all__ = [
    "Appointment",
    "AppointmentPage",
    "AppointmentStatus",
    "BookingDraft",
    "ClinicHours",
    "DEFAULT_ERROR_RULES",
    "ErrorRule",
    "FieldErrors",
    "LEAD_TIME",
    "RescheduleDraft",
    "SLOT_MINUTES",
    "TimeSlot",
    "clinic_hours_from_env",
    "generate_end_slots",
    "generate_start_slots",
    "map_error",
    "remap_for_reschedule",
    "slot_datetime",
    "validate_booking",
    "validate_reschedule",
]
