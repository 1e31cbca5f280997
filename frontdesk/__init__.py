"""Front desk controllers for booking, rescheduling and managing appointments."""

from .board import AppointmentBoard, parse_appointment_page
from .controller import BookingDialog, RescheduleDialog
from .reference import ReferenceData
from .states import Alert, FormEvent, FormState, InvalidTransition, advance

__all__ = [
    "Alert",
    "AppointmentBoard",
    "BookingDialog",
    "FormEvent",
    "FormState",
    "InvalidTransition",
    "ReferenceData",
    "RescheduleDialog",
    "advance",
    "parse_appointment_page",
]
