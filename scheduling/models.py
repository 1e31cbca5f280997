"""Data model shared by the slot generator, validator and form controllers."""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from connector.hospital_client import format_local_datetime, parse_local_datetime

FieldErrors = Dict[str, str]
Identifier = Union[int, str, None]


@dataclass(frozen=True)
class ClinicHours:
    """Daily opening bracket expressed in whole hours."""

    start: int = 9
    end: int = 18

    def __post_init__(self) -> None:
        if not (0 <= self.start < self.end <= 24):
            raise ValueError(
                f"Clinic hours must satisfy 0 <= start < end <= 24 (got {self.start}-{self.end})"
            )

    @property
    def opening_minute(self) -> int:
        return self.start * 60

    @property
    def closing_minute(self) -> int:
        return self.end * 60


def clinic_hours_from_env() -> ClinicHours:
    """Build clinic hours from ``CLINIC_OPEN_HOUR`` and ``CLINIC_CLOSE_HOUR``."""

    try:
        start = int(os.getenv("CLINIC_OPEN_HOUR", "9"))
        end = int(os.getenv("CLINIC_CLOSE_HOUR", "18"))
    except ValueError as exc:
        raise ValueError("Clinic hours must be whole numbers") from exc
    return ClinicHours(start=start, end=end)


@dataclass(frozen=True)
class TimeSlot:
    """A selectable time option, e.g. ``TimeSlot("14:30", "2:30 PM")``."""

    value: str
    label: str


@dataclass
class BookingDraft:
    """Form state of one booking dialog session."""

    patient_id: Identifier = None
    doctor_id: Identifier = None
    department: str = ""
    slot_start: Optional[datetime] = None
    slot_end: Optional[datetime] = None

    def is_empty(self) -> bool:
        return self == BookingDraft()

    def to_payload(self) -> Dict[str, Any]:
        """Return the request body expected by ``POST /v1/appointments``."""

        if self.slot_start is None or self.slot_end is None:
            raise ValueError("slot_start and slot_end must be set before submission")
        return {
            "patientId": int(self.patient_id),
            "doctorId": int(self.doctor_id),
            "department": self.department,
            "slotStart": format_local_datetime(self.slot_start),
            "slotEnd": format_local_datetime(self.slot_end),
        }


@dataclass
class RescheduleDraft:
    """Form state of one reschedule dialog session."""

    appointment_id: Identifier = None
    new_slot_start: Optional[datetime] = None
    new_slot_end: Optional[datetime] = None

    def to_payload(self) -> Dict[str, str]:
        if self.new_slot_start is None or self.new_slot_end is None:
            raise ValueError("new_slot_start and new_slot_end must be set before submission")
        return {
            "newSlotStart": format_local_datetime(self.new_slot_start),
            "newSlotEnd": format_local_datetime(self.new_slot_end),
        }


class AppointmentStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


@dataclass(frozen=True)
class Appointment:
    """Appointment as reported by the Appointment service."""

    appointment_id: int
    patient_id: int
    doctor_id: int
    department: str
    slot_start: datetime
    slot_end: datetime
    status: AppointmentStatus
    reschedule_count: int = 0
    created_at: Optional[datetime] = None

    @property
    def is_actionable(self) -> bool:
        return self.status is AppointmentStatus.SCHEDULED

    def to_payload(self) -> Dict[str, Any]:
        return {
            "appointmentId": self.appointment_id,
            "patientId": self.patient_id,
            "doctorId": self.doctor_id,
            "department": self.department,
            "slotStart": format_local_datetime(self.slot_start),
            "slotEnd": format_local_datetime(self.slot_end),
            "status": self.status.value,
            "rescheduleCount": self.reschedule_count,
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Appointment":
        if not isinstance(payload, Mapping):
            raise ValueError("Appointment payload must be a mapping")
        try:
            created_raw = payload.get("createdAt")
            return cls(
                appointment_id=int(payload["appointmentId"]),
                patient_id=int(payload["patientId"]),
                doctor_id=int(payload["doctorId"]),
                department=str(payload.get("department") or ""),
                slot_start=parse_local_datetime(payload["slotStart"]),
                slot_end=parse_local_datetime(payload["slotEnd"]),
                status=AppointmentStatus(payload.get("status") or AppointmentStatus.SCHEDULED.value),
                reschedule_count=int(payload.get("rescheduleCount") or 0),
                created_at=parse_local_datetime(created_raw) if created_raw else None,
            )
        except KeyError as exc:
            raise ValueError(f"Appointment payload is missing {exc.args[0]}") from exc
        except TypeError as exc:
            raise ValueError("Appointment payload contains invalid values") from exc


@dataclass(frozen=True)
class AppointmentPage:
    appointments: List[Appointment]
    page: int = 1
    total_pages: int = 1
