"""Reference data (patients, doctors, departments) used to fill the booking form."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional


def records_from(payload: Any, keys: Iterable[str] = ("data", "content")) -> List[Dict[str, Any]]:
    """Extract the record list from one of the services' page shapes."""

    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, Mapping):
        items = []
        for key in keys:
            candidate = payload.get(key)
            if isinstance(candidate, list):
                items = candidate
                break
    else:
        items = []
    return [item for item in items if isinstance(item, dict)]


@dataclass
class ReferenceData:
    """Lists shown in the booking form; empty until the services answer."""

    patients: List[Dict[str, Any]] = field(default_factory=list)
    doctors: List[Dict[str, Any]] = field(default_factory=list)
    departments: List[str] = field(default_factory=list)

    def find_doctor(self, doctor_id: Any) -> Optional[Dict[str, Any]]:
        for doctor in self.doctors:
            if str(doctor.get("doctorId")) == str(doctor_id):
                return doctor
        return None

    def doctors_in(self, department: Optional[str]) -> List[Dict[str, Any]]:
        if not department:
            return list(self.doctors)
        return [doctor for doctor in self.doctors if doctor.get("department") == department]
