"""Connector interfaces for the hospital backend services."""

from __future__ import annotations

from .hospital_client import (
    AppointmentServiceClient,
    DoctorServiceClient,
    PatientServiceClient,
    ServiceClientError,
    ServiceRejectedError,
    ServiceUnavailableError,
    format_local_datetime,
    parse_local_datetime,
)

__all__ = [
    "AppointmentServiceClient",
    "DoctorServiceClient",
    "PatientServiceClient",
    "ServiceClientError",
    "ServiceRejectedError",
    "ServiceUnavailableError",
    "format_local_datetime",
    "parse_local_datetime",
]
