"""Hospital service client utilities.

This module provides clients for the Patient, Doctor and Appointment
services. The clients share HTTP session handling, local wall-clock date
formatting and structured error reporting so the front desk can tell a
rejected request apart from one that never reached the service.
"""
from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

import requests
from requests import Response
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

__all__ = [
    "ServiceClientError",
    "ServiceRejectedError",
    "ServiceUnavailableError",
    "AppointmentServiceClient",
    "DoctorServiceClient",
    "PatientServiceClient",
    "format_local_datetime",
    "parse_local_datetime",
]


# Library code only obtains a logger; handlers belong to the hosting application.
logger = logging.getLogger(__name__)


LOCAL_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

_FRACTION = re.compile(r"\.(\d+)")


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a whole number (got {raw!r})") from exc


DEFAULT_TIMEOUT_SECONDS = _int_from_env("HOSPITAL_API_TIMEOUT", 30)
DEFAULT_MAX_RETRIES = _int_from_env("HOSPITAL_API_MAX_RETRIES", 0)
DEFAULT_BACKOFF_FACTOR = 0.5

DEFAULT_PATIENT_API_URL = os.getenv("PATIENT_API_URL", "http://localhost:8001")
DEFAULT_DOCTOR_API_URL = os.getenv("DOCTOR_API_URL", "http://localhost:8002")
DEFAULT_APPOINTMENT_API_URL = os.getenv("APPOINTMENT_API_URL", "http://localhost:8003")


class ServiceClientError(RuntimeError):
    """Base exception for hospital service client errors."""


class ServiceRejectedError(ServiceClientError):
    """Raised when a service answers with an error response."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        error_code: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.correlation_id = correlation_id


class ServiceUnavailableError(ServiceClientError):
    """Raised when no usable response was received from a service."""


def format_local_datetime(moment: datetime) -> str:
    """Format ``moment`` as a local wall-clock string without an offset."""

    if moment.tzinfo is not None:
        moment = moment.astimezone().replace(tzinfo=None)
    return moment.strftime(LOCAL_DATETIME_FORMAT)


def parse_local_datetime(value: str) -> datetime:
    """Parse a wall-clock string emitted by the services."""

    if not value or not isinstance(value, str):
        raise ValueError("datetime value must be a non-empty string")
    # fromisoformat before 3.11 only takes 3 or 6 fractional digits.
    normalized = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    parsed = datetime.fromisoformat(normalized)
    if parsed.tzinfo is not None:
        raise ValueError(f"Expected a local datetime without offset: {value}")
    return parsed


class HospitalServiceClient:
    """Shared functionality for the hospital service clients."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url must be provided")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or self._build_session(
            max_retries=max_retries, backoff_factor=backoff_factor
        )

    def _build_session(self, *, max_retries: int, backoff_factor: float) -> requests.Session:
        session = requests.Session()
        # Submissions are never replayed; only reads may be retried.
        retry_strategy = Retry(
            total=max_retries,
            read=max_retries,
            connect=max_retries,
            status=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=(429, 502, 503, 504),
            allowed_methods=("GET",),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_payload: Optional[Dict[str, Any]] = None,
        expected_status: Union[int, Tuple[int, ...]] = (200,),
    ) -> Response:
        if not path:
            raise ValueError("path must be provided")
        if isinstance(expected_status, int):
            expected_status = (expected_status,)

        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self._session.request(
                method=method.upper(),
                url=url,
                params=params,
                json=json_payload,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Request to %s failed: %s", url, exc)
            raise ServiceUnavailableError(f"Unable to reach {self.base_url}: {exc}") from exc

        if response.status_code not in expected_status:
            self._log_error_response(response)
            raise self._rejection_from(response)

        return response

    def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self._request(method, path, **kwargs)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            logger.error("Invalid JSON received from %s: %s", response.url, exc)
            raise ServiceUnavailableError("Service response was not valid JSON") from exc

    @staticmethod
    def _rejection_from(response: Response) -> ServiceRejectedError:
        body: Dict[str, Any] = {}
        try:
            parsed = response.json()
            if isinstance(parsed, dict):
                body = parsed
        except ValueError:
            pass

        message = (
            body.get("message")
            or body.get("error")
            or response.text.strip()
            or f"HTTP {response.status_code}"
        )
        return ServiceRejectedError(
            str(message),
            status_code=response.status_code,
            error_code=body.get("errorCode") or body.get("code"),
            correlation_id=body.get("correlationId"),
        )

    @staticmethod
    def _log_error_response(response: Response) -> None:
        content_type = response.headers.get("Content-Type", "")
        if "json" in content_type:
            try:
                parsed = response.json()
                logger.error("Service error response: status=%s body=%s", response.status_code, parsed)
                return
            except ValueError:
                pass
        logger.error(
            "Service error response: status=%s body=%s", response.status_code, response.text[:2048]
        )


def _require_id(value: Any, label: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"{label} must be provided")
    return value


class AppointmentServiceClient(HospitalServiceClient):
    """Client for the Appointment service."""

    def __init__(self, *, base_url: str = DEFAULT_APPOINTMENT_API_URL, **kwargs: Any) -> None:
        super().__init__(base_url=base_url, **kwargs)

    def list_appointments(
        self,
        page: int = 1,
        limit: int = 20,
        *,
        patient_id: Optional[int] = None,
        doctor_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> Any:
        """Return one page of appointments as sent by the service."""

        params: Dict[str, Any] = {"page": page, "limit": limit}
        filters = {"patientId": patient_id, "doctorId": doctor_id, "status": status}
        params.update({k: v for k, v in filters.items() if v is not None})
        return self._request_json("GET", "v1/appointments", params=params)

    def get_appointment(self, appointment_id: int) -> Dict[str, Any]:
        _require_id(appointment_id, "appointment_id")
        return self._request_json("GET", f"v1/appointments/{appointment_id}")

    def book_appointment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create an appointment from a booking payload."""

        if not isinstance(payload, dict) or not payload:
            raise ValueError("payload must be a non-empty dictionary")
        return self._request_json(
            "POST", "v1/appointments", json_payload=payload, expected_status=(200, 201)
        )

    def reschedule_appointment(self, appointment_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        _require_id(appointment_id, "appointment_id")
        if not isinstance(payload, dict) or not payload:
            raise ValueError("payload must be a non-empty dictionary")
        return self._request_json(
            "PUT", f"v1/appointments/{appointment_id}/reschedule", json_payload=payload
        )

    def cancel_appointment(self, appointment_id: int) -> Dict[str, Any]:
        return self._transition(appointment_id, "cancel")

    def complete_appointment(self, appointment_id: int) -> Dict[str, Any]:
        return self._transition(appointment_id, "complete")

    def mark_no_show(self, appointment_id: int) -> Dict[str, Any]:
        return self._transition(appointment_id, "no-show")

    def _transition(self, appointment_id: int, action: str) -> Dict[str, Any]:
        _require_id(appointment_id, "appointment_id")
        return self._request_json("PUT", f"v1/appointments/{appointment_id}/{action}")


class PatientServiceClient(HospitalServiceClient):
    """Client for the Patient service."""

    def __init__(self, *, base_url: str = DEFAULT_PATIENT_API_URL, **kwargs: Any) -> None:
        super().__init__(base_url=base_url, **kwargs)

    def list_patients(self, page: int = 1, limit: int = 1000) -> Any:
        return self._request_json("GET", "v1/patients", params={"page": page, "limit": limit})


class DoctorServiceClient(HospitalServiceClient):
    """Client for the Doctor service, which also owns the department list."""

    def __init__(self, *, base_url: str = DEFAULT_DOCTOR_API_URL, **kwargs: Any) -> None:
        super().__init__(base_url=base_url, **kwargs)

    def list_doctors(self, page: int = 1, limit: int = 1000, *, department: Optional[str] = None) -> Any:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if department:
            params["department"] = department
        return self._request_json("GET", "v1/doctors", params=params)

    def list_departments(self) -> List[str]:
        payload = self._request_json("GET", "v1/departments")
        return payload if isinstance(payload, list) else []
