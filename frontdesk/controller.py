"""Booking and reschedule dialog controllers.

Each dialog owns its draft, field errors and banner for one session. Slot
options come from :mod:`scheduling.slots`, drafts are checked with
:mod:`scheduling.validation` before any request is made, and rejections from
the Appointment service are mapped back onto form fields with
:mod:`scheduling.error_mapping`. Network calls run in worker threads so the
event loop stays responsive while a request is in flight.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from connector import (
    AppointmentServiceClient,
    DoctorServiceClient,
    PatientServiceClient,
    ServiceClientError,
    ServiceRejectedError,
)
from scheduling import (
    BookingDraft,
    ClinicHours,
    FieldErrors,
    RescheduleDraft,
    SLOT_MINUTES,
    TimeSlot,
    generate_end_slots,
    generate_start_slots,
    map_error,
    remap_for_reschedule,
    slot_datetime,
    validate_booking,
    validate_reschedule,
)

from .reference import ReferenceData, records_from
from .states import Alert, FormEvent, FormState, advance

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[str], Awaitable[None]]

FORM_ERRORS_MESSAGE = "Please fix the form errors before submitting"
NETWORK_ERROR_MESSAGE = (
    "Could not reach the appointment service. The request was not applied; please try again."
)


class SlotDialog:
    """Slot selection and submission shared by both dialogs."""

    start_field = "slotStart"
    end_field = "slotEnd"
    success_message = ""

    def __init__(
        self,
        appointment_client: AppointmentServiceClient,
        *,
        clinic_hours: Optional[ClinicHours] = None,
        clock: Callable[[], datetime] = datetime.now,
        on_success: Optional[SuccessCallback] = None,
    ) -> None:
        self._client = appointment_client
        self.clinic_hours = clinic_hours or ClinicHours()
        self._clock = clock
        self._on_success = on_success
        self._session = 0

        self.state = FormState.IDLE
        self.errors: FieldErrors = {}
        self.alert: Optional[Alert] = None
        self.selected_date: Optional[date] = None
        self.start_slots: List[TimeSlot] = []
        self.end_slots: List[TimeSlot] = []

    @property
    def is_open(self) -> bool:
        return self.state is not FormState.IDLE

    @property
    def busy(self) -> bool:
        return self.state is FormState.SUBMITTING

    # Subclass hooks -----------------------------------------------------

    def _slot(self) -> Tuple[Optional[datetime], Optional[datetime]]:
        raise NotImplementedError

    def _set_slot(self, start: Optional[datetime], end: Optional[datetime]) -> None:
        raise NotImplementedError

    def _reset_draft(self) -> None:
        raise NotImplementedError

    def _validate(self, now: datetime) -> FieldErrors:
        raise NotImplementedError

    def _send(self) -> Dict[str, Any]:
        raise NotImplementedError

    def _field_errors(self, message: str) -> FieldErrors:
        return map_error(message)

    # Lifecycle ----------------------------------------------------------

    def _begin(self) -> None:
        if self.is_open:
            self.close()
        self._reset_draft()
        self.errors = {}
        self.alert = None
        self.state = advance(self.state, FormEvent.OPEN)

    def close(self) -> None:
        """Close the dialog; a response still in flight will be discarded."""

        self._session += 1
        self._reset_draft()
        self.errors = {}
        self.alert = None
        self.selected_date = None
        self.start_slots = []
        self.end_slots = []
        self.state = advance(self.state, FormEvent.CLOSE)

    def _edit(self, *cleared_fields: str) -> None:
        self.state = advance(self.state, FormEvent.EDIT)
        for field in cleared_fields:
            self.errors.pop(field, None)

    # Slot selection -----------------------------------------------------

    def select_date(self, day: date) -> None:
        self._edit(self.start_field)
        self.selected_date = day
        self.start_slots = generate_start_slots(self.clinic_hours, day, self._clock())

        start, end = self._slot()
        legal_values = [slot.value for slot in self.start_slots]
        if start is not None and start.strftime("%H:%M") in legal_values:
            new_start = datetime.combine(day, start.time())
            if end is not None:
                new_end = datetime.combine(day, end.time())
            else:
                new_end = new_start + timedelta(minutes=SLOT_MINUTES)
        elif self.start_slots:
            new_start = slot_datetime(day, self.start_slots[0].value)
            new_end = new_start + timedelta(minutes=SLOT_MINUTES)
        else:
            new_start = new_end = None

        self._set_slot(new_start, new_end)
        self.end_slots = generate_end_slots(self.clinic_hours, new_start)

    def select_start_time(self, value: str) -> None:
        if self.selected_date is None:
            raise ValueError("A date must be selected before the start time")
        start = slot_datetime(self.selected_date, value)
        self._edit(self.start_field)
        self._set_slot(start, start + timedelta(minutes=SLOT_MINUTES))
        self.end_slots = generate_end_slots(self.clinic_hours, start)

    def select_end_time(self, value: str) -> None:
        start, _ = self._slot()
        if start is None:
            raise ValueError("A start time must be selected before the end time")
        self._edit(self.end_field)
        self._set_slot(start, slot_datetime(start.date(), value))

    # Submission ---------------------------------------------------------

    async def submit(self) -> bool:
        """Validate and send the draft. Returns ``True`` once the service accepted it."""

        if self.state is FormState.SUBMITTING:
            logger.debug("Ignoring submit while a request is already in flight")
            return False

        errors = self._validate(self._clock())
        self.errors = errors
        if errors:
            self.alert = Alert.error(FORM_ERRORS_MESSAGE)
            if self.state is FormState.FAILED:
                self.state = advance(self.state, FormEvent.EDIT)
            return False

        self.state = advance(self.state, FormEvent.SUBMIT)
        self.alert = None
        session = self._session
        try:
            await asyncio.to_thread(self._send)
        except ServiceRejectedError as exc:
            if session != self._session:
                logger.debug("Discarding rejection for a closed dialog: %s", exc.message)
                return False
            logger.info("Appointment service rejected the request: %s", exc.message)
            self._fail(exc.message, self._field_errors(exc.message))
            return False
        except ServiceClientError as exc:
            if session != self._session:
                logger.debug("Discarding failure for a closed dialog: %s", exc)
                return False
            logger.error("Appointment request failed: %s", exc)
            self._fail(NETWORK_ERROR_MESSAGE, {})
            return False

        if session != self._session:
            logger.debug("Discarding response for a closed dialog")
            return False

        self.state = advance(self.state, FormEvent.SUCCEED)
        self.close()
        if self._on_success is not None:
            await self._on_success(self.success_message)
        return True

    def _fail(self, message: str, field_errors: FieldErrors) -> None:
        if field_errors:
            self.errors = field_errors
        self.alert = Alert.error(message)
        self.state = advance(self.state, FormEvent.FAIL)


class BookingDialog(SlotDialog):
    """The "Book New Appointment" dialog."""

    success_message = "Appointment booked successfully!"

    def __init__(
        self,
        appointment_client: AppointmentServiceClient,
        *,
        patient_client: Optional[PatientServiceClient] = None,
        doctor_client: Optional[DoctorServiceClient] = None,
        clinic_hours: Optional[ClinicHours] = None,
        clock: Callable[[], datetime] = datetime.now,
        on_success: Optional[SuccessCallback] = None,
    ) -> None:
        self.draft = BookingDraft()
        super().__init__(
            appointment_client, clinic_hours=clinic_hours, clock=clock, on_success=on_success
        )
        self._patient_client = patient_client
        self._doctor_client = doctor_client
        self.reference = ReferenceData()
        self._reference_tasks: List[asyncio.Task] = []

    @property
    def filtered_doctors(self) -> List[Dict[str, Any]]:
        return self.reference.doctors_in(self.draft.department)

    def open(self) -> None:
        """Start a new booking session.

        Patients, doctors and departments are requested concurrently when the
        matching clients were supplied; the lists stay empty until each
        answers. Must be called from a running event loop in that case.
        """

        self._begin()
        self.reference = ReferenceData()
        self._reference_tasks = []
        session = self._session
        if self._patient_client is not None:
            self._start_load(session, "patients", lambda: self._patient_client.list_patients())
        if self._doctor_client is not None:
            self._start_load(session, "doctors", lambda: self._doctor_client.list_doctors())
            self._start_load(session, "departments", self._doctor_client.list_departments)

    def _start_load(self, session: int, kind: str, fetch: Callable[[], Any]) -> None:
        task = asyncio.get_running_loop().create_task(self._load(session, kind, fetch))
        self._reference_tasks.append(task)

    async def _load(self, session: int, kind: str, fetch: Callable[[], Any]) -> None:
        try:
            payload = await asyncio.to_thread(fetch)
        except ServiceClientError as exc:
            logger.warning("Failed to load %s: %s", kind, exc)
            payload = []
        if session != self._session:
            return
        if kind == "departments":
            records: List[Any] = [str(item) for item in payload] if isinstance(payload, list) else []
        else:
            records = records_from(payload)
        setattr(self.reference, kind, records)

    async def wait_for_reference_data(self) -> None:
        if self._reference_tasks:
            await asyncio.gather(*self._reference_tasks)

    def select_patient(self, patient_id: Any) -> None:
        self._edit("patientId")
        self.draft.patient_id = patient_id

    def select_department(self, department: str) -> None:
        self._edit("department")
        self.draft.department = department
        self.draft.doctor_id = None

    def select_doctor(self, doctor_id: Any) -> None:
        self._edit("doctorId")
        self.draft.doctor_id = doctor_id
        doctor = self.reference.find_doctor(doctor_id)
        if doctor is not None:
            self.draft.department = str(doctor.get("department") or "")
            if self.draft.department:
                self.errors.pop("department", None)

    def _slot(self) -> Tuple[Optional[datetime], Optional[datetime]]:
        return self.draft.slot_start, self.draft.slot_end

    def _set_slot(self, start: Optional[datetime], end: Optional[datetime]) -> None:
        self.draft.slot_start = start
        self.draft.slot_end = end

    def _reset_draft(self) -> None:
        self.draft = BookingDraft()

    def _validate(self, now: datetime) -> FieldErrors:
        return validate_booking(self.draft, self.clinic_hours, now)

    def _send(self) -> Dict[str, Any]:
        payload = self.draft.to_payload()
        logger.info(
            "Booking appointment for patient %s with doctor %s at %s",
            payload["patientId"],
            payload["doctorId"],
            payload["slotStart"],
        )
        return self._client.book_appointment(payload)


class RescheduleDialog(SlotDialog):
    """Dialog moving an existing appointment to a new slot."""

    start_field = "newSlotStart"
    end_field = "newSlotEnd"
    success_message = "Appointment rescheduled successfully!"

    def __init__(self, appointment_client: AppointmentServiceClient, **kwargs: Any) -> None:
        self.draft = RescheduleDraft()
        super().__init__(appointment_client, **kwargs)

    def open(self, appointment_id: Any) -> None:
        if appointment_id is None or appointment_id == "":
            raise ValueError("appointment_id must be provided")
        self._begin()
        self.draft.appointment_id = appointment_id

    def _slot(self) -> Tuple[Optional[datetime], Optional[datetime]]:
        return self.draft.new_slot_start, self.draft.new_slot_end

    def _set_slot(self, start: Optional[datetime], end: Optional[datetime]) -> None:
        self.draft.new_slot_start = start
        self.draft.new_slot_end = end

    def _reset_draft(self) -> None:
        self.draft = RescheduleDraft()

    def _validate(self, now: datetime) -> FieldErrors:
        return validate_reschedule(self.draft, self.clinic_hours, now)

    def _field_errors(self, message: str) -> FieldErrors:
        return remap_for_reschedule(map_error(message))

    def _send(self) -> Dict[str, Any]:
        payload = self.draft.to_payload()
        logger.info(
            "Rescheduling appointment %s to %s", self.draft.appointment_id, payload["newSlotStart"]
        )
        return self._client.reschedule_appointment(self.draft.appointment_id, payload)
