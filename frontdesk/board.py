"""Appointment list with paging and status actions."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from connector import AppointmentServiceClient, ServiceClientError, ServiceRejectedError
from scheduling import Appointment, AppointmentPage

from .reference import records_from
from .states import Alert

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


def parse_appointment_page(payload: Any, page: int = 1) -> AppointmentPage:
    """Normalize the page shapes returned by the Appointment service.

    Spring ``Page`` bodies carry ``content``/``totalPages``; the paginated
    services use ``data`` plus a ``pagination`` block; a bare list is a
    single page.
    """

    total_pages = 1
    if isinstance(payload, Mapping):
        if isinstance(payload.get("content"), list):
            total_pages = payload.get("totalPages") or 1
        else:
            pagination = payload.get("pagination") or {}
            total_pages = pagination.get("pages") or pagination.get("totalPages") or 1

    appointments: List[Appointment] = []
    for record in records_from(payload, ("content", "data")):
        try:
            appointments.append(Appointment.from_payload(record))
        except ValueError as exc:
            logger.warning(
                "Skipping appointment %s: %s", record.get("appointmentId", "<unknown>"), exc
            )
    return AppointmentPage(appointments=appointments, page=page, total_pages=int(total_pages))


class AppointmentBoard:
    """Holds the currently displayed page of appointments and the page banner."""

    def __init__(self, appointment_client: AppointmentServiceClient, *, limit: int = DEFAULT_PAGE_SIZE) -> None:
        self._client = appointment_client
        self.limit = limit
        self.page = 1
        self.total_pages = 1
        self.appointments: List[Appointment] = []
        self.alert: Optional[Alert] = None

    async def refresh(self) -> List[Appointment]:
        try:
            payload = await asyncio.to_thread(self._client.list_appointments, self.page, self.limit)
        except ServiceClientError as exc:
            logger.error("Error fetching appointments: %s", exc)
            self.appointments = []
            return self.appointments

        result = parse_appointment_page(payload, self.page)
        self.appointments = result.appointments
        self.total_pages = result.total_pages
        return self.appointments

    async def go_to_page(self, page: int) -> List[Appointment]:
        if page < 1:
            raise ValueError("page must be 1 or greater")
        self.page = page
        return await self.refresh()

    def find(self, appointment_id: Any) -> Optional[Appointment]:
        for appointment in self.appointments:
            if str(appointment.appointment_id) == str(appointment_id):
                return appointment
        return None

    async def handle_booking_success(self, message: str) -> None:
        """Success callback for the booking and reschedule dialogs."""

        self.alert = Alert.success(message)
        await self.refresh()

    async def cancel(self, appointment_id: Any) -> bool:
        return await self._run_action(
            appointment_id, self._client.cancel_appointment, "Appointment cancelled successfully!"
        )

    async def complete(self, appointment_id: Any) -> bool:
        return await self._run_action(
            appointment_id, self._client.complete_appointment, "Appointment completed successfully!"
        )

    async def mark_no_show(self, appointment_id: Any) -> bool:
        return await self._run_action(
            appointment_id, self._client.mark_no_show, "Appointment marked as no-show!"
        )

    async def _run_action(
        self, appointment_id: Any, action: Callable[[Any], Dict[str, Any]], success_message: str
    ) -> bool:
        known = self.find(appointment_id)
        if known is not None and not known.is_actionable:
            self.alert = Alert.error(
                f"Appointment {appointment_id} is {known.status.value} and can no longer be changed"
            )
            return False

        try:
            await asyncio.to_thread(action, appointment_id)
        except ServiceRejectedError as exc:
            self.alert = Alert.error(exc.message)
            return False
        except ServiceClientError as exc:
            logger.error("Appointment action failed for %s: %s", appointment_id, exc)
            self.alert = Alert.error(str(exc))
            return False

        self.alert = Alert.success(success_message)
        await self.refresh()
        return True
