import unittest
from datetime import datetime
from unittest.mock import Mock

from connector import AppointmentServiceClient, ServiceRejectedError, ServiceUnavailableError
from frontdesk import AppointmentBoard, parse_appointment_page
from scheduling import AppointmentStatus


def _record(appointment_id: int, status: str = "SCHEDULED") -> dict:
    return {
        "appointmentId": appointment_id,
        "patientId": 1,
        "doctorId": 2,
        "department": "Cardiology",
        "slotStart": "2025-01-15T14:00:00",
        "slotEnd": "2025-01-15T14:30:00",
        "status": status,
        "rescheduleCount": 1,
        "createdAt": "2025-01-10T08:15:00",
    }


class ParsePageTests(unittest.TestCase):
    def test_spring_page_shape(self) -> None:
        page = parse_appointment_page({"content": [_record(1), _record(2)], "totalPages": 3}, 2)

        self.assertEqual([a.appointment_id for a in page.appointments], [1, 2])
        self.assertEqual(page.page, 2)
        self.assertEqual(page.total_pages, 3)
        first = page.appointments[0]
        self.assertEqual(first.slot_start, datetime(2025, 1, 15, 14, 0))
        self.assertEqual(first.reschedule_count, 1)
        self.assertEqual(first.created_at, datetime(2025, 1, 10, 8, 15))

    def test_data_and_pagination_shape(self) -> None:
        page = parse_appointment_page({"data": [_record(5)], "pagination": {"pages": 4}})

        self.assertEqual(page.total_pages, 4)
        self.assertEqual(len(page.appointments), 1)

    def test_bare_list_is_a_single_page(self) -> None:
        page = parse_appointment_page([_record(1, "COMPLETED")])

        self.assertEqual(page.total_pages, 1)
        self.assertIs(page.appointments[0].status, AppointmentStatus.COMPLETED)

    def test_malformed_records_are_skipped(self) -> None:
        broken = _record(2)
        del broken["slotStart"]
        unknown_status = _record(3, "ARCHIVED")

        with self.assertLogs("frontdesk.board", level="WARNING"):
            page = parse_appointment_page({"content": [_record(1), broken, unknown_status]})

        self.assertEqual([a.appointment_id for a in page.appointments], [1])

    def test_created_at_with_short_fraction_is_kept(self) -> None:
        record = _record(7)
        record["createdAt"] = "2025-01-10T08:15:42.12345"

        page = parse_appointment_page([record])

        self.assertEqual(page.appointments[0].created_at, datetime(2025, 1, 10, 8, 15, 42, 123450))

    def test_unexpected_payload_yields_empty_page(self) -> None:
        page = parse_appointment_page("not a page")
        self.assertEqual(page.appointments, [])


class AppointmentBoardTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.client = Mock(spec=AppointmentServiceClient)
        self.client.list_appointments.return_value = {
            "content": [_record(1), _record(2, "CANCELLED")],
            "totalPages": 2,
        }
        self.client.cancel_appointment.return_value = {}
        self.client.complete_appointment.return_value = {}
        self.client.mark_no_show.return_value = {}
        self.board = AppointmentBoard(self.client, limit=20)

    async def test_refresh_loads_current_page(self) -> None:
        appointments = await self.board.refresh()

        self.assertEqual(len(appointments), 2)
        self.assertEqual(self.board.total_pages, 2)
        self.client.list_appointments.assert_called_once_with(1, 20)

    async def test_refresh_failure_empties_the_list(self) -> None:
        await self.board.refresh()
        self.client.list_appointments.side_effect = ServiceUnavailableError("down")

        with self.assertLogs("frontdesk.board", level="ERROR"):
            appointments = await self.board.refresh()

        self.assertEqual(appointments, [])

    async def test_go_to_page(self) -> None:
        await self.board.go_to_page(2)

        self.assertEqual(self.board.page, 2)
        self.client.list_appointments.assert_called_once_with(2, 20)
        with self.assertRaises(ValueError):
            await self.board.go_to_page(0)

    async def test_cancel_sets_banner_and_refreshes(self) -> None:
        await self.board.refresh()

        self.assertTrue(await self.board.cancel(1))

        self.client.cancel_appointment.assert_called_once_with(1)
        self.assertEqual(self.board.alert.message, "Appointment cancelled successfully!")
        self.assertEqual(self.client.list_appointments.call_count, 2)

    async def test_complete_and_no_show(self) -> None:
        await self.board.refresh()

        self.assertTrue(await self.board.complete(1))
        self.assertEqual(self.board.alert.message, "Appointment completed successfully!")
        self.assertTrue(await self.board.mark_no_show(1))
        self.assertEqual(self.board.alert.message, "Appointment marked as no-show!")

    async def test_finished_appointments_cannot_be_changed(self) -> None:
        await self.board.refresh()

        self.assertFalse(await self.board.cancel(2))

        self.client.cancel_appointment.assert_not_called()
        self.assertEqual(self.board.alert.level, "error")

    async def test_rejected_action_shows_service_message(self) -> None:
        self.client.complete_appointment.side_effect = ServiceRejectedError(
            "Only scheduled appointments can be completed", status_code=400
        )

        self.assertFalse(await self.board.complete(9))

        self.assertEqual(self.board.alert.message, "Only scheduled appointments can be completed")
        self.client.list_appointments.assert_not_called()

    async def test_booking_success_refreshes_with_banner(self) -> None:
        await self.board.handle_booking_success("Appointment booked successfully!")

        self.assertEqual(self.board.alert.message, "Appointment booked successfully!")
        self.client.list_appointments.assert_called_once()


if __name__ == "__main__":
    unittest.main()
