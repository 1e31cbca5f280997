import io
import json
import unittest
from contextlib import redirect_stdout
from unittest.mock import Mock, patch

from connector import AppointmentServiceClient, ServiceRejectedError
from frontdesk import main as frontdesk_main


class MainTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = Mock(spec=AppointmentServiceClient)
        self.client.book_appointment.return_value = {"appointmentId": 30}
        self.client.cancel_appointment.return_value = {}
        self.client.list_appointments.return_value = {"content": [], "totalPages": 1}
        patcher = patch("frontdesk.main.AppointmentServiceClient", return_value=self.client)
        patcher.start()
        self.addCleanup(patcher.stop)

    def _run(self, *argv: str):
        output = io.StringIO()
        with redirect_stdout(output):
            code = frontdesk_main.main(list(argv))
        return code, json.loads(output.getvalue())

    def test_slots_command(self) -> None:
        code, payload = self._run("slots", "--date", "2099-03-02", "--start", "16:30")

        self.assertEqual(code, 0)
        self.assertEqual(payload["start"][0]["value"], "09:00")
        self.assertEqual([slot["value"] for slot in payload["end"]], ["17:00", "17:30"])

    def test_book_command(self) -> None:
        code, payload = self._run(
            "book",
            "--patient", "1",
            "--doctor", "2",
            "--department", "Cardiology",
            "--date", "2099-03-02",
            "--start", "10:00",
            "--end", "11:00",
        )

        self.assertEqual(code, 0)
        self.assertEqual(payload["status"], "booked")
        sent = self.client.book_appointment.call_args.args[0]
        self.assertEqual(sent["slotStart"], "2099-03-02T10:00:00")
        self.assertEqual(sent["slotEnd"], "2099-03-02T11:00:00")

    def test_book_rejection_exits_non_zero(self) -> None:
        self.client.book_appointment.side_effect = ServiceRejectedError(
            "Slot overlaps with existing appointment", status_code=400
        )

        code, payload = self._run(
            "book",
            "--patient", "1",
            "--doctor", "2",
            "--department", "Cardiology",
            "--date", "2099-03-02",
            "--start", "10:00",
        )

        self.assertEqual(code, 1)
        self.assertEqual(payload["status"], "failed")
        self.assertIn("slotStart", payload["errors"])

    def test_book_with_invalid_time(self) -> None:
        code, payload = self._run(
            "book",
            "--patient", "1",
            "--doctor", "2",
            "--department", "Cardiology",
            "--date", "2099-03-02",
            "--start", "25:99",
        )

        self.assertEqual(code, 1)
        self.assertEqual(payload["alert"]["level"], "error")
        self.client.book_appointment.assert_not_called()

    def test_cancel_command(self) -> None:
        code, payload = self._run("cancel", "12")

        self.assertEqual(code, 0)
        self.assertEqual(payload["alert"]["message"], "Appointment cancelled successfully!")
        self.client.cancel_appointment.assert_called_once_with(12)

    def test_list_command(self) -> None:
        code, payload = self._run("list", "--page", "2")

        self.assertEqual(code, 0)
        self.assertEqual(payload["page"], 2)
        self.client.list_appointments.assert_called_once_with(2, 20)


if __name__ == "__main__":
    unittest.main()
