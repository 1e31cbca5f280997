"""Web front end for appointment booking.

This module exposes a small Flask application that lists appointments and
accepts booking, reschedule and status-change requests. Every form request
runs through the same dialog controllers as the command line, so invalid
submissions are answered with per-field errors before any call reaches the
Appointment service.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from datetime import date, datetime
import os
from typing import Any, Dict, List, Mapping, Tuple

from flask import Flask, Response, jsonify, render_template_string, request

from connector import (
    AppointmentServiceClient,
    DoctorServiceClient,
    PatientServiceClient,
    ServiceClientError,
)
from frontdesk import AppointmentBoard, BookingDialog, RescheduleDialog
from frontdesk.controller import SlotDialog
from frontdesk.reference import records_from
from scheduling import clinic_hours_from_env, generate_end_slots, generate_start_slots, slot_datetime

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
STATUS_BADGES = {
    "SCHEDULED": "primary",
    "COMPLETED": "success",
    "CANCELLED": "danger",
    "NO_SHOW": "warning",
}


def parse_iso_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError):
        return None


def parse_page(value: str | None) -> int:
    try:
        return max(1, int(value or 1))
    except ValueError:
        return 1


def _label_index(records: List[Mapping[str, Any]], key: str, extra: str) -> Dict[str, str]:
    labels: Dict[str, str] = {}
    for record in records:
        identifier = record.get(key)
        if identifier is None:
            continue
        name = str(record.get("name") or "").strip()
        detail = str(record.get(extra) or "").strip()
        labels[str(identifier)] = f"{name} ({detail})" if detail else name
    return labels


async def _fetch_records(fetch) -> List[Dict[str, Any]]:
    try:
        payload = await asyncio.to_thread(fetch)
    except ServiceClientError as exc:
        logger.warning("Reference data unavailable: %s", exc)
        return []
    return records_from(payload)


def _fill_slot(dialog: SlotDialog, form: Mapping[str, Any]) -> None:
    day = parse_iso_date(form.get("date"))
    if form.get("date") and day is None:
        raise ValueError("date must look like YYYY-MM-DD")
    if day is None:
        return
    dialog.select_date(day)
    if form.get("start"):
        dialog.select_start_time(str(form["start"]))
    if form.get("end"):
        dialog.select_end_time(str(form["end"]))


def _failure(dialog: SlotDialog) -> Tuple[Response, int]:
    return (
        jsonify(
            {
                "status": "failed",
                "errors": dict(dialog.errors),
                "alert": asdict(dialog.alert) if dialog.alert else None,
            }
        ),
        422,
    )


def _bad_request(message: str) -> Tuple[Response, int]:
    return jsonify({"status": "failed", "errors": {}, "alert": {"level": "error", "message": message}}), 400


app = Flask(__name__)
appointment_client = AppointmentServiceClient()
patient_client = PatientServiceClient()
doctor_client = DoctorServiceClient()

board_template = """
<!doctype html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\">
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\">
    <title>Appointment Booking</title>
    <link
      href=\"https://cdn.jsdelivr.net/npm/bootstrap@5.3.3/dist/css/bootstrap.min.css\"
      rel=\"stylesheet\"
      integrity=\"sha384-QWTKZyjpPEjISv5WaRU9OFeRpok6YctnYmDr5pNlyT2bRjXh0JMhjY6hW+ALEwIH\"
      crossorigin=\"anonymous\"
    >
  </head>
  <body class=\"bg-light\">
    <nav class=\"navbar navbar-dark bg-primary\">
      <div class=\"container-fluid\">
        <a class=\"navbar-brand\" href=\"/appointments\">Appointment Booking</a>
      </div>
    </nav>
    <main class=\"container my-4\">
      <div id=\"alert\"></div>
      <div class=\"card shadow-sm\">
        <div class=\"card-body\">
          {% if appointments %}
            <div class=\"table-responsive\">
              <table class=\"table table-sm table-striped align-middle\">
                <thead>
                  <tr>
                    <th scope=\"col\">ID</th>
                    <th scope=\"col\">Patient</th>
                    <th scope=\"col\">Doctor</th>
                    <th scope=\"col\">Department</th>
                    <th scope=\"col\">Start</th>
                    <th scope=\"col\">End</th>
                    <th scope=\"col\">Status</th>
                    <th scope=\"col\">Actions</th>
                  </tr>
                </thead>
                <tbody>
                  {% for appointment in appointments %}
                    <tr>
                      <td>{{ appointment.appointment_id }}</td>
                      <td>{{ patients.get(appointment.patient_id|string) or 'ID: %s'|format(appointment.patient_id) }}</td>
                      <td>{{ doctors.get(appointment.doctor_id|string) or 'ID: %s'|format(appointment.doctor_id) }}</td>
                      <td>{{ appointment.department }}</td>
                      <td>{{ appointment.slot_start.strftime('%Y-%m-%d %H:%M') }}</td>
                      <td>{{ appointment.slot_end.strftime('%H:%M') }}</td>
                      <td><span class=\"badge bg-{{ badges[appointment.status.value] }}\">{{ appointment.status.value }}</span></td>
                      <td>
                        {% if appointment.is_actionable %}
                          {% for action in ['cancel', 'complete', 'no-show'] %}
                            <button class=\"btn btn-sm btn-outline-secondary\" data-id=\"{{ appointment.appointment_id }}\" data-action=\"{{ action }}\">{{ action|capitalize }}</button>
                          {% endfor %}
                        {% endif %}
                      </td>
                    </tr>
                  {% endfor %}
                </tbody>
              </table>
            </div>
          {% else %}
            <p class=\"text-muted mb-0\">No appointments found</p>
          {% endif %}
          {% if total_pages > 1 %}
            <nav class=\"mt-3\">
              <ul class=\"pagination\">
                {% for number in range(1, total_pages + 1) %}
                  <li class=\"page-item {% if number == page %}active{% endif %}\"><a class=\"page-link\" href=\"?page={{ number }}\">{{ number }}</a></li>
                {% endfor %}
              </ul>
            </nav>
            <small class=\"text-muted\">Page {{ page }} of {{ total_pages }}</small>
          {% endif %}
        </div>
      </div>
    </main>
    <script>
      document.querySelectorAll('button[data-action]').forEach(function (button) {
        button.addEventListener('click', async function () {
          const response = await fetch('/api/appointments/' + button.dataset.id + '/' + button.dataset.action, {method: 'PUT'});
          const body = await response.json();
          document.getElementById('alert').textContent = body.alert ? body.alert.message : '';
          if (response.ok) { window.location.reload(); }
        });
      });
    </script>
  </body>
</html>
"""


@app.route("/appointments", methods=["GET"])
async def appointments_page() -> str:
    board = AppointmentBoard(appointment_client)
    appointments, patients, doctors = await asyncio.gather(
        board.go_to_page(parse_page(request.args.get("page"))),
        _fetch_records(patient_client.list_patients),
        _fetch_records(doctor_client.list_doctors),
    )
    return render_template_string(
        board_template,
        appointments=appointments,
        patients=_label_index(patients, "patientId", "email"),
        doctors=_label_index(doctors, "doctorId", "specialization"),
        badges=STATUS_BADGES,
        page=board.page,
        total_pages=board.total_pages,
    )


@app.route("/api/appointments", methods=["GET"])
async def list_appointments() -> Response:
    board = AppointmentBoard(appointment_client)
    appointments = await board.go_to_page(parse_page(request.args.get("page")))
    return jsonify(
        {
            "page": board.page,
            "totalPages": board.total_pages,
            "appointments": [item.to_payload() for item in appointments],
        }
    )


@app.route("/api/slots", methods=["GET"])
def slots() -> Tuple[Response, int] | Response:
    """Return the selectable start times for a date and, given a start, the end times."""
    day = parse_iso_date(request.args.get("date"))
    if day is None:
        return _bad_request("date must look like YYYY-MM-DD")

    clinic_hours = clinic_hours_from_env()
    start = request.args.get("start")
    try:
        end_slots = generate_end_slots(clinic_hours, slot_datetime(day, start)) if start else []
    except ValueError as exc:
        return _bad_request(str(exc))
    return jsonify(
        {
            "date": day.strftime(DATE_FORMAT),
            "start": [asdict(slot) for slot in generate_start_slots(clinic_hours, day, datetime.now())],
            "end": [asdict(slot) for slot in end_slots],
        }
    )


@app.route("/api/appointments", methods=["POST"])
async def book_appointment() -> Tuple[Response, int]:
    form = request.get_json(silent=True) or {}
    if not isinstance(form, dict):
        return _bad_request("Request body must be a JSON object")
    board = AppointmentBoard(appointment_client)
    dialog = BookingDialog(
        appointment_client,
        clinic_hours=clinic_hours_from_env(),
        on_success=board.handle_booking_success,
    )
    dialog.open()
    dialog.select_patient(form.get("patientId"))
    dialog.select_department(str(form.get("department") or ""))
    dialog.select_doctor(form.get("doctorId"))
    try:
        _fill_slot(dialog, form)
    except ValueError as exc:
        return _bad_request(str(exc))

    if not await dialog.submit():
        return _failure(dialog)
    return (
        jsonify(
            {
                "status": "booked",
                "alert": asdict(board.alert) if board.alert else None,
                "appointments": [item.to_payload() for item in board.appointments],
            }
        ),
        201,
    )


@app.route("/api/appointments/<int:appointment_id>/reschedule", methods=["PUT"])
async def reschedule_appointment(appointment_id: int) -> Tuple[Response, int]:
    form = request.get_json(silent=True) or {}
    if not isinstance(form, dict):
        return _bad_request("Request body must be a JSON object")
    board = AppointmentBoard(appointment_client)
    dialog = RescheduleDialog(
        appointment_client,
        clinic_hours=clinic_hours_from_env(),
        on_success=board.handle_booking_success,
    )
    dialog.open(appointment_id)
    try:
        _fill_slot(dialog, form)
    except ValueError as exc:
        return _bad_request(str(exc))

    if not await dialog.submit():
        return _failure(dialog)
    return jsonify({"status": "rescheduled", "alert": asdict(board.alert) if board.alert else None}), 200


@app.route("/api/appointments/<int:appointment_id>/<action>", methods=["PUT"])
async def change_status(appointment_id: int, action: str) -> Tuple[Response, int]:
    board = AppointmentBoard(appointment_client)
    handlers = {
        "cancel": board.cancel,
        "complete": board.complete,
        "no-show": board.mark_no_show,
    }
    handler = handlers.get(action)
    if handler is None:
        return _bad_request(f"Unsupported action: {action}")
    succeeded = await handler(appointment_id)
    body = {"status": "ok" if succeeded else "failed", "alert": asdict(board.alert) if board.alert else None}
    return jsonify(body), 200 if succeeded else 400


if __name__ == "__main__":
    app.run(
        host="0.0.0.0",
        port=int(os.environ.get("PORT", "5000")),
        debug=False,
    )
