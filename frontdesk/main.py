"""Command-line entry point for the hospital appointment front desk."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from connector import AppointmentServiceClient
from scheduling import clinic_hours_from_env, generate_end_slots, generate_start_slots, slot_datetime

from .board import AppointmentBoard
from .controller import BookingDialog, RescheduleDialog, SlotDialog

ACTIONS = ("cancel", "complete", "no-show")


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Dates must look like YYYY-MM-DD (got {value!r})") from exc


def _emit(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2))


def _dialog_failure(dialog: SlotDialog) -> Dict[str, Any]:
    return {
        "status": "failed",
        "errors": dict(dialog.errors),
        "alert": asdict(dialog.alert) if dialog.alert else None,
    }


def _fill_slot(dialog: SlotDialog, args: argparse.Namespace) -> bool:
    try:
        dialog.select_date(args.date)
        dialog.select_start_time(args.start)
        if args.end:
            dialog.select_end_time(args.end)
    except ValueError as exc:
        _emit({"status": "failed", "errors": {}, "alert": {"level": "error", "message": str(exc)}})
        return False
    return True


def run_slots(args: argparse.Namespace) -> int:
    clinic_hours = clinic_hours_from_env()
    start_slots = generate_start_slots(clinic_hours, args.date, datetime.now())
    end_slots: List[Any] = []
    if args.start:
        try:
            start = slot_datetime(args.date, args.start)
        except ValueError as exc:
            _emit({"status": "failed", "errors": {}, "alert": {"level": "error", "message": str(exc)}})
            return 1
        end_slots = generate_end_slots(clinic_hours, start)
    _emit(
        {
            "date": args.date.isoformat(),
            "start": [asdict(slot) for slot in start_slots],
            "end": [asdict(slot) for slot in end_slots],
        }
    )
    return 0


async def run_list(client: AppointmentServiceClient, args: argparse.Namespace) -> int:
    board = AppointmentBoard(client)
    appointments = await board.go_to_page(args.page)
    _emit(
        {
            "page": board.page,
            "total_pages": board.total_pages,
            "appointments": [item.to_payload() for item in appointments],
        }
    )
    return 0


async def run_book(client: AppointmentServiceClient, args: argparse.Namespace) -> int:
    dialog = BookingDialog(client, clinic_hours=clinic_hours_from_env())
    dialog.open()
    dialog.select_patient(args.patient)
    dialog.select_department(args.department)
    dialog.select_doctor(args.doctor)
    if not _fill_slot(dialog, args):
        return 1
    if await dialog.submit():
        _emit({"status": "booked", "message": dialog.success_message})
        return 0
    _emit(_dialog_failure(dialog))
    return 1


async def run_reschedule(client: AppointmentServiceClient, args: argparse.Namespace) -> int:
    dialog = RescheduleDialog(client, clinic_hours=clinic_hours_from_env())
    dialog.open(args.appointment_id)
    if not _fill_slot(dialog, args):
        return 1
    if await dialog.submit():
        _emit({"status": "rescheduled", "message": dialog.success_message})
        return 0
    _emit(_dialog_failure(dialog))
    return 1


async def run_action(client: AppointmentServiceClient, args: argparse.Namespace) -> int:
    board = AppointmentBoard(client)
    handlers = {
        "cancel": board.cancel,
        "complete": board.complete,
        "no-show": board.mark_no_show,
    }
    succeeded = await handlers[args.command](args.appointment_id)
    _emit({"status": "ok" if succeeded else "failed", "alert": asdict(board.alert) if board.alert else None})
    return 0 if succeeded else 1


def run_serve(args: argparse.Namespace) -> int:
    from ui.booking_app import app

    app.run(host=args.host, port=args.port, debug=False)
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Hospital appointment front desk")
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "WARNING"),
        help="Logging level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    slots = subparsers.add_parser("slots", help="Show bookable start and end times for a date")
    slots.add_argument("--date", type=_parse_date, required=True)
    slots.add_argument("--start", help="Chosen start time (HH:MM) to list end times for")

    listing = subparsers.add_parser("list", help="List appointments")
    listing.add_argument("--page", type=int, default=1)

    book = subparsers.add_parser("book", help="Book a new appointment")
    book.add_argument("--patient", required=True)
    book.add_argument("--doctor", required=True)
    book.add_argument("--department", required=True)
    book.add_argument("--date", type=_parse_date, required=True)
    book.add_argument("--start", required=True, help="Start time (HH:MM)")
    book.add_argument("--end", help="End time (HH:MM); defaults to 30 minutes after start")

    reschedule = subparsers.add_parser("reschedule", help="Move an appointment to a new slot")
    reschedule.add_argument("appointment_id", type=int)
    reschedule.add_argument("--date", type=_parse_date, required=True)
    reschedule.add_argument("--start", required=True, help="Start time (HH:MM)")
    reschedule.add_argument("--end", help="End time (HH:MM); defaults to 30 minutes after start")

    for action in ACTIONS:
        action_parser = subparsers.add_parser(action, help=f"Mark an appointment as {action}")
        action_parser.add_argument("appointment_id", type=int)

    serve = subparsers.add_parser("serve", help="Run the web front end")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=int(os.environ.get("PORT", "5000")))
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "slots":
        return run_slots(args)
    if args.command == "serve":
        return run_serve(args)

    client = AppointmentServiceClient()
    if args.command == "list":
        return asyncio.run(run_list(client, args))
    if args.command == "book":
        return asyncio.run(run_book(client, args))
    if args.command == "reschedule":
        return asyncio.run(run_reschedule(client, args))
    return asyncio.run(run_action(client, args))


if __name__ == "__main__":
    sys.exit(main())
