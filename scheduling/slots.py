"""Time-slot generation for the booking and reschedule forms.

Start slots cover the clinic day in 30-minute steps. When the selected day is
today, slots closer than the two-hour lead time are left out. End slots for a
chosen start begin half an hour later and stop before the closing hour.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import List, Optional

from .models import ClinicHours, TimeSlot

SLOT_MINUTES = 30
LEAD_TIME = timedelta(hours=2)


def format_time_label(hours: int, minutes: int) -> str:
    """Render a 24h clock reading as e.g. ``"2:30 PM"``."""

    period = "PM" if hours >= 12 else "AM"
    if hours > 12:
        display_hours = hours - 12
    elif hours == 0:
        display_hours = 12
    else:
        display_hours = hours
    return f"{display_hours}:{minutes:02d} {period}"


def _slot_for_minute(minute_of_day: int) -> TimeSlot:
    hours, minutes = divmod(minute_of_day, 60)
    return TimeSlot(value=f"{hours:02d}:{minutes:02d}", label=format_time_label(hours, minutes))


def _round_up_to_slot(minute_of_day: int) -> int:
    return -(-minute_of_day // SLOT_MINUTES) * SLOT_MINUTES


def earliest_start_minute(clinic_hours: ClinicHours, selected_date: date, now: datetime) -> Optional[int]:
    """Return the first bookable minute-of-day on ``selected_date``.

    ``None`` means nothing on that day can still be booked.
    """

    if selected_date < now.date():
        return None
    if selected_date > now.date():
        return clinic_hours.opening_minute

    threshold = now + LEAD_TIME
    if threshold.date() > selected_date:
        return None
    minute = threshold.hour * 60 + threshold.minute
    if threshold.second or threshold.microsecond:
        minute += 1
    minute = _round_up_to_slot(minute)
    if minute >= clinic_hours.closing_minute:
        return None
    return max(minute, clinic_hours.opening_minute)


def generate_start_slots(clinic_hours: ClinicHours, selected_date: date, now: datetime) -> List[TimeSlot]:
    first = earliest_start_minute(clinic_hours, selected_date, now)
    if first is None:
        return []
    return [
        _slot_for_minute(minute)
        for minute in range(first, clinic_hours.closing_minute, SLOT_MINUTES)
    ]


def generate_end_slots(clinic_hours: ClinicHours, start: Optional[datetime]) -> List[TimeSlot]:
    if start is None:
        return []

    slots: List[TimeSlot] = []
    first = start.hour * 60 + start.minute + SLOT_MINUTES
    for minute in range(first, clinic_hours.closing_minute + 1, SLOT_MINUTES):
        if minute // 60 >= clinic_hours.end:
            break
        slots.append(_slot_for_minute(minute))
    return slots


def parse_slot_value(value: str) -> time:
    """Parse an ``"HH:MM"`` slot value."""

    try:
        parsed = datetime.strptime(value, "%H:%M")
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Slot value must look like HH:MM (got {value!r})") from exc
    return parsed.time()


def slot_datetime(day: date, value: str) -> datetime:
    return datetime.combine(day, parse_slot_value(value))
