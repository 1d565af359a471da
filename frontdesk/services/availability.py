"""
Doctor slot availability.

Slots are the ``SLOT_MINUTES`` steps of each of the doctor's shifts on
the weekday of the queried date, start inclusive and end exclusive.
Shift times are UTC wall-clock; a shift ending before it starts runs
into the next day.  A step is free when no active appointment of the
doctor lies within half a slot of it, the same rule booking enforces.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from typing import Iterable, Optional

from django.conf import settings
from django.utils import dateparse

from frontdesk.exceptions import InvalidInput, NoShiftConfigured
from frontdesk.models import Appointment, Shift

logger = logging.getLogger(__name__)

WEEKDAYS = ('MONDAY', 'TUESDAY', 'WEDNESDAY', 'THURSDAY', 'FRIDAY', 'SATURDAY', 'SUNDAY')


def slot_step() -> timedelta:
    return timedelta(minutes=settings.SLOT_MINUTES)


def conflict_window() -> timedelta:
    return slot_step() / 2


def parse_query_date(value) -> date:
    """Accept ``YYYY-MM-DD``, an ISO datetime (its UTC date) or a date object."""
    if isinstance(value, datetime):
        return value.astimezone(dt_timezone.utc).date() if value.tzinfo else value.date()
    if isinstance(value, date):
        return value
    text = value.strip() if isinstance(value, str) else ''
    parsed = None
    try:
        parsed = dateparse.parse_date(text) or dateparse.parse_datetime(text)
    except ValueError:
        parsed = None
    if parsed is None:
        raise InvalidInput('Invalid date format. Please use YYYY-MM-DD format')
    return parse_query_date(parsed) if isinstance(parsed, datetime) else parsed


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def _clock(value: str) -> time:
    try:
        hours, minutes = value.split(':')
        return time(int(hours), int(minutes))
    except (AttributeError, ValueError):
        raise InvalidInput(f'Invalid shift time {value!r}, expected HH:MM') from None


def shift_window(shift: Shift, day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, _clock(shift.start_time), tzinfo=dt_timezone.utc)
    end = datetime.combine(day, _clock(shift.end_time), tzinfo=dt_timezone.utc)
    if end < start:
        end += timedelta(days=1)
    return start, end


def active_appointments(doctor_id):
    return Appointment.objects.filter(doctor_id=doctor_id).exclude(status=Appointment.STATUS_CANCELLED)


def find_conflicting_appointment(doctor_id, scheduled_at: datetime, exclude_id=None) -> Optional[Appointment]:
    """First active appointment of the doctor within half a slot of ``scheduled_at``.

    ``exclude_id`` leaves one appointment out, so a visit being moved does
    not collide with itself.
    """
    window = conflict_window()
    qs = active_appointments(doctor_id)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return (
        qs
        .filter(scheduled_at__gte=scheduled_at - window, scheduled_at__lte=scheduled_at + window)
        .order_by('scheduled_at')
        .first()
    )


def _is_taken(moment: datetime, booked: Iterable[datetime], window: timedelta) -> bool:
    return any(abs(moment - b) <= window for b in booked)


def available_slot_times(doctor_id, day) -> list[datetime]:
    """Free slot start times (aware UTC datetimes) for the doctor on ``day``.

    Raises :class:`NoShiftConfigured` when the doctor has no shift on that
    weekday.  Shifts are walked in start-time order; a time already
    produced by an earlier overlapping shift is not repeated.
    """
    day = parse_query_date(day)
    weekday = weekday_name(day)
    shifts = list(Shift.objects.filter(staff_id=doctor_id, day=weekday).order_by('start_time', 'id'))
    if not shifts:
        raise NoShiftConfigured()

    windows = [shift_window(s, day) for s in shifts]
    window = conflict_window()
    range_start = datetime.combine(day, time.min, tzinfo=dt_timezone.utc)
    range_end = max([range_start + timedelta(days=1)] + [end for _, end in windows])
    booked = list(
        active_appointments(doctor_id)
        .filter(scheduled_at__gte=range_start - window, scheduled_at__lte=range_end + window)
        .values_list('scheduled_at', flat=True)
    )

    step = slot_step()
    seen: set[datetime] = set()
    slots: list[datetime] = []
    for start, end in windows:
        current = start
        while current < end:
            if current not in seen and not _is_taken(current, booked, window):
                slots.append(current)
            seen.add(current)
            current += step
    logger.debug('Doctor %s on %s: %d free of %d slot(s)', doctor_id, day, len(slots), len(seen))
    return slots


def get_available_slots(doctor_id, day) -> list[str]:
    """Free slots as ``"HH:MM"`` (UTC, 24-hour) strings."""
    return [moment.strftime('%H:%M') for moment in available_slot_times(doctor_id, day)]
