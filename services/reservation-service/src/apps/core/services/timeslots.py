# services/reservation-service/src/apps/core/services/timeslots.py
"""
Time slot utilities.

Pure date arithmetic on half-open intervals ``[start, end)``. Calendar math
(weeks, months, weekly cadence) runs in the configured local timezone so a
series keeps its wall-clock time.
"""

from datetime import date, datetime, time, timedelta
from typing import Tuple, Union

from dateutil.relativedelta import relativedelta
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from . import InvalidDateError, InvalidIntervalError


class Granularity:
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'

    choices = (WEEKLY, MONTHLY)


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap test; touching intervals do not overlap."""
    return a_start < b_end and b_start < a_end


def to_datetime(value: Union[str, datetime]) -> datetime:
    """Aware datetime from a datetime or ISO string; naive input is local time."""
    if isinstance(value, str):
        parsed = parse_datetime(value.strip())
        if parsed is None:
            raise InvalidDateError(f"Invalid datetime: {value!r}")
        value = parsed
    if not isinstance(value, datetime):
        raise InvalidDateError(f"Invalid datetime: {value!r}")
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


def to_date(value: Union[str, date, datetime]) -> date:
    if isinstance(value, datetime):
        return timezone.localtime(to_datetime(value)).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        parsed = parse_date(value.strip())
        if parsed is not None:
            return parsed
    raise InvalidDateError(f"Invalid date: {value!r}")


def validate_interval(start: datetime, end: datetime, min_minutes: int = 60) -> Tuple[datetime, datetime]:
    """Normalize and check a slot: end after start and at least ``min_minutes`` long."""
    start, end = to_datetime(start), to_datetime(end)
    if end <= start:
        raise InvalidIntervalError("La hora de fin debe ser posterior a la de inicio.")
    if end - start < timedelta(minutes=min_minutes):
        raise InvalidIntervalError(f"La reserva debe durar al menos {min_minutes} minutos.")
    return start, end


def local_midnight(day: date) -> datetime:
    return timezone.make_aware(datetime.combine(day, time.min))


def week_of(value: Union[date, datetime]) -> date:
    """Monday (ISO week start) of the week containing ``value``."""
    day = to_date(value)
    return day - timedelta(days=day.weekday())


def period_bounds(moment: datetime, granularity: str) -> Tuple[datetime, datetime]:
    """Billing period ``[start, end)`` containing ``moment``."""
    day = to_date(moment)
    if granularity == Granularity.WEEKLY:
        first = week_of(day)
        last = first + timedelta(days=7)
    elif granularity == Granularity.MONTHLY:
        first = day.replace(day=1)
        last = first + relativedelta(months=1)
    else:
        raise InvalidDateError(f"Unknown billing granularity: {granularity!r}")
    return local_midnight(first), local_midnight(last)


def add_months(day: date, months: int) -> date:
    """Calendar-month arithmetic, clamped to the month's last day."""
    return day + relativedelta(months=months)


def shift_weeks(moment: datetime, weeks: int) -> datetime:
    """Move ``moment`` by whole weeks keeping its local wall-clock time."""
    local = timezone.localtime(moment).replace(tzinfo=None)
    return timezone.make_aware(local + timedelta(weeks=weeks))


def local_date(moment: datetime) -> date:
    return timezone.localtime(moment).date()


def format_slot(moment: datetime) -> str:
    """``D/M/YYYY - HH:mm`` in local time."""
    local = timezone.localtime(moment)
    return f"{local.day}/{local.month}/{local.year} - {local:%H:%M}"
