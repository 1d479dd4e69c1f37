"""Trip close-out figures: clock strings, duration, distance and receipts.

Trip start and end times are stored as 12-hour clock strings such as
"9:05 AM". Parsing is lenient: anything that does not look like a clock
time makes the derived duration fall back to "0h 00m" instead of raising.
"""

from __future__ import annotations

import re
from datetime import datetime, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from haul_ops.calculators.geo import path_distance_km
from haul_ops.calculators.payroll import CENTS, format_peso, gps_total
from haul_ops.calculators.types import TripCloseout

MINUTES_PER_DAY = 24 * 60
ZERO_DURATION = "0h 00m"
ZERO_COST = "₱0"

_CLOCK_PATTERN = re.compile(r"(\d{1,2}):(\d{2})\s*(AM|PM)", re.IGNORECASE)
_NON_DIGITS = re.compile(r"[^0-9]")


class InvalidClockTimeError(ValueError):
    """Raised when a clock string cannot be parsed where a value is required."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid time format: {value!r}")


def format_clock_time(moment: datetime | time) -> str:
    """Format as "H:MM AM/PM" with no leading zero on the hour."""
    hour = moment.hour % 12 or 12
    period = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {period}"


def parse_clock_minutes(value: str | None) -> int | None:
    """Minutes since midnight for a 12-hour clock string, or None."""
    if not value:
        return None
    match = _CLOCK_PATTERN.search(value)
    if not match:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2))
    period = match.group(3).upper()
    if hours < 1 or hours > 12 or minutes > 59:
        return None
    if period == "PM" and hours != 12:
        hours += 12
    if period == "AM" and hours == 12:
        hours = 0
    return hours * 60 + minutes


def minutes_to_clock(minutes: int) -> str:
    minutes %= MINUTES_PER_DAY
    return format_clock_time(time(minutes // 60, minutes % 60))


def next_minute(value: str) -> str:
    """The clock string one minute later, wrapping 12-hour style."""
    parsed = parse_clock_minutes(value)
    if parsed is None:
        raise InvalidClockTimeError(value)
    return minutes_to_clock(parsed + 1)


def resolve_end_time(start_time: str, now: str) -> str:
    """End time for a trip closed at ``now``.

    Clock strings have minute resolution, so a trip closed in the same
    minute it started is pushed one minute forward.
    """
    if now == start_time:
        return next_minute(start_time)
    return now


def duration_minutes(start_time: str | None, end_time: str | None) -> int | None:
    """Elapsed minutes, wrapping past midnight. None if either side is unparsable."""
    start = parse_clock_minutes(start_time)
    end = parse_clock_minutes(end_time)
    if start is None or end is None:
        return None
    elapsed = end - start
    if elapsed < 0:
        elapsed += MINUTES_PER_DAY
    return elapsed


def format_duration(minutes: int) -> str:
    return f"{minutes // 60}h {minutes % 60:02d}m"


def trip_duration(start_time: str | None, end_time: str | None) -> str:
    minutes = duration_minutes(start_time, end_time)
    if minutes is None:
        return ZERO_DURATION
    return format_duration(minutes)


def format_duration_minutes(minutes: int) -> str:
    """Short form used in summaries: "45m" or "2h 5m"."""
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins}m"
    return f"{hours}h {mins}m"


def trip_distance(points: Iterable[Sequence[float]]) -> Decimal:
    """Path distance in km rounded to 2 places."""
    km = path_distance_km(points)
    return Decimal(str(km)).quantize(CENTS, rounding=ROUND_HALF_UP)


def receipt_number(truck_number: str, prior_trips_today: int) -> str:
    """Per-truck, per-day receipt: RCP-<truck digits>-<sequence>.

    >>> receipt_number("T-007", 2)
    'RCP-007-003'
    """
    digits = _NON_DIGITS.sub("", truck_number).zfill(3)
    return f"RCP-{digits}-{prior_trips_today + 1:03d}"


def close_out(
    start_time: str,
    now: str,
    points: Iterable[Sequence[float]],
) -> TripCloseout:
    """Compute everything written onto a trip when it completes."""
    end_time = resolve_end_time(start_time, now)
    distance = trip_distance(points)
    return TripCloseout(
        end_time=end_time,
        distance=distance,
        duration=trip_duration(start_time, end_time),
        cost=format_peso(gps_total(distance)),
    )
