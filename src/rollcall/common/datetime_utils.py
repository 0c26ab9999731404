from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

from ..core.constants import MS_PER_DAY, MS_PER_MINUTE
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class DayWindow:
    """One business day as an inclusive range of epoch milliseconds."""

    start: int
    end: int

    def contains(self, ts: int) -> bool:
        return self.start <= ts <= self.end


def now_ms() -> int:
    """Current time in epoch milliseconds.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def server_timezone_offset(ts: int) -> int:
    """Offset of the server's local zone at ``ts``, in minutes (UTC - local)."""
    local = datetime.fromtimestamp(ts / 1000, tz=timezone.utc).astimezone()
    return int(-local.utcoffset().total_seconds() // 60)


def local_date_of(ts: int, timezone_offset: int) -> date:
    """Calendar date of ``ts`` for a client whose offset is ``timezone_offset``.

    The offset follows the browser convention: minutes to add to local time to
    get UTC (positive west of Greenwich).
    """
    shifted = ts - timezone_offset * MS_PER_MINUTE
    return datetime.fromtimestamp(shifted / 1000, tz=timezone.utc).date()


def local_midnight(day: date, timezone_offset: int) -> int:
    utc_midnight = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return int(utc_midnight.timestamp() * 1000) + timezone_offset * MS_PER_MINUTE


def day_window_for(day: date, timezone_offset: int) -> DayWindow:
    start = local_midnight(day, timezone_offset)
    return DayWindow(start=start, end=start + MS_PER_DAY - 1)


def resolve_day_window(
    *,
    start_of_day: Optional[int] = None,
    end_of_day: Optional[int] = None,
    timezone_offset: Optional[int] = None,
    now: Optional[int] = None,
) -> DayWindow:
    """Single business-day policy used by every operation.

    An explicit client window wins, then a client timezone offset applied to
    ``now``, then the server's local day.
    """
    if start_of_day is not None or end_of_day is not None:
        if start_of_day is None or end_of_day is None:
            raise ValidationError("Both start and end of day are required")
        if end_of_day < start_of_day:
            raise ValidationError("End of day must not be before start of day")
        return DayWindow(start=int(start_of_day), end=int(end_of_day))

    now = now_ms() if now is None else now
    if timezone_offset is None:
        timezone_offset = server_timezone_offset(now)
    return day_window_for(local_date_of(now, timezone_offset), timezone_offset)


def time_on_same_day(ts: int, minutes_from_midnight: int, timezone_offset: int) -> int:
    """Timestamp of ``minutes_from_midnight`` on the local calendar day of ``ts``."""
    day = local_date_of(ts, timezone_offset)
    return local_midnight(day, timezone_offset) + int(minutes_from_midnight) * MS_PER_MINUTE
