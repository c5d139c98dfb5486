"""
Interval arithmetic for a single calendar day.

Turns a working-hours schedule into concrete free ranges and removes busy
ranges from them. Pure logic, no I/O.
"""

from datetime import time
from typing import Iterable, List, Optional, Tuple

import pendulum
from pendulum import Date, DateTime

from .models import EffectiveSchedule, TimeRange


def _range_or_none(start: DateTime, end: DateTime) -> Optional[TimeRange]:
    """Build a range, or None if it would have no positive length."""
    if end <= start:
        return None
    return TimeRange(start=start, end=end)


class IntervalEngine:
    """
    Builds base free intervals for a day and subtracts busy intervals.

    Algorithm:
    1. Anchor the schedule's open/close (and break) clock values to the date
    2. Split around the break into at most two base intervals
    3. Clamp every busy interval to the day
    4. Subtract busy intervals one at a time, re-splitting the survivors
    """

    def __init__(self, timezone: str = "America/Sao_Paulo"):
        self.timezone = timezone

    def at(self, day: Date, clock: time) -> DateTime:
        """Combine a calendar date and a wall-clock time."""
        return pendulum.datetime(
            day.year, day.month, day.day,
            clock.hour, clock.minute,
            tz=self.timezone
        )

    def day_bounds(self, day: Date) -> Tuple[DateTime, DateTime]:
        """Return midnight of ``day`` and midnight of the following day."""
        start = pendulum.datetime(day.year, day.month, day.day, tz=self.timezone)
        return start, start.add(days=1)

    def build_base_intervals(
        self,
        day: Date,
        schedule: EffectiveSchedule
    ) -> List[TimeRange]:
        """
        Produce zero, one or two free intervals for ``day``.

        Example:
        Hours: 09:00 - 18:00, break 12:00 - 13:00
        Result: [09:00-12:00, 13:00-18:00]
        """
        open_at = self.at(day, schedule.open_time)
        close_at = self.at(day, schedule.close_time)

        if close_at <= open_at:
            return []

        if schedule.has_break:
            break_start = min(max(self.at(day, schedule.break_start), open_at), close_at)
            break_end = min(max(self.at(day, schedule.break_end), open_at), close_at)

            if break_end > break_start:
                candidates = []
                if break_start > open_at:
                    candidates.append(_range_or_none(open_at, min(break_start, close_at)))
                if break_end < close_at:
                    candidates.append(_range_or_none(max(break_end, open_at), close_at))
                return [interval for interval in candidates if interval is not None]

        return [TimeRange(start=open_at, end=close_at)]

    def clamp(
        self,
        interval: TimeRange,
        day_start: DateTime,
        day_end: DateTime
    ) -> Optional[TimeRange]:
        """
        Restrict a range to ``[day_start, day_end)``.
        Returns None if nothing of it falls inside the day.
        """
        if interval.end <= day_start or interval.start >= day_end:
            return None

        return _range_or_none(max(interval.start, day_start), min(interval.end, day_end))

    def subtract(
        self,
        free_intervals: Iterable[TimeRange],
        busy: TimeRange
    ) -> List[TimeRange]:
        """
        Remove one busy range from every free interval.

        Example:
        Free: [09:00-12:00, 13:00-18:00]
        Busy: 10:00-10:30
        Result: [09:00-10:00, 10:30-12:00, 13:00-18:00]
        """
        result: List[TimeRange] = []

        for free in free_intervals:
            if not free.overlaps(busy):
                result.append(free)
                continue

            before = _range_or_none(free.start, busy.start)
            after = _range_or_none(busy.end, free.end)

            if before is not None:
                result.append(before)
            if after is not None:
                result.append(after)

        return result

    def subtract_all(
        self,
        free_intervals: Iterable[TimeRange],
        busy_ranges: Iterable[TimeRange]
    ) -> List[TimeRange]:
        """Fold ``subtract`` over the busy ranges, one pass per range."""
        remaining = list(free_intervals)

        for busy in busy_ranges:
            remaining = self.subtract(remaining, busy)
            if not remaining:
                break

        return remaining
