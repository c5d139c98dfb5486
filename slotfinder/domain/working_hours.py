"""
Resolution of the effective working hours for a professional on a weekday.
"""

import logging
import re
from datetime import time
from typing import Iterable, Optional

from .exceptions import ScheduleError
from .models import EffectiveSchedule, WorkingHoursRecord

logger = logging.getLogger(__name__)

_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

SUNDAY = 0


def day_of_week(value) -> int:
    """Weekday number with 0=Sunday ... 6=Saturday."""
    return value.isoweekday() % 7


def parse_clock_time(value: Optional[str]) -> Optional[time]:
    """
    Parse an ``HH:mm`` (or ``HH:mm:ss``) wall-clock string.

    Returns None for an absent value.

    Raises:
        ScheduleError: If the value is present but not a valid clock time
    """
    if value is None:
        return None
    if isinstance(value, time):
        return value

    match = _CLOCK_PATTERN.match(str(value).strip())
    if not match:
        raise ScheduleError(f"Invalid clock time: {value!r}")

    hour, minute = int(match.group(1)), int(match.group(2))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ScheduleError(f"Clock time out of range: {value!r}")

    return time(hour=hour, minute=minute)


def _record_for_day(
    records: Iterable[WorkingHoursRecord],
    day: int
) -> Optional[WorkingHoursRecord]:
    for record in records or []:
        if record.day_of_week == day:
            return record
    return None


class WorkingHoursResolver:
    """
    Picks the working-hours record that applies to a professional on a weekday.

    A professional-level record always wins over the business default, even
    when it grants less capacity. The two are never blended.
    """

    def resolve(
        self,
        professional_records: Iterable[WorkingHoursRecord],
        business_records: Iterable[WorkingHoursRecord],
        day: int
    ) -> Optional[EffectiveSchedule]:
        """
        Resolve the effective schedule for ``day`` (0=Sunday).

        Returns None when there is no capacity that day. That is a normal
        outcome, not an error.

        Raises:
            ScheduleError: If the chosen record holds an unparsable clock value
        """
        record = _record_for_day(professional_records, day)
        level = "professional"

        if record is None:
            record = _record_for_day(business_records, day)
            level = "business"

        if record is None or record.closed:
            return None

        if not record.open_time or not record.close_time:
            if level == "business":
                logger.warning(
                    "Business working hours for day %d are open but lack open/close times",
                    day
                )
            return None

        return self.to_schedule(record)

    @staticmethod
    def to_schedule(record: WorkingHoursRecord) -> EffectiveSchedule:
        """Convert a stored record into parsed clock values."""
        return EffectiveSchedule(
            open_time=parse_clock_time(record.open_time),
            close_time=parse_clock_time(record.close_time),
            break_start=parse_clock_time(record.break_start),
            break_end=parse_clock_time(record.break_end),
        )
