"""
Packing free intervals into fixed-duration bookable slots.
"""

from typing import Iterable, List, Optional

from pendulum import DateTime

from .models import TimeRange


class SlotGenerator:
    """Cuts free time into back-to-back slots of a fixed length."""

    def split_into_slots(
        self,
        free_intervals: Iterable[TimeRange],
        duration_minutes: Optional[int]
    ) -> List[TimeRange]:
        """
        Split each free interval into consecutive slots of ``duration_minutes``.

        A trailing remainder shorter than the duration is dropped. Slots from
        different intervals are never joined, even when contiguous.

        Example (30 min):
        Free: 09:00 - 10:45
        Result: [09:00-09:30, 09:30-10:00, 10:00-10:30]
        """
        if not duration_minutes or duration_minutes <= 0:
            return []

        slots: List[TimeRange] = []

        for interval in free_intervals:
            cursor = interval.start
            slot_end = cursor.add(minutes=duration_minutes)

            while slot_end <= interval.end:
                slots.append(TimeRange(start=cursor, end=slot_end))
                cursor = slot_end
                slot_end = cursor.add(minutes=duration_minutes)

        return slots

    def filter_past_slots(
        self,
        slots: Iterable[TimeRange],
        day_start: DateTime,
        now: DateTime
    ) -> List[TimeRange]:
        """
        Drop slots that already ended when ``day_start`` falls on today.

        A slot ending exactly at ``now`` counts as past; one starting at
        ``now`` is kept. Other days are returned unchanged.
        """
        local_now = now.in_timezone(day_start.timezone)

        if day_start.date() != local_now.date():
            return list(slots)

        return [slot for slot in slots if slot.end > now]
