"""
Core business logic for resolving bookable availability.

Composes working-hours resolution, interval arithmetic and slot packing into
single-day answers per professional, and scans a rolling window of days to
report which dates still have capacity.
"""

import logging
from datetime import date as date_type
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

import pendulum
from pendulum import Date, DateTime

from .exceptions import ScheduleError
from .intervals import IntervalEngine
from .models import (
    AvailabilityDay,
    BusyInterval,
    BusySource,
    DayAvailability,
    Professional,
    ProfessionalAvailability,
    Slot,
    TimeRange,
    WorkingHoursRecord,
)
from .slot_generator import SlotGenerator
from .working_hours import SUNDAY, WorkingHoursResolver, day_of_week

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30


def as_date(value) -> Date:
    """Coerce a ``YYYY-MM-DD`` string, date or datetime into a pendulum Date."""
    if isinstance(value, str):
        return pendulum.from_format(value, "YYYY-MM-DD").date()
    if isinstance(value, datetime):
        return pendulum.date(value.year, value.month, value.day)
    if isinstance(value, date_type):
        return pendulum.date(value.year, value.month, value.day)
    raise TypeError(f"Cannot interpret {value!r} as a calendar date")


class AvailabilityAggregator:
    """
    Orchestrates availability computation for professionals and date windows.

    Algorithm (per professional and day):
    1. Resolve the effective schedule; closed days short-circuit to no slots
    2. Build base free intervals around the break
    3. Subtract appointments, then blackouts, each clamped to the day
    4. Pack the free intervals into slots of the requested duration
    5. Drop slots that already ended if the day is today

    Every entry point takes ``now`` explicitly; nothing reads the clock.
    """

    def __init__(
        self,
        timezone: str = "America/Sao_Paulo",
        locale: str = "pt_br",
        skip_weekdays: Sequence[int] = (SUNDAY,),
        resolver: Optional[WorkingHoursResolver] = None,
        interval_engine: Optional[IntervalEngine] = None,
        slot_generator: Optional[SlotGenerator] = None,
    ):
        self.timezone = timezone
        self.locale = locale
        self.skip_weekdays = tuple(skip_weekdays)
        self.resolver = resolver or WorkingHoursResolver()
        self.interval_engine = interval_engine or IntervalEngine(timezone=timezone)
        self.slot_generator = slot_generator or SlotGenerator()

    # Single day

    def availability_for_professional_on_day(
        self,
        professional: Professional,
        business_hours: Iterable[WorkingHoursRecord],
        day,
        duration_minutes: int,
        now: DateTime,
    ) -> ProfessionalAvailability:
        """
        Compute the bookable slots of one professional on ``day``.

        A malformed working-hours record yields zero slots instead of an error.
        """
        target = as_date(day)

        try:
            ranges = self._slots_for_day(
                professional, list(business_hours), target, duration_minutes, self._localize(now)
            )
        except ScheduleError as exc:
            logger.warning(
                "Ignoring malformed working hours of professional %s on %s: %s",
                professional.id, target.to_date_string(), exc
            )
            ranges = []

        return ProfessionalAvailability(
            professional_id=professional.id,
            name=professional.name,
            specialties=list(professional.specialties or []),
            slots=[Slot(time_range=r) for r in ranges],
        )

    def availability_for_business_on_day(
        self,
        professionals: Iterable[Professional],
        business_hours: Iterable[WorkingHoursRecord],
        day,
        duration_minutes: int,
        now: DateTime,
    ) -> DayAvailability:
        """Compute single-day slots for every active professional."""
        target = as_date(day)
        hours = list(business_hours)
        results: List[ProfessionalAvailability] = []

        for professional in professionals:
            if not professional.active:
                continue
            try:
                availability = self.availability_for_professional_on_day(
                    professional, hours, target, duration_minutes, now
                )
            except Exception as exc:
                logger.warning(
                    "Availability of professional %s on %s failed: %s",
                    professional.id, target.to_date_string(), exc
                )
                availability = ProfessionalAvailability(
                    professional_id=professional.id,
                    name=professional.name,
                    specialties=list(professional.specialties or []),
                    slots=[],
                )
            results.append(availability)

        return DayAvailability(
            date=target,
            slot_duration_minutes=duration_minutes,
            professionals=results,
        )

    # Multi-day scan

    def find_available_days(
        self,
        professional: Professional,
        business_hours: Iterable[WorkingHoursRecord],
        duration_minutes: int,
        now: DateTime,
        start_date=None,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ) -> List[AvailabilityDay]:
        """Report the days in the window on which ``professional`` has capacity."""
        return self._scan(
            [professional], list(business_hours), duration_minutes, now, start_date, window_days
        )

    def find_available_days_for_business(
        self,
        professionals: Iterable[Professional],
        business_hours: Iterable[WorkingHoursRecord],
        duration_minutes: int,
        now: DateTime,
        start_date=None,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ) -> List[AvailabilityDay]:
        """Report the days in the window with capacity summed over active professionals."""
        active = [p for p in professionals if p.active]
        return self._scan(
            active, list(business_hours), duration_minutes, now, start_date, window_days
        )

    def display_label(self, day: Date) -> str:
        """Short label such as ``qua 21/10``."""
        weekday = day.format("ddd", locale=self.locale)
        return f"{weekday} {day.format('DD/MM')}"

    def window(self, now: DateTime, start_date=None, window_days: int = DEFAULT_WINDOW_DAYS) -> List[Date]:
        """Consecutive dates of the scan window, skipped weekdays excluded."""
        first = as_date(start_date) if start_date is not None else self._localize(now).date()
        days = [first.add(days=offset) for offset in range(max(window_days, 0))]
        return [d for d in days if day_of_week(d) not in self.skip_weekdays]

    def _scan(
        self,
        professionals: List[Professional],
        business_hours: List[WorkingHoursRecord],
        duration_minutes: int,
        now: DateTime,
        start_date,
        window_days: int,
    ) -> List[AvailabilityDay]:
        local_now = self._localize(now)
        found: List[AvailabilityDay] = []

        for day in self.window(local_now, start_date, window_days):
            total = 0
            for professional in professionals:
                try:
                    availability = self.availability_for_professional_on_day(
                        professional, business_hours, day, duration_minutes, local_now
                    )
                except Exception as exc:
                    logger.warning(
                        "Skipping professional %s on %s: %s",
                        professional.id, day.to_date_string(), exc
                    )
                    continue
                total += availability.slot_count

            logger.debug("%s: %d slot(s) across %d professional(s)",
                         day.to_date_string(), total, len(professionals))

            if total > 0:
                found.append(AvailabilityDay(
                    date=day,
                    display_label=self.display_label(day),
                    slot_count=total,
                ))

        return found

    def _slots_for_day(
        self,
        professional: Professional,
        business_hours: List[WorkingHoursRecord],
        day: Date,
        duration_minutes: int,
        now: DateTime,
    ) -> List[TimeRange]:
        schedule = self.resolver.resolve(
            professional.working_hours, business_hours, day_of_week(day)
        )
        if schedule is None:
            return []

        free = self.interval_engine.build_base_intervals(day, schedule)
        if not free:
            return []

        day_start, day_end = self.interval_engine.day_bounds(day)
        busy = self._busy_ranges(professional.busy_blocks, day_start, day_end)
        free = self.interval_engine.subtract_all(free, busy)

        slots = self.slot_generator.split_into_slots(free, duration_minutes)
        return self.slot_generator.filter_past_slots(slots, day_start, now)

    def _busy_ranges(
        self,
        busy_blocks: Iterable[BusyInterval],
        day_start: DateTime,
        day_end: DateTime,
    ) -> List[TimeRange]:
        """Clamp active busy intervals to the day, appointments first."""
        ordered: List[Tuple[int, TimeRange]] = []

        for block in busy_blocks or []:
            if not block.blocks_time:
                continue
            local = TimeRange(
                start=self._localize(block.time_range.start),
                end=self._localize(block.time_range.end),
            )
            clamped = self.interval_engine.clamp(local, day_start, day_end)
            if clamped is not None:
                rank = 0 if block.source is BusySource.APPOINTMENT else 1
                ordered.append((rank, clamped))

        ordered.sort(key=lambda item: item[0])
        return [r for _, r in ordered]

    def _localize(self, value: datetime) -> DateTime:
        """Express an instant in the business timezone."""
        return pendulum.instance(value, tz=self.timezone).in_timezone(self.timezone)
