"""
Application services for answering availability queries.

The service coordinates fetching businesses, professionals and busy intervals
via a data-source adapter and delegates the actual availability calculation to
the domain-level ``AvailabilityAggregator``. This keeps the CLI thin and allows
the storage dependency to be replaced by a simple protocol in tests.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Dict, List, Optional, Protocol, Sequence

import pendulum
from pendulum import DateTime

from ..domain.availability import DEFAULT_WINDOW_DAYS, AvailabilityAggregator, as_date
from ..domain.exceptions import (
    InvalidDurationError,
    ProfessionalNotFoundError,
    ServiceNotFoundError,
)
from ..domain.models import (
    AvailabilityDay,
    Business,
    BusyInterval,
    DayAvailability,
    Professional,
)

logger = logging.getLogger(__name__)


class BookingDataSourceProtocol(Protocol):
    """Protocol describing the storage behaviour needed by the service."""

    async def find_business(self, identifier: str) -> Business:
        """Return the business with the given id or phone number."""

    async def list_professionals(self, business_id: int) -> List[Professional]:
        """Return the business' professionals with their working hours."""

    async def get_busy_intervals(
        self,
        professional_ids: List[int],
        start_time: DateTime,
        end_time: DateTime,
    ) -> Dict[int, List[BusyInterval]]:
        """Return appointments and blackouts overlapping the window per professional."""


class AvailabilityService:
    """
    Orchestrates data retrieval and availability calculation.

    Dependency inversion toward a protocol makes it easy to plug in a database
    backed store or the file fixture store used by the CLI and tests.
    """

    def __init__(
        self,
        data_source: BookingDataSourceProtocol,
        aggregator: AvailabilityAggregator,
        default_duration_minutes: int = 30,
        default_window_days: int = DEFAULT_WINDOW_DAYS,
    ) -> None:
        self._data_source = data_source
        self._aggregator = aggregator
        self._default_duration_minutes = default_duration_minutes
        self._default_window_days = default_window_days

    async def get_free_slots(
        self,
        *,
        business: str,
        day=None,
        service_id: Optional[int] = None,
        professional_id: Optional[int] = None,
        now: Optional[DateTime] = None,
    ) -> DayAvailability:
        """
        Return single-day slots for all active professionals, or for one.
        """
        now = self._now(now)
        target = as_date(day) if day is not None else now.date()

        record = await self._data_source.find_business(business)
        duration = self.resolve_duration(record, service_id)
        professionals = await self._select_professionals(record, professional_id)

        day_start, day_end = self._aggregator.interval_engine.day_bounds(target)
        professionals = await self.hydrate_busy_intervals(professionals, day_start, day_end)

        logger.debug(
            "Computing slots for business %s on %s (%d min, %d professional(s))",
            record.id, target.to_date_string(), duration, len(professionals)
        )

        return self._aggregator.availability_for_business_on_day(
            professionals, record.working_hours, target, duration, now
        )

    async def find_available_days(
        self,
        *,
        business: str,
        service_id: Optional[int] = None,
        professional_id: Optional[int] = None,
        start_date=None,
        window_days: Optional[int] = None,
        now: Optional[DateTime] = None,
    ) -> List[AvailabilityDay]:
        """
        Scan a rolling window and report the days with any capacity.
        """
        now = self._now(now)
        window = window_days if window_days is not None else self._default_window_days
        first = as_date(start_date) if start_date is not None else now.date()

        record = await self._data_source.find_business(business)
        duration = self.resolve_duration(record, service_id)
        professionals = await self._select_professionals(record, professional_id)

        window_start, _ = self._aggregator.interval_engine.day_bounds(first)
        _, window_end = self._aggregator.interval_engine.day_bounds(first.add(days=max(window, 1) - 1))
        professionals = await self.hydrate_busy_intervals(professionals, window_start, window_end)

        if professional_id is not None:
            return self._aggregator.find_available_days(
                professionals[0], record.working_hours, duration, now,
                start_date=first, window_days=window
            )

        return self._aggregator.find_available_days_for_business(
            professionals, record.working_hours, duration, now,
            start_date=first, window_days=window
        )

    def resolve_duration(self, business: Business, service_id: Optional[int]) -> int:
        """
        Look up the slot duration for a service, or fall back to the default.

        Raises:
            ServiceNotFoundError: If the business does not offer the service
            InvalidDurationError: If the duration is not a positive integer
        """
        if service_id is None:
            duration = self._default_duration_minutes
        else:
            if service_id not in business.service_durations:
                raise ServiceNotFoundError(
                    f"Service {service_id} not found for business {business.id}"
                )
            duration = business.service_durations[service_id]

        if not isinstance(duration, int) or duration <= 0:
            raise InvalidDurationError(f"Slot duration must be positive, got {duration!r}")

        return duration

    async def hydrate_busy_intervals(
        self,
        professionals: Sequence[Professional],
        start_time: DateTime,
        end_time: DateTime,
    ) -> List[Professional]:
        """Attach the busy intervals of the window to each professional."""
        professional_list = list(professionals)
        if not professional_list:
            return []

        busy = await self._data_source.get_busy_intervals(
            professional_ids=[p.id for p in professional_list],
            start_time=start_time,
            end_time=end_time,
        )
        busy = self._ensure_busy_entries(professional_list, busy)

        return [
            dataclasses.replace(p, busy_blocks=busy[p.id])
            for p in professional_list
        ]

    async def _select_professionals(
        self,
        business: Business,
        professional_id: Optional[int],
    ) -> List[Professional]:
        """
        Active professionals of the business, or only the requested one.

        An inactive professional is not bookable and is reported as not found.
        """
        professionals = [
            p for p in await self._data_source.list_professionals(business.id)
            if p.active
        ]

        if professional_id is None:
            return professionals

        for professional in professionals:
            if professional.id == professional_id:
                return [professional]

        raise ProfessionalNotFoundError(
            f"Professional {professional_id} not found for business {business.id}"
        )

    def _now(self, now: Optional[DateTime]) -> DateTime:
        tz = self._aggregator.timezone
        if now is None:
            return pendulum.now(tz)
        return pendulum.instance(now, tz=tz).in_timezone(tz)

    @staticmethod
    def _ensure_busy_entries(
        professionals: Sequence[Professional],
        busy: Dict[int, List[BusyInterval]],
    ) -> Dict[int, List[BusyInterval]]:
        """
        Ensure every requested professional appears in the busy map.

        Stores may omit professionals without bookings; we normalise that to
        an explicit empty list.
        """
        return {p.id: list(busy.get(p.id, [])) for p in professionals}
