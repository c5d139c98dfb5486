"""
File-backed booking data source.

Loads businesses, professionals, working hours, appointments and
unavailability windows from a JSON or YAML fixture, so availability can be
computed without a database.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping

import pendulum
import yaml
from pendulum import DateTime

from ..domain.exceptions import BusinessNotFoundError, DataSourceError
from ..domain.models import (
    AppointmentStatus,
    Business,
    BusyInterval,
    BusySource,
    Professional,
    TimeRange,
    WorkingHoursRecord,
)

logger = logging.getLogger(__name__)


def _digits(value: str) -> str:
    return "".join(ch for ch in str(value) if ch.isdigit())


class FixtureBookingStore:
    """
    Data source reading a fixture document of the form::

        businesses:
          - id: 1
            name: Studio
            phone: "5511999990000"
            working_hours: [{day_of_week: 1, open_time: "09:00", close_time: "18:00"}]
            services: [{id: 10, name: Corte, duration: 30}]
            professionals:
              - {id: 7, name: Ana, specialties: [corte], working_hours: []}
        appointments:
          - {professional_id: 7, start: "2026-10-21T10:00", end: "2026-10-21T10:30", status: confirmado}
        unavailability:
          - {professional_id: 7, start: "2026-10-22T00:00", end: "2026-10-23T00:00", reason: folga}

    Naive timestamps are read in the configured business timezone.
    """

    def __init__(self, data: Mapping[str, Any], timezone: str = "America/Sao_Paulo"):
        self.timezone = timezone
        self._businesses: Dict[int, Business] = {}
        self._professionals: Dict[int, List[Professional]] = {}
        self._busy: Dict[int, List[BusyInterval]] = {}
        self._load(data)

    @classmethod
    def from_file(cls, path: Path, timezone: str = "America/Sao_Paulo") -> "FixtureBookingStore":
        """
        Load a fixture from a ``.json``, ``.yaml`` or ``.yml`` file.

        Raises:
            DataSourceError: If the file is missing or cannot be parsed
        """
        if not path.exists():
            raise DataSourceError(f"Data file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f) or {}
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise DataSourceError(f"Invalid data file {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise DataSourceError("Data file must contain a mapping at the root level.")

        return cls(data, timezone=timezone)

    async def find_business(self, identifier: str) -> Business:
        """Find a business by numeric id or by phone number."""
        key = str(identifier).strip()

        if key.isdigit() and int(key) in self._businesses:
            return self._businesses[int(key)]

        wanted = _digits(key)
        for business in self._businesses.values():
            if wanted and _digits(business.phone) == wanted:
                return business

        raise BusinessNotFoundError(f"Business not found: '{identifier}'")

    async def list_professionals(self, business_id: int) -> List[Professional]:
        return list(self._professionals.get(business_id, []))

    async def get_busy_intervals(
        self,
        professional_ids: List[int],
        start_time: DateTime,
        end_time: DateTime,
    ) -> Dict[int, List[BusyInterval]]:
        """Return busy intervals overlapping ``[start_time, end_time)``."""
        window = TimeRange(start=start_time, end=end_time)
        busy: Dict[int, List[BusyInterval]] = {}

        for professional_id in professional_ids:
            busy[professional_id] = [
                block for block in self._busy.get(professional_id, [])
                if block.time_range.overlaps(window)
            ]

        return busy

    def _load(self, data: Mapping[str, Any]) -> None:
        try:
            for raw in data.get("businesses") or []:
                business = Business(
                    id=int(raw["id"]),
                    name=str(raw.get("name", "")),
                    phone=str(raw.get("phone", "")),
                    working_hours=self._records(raw.get("working_hours")),
                    service_durations={
                        int(s["id"]): int(s["duration"]) for s in raw.get("services") or []
                    },
                )
                self._businesses[business.id] = business
                self._professionals[business.id] = [
                    Professional(
                        id=int(p["id"]),
                        name=str(p.get("name", "")),
                        specialties=list(p.get("specialties") or []),
                        working_hours=self._records(p.get("working_hours")),
                        active=bool(p.get("active", True)),
                    )
                    for p in raw.get("professionals") or []
                ]
        except (KeyError, TypeError, ValueError) as exc:
            raise DataSourceError(f"Invalid business entry: {exc}") from exc

        for raw in data.get("appointments") or []:
            self._add_busy(raw, BusySource.APPOINTMENT)

        for raw in data.get("unavailability") or []:
            self._add_busy(raw, BusySource.BLACKOUT)

    def _records(self, raw_records) -> List[WorkingHoursRecord]:
        return [WorkingHoursRecord.from_mapping(r) for r in raw_records or []]

    def _add_busy(self, raw: Mapping[str, Any], source: BusySource) -> None:
        try:
            start = pendulum.parse(str(raw["start"]), tz=self.timezone)
            end = pendulum.parse(str(raw["end"]), tz=self.timezone)
            status = None
            if source is BusySource.APPOINTMENT:
                status = AppointmentStatus.parse(raw.get("status"))
            interval = BusyInterval(
                time_range=TimeRange(start=start, end=end),
                source=source,
                status=status,
                reference=str(raw["id"]) if "id" in raw else None,
            )
            professional_id = int(raw["professional_id"])
        except (KeyError, TypeError, ValueError) as exc:
            # Skip invalid entries
            logger.warning("Skipping invalid %s entry %r: %s", source.value, raw, exc)
            return

        self._busy.setdefault(professional_id, []).append(interval)
