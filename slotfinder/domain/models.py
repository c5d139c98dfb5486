"""
Domain models for working hours, busy intervals and bookable slots.
"""

from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pendulum import Date, DateTime


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable ``[start, end)`` range anchored to real instants.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def contains(self, other: "TimeRange") -> bool:
        """Check if ``other`` lies entirely within this range."""
        return self.start <= other.start and other.end <= self.end

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        start = max(self.start, other.start)
        end = min(self.end, other.end)

        return TimeRange(start=start, end=end)

    def __str__(self) -> str:
        return f"{self.start.format('DD/MM/YYYY HH:mm')} - {self.end.format('HH:mm')}"


class AppointmentStatus(str, Enum):
    """Lifecycle states of a booked appointment."""
    PENDING = "pendente"
    CONFIRMED = "confirmado"
    CANCELLED = "cancelado"

    @classmethod
    def parse(cls, value: Union[str, "AppointmentStatus", None]) -> "AppointmentStatus":
        """Parse a stored status, accepting English aliases."""
        if isinstance(value, AppointmentStatus):
            return value
        if value is None:
            return cls.PENDING

        aliases = {
            "pending": cls.PENDING,
            "confirmed": cls.CONFIRMED,
            "cancelled": cls.CANCELLED,
            "canceled": cls.CANCELLED,
        }
        key = str(value).strip().lower()
        if key in aliases:
            return aliases[key]
        return cls(key)


class BusySource(str, Enum):
    """Where a busy interval came from. Only used for diagnostics."""
    APPOINTMENT = "appointment"
    BLACKOUT = "blackout"


@dataclass(frozen=True)
class BusyInterval:
    """
    A time range already consumed by a booking or a manual blackout.

    Both kinds are subtracted the same way; ``status`` only matters for
    appointments, whose cancelled entries never block time.
    """
    time_range: TimeRange
    source: BusySource = BusySource.APPOINTMENT
    status: Optional[AppointmentStatus] = None
    reference: Optional[str] = None

    @property
    def blocks_time(self) -> bool:
        """Whether this interval consumes capacity."""
        return self.status is not AppointmentStatus.CANCELLED


_TRUE_STRINGS = {"true", "yes", "1", "on"}
_FALSE_STRINGS = {"false", "no", "0", "off", ""}


def _parse_flag(value: Any) -> bool:
    """
    Interpret a stored boolean, including quoted ``"true"``/``"false"``.

    Raises:
        ValueError: If the value is not a recognisable boolean
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        key = value.strip().lower()
        if key in _TRUE_STRINGS:
            return True
        if key in _FALSE_STRINGS:
            return False
    raise ValueError(f"Invalid boolean value: {value!r}")


@dataclass(frozen=True)
class WorkingHoursRecord:
    """
    One weekday's schedule for a business or a professional.

    ``day_of_week`` uses 0=Sunday ... 6=Saturday. Clock values are kept as the
    stored ``HH:mm`` strings; they are parsed when a schedule is resolved.
    """
    day_of_week: int
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    break_start: Optional[str] = None
    break_end: Optional[str] = None
    closed: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "WorkingHoursRecord":
        """Build a record from a snake_case or camelCase mapping."""
        def pick(snake: str, camel: str) -> Any:
            value = data.get(snake, data.get(camel))
            if isinstance(value, int) and not isinstance(value, bool):
                # YAML 1.1 reads an unquoted 10:30 as sexagesimal 630
                hours, minutes = divmod(value, 60)
                return f"{hours:02d}:{minutes:02d}"
            return value if value != "" else None

        return cls(
            day_of_week=int(data.get("day_of_week", data.get("dayOfWeek"))),
            open_time=pick("open_time", "openTime"),
            close_time=pick("close_time", "closeTime"),
            break_start=pick("break_start", "breakStart"),
            break_end=pick("break_end", "breakEnd"),
            closed=_parse_flag(data.get("closed", False)),
        )


@dataclass(frozen=True)
class EffectiveSchedule:
    """The working hours actually used for a professional on a given weekday."""
    open_time: time
    close_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None

    @property
    def has_break(self) -> bool:
        return self.break_start is not None and self.break_end is not None


@dataclass
class Professional:
    """
    A professional as consumed by the availability engine.

    ``busy_blocks`` must already be hydrated for the dates being computed.
    """
    id: int
    name: str
    specialties: List[str] = field(default_factory=list)
    working_hours: List[WorkingHoursRecord] = field(default_factory=list)
    busy_blocks: List[BusyInterval] = field(default_factory=list)
    active: bool = True


@dataclass
class Business:
    """A business with its default weekly working hours and service catalog."""
    id: int
    name: str
    phone: str = ""
    working_hours: List[WorkingHoursRecord] = field(default_factory=list)
    service_durations: Dict[int, int] = field(default_factory=dict)


@dataclass(frozen=True)
class Slot:
    """
    A bookable slot of the requested duration.
    """
    time_range: TimeRange

    @property
    def start(self) -> DateTime:
        return self.time_range.start

    @property
    def end(self) -> DateTime:
        return self.time_range.end

    def to_dict(self) -> Dict[str, str]:
        """Wall-clock representation used in responses."""
        return {
            "start": self.start.format("HH:mm"),
            "end": self.end.format("HH:mm"),
        }


@dataclass
class ProfessionalAvailability:
    """Slots offered by one professional on one day."""
    professional_id: int
    name: str
    specialties: List[str]
    slots: List[Slot]

    @property
    def slot_count(self) -> int:
        return len(self.slots)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.professional_id,
            "name": self.name,
            "specialties": list(self.specialties),
            "slots": [slot.to_dict() for slot in self.slots],
        }


@dataclass
class DayAvailability:
    """Single-day availability for one or more professionals."""
    date: Date
    slot_duration_minutes: int
    professionals: List[ProfessionalAvailability]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.to_date_string(),
            "slotDurationMinutes": self.slot_duration_minutes,
            "professionals": [p.to_dict() for p in self.professionals],
        }

    def to_single_dict(self) -> Dict[str, Any]:
        """Shape used when a single professional was requested."""
        if len(self.professionals) != 1:
            raise ValueError("to_single_dict requires exactly one professional")
        return {
            "date": self.date.to_date_string(),
            "slotDurationMinutes": self.slot_duration_minutes,
            "professional": self.professionals[0].to_dict(),
        }


@dataclass(frozen=True)
class AvailabilityDay:
    """A calendar date with at least one bookable slot."""
    date: Date
    display_label: str
    slot_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.to_date_string(),
            "displayLabel": self.display_label,
            "slotCount": self.slot_count,
        }
