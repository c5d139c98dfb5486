"""
Domain layer - Pure availability logic without external dependencies.
"""

from .availability import AvailabilityAggregator
from .intervals import IntervalEngine
from .models import (
    AppointmentStatus,
    AvailabilityDay,
    Business,
    BusyInterval,
    BusySource,
    DayAvailability,
    EffectiveSchedule,
    Professional,
    ProfessionalAvailability,
    Slot,
    TimeRange,
    WorkingHoursRecord,
)
from .slot_generator import SlotGenerator
from .working_hours import WorkingHoursResolver

__all__ = [
    "AppointmentStatus",
    "AvailabilityAggregator",
    "AvailabilityDay",
    "Business",
    "BusyInterval",
    "BusySource",
    "DayAvailability",
    "EffectiveSchedule",
    "IntervalEngine",
    "Professional",
    "ProfessionalAvailability",
    "Slot",
    "SlotGenerator",
    "TimeRange",
    "WorkingHoursRecord",
    "WorkingHoursResolver",
]
