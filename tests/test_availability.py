"""
Tests for the availability aggregator.
"""

import pendulum
import pytest

from slotfinder.domain.availability import AvailabilityAggregator, as_date
from slotfinder.domain.models import (
    AppointmentStatus,
    BusyInterval,
    BusySource,
    Professional,
    TimeRange,
    WorkingHoursRecord,
)

TZ = "America/Sao_Paulo"
WEDNESDAY = pendulum.date(2026, 10, 21)
MONDAY = pendulum.date(2026, 10, 26)
EARLIER = pendulum.datetime(2026, 10, 19, 8, 0, tz=TZ)


def _at(value: str):
    return pendulum.parse(value, tz=TZ)


def _busy(start: str, end: str, source=BusySource.APPOINTMENT, status=None) -> BusyInterval:
    return BusyInterval(
        time_range=TimeRange(start=_at(start), end=_at(end)),
        source=source,
        status=status,
    )


def _weekdays(open_time="09:00", close_time="18:00", break_start="12:00", break_end="13:00"):
    """Business default: Monday to Saturday open, Sunday closed."""
    records = [WorkingHoursRecord(day_of_week=0, closed=True)]
    for day in range(1, 7):
        records.append(WorkingHoursRecord(
            day_of_week=day,
            open_time=open_time,
            close_time=close_time,
            break_start=break_start,
            break_end=break_end,
        ))
    return records


def _starts(availability):
    return [slot.to_dict()["start"] for slot in availability.slots]


@pytest.fixture
def aggregator():
    return AvailabilityAggregator(timezone=TZ, locale="en")


class TestSingleDay:
    """Tests for availability_for_professional_on_day."""

    def test_break_splits_slots(self, aggregator):
        """09:00-18:00 with a 12:00-13:00 break packs 6 + 10 half-hour slots."""
        professional = Professional(id=7, name="Ana", specialties=["corte"])

        result = aggregator.availability_for_professional_on_day(
            professional, _weekdays(), WEDNESDAY, 30, EARLIER
        )

        assert _starts(result) == [
            "09:00", "09:30", "10:00", "10:30", "11:00", "11:30",
            "13:00", "13:30", "14:00", "14:30", "15:00", "15:30",
            "16:00", "16:30", "17:00", "17:30",
        ]
        assert result.slots[5].to_dict() == {"start": "11:30", "end": "12:00"}
        assert result.professional_id == 7
        assert result.specialties == ["corte"]

    def test_booked_appointment_removes_slot(self, aggregator):
        professional = Professional(
            id=7, name="Ana",
            busy_blocks=[_busy("2026-10-21 10:00", "2026-10-21 10:30",
                               status=AppointmentStatus.CONFIRMED)],
        )

        starts = _starts(aggregator.availability_for_professional_on_day(
            professional, _weekdays(), WEDNESDAY, 30, EARLIER
        ))

        assert "10:00" not in starts
        assert "09:30" in starts
        assert "10:30" in starts

    def test_cancelled_appointment_is_ignored(self, aggregator):
        professional = Professional(
            id=7, name="Ana",
            busy_blocks=[_busy("2026-10-21 10:00", "2026-10-21 10:30",
                               status=AppointmentStatus.CANCELLED)],
        )

        starts = _starts(aggregator.availability_for_professional_on_day(
            professional, _weekdays(), WEDNESDAY, 30, EARLIER
        ))

        assert "10:00" in starts
        assert len(starts) == 16

    def test_blackout_spanning_days_blocks_whole_day(self, aggregator):
        professional = Professional(
            id=7, name="Ana",
            busy_blocks=[_busy("2026-10-20 18:00", "2026-10-22 09:00", source=BusySource.BLACKOUT)],
        )

        result = aggregator.availability_for_professional_on_day(
            professional, _weekdays(), WEDNESDAY, 30, EARLIER
        )

        assert result.slots == []

    def test_appointment_from_previous_night_does_not_leak(self, aggregator):
        professional = Professional(
            id=7, name="Ana",
            busy_blocks=[_busy("2026-10-20 23:00", "2026-10-21 09:30")],
        )

        starts = _starts(aggregator.availability_for_professional_on_day(
            professional, _weekdays(open_time="00:00"), WEDNESDAY, 30, EARLIER
        ))

        assert starts[0] == "09:30"

    def test_busy_interval_in_utc_is_converted(self, aggregator):
        """13:00 UTC is 10:00 in Sao Paulo."""
        block = BusyInterval(time_range=TimeRange(
            start=pendulum.datetime(2026, 10, 21, 13, 0, tz="UTC"),
            end=pendulum.datetime(2026, 10, 21, 13, 30, tz="UTC"),
        ))
        professional = Professional(id=7, name="Ana", busy_blocks=[block])

        starts = _starts(aggregator.availability_for_professional_on_day(
            professional, _weekdays(), WEDNESDAY, 30, EARLIER
        ))

        assert "10:00" not in starts
        assert "10:30" in starts

    def test_closed_override_wins(self, aggregator):
        """A closed Monday override beats an open business default."""
        professional = Professional(
            id=7, name="Ana",
            working_hours=[WorkingHoursRecord(day_of_week=1, closed=True)],
        )

        result = aggregator.availability_for_professional_on_day(
            professional, _weekdays(), MONDAY, 30, EARLIER
        )

        assert result.slots == []

    def test_today_drops_elapsed_slots(self, aggregator):
        professional = Professional(id=7, name="Ana")
        now = _at("2026-10-21 14:00")

        starts = _starts(aggregator.availability_for_professional_on_day(
            professional, _weekdays(), WEDNESDAY, 30, now
        ))

        assert starts[0] == "14:00"
        assert "13:30" not in starts

    def test_malformed_record_yields_no_slots(self, aggregator):
        professional = Professional(
            id=7, name="Ana",
            working_hours=[WorkingHoursRecord(day_of_week=3, open_time="9am", close_time="18:00")],
        )

        result = aggregator.availability_for_professional_on_day(
            professional, _weekdays(), WEDNESDAY, 30, EARLIER
        )

        assert result.slots == []

    def test_non_positive_duration_yields_no_slots(self, aggregator):
        professional = Professional(id=7, name="Ana")

        result = aggregator.availability_for_professional_on_day(
            professional, _weekdays(), WEDNESDAY, 0, EARLIER
        )

        assert result.slots == []

    @pytest.mark.parametrize("duration", [15, 25, 30, 45, 60, 90])
    def test_slots_never_overlap_busy_or_break(self, aggregator, duration):
        busy = [
            _busy("2026-10-21 09:10", "2026-10-21 09:40"),
            _busy("2026-10-21 11:50", "2026-10-21 13:20", source=BusySource.BLACKOUT),
            _busy("2026-10-21 16:00", "2026-10-21 16:05"),
        ]
        professional = Professional(id=7, name="Ana", busy_blocks=busy)
        lunch = TimeRange(start=_at("2026-10-21 12:00"), end=_at("2026-10-21 13:00"))
        hours = TimeRange(start=_at("2026-10-21 09:00"), end=_at("2026-10-21 18:00"))

        result = aggregator.availability_for_professional_on_day(
            professional, _weekdays(), WEDNESDAY, duration, EARLIER
        )
        ranges = [slot.time_range for slot in result.slots]

        assert ranges
        for index, slot in enumerate(ranges):
            assert slot.duration_minutes() == duration
            assert hours.contains(slot)
            assert not slot.overlaps(lunch)
            assert not any(slot.overlaps(b.time_range) for b in busy)
            for other in ranges[index + 1:]:
                assert not slot.overlaps(other)

    def test_business_day_skips_inactive_professionals(self, aggregator):
        professionals = [
            Professional(id=7, name="Ana"),
            Professional(id=8, name="Bruno", active=False),
        ]

        result = aggregator.availability_for_business_on_day(
            professionals, _weekdays(), "2026-10-21", 60, EARLIER
        )

        assert [p.professional_id for p in result.professionals] == [7]
        assert result.slot_duration_minutes == 60
        assert result.professionals[0].slot_count == 8

    def test_business_day_isolates_failing_professional(self, aggregator):
        professionals = [
            Professional(id=1, name="Broken", busy_blocks=[object()]),
            Professional(id=7, name="Ana"),
        ]

        result = aggregator.availability_for_business_on_day(
            professionals, _weekdays(), WEDNESDAY, 60, EARLIER
        )

        assert [p.slot_count for p in result.professionals] == [0, 8]


class TestAvailableDays:
    """Tests for the rolling window scan."""

    def test_only_wednesday_has_capacity(self, aggregator):
        """Window starting on a Saturday, only Wednesday open, Sunday never reported."""
        records = [WorkingHoursRecord(day_of_week=d, closed=True) for d in range(7)]
        records[0] = WorkingHoursRecord(day_of_week=0, open_time="09:00", close_time="18:00")
        records[3] = WorkingHoursRecord(day_of_week=3, open_time="09:00", close_time="10:00")
        professional = Professional(id=7, name="Ana")

        days = aggregator.find_available_days(
            professional, records, 30, EARLIER,
            start_date=pendulum.date(2026, 10, 24), window_days=7
        )

        assert len(days) == 1
        assert days[0].date == pendulum.date(2026, 10, 28)
        assert days[0].slot_count == 2
        assert days[0].display_label == "Wed 28/10"

    def test_start_date_defaults_to_today(self, aggregator):
        professional = Professional(id=7, name="Ana")
        now = _at("2026-10-21 17:40")

        days = aggregator.find_available_days(professional, _weekdays(), 30, now, window_days=2)

        assert [d.date for d in days] == [WEDNESDAY, pendulum.date(2026, 10, 22)]
        assert days[0].slot_count == 1
        assert days[1].slot_count == 16

    def test_fully_booked_day_is_omitted(self, aggregator):
        professional = Professional(
            id=7, name="Ana",
            busy_blocks=[_busy("2026-10-21 00:00", "2026-10-22 00:00", source=BusySource.BLACKOUT)],
        )

        days = aggregator.find_available_days(
            professional, _weekdays(), 30, EARLIER, start_date=WEDNESDAY, window_days=2
        )

        assert [d.date for d in days] == [pendulum.date(2026, 10, 22)]

    def test_business_scan_sums_professionals(self, aggregator):
        professionals = [
            Professional(id=7, name="Ana"),
            Professional(
                id=8, name="Bruno",
                working_hours=[WorkingHoursRecord(day_of_week=3, open_time="09:00", close_time="11:00")],
            ),
            Professional(id=9, name="Carla", active=False),
        ]

        days = aggregator.find_available_days_for_business(
            professionals, _weekdays(), 60, EARLIER, start_date=WEDNESDAY, window_days=1
        )

        assert len(days) == 1
        assert days[0].slot_count == 8 + 2

    def test_failing_professional_does_not_abort_scan(self, aggregator):
        broken = Professional(id=1, name="Broken", busy_blocks=[object()])
        professionals = [broken, Professional(id=7, name="Ana")]

        days = aggregator.find_available_days_for_business(
            professionals, _weekdays(), 60, EARLIER, start_date=WEDNESDAY, window_days=1
        )

        assert days[0].slot_count == 8

    def test_skip_weekdays_is_configurable(self):
        aggregator = AvailabilityAggregator(timezone=TZ, locale="en", skip_weekdays=[0, 6])
        records = [WorkingHoursRecord(day_of_week=d, open_time="09:00", close_time="10:00")
                   for d in range(7)]

        days = aggregator.find_available_days(
            Professional(id=7, name="Ana"), records, 30, EARLIER,
            start_date=pendulum.date(2026, 10, 24), window_days=7
        )

        assert [d.date.day for d in days] == [26, 27, 28, 29, 30]

    def test_empty_window(self, aggregator):
        assert aggregator.find_available_days(
            Professional(id=7, name="Ana"), _weekdays(), 30, EARLIER, window_days=0
        ) == []

    def test_default_label_is_portuguese(self):
        aggregator = AvailabilityAggregator(timezone=TZ)

        label = aggregator.display_label(WEDNESDAY)

        assert label.endswith(" 21/10")
        assert label.split()[0] != "Wed"


class TestAsDate:
    """Tests for date coercion."""

    def test_accepts_strings_and_dates(self):
        assert as_date("2026-10-21") == WEDNESDAY
        assert as_date(WEDNESDAY) == WEDNESDAY
        assert as_date(_at("2026-10-21 15:00")) == WEDNESDAY

    def test_rejects_other_values(self):
        with pytest.raises(TypeError):
            as_date(20261021)
