"""Tests for the even-spread baseline and zoom aggregation."""

from datetime import date, timedelta

import pytest

from config import CapacityConfig
from models import WeeklySchedule, WorkCalendar, WorkItem
from schedulers.capacity import (
    CapacityCalculator,
    calculate_capacity_by_zoom,
    calculate_daily_capacity,
)
from schedulers.even_spread import EvenSpreadModel
from utils.validators import validate_schedule

MON = date(2026, 3, 2)
WED = date(2026, 3, 4)
FRI = date(2026, 3, 6)


@pytest.fixture
def schedule():
    return WeeklySchedule()


def make_item(item_id, start, due, hours, **kwargs):
    return WorkItem(id=item_id, start_date=start, due_date=due, estimated_hours=hours, **kwargs)


class TestDailyCapacity:
    def test_single_item_conserves_estimate(self, schedule):
        items = [make_item(1, MON, WED, 24)]
        days = calculate_daily_capacity(items, schedule, MON, MON + timedelta(days=11))
        assert sum(day.load_hours for day in days) == pytest.approx(24)

    def test_uneven_split_conserves_within_rounding(self, schedule):
        items = [make_item(1, MON, MON + timedelta(days=9), 10)]
        days = calculate_daily_capacity(items, schedule, MON, MON + timedelta(days=13))
        assert sum(day.load_hours for day in days) == pytest.approx(10, abs=0.05)

    def test_concurrent_items_sum(self, schedule):
        items = [make_item(1, MON, FRI, 40), make_item(2, MON, FRI, 40)]
        days = calculate_daily_capacity(items, schedule, MON, FRI)
        assert [day.load_hours for day in days] == [16] * 5
        assert all(day.percentage == 200 for day in days)
        assert all(day.status == "overloaded" for day in days)

    def test_partial_overlap(self, schedule):
        items = [make_item(1, MON, WED, 24), make_item(2, WED, FRI, 24)]
        days = calculate_daily_capacity(items, schedule, MON, FRI)
        assert [day.load_hours for day in days] == [8, 8, 16, 8, 8]

    def test_weekends_not_emitted(self, schedule):
        days = calculate_daily_capacity([], schedule, MON, MON + timedelta(days=13))
        assert len(days) == 10
        assert all(day.date.weekday() < 5 for day in days)

    def test_weekend_only_range_is_empty(self, schedule):
        assert calculate_daily_capacity([], schedule, date(2026, 3, 7), date(2026, 3, 8)) == []

    def test_empty_items_give_zero_load(self, schedule):
        days = calculate_daily_capacity([], schedule, MON, FRI)
        assert all(day.load_hours == 0 and day.status == "available" for day in days)
        assert all(day.capacity_hours == 8 for day in days)

    def test_closed_items_excluded(self, schedule):
        items = [make_item(1, MON, FRI, 40, closed_at="2026-03-01")]
        days = calculate_daily_capacity(items, schedule, MON, FRI)
        assert all(day.load_hours == 0 for day in days)

    def test_items_without_dates_or_estimate_excluded(self, schedule):
        items = [
            make_item(1, None, FRI, 40),
            make_item(2, MON, None, 40),
            make_item(3, MON, FRI, None),
        ]
        days = calculate_daily_capacity(items, schedule, MON, FRI)
        assert all(day.load_hours == 0 for day in days)

    def test_weekend_only_item_contributes_nothing(self, schedule):
        items = [make_item(1, date(2026, 3, 7), date(2026, 3, 8), 10)]
        days = calculate_daily_capacity(items, schedule, MON, date(2026, 3, 13))
        assert all(day.load_hours == 0 for day in days)

    def test_percentage_and_busy_status(self, schedule):
        # 32h over 5 days = 6.4h/day = 80%
        days = calculate_daily_capacity([make_item(1, MON, FRI, 32)], schedule, MON, FRI)
        assert days[0].percentage == 80
        assert days[0].status == "busy"

    def test_inverted_range_raises(self, schedule):
        with pytest.raises(ValueError):
            calculate_daily_capacity([], schedule, FRI, MON)

    def test_monthly_override(self):
        calendar = WorkCalendar(
            default=WeeklySchedule(),
            monthly_overrides={"2026-04": WeeklySchedule({
                "Mon": 4, "Tue": 4, "Wed": 4, "Thu": 4, "Fri": 4, "Sat": 0, "Sun": 0,
            })},
        )
        days = calculate_daily_capacity([], calendar, date(2026, 3, 31), date(2026, 4, 1))
        assert [day.capacity_hours for day in days] == [8, 4]


class TestStatusThresholds:
    @pytest.mark.parametrize(
        "percentage,expected",
        [
            (50, "available"),
            (79.9, "available"),
            (80, "busy"),
            (100, "busy"),
            (100.1, "overloaded"),
            (150, "overloaded"),
        ],
    )
    def test_thresholds(self, schedule, percentage, expected):
        assert EvenSpreadModel(schedule).status_for(percentage) == expected

    def test_custom_thresholds(self, schedule):
        model = EvenSpreadModel(schedule, CapacityConfig(busy_threshold=50))
        assert model.status_for(60) == "busy"


class TestScheduleValidation:
    def test_missing_weekday_raises(self):
        with pytest.raises(ValueError):
            WeeklySchedule({"Mon": 8, "Tue": 8})

    def test_negative_hours_raise(self):
        hours = {"Mon": -1, "Tue": 8, "Wed": 8, "Thu": 8, "Fri": 8, "Sat": 0, "Sun": 0}
        with pytest.raises(ValueError):
            WeeklySchedule(hours)

    def test_object_without_hours_rejected(self):
        class Broken:
            def hours_on(self, day):
                return 8

        with pytest.raises(ValueError):
            validate_schedule(Broken())


class TestCapacityByZoom:
    def test_week_buckets(self, schedule):
        items = [make_item(1, MON, FRI, 40)]
        periods = calculate_capacity_by_zoom(items, schedule, MON, MON + timedelta(days=13), "week")
        assert len(periods) == 2
        assert periods[0].start_date == MON
        assert periods[0].end_date == FRI
        assert periods[0].load_hours == 40
        assert periods[0].capacity_hours == 40
        assert periods[0].percentage == 100
        assert periods[0].status == "busy"
        assert periods[1].load_hours == 0
        assert periods[1].start_date == date(2026, 3, 9)
        assert periods[0].breakdown == []

    def test_week_starting_midweek(self, schedule):
        periods = calculate_capacity_by_zoom([], schedule, WED, date(2026, 3, 10), "week")
        assert [(p.start_date, p.end_date) for p in periods] == [
            (WED, FRI),
            (date(2026, 3, 9), date(2026, 3, 10)),
        ]

    def test_month_buckets(self, schedule):
        periods = calculate_capacity_by_zoom([], schedule, date(2026, 3, 30), date(2026, 4, 3), "month")
        assert [(p.start_date, p.end_date) for p in periods] == [
            (date(2026, 3, 30), date(2026, 3, 31)),
            (date(2026, 4, 1), date(2026, 4, 3)),
        ]
        assert periods[0].capacity_hours == 16
        assert periods[1].capacity_hours == 24

    def test_quarter_and_year(self, schedule):
        quarters = calculate_capacity_by_zoom([], schedule, date(2026, 3, 30), date(2026, 4, 3), "quarter")
        years = calculate_capacity_by_zoom([], schedule, date(2026, 3, 30), date(2026, 4, 3), "year")
        assert len(quarters) == 2
        assert len(years) == 1
        assert years[0].capacity_hours == 40

    def test_day_zoom_matches_daily(self, schedule):
        items = [make_item(1, MON, WED, 24)]
        periods = calculate_capacity_by_zoom(items, schedule, MON, FRI, "day")
        assert [p.load_hours for p in periods] == [8, 8, 8, 0, 0]
        assert all(p.start_date == p.end_date for p in periods)

    def test_weekend_only_range_has_no_buckets(self, schedule):
        assert calculate_capacity_by_zoom([], schedule, date(2026, 3, 7), date(2026, 3, 8), "week") == []

    def test_overloaded_week(self, schedule):
        items = [make_item(1, MON, FRI, 40), make_item(2, MON, FRI, 20)]
        periods = CapacityCalculator(schedule).capacity_by_zoom(items, MON, FRI, "week")
        assert periods[0].percentage == 150
        assert periods[0].status == "overloaded"

    def test_unknown_granularity_raises(self, schedule):
        with pytest.raises(ValueError):
            calculate_capacity_by_zoom([], schedule, MON, FRI, "fortnight")
