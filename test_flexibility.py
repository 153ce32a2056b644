"""Tests for flexibility scoring and remaining-work derivation."""

from datetime import date

import pytest

from analysis.flexibility import (
    FlexibilityCache,
    FlexibilityCalculator,
    calculate_flexibility,
    remaining_work_hours,
)
from config import FlexibilityConfig
from models import WeeklySchedule, WorkItem

MON = date(2026, 3, 2)
WED = date(2026, 3, 4)
FRI = date(2026, 3, 6)
SAT = date(2026, 3, 7)
NEXT_MON = date(2026, 3, 9)


@pytest.fixture
def schedule():
    return WeeklySchedule()


def make_item(**kwargs):
    defaults = dict(id=1, start_date=MON, due_date=FRI, estimated_hours=20.0)
    defaults.update(kwargs)
    return WorkItem(**defaults)


class TestRemainingWorkHours:
    def test_uses_done_ratio(self):
        assert remaining_work_hours(make_item(estimated_hours=20, done_ratio=25)) == 15

    def test_nothing_spent_nothing_done(self):
        assert remaining_work_hours(make_item(estimated_hours=20)) == 20

    def test_zero_ratio_falls_back_to_spent(self):
        item = make_item(estimated_hours=10, spent_hours=4, done_ratio=0)
        assert remaining_work_hours(item) == 6

    def test_over_budget_ignores_spent(self):
        item = make_item(estimated_hours=10, spent_hours=15, done_ratio=50)
        assert remaining_work_hours(item) == 5

    def test_over_budget_without_progress_keeps_full_estimate(self):
        item = make_item(estimated_hours=10, spent_hours=15, done_ratio=0)
        assert remaining_work_hours(item) == 10

    def test_never_negative(self):
        assert remaining_work_hours(make_item(estimated_hours=10, done_ratio=120)) == 0

    def test_missing_estimate_is_zero(self):
        assert remaining_work_hours(make_item(estimated_hours=None)) == 0


class TestCalculateFlexibility:
    def test_missing_due_date_returns_none(self, schedule):
        assert calculate_flexibility(make_item(due_date=None), schedule, MON) is None

    def test_missing_estimate_returns_none(self, schedule):
        assert calculate_flexibility(make_item(estimated_hours=None), schedule, MON) is None

    def test_double_the_time_is_on_track(self, schedule):
        score = calculate_flexibility(make_item(), schedule, MON)
        assert score.remaining_percent == 100
        assert score.initial_percent == 100
        assert score.status == "on-track"
        assert score.days_remaining == 5
        assert score.hours_remaining == 20

    def test_small_buffer_is_at_risk(self, schedule):
        score = calculate_flexibility(make_item(estimated_hours=36), schedule, MON)
        assert score.remaining_percent == 11
        assert score.status == "at-risk"

    def test_exactly_enough_time_is_at_risk(self, schedule):
        score = calculate_flexibility(make_item(estimated_hours=40), schedule, MON)
        assert score.remaining_percent == 0
        assert score.status == "at-risk"

    def test_status_follows_rounded_percent(self, schedule):
        # 40h available for 40.1h of work is about -0.25%, which rounds to 0
        score = calculate_flexibility(make_item(estimated_hours=40.1), schedule, MON)
        assert score.remaining_percent == 0
        assert score.status == "at-risk"

    def test_too_little_time_is_overbooked(self, schedule):
        score = calculate_flexibility(make_item(estimated_hours=50), schedule, MON)
        assert score.remaining_percent == -20
        assert score.status == "overbooked"

    def test_done_is_completed(self, schedule):
        score = calculate_flexibility(make_item(done_ratio=100), schedule, MON)
        assert score.status == "completed"
        assert score.hours_remaining == 0

    def test_remaining_counts_from_now(self, schedule):
        # Wed-Fri = 24h available for 20h of work
        score = calculate_flexibility(make_item(), schedule, WED)
        assert score.remaining_percent == 20
        assert score.status == "on-track"
        assert score.initial_percent == 100
        assert score.days_remaining == 3

    def test_weekend_now_counts_no_hours_for_weekend(self, schedule):
        item = make_item(due_date=NEXT_MON, estimated_hours=4)
        score = calculate_flexibility(item, schedule, SAT)
        # Only Monday's 8h are available
        assert score.remaining_percent == 100

    def test_past_due_is_overbooked_with_negative_days(self, schedule):
        score = calculate_flexibility(make_item(), schedule, NEXT_MON)
        assert score.status == "overbooked"
        assert score.remaining_percent == -100
        assert score.days_remaining == -1

    def test_effective_spent_hours_override(self, schedule):
        score = calculate_flexibility(make_item(), schedule, MON, effective_spent_hours=10)
        assert score.hours_remaining == 10
        assert score.remaining_percent == 300

    def test_configurable_threshold(self, schedule):
        config = FlexibilityConfig(at_risk_threshold=150)
        score = calculate_flexibility(make_item(), schedule, MON, config=config)
        assert score.status == "at-risk"


class TestFlexibilityCache:
    def test_repeated_calls_hit_cache(self, schedule):
        calculator = FlexibilityCalculator(schedule)
        item = make_item()
        first = calculator.calculate(item, MON)
        second = calculator.calculate(item, MON)
        assert first is second
        assert len(calculator.cache) == 1

    def test_schedule_change_invalidates(self, schedule):
        calculator = FlexibilityCalculator(schedule)
        calculator.calculate(make_item(), MON)
        calculator.set_schedule(WeeklySchedule({
            "Mon": 4, "Tue": 4, "Wed": 4, "Thu": 4, "Fri": 4, "Sat": 0, "Sun": 0,
        }))
        assert len(calculator.cache) == 0
        assert calculator.calculate(make_item(), MON).remaining_percent == 0

    def test_shared_cache_invalidate(self, schedule):
        cache = FlexibilityCache()
        FlexibilityCalculator(schedule, cache=cache).calculate(make_item(), MON)
        assert len(cache) == 1
        cache.invalidate()
        assert len(cache) == 0

    def test_build_cache_skips_closed(self, schedule):
        items = [make_item(id=1), make_item(id=2, closed_at="2026-03-01"), make_item(id=3, due_date=None)]
        scores = FlexibilityCalculator(schedule).build_cache(items, MON)
        assert scores[1].status == "on-track"
        assert scores[2] is None
        assert scores[3] is None
