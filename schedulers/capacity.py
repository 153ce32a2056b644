"""
Capacity calculator: even-spread load, zoom aggregation and scheduled forecast.
"""
from collections import OrderedDict
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from analysis.dependency_graph import DependencyGraph
from config import CapacityConfig
from models import (
    ActualTimeByDay,
    DailyCapacity,
    InternalEstimates,
    PeriodCapacity,
    Schedule,
    ScheduleEntry,
    WorkItem,
)
from schedulers.even_spread import EvenSpreadModel
from schedulers.greedy import GreedyScheduler
from schedulers.interfaces import round_hours, round_percent
from utils.dates import period_key
from utils.logger import logger
from utils.validators import validate_granularity


class CapacityCalculator:
    """
    Load and forecast calculations against a single schedule.

    Args:
        schedule: Weekly schedule or work calendar
        config: Capacity thresholds and caps
    """

    def __init__(self, schedule: Schedule, config: Optional[CapacityConfig] = None):
        self.config = config or CapacityConfig()
        self.even_spread = EvenSpreadModel(schedule, self.config)
        self.schedule = schedule

    def status_for(self, percentage: float) -> str:
        return self.even_spread.status_for(percentage)

    def daily_capacity(
        self, items: Sequence[WorkItem], start: date, end: date
    ) -> List[DailyCapacity]:
        """Even-spread daily load for every working day in [start, end]."""
        return self.even_spread.calculate(items, start, end)

    def capacity_by_zoom(
        self, items: Sequence[WorkItem], start: date, end: date, granularity: str
    ) -> List[PeriodCapacity]:
        """Even-spread load aggregated into day/week/month/quarter/year buckets."""
        validate_granularity(granularity)
        days = [
            PeriodCapacity(
                start_date=day.date,
                end_date=day.date,
                load_hours=day.load_hours,
                capacity_hours=day.capacity_hours,
                percentage=day.percentage,
                status=day.status,
            )
            for day in self.daily_capacity(items, start, end)
        ]
        return self.aggregate(days, granularity)

    def scheduler(self, **options) -> GreedyScheduler:
        return GreedyScheduler(self.schedule, self.config, **options)

    def scheduled_capacity(
        self,
        items: Sequence[WorkItem],
        start: date,
        end: date,
        graph: Optional[DependencyGraph] = None,
        internal_estimates: Optional[InternalEstimates] = None,
        self_user_id: Optional[int] = None,
        item_map: Optional[Mapping[int, WorkItem]] = None,
        actual_time_by_day: Optional[ActualTimeByDay] = None,
        today: Optional[date] = None,
        precedence_ids: Optional[Set[int]] = None,
    ) -> List[PeriodCapacity]:
        """Greedy precedence-aware forecast, one period per working day with breakdown."""
        scheduler = self.scheduler(
            graph=graph,
            internal_estimates=internal_estimates,
            self_user_id=self_user_id,
            item_map=item_map,
            actual_time_by_day=actual_time_by_day,
            today=today,
            precedence_ids=precedence_ids,
        )
        return scheduler.calculate(items, start, end)

    def scheduled_capacity_by_zoom(
        self,
        items: Sequence[WorkItem],
        start: date,
        end: date,
        granularity: str,
        **options,
    ) -> List[PeriodCapacity]:
        """Greedy forecast aggregated into buckets, breakdown merged per item."""
        validate_granularity(granularity)
        return self.aggregate(self.scheduled_capacity(items, start, end, **options), granularity)

    def aggregate(self, days: List[PeriodCapacity], granularity: str) -> List[PeriodCapacity]:
        """
        Sum consecutive days into calendar buckets.

        Args:
            days: Single-day periods in date order
            granularity: day, week, month, quarter or year

        Returns:
            List[PeriodCapacity]: One entry per bucket that has working days
        """
        validate_granularity(granularity)
        if granularity == "day":
            return days

        groups: "OrderedDict[Tuple[int, ...], List[PeriodCapacity]]" = OrderedDict()
        for day in days:
            groups.setdefault(period_key(day.start_date, granularity), []).append(day)

        periods = [self._aggregate_period(group) for group in groups.values()]
        periods.sort(key=lambda period: period.start_date)
        logger.debug(f"Aggregated {len(days)} days into {len(periods)} {granularity} buckets.")
        return periods

    def _aggregate_period(self, days: List[PeriodCapacity]) -> PeriodCapacity:
        load_hours = sum(day.load_hours for day in days)
        capacity_hours = sum(day.capacity_hours for day in days)
        percentage = self.even_spread.percentage_of(load_hours, capacity_hours)

        merged: Dict[Tuple[int, bool], ScheduleEntry] = {}
        for day in days:
            for entry in day.breakdown:
                key = (entry.item_id, entry.is_actual)
                if key not in merged:
                    merged[key] = ScheduleEntry(entry.item_id, 0.0, False, entry.is_actual)
                merged[key].hours = round_hours(merged[key].hours + entry.hours)
                merged[key].is_slippage = merged[key].is_slippage or entry.is_slippage

        return PeriodCapacity(
            start_date=days[0].start_date,
            end_date=days[-1].end_date,
            load_hours=round_hours(load_hours),
            capacity_hours=round_hours(capacity_hours),
            percentage=round_percent(percentage),
            status=self.status_for(percentage),
            breakdown=list(merged.values()),
        )


def calculate_daily_capacity(
    items: Sequence[WorkItem],
    schedule: Schedule,
    start: date,
    end: date,
    config: Optional[CapacityConfig] = None,
) -> List[DailyCapacity]:
    return CapacityCalculator(schedule, config).daily_capacity(items, start, end)


def calculate_capacity_by_zoom(
    items: Sequence[WorkItem],
    schedule: Schedule,
    start: date,
    end: date,
    granularity: str,
    config: Optional[CapacityConfig] = None,
) -> List[PeriodCapacity]:
    return CapacityCalculator(schedule, config).capacity_by_zoom(items, start, end, granularity)


def calculate_scheduled_capacity(
    items: Sequence[WorkItem],
    schedule: Schedule,
    start: date,
    end: date,
    graph: Optional[DependencyGraph] = None,
    internal_estimates: Optional[InternalEstimates] = None,
    self_user_id: Optional[int] = None,
    item_map: Optional[Mapping[int, WorkItem]] = None,
    actual_time_by_day: Optional[ActualTimeByDay] = None,
    today: Optional[date] = None,
    precedence_ids: Optional[Set[int]] = None,
    config: Optional[CapacityConfig] = None,
) -> List[PeriodCapacity]:
    return CapacityCalculator(schedule, config).scheduled_capacity(
        items,
        start,
        end,
        graph=graph,
        internal_estimates=internal_estimates,
        self_user_id=self_user_id,
        item_map=item_map,
        actual_time_by_day=actual_time_by_day,
        today=today,
        precedence_ids=precedence_ids,
    )


def calculate_scheduled_capacity_by_zoom(
    items: Sequence[WorkItem],
    schedule: Schedule,
    start: date,
    end: date,
    granularity: str,
    config: Optional[CapacityConfig] = None,
    **options,
) -> List[PeriodCapacity]:
    return CapacityCalculator(schedule, config).scheduled_capacity_by_zoom(
        items, start, end, granularity, **options
    )
