"""
Greedy precedence-aware day-by-day scheduler.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from analysis.dependency_graph import (
    DependencyGraph,
    blocks_external,
    build_dependency_graph,
    count_downstream,
)
from analysis.flexibility import remaining_work_hours
from config import CapacityConfig
from models import (
    ActualTimeByDay,
    InternalEstimates,
    PeriodCapacity,
    Schedule,
    ScheduleEntry,
    WorkItem,
)
from schedulers.interfaces import CapacityModel, round_hours, round_percent
from utils.dates import format_date, iter_days
from utils.logger import logger

EPSILON = 1e-9


@dataclass
class SimulationState:
    """Mutable state threaded through the day loop."""

    remaining: Dict[int, float] = field(default_factory=dict)
    completed: Set[int] = field(default_factory=set)
    day: Optional[date] = None

    def consume(self, item_id: int, hours: float) -> None:
        if item_id not in self.remaining:
            return
        left = self.remaining[item_id] - hours
        if left <= EPSILON:
            left = 0.0
            self.completed.add(item_id)
        self.remaining[item_id] = left


class GreedyScheduler(CapacityModel):
    """
    Simulates a single worker filling each working day by priority.

    Each day is capped at daily_cap_ratio of the scheduled hours; an item due
    on or before the day may use up to overplan_ratio. Items are eligible
    between their start and due dates, while work remains and once all their
    blockers are forecast-complete. Blockers with a due date count as
    complete once the simulated day is past that date, whether or not the
    simulation actually finished them.

    Work forecast on an item's due date is flagged is_slippage, as is any
    work logged on or after it. A flagged entry on the due date itself means
    the item used its last day, not that it is late.
    """

    def __init__(
        self,
        schedule: Schedule,
        config: Optional[CapacityConfig] = None,
        graph: Optional[DependencyGraph] = None,
        internal_estimates: Optional[InternalEstimates] = None,
        self_user_id: Optional[int] = None,
        item_map: Optional[Mapping[int, WorkItem]] = None,
        actual_time_by_day: Optional[ActualTimeByDay] = None,
        today: Optional[date] = None,
        precedence_ids: Optional[Set[int]] = None,
    ):
        super().__init__(schedule, config)
        self.graph = graph
        self.internal_estimates = internal_estimates or {}
        self.self_user_id = self_user_id
        self.item_map = item_map
        self.actual_time_by_day = actual_time_by_day or {}
        self.today = today
        self.precedence_ids = set(precedence_ids or ())

    def remaining_work(self, item: WorkItem) -> float:
        """Internal estimate if present, otherwise derived from estimate and progress."""
        internal = self.internal_estimates.get(item.id)
        if internal is not None:
            return max(0.0, internal.hours_remaining)
        return remaining_work_hours(item)

    def is_schedulable(self, item: WorkItem) -> bool:
        if item.is_closed or item.start_date is None:
            return False
        return bool(item.estimated_hours and item.estimated_hours > 0) or (
            item.id in self.internal_estimates
        )

    def calculate(
        self, items: Sequence[WorkItem], start: date, end: date
    ) -> List[PeriodCapacity]:
        days, _ = self.simulate(items, start, end)
        return days

    def simulate(
        self, items: Sequence[WorkItem], start: date, end: date
    ) -> Tuple[List[PeriodCapacity], SimulationState]:
        """
        Run the day-by-day allocation.

        Args:
            items: Work items to schedule
            start: First day (inclusive)
            end: Last day (inclusive)

        Returns:
            Tuple of the per-day forecast and the final simulation state
        """
        self.check_range(start, end)

        graph = self.graph if self.graph is not None else build_dependency_graph(items)
        lookup: Dict[int, WorkItem] = {item.id: item for item in items}
        if self.item_map:
            lookup.update(self.item_map)

        schedulable = [item for item in items if self.is_schedulable(item)]
        state = SimulationState()
        for item in schedulable:
            state.remaining[item.id] = self.remaining_work(item)
            if state.remaining[item.id] <= 0:
                state.completed.add(item.id)

        priority = {
            item.id: self._priority_key(item, graph, lookup) for item in schedulable
        }

        result = []
        for day in iter_days(start, end):
            capacity_hours = self.schedule.hours_on(day)
            if capacity_hours <= 0:
                if day == self.today:
                    # No row for a day off, but hours logged today still reduce remaining work
                    self._apply_actuals(day, lookup, state, [])
                continue
            state.day = day

            breakdown: List[ScheduleEntry] = []
            used = 0.0

            if self.today is not None and day <= self.today:
                used += self._apply_actuals(day, lookup, state, breakdown)

            if self.today is None or day >= self.today:
                eligible = [
                    item
                    for item in schedulable
                    if self._is_eligible(item, day, graph, lookup, state)
                ]
                eligible.sort(key=lambda item: priority[item.id])
                used = self._allocate(day, capacity_hours, used, eligible, state, breakdown)

            percentage = self.percentage_of(used, capacity_hours)
            result.append(
                PeriodCapacity(
                    start_date=day,
                    end_date=day,
                    load_hours=round_hours(used),
                    capacity_hours=capacity_hours,
                    percentage=round_percent(percentage),
                    status=self.status_for(percentage),
                    breakdown=breakdown,
                )
            )

        unscheduled = sum(state.remaining.values())
        logger.info(
            f"Scheduled {len(schedulable)} items over {len(result)} working days; "
            f"{unscheduled:.2f}h left unscheduled."
        )
        return result, state

    def _priority_key(
        self, item: WorkItem, graph: DependencyGraph, lookup: Mapping[int, WorkItem]
    ) -> tuple:
        # Lower sorts first
        return (
            item.id not in self.precedence_ids,
            not blocks_external(item.id, graph, lookup, self.self_user_id),
            item.due_date or date.max,
            -count_downstream(item.id, graph),
            item.start_date or date.max,
            item.id,
        )

    def _blocker_complete(
        self, blocker_id: int, lookup: Mapping[int, WorkItem], state: SimulationState
    ) -> bool:
        blocker = lookup.get(blocker_id)
        if blocker is None:
            logger.debug(f"Blocker {blocker_id} has no data; treating as incomplete.")
            return False
        if blocker.is_closed or blocker.done_ratio >= 100:
            return True
        if blocker.due_date is not None:
            return state.day > blocker.due_date
        return blocker_id in state.completed

    def _is_eligible(
        self,
        item: WorkItem,
        day: date,
        graph: DependencyGraph,
        lookup: Mapping[int, WorkItem],
        state: SimulationState,
    ) -> bool:
        if day < item.start_date:
            return False
        if item.due_date is not None and day > item.due_date:
            return False
        if state.remaining.get(item.id, 0.0) <= 0:
            return False

        node = graph.get(item.id)
        if node is None:
            return True
        return all(self._blocker_complete(b, lookup, state) for b in node.upstream)

    def _apply_actuals(
        self,
        day: date,
        lookup: Mapping[int, WorkItem],
        state: SimulationState,
        breakdown: List[ScheduleEntry],
    ) -> float:
        """Record logged hours for day; on today they also reduce remaining work."""
        day_key = format_date(day)
        logged = 0.0
        for item_id in sorted(self.actual_time_by_day):
            by_day = self.actual_time_by_day[item_id]
            hours = by_day.get(day_key, by_day.get(day, 0.0)) or 0.0
            if hours <= 0:
                continue
            item = lookup.get(item_id)
            if item is not None and item.is_closed:
                continue

            due = item.due_date if item is not None else None
            breakdown.append(
                ScheduleEntry(
                    item_id=item_id,
                    hours=round_hours(hours),
                    is_slippage=due is not None and day >= due,
                    is_actual=True,
                )
            )
            logged += hours
            if day == self.today:
                state.consume(item_id, hours)

        return logged

    def _allocate(
        self,
        day: date,
        capacity_hours: float,
        used: float,
        eligible: List[WorkItem],
        state: SimulationState,
        breakdown: List[ScheduleEntry],
    ) -> float:
        daily_cap = capacity_hours * self.config.daily_cap_ratio
        overplan_cap = capacity_hours * self.config.overplan_ratio

        for item in eligible:
            due_now = item.due_date is not None and item.due_date <= day
            limit = overplan_cap if due_now else daily_cap
            free = limit - used
            if free <= EPSILON:
                continue

            hours = min(free, state.remaining[item.id])
            if hours <= EPSILON:
                continue

            breakdown.append(
                ScheduleEntry(
                    item_id=item.id,
                    hours=round_hours(hours),
                    is_slippage=due_now,
                    is_actual=False,
                )
            )
            used += hours
            state.consume(item.id, hours)
            logger.debug(f"{day}: {hours:.2f}h to item {item.id}")

        return used
