"""
Flexibility scoring: schedule slack of a work item before its due date.

Flexibility compares the hours the schedule still offers before the due date
with the hours of work left:

    +100% -> twice the time needed
       0% -> exactly enough time
     -50% -> needs 50% more time than is available
"""
from datetime import date
from typing import Dict, Iterable, Optional, Tuple

from config import FlexibilityConfig
from models import FlexibilityScore, Schedule, WorkItem
from utils.dates import count_available_hours, working_days_until
from utils.logger import logger


def remaining_work_hours(item: WorkItem, spent_hours: Optional[float] = None) -> float:
    """
    Hours of work left on an item, derived from its estimate and progress.

    Done ratio is preferred. When nothing is reported done but time has been
    logged, the logged time is subtracted instead, unless the item is over
    budget, where spent time no longer says anything about what is left.

    Args:
        item: Work item
        spent_hours: Override for item.spent_hours

    Returns:
        float: Remaining hours, never negative
    """
    estimated = item.estimated_hours or 0.0
    done_ratio = item.done_ratio or 0
    spent = item.spent_hours if spent_hours is None else spent_hours
    spent = spent or 0.0

    if done_ratio > 0 or spent == 0 or spent > estimated:
        return max(0.0, estimated * (1 - done_ratio / 100))

    return max(0.0, estimated - spent)


def flexibility_percent(available: float, needed: float) -> float:
    if needed <= 0:
        return 100.0
    return (available / needed - 1) * 100


def _round(value: float) -> int:
    # Half-up, so +0.5 rounds the same way on both sides of a status threshold
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def calculate_flexibility(
    item: WorkItem,
    schedule: Schedule,
    now: date,
    effective_spent_hours: Optional[float] = None,
    config: Optional[FlexibilityConfig] = None,
) -> Optional[FlexibilityScore]:
    """
    Calculate the flexibility score of an item.

    Args:
        item: Work item to score
        schedule: Weekly schedule or work calendar
        now: Reference day (inclusive)
        effective_spent_hours: Override for spent hours (e.g. ad-hoc contributions)
        config: Threshold configuration

    Returns:
        FlexibilityScore, or None when due date or estimate is missing
    """
    if item.due_date is None or not item.estimated_hours:
        return None

    config = config or FlexibilityConfig()
    hours_remaining = remaining_work_hours(item, effective_spent_hours)

    plan_start = item.start_date or now
    initial = flexibility_percent(
        count_available_hours(plan_start, item.due_date, schedule),
        item.estimated_hours,
    )
    days_remaining = working_days_until(now, item.due_date, schedule)

    if item.done_ratio >= 100 or hours_remaining <= 0:
        return FlexibilityScore(
            initial_percent=_round(initial),
            remaining_percent=100,
            status="completed",
            days_remaining=days_remaining,
            hours_remaining=0.0,
        )

    available = count_available_hours(now, item.due_date, schedule)
    remaining = flexibility_percent(available, hours_remaining)
    remaining_percent = _round(remaining)

    if remaining_percent < 0:
        status = "overbooked"
    elif remaining_percent < config.at_risk_threshold:
        status = "at-risk"
    else:
        status = "on-track"

    return FlexibilityScore(
        initial_percent=_round(initial),
        remaining_percent=remaining_percent,
        status=status,
        days_remaining=days_remaining,
        hours_remaining=round(hours_remaining, 2),
    )


class FlexibilityCache:
    """Memo of flexibility scores keyed by item, schedule fingerprint and day."""

    def __init__(self):
        self._scores: Dict[Tuple[int, str, date], Optional[FlexibilityScore]] = {}

    def get(self, key):
        return self._scores.get(key)

    def __contains__(self, key) -> bool:
        return key in self._scores

    def __len__(self) -> int:
        return len(self._scores)

    def put(self, key, score: Optional[FlexibilityScore]) -> None:
        self._scores[key] = score

    def invalidate(self) -> None:
        """Drop every cached score; call whenever the schedule configuration changes."""
        logger.debug(f"Flexibility cache cleared ({len(self._scores)} entries).")
        self._scores.clear()


class FlexibilityCalculator:
    """Scores items against one schedule, memoizing results."""

    def __init__(
        self,
        schedule: Schedule,
        config: Optional[FlexibilityConfig] = None,
        cache: Optional[FlexibilityCache] = None,
    ):
        self.schedule = schedule
        self.config = config or FlexibilityConfig()
        self.cache = cache if cache is not None else FlexibilityCache()

    def set_schedule(self, schedule: Schedule) -> None:
        self.schedule = schedule
        self.cache.invalidate()

    def calculate(self, item: WorkItem, now: date) -> Optional[FlexibilityScore]:
        key = (item.id, self.schedule.fingerprint(), now)
        if key in self.cache:
            return self.cache.get(key)

        score = calculate_flexibility(item, self.schedule, now, config=self.config)
        self.cache.put(key, score)
        return score

    def build_cache(
        self, items: Iterable[WorkItem], now: date
    ) -> Dict[int, Optional[FlexibilityScore]]:
        """
        Score a batch of items.

        Closed items map to None; they have no schedule risk left.
        """
        scores = {}
        for item in items:
            if item.is_closed:
                scores[item.id] = None
                continue
            scores[item.id] = self.calculate(item, now)

        logger.debug(f"Scored flexibility for {len(scores)} items.")
        return scores
