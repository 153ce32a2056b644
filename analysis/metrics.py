"""
Summary metrics for a scheduled forecast.
"""
from datetime import date
from typing import Dict, List, Optional, Sequence

import numpy as np

from analysis.flexibility import remaining_work_hours
from models import InternalEstimates, PeriodCapacity, WorkItem


def compute_forecast_metrics(
    days: Sequence[PeriodCapacity],
    items: Sequence[WorkItem],
    internal_estimates: Optional[InternalEstimates] = None,
    today: Optional[date] = None,
) -> Dict[str, object]:
    """
    Compute summary metrics for a day-by-day scheduled forecast.

    Args:
        days: Output of the scheduled capacity calculation
        items: Work items the forecast was computed for
        internal_estimates: Remaining-hour overrides used for the forecast
        today: Reconciliation day; actuals before it are history and do not
            count toward completing remaining work

    Returns:
        Dict of metric names to values
    """
    internal_estimates = internal_estimates or {}

    loads = np.array([day.load_hours for day in days], dtype=float)
    capacities = np.array([day.capacity_hours for day in days], dtype=float)

    # 1. Utilization of scheduled hours (percentage)
    total_capacity = float(capacities.sum()) if len(capacities) else 0.0
    total_load = float(loads.sum()) if len(loads) else 0.0
    utilization = total_load / total_capacity * 100 if total_capacity > 0 else 0.0

    # 2. Load spread (lower is smoother)
    mean_load = float(np.mean(loads)) if len(loads) else 0.0
    std_load = float(np.std(loads)) if len(loads) else 0.0

    # 3. Actual vs predicted hours
    actual_hours = sum(e.hours for day in days for e in day.breakdown if e.is_actual)
    predicted_hours = sum(e.hours for day in days for e in day.breakdown if not e.is_actual)
    slippage_hours = sum(e.hours for day in days for e in day.breakdown if e.is_slippage)

    # 4. Projected completion per item
    scheduled_by_item: Dict[int, float] = {}
    last_day_by_item: Dict[int, str] = {}
    for day in days:
        if today is not None and day.end_date < today:
            continue
        for entry in day.breakdown:
            scheduled_by_item[entry.item_id] = scheduled_by_item.get(entry.item_id, 0.0) + entry.hours
            last_day_by_item[entry.item_id] = day.end_date.isoformat()

    projected_completion: Dict[int, Optional[str]] = {}
    unscheduled_hours: Dict[int, float] = {}
    for item in items:
        if item.is_closed:
            continue
        internal = internal_estimates.get(item.id)
        needed = (
            max(0.0, internal.hours_remaining)
            if internal is not None
            else remaining_work_hours(item)
        )
        scheduled = scheduled_by_item.get(item.id, 0.0)
        left = round(max(0.0, needed - scheduled), 2)
        if needed <= 0:
            continue
        if left <= 0.01:
            projected_completion[item.id] = last_day_by_item.get(item.id)
        else:
            projected_completion[item.id] = None
            unscheduled_hours[item.id] = left

    return {
        "working_days": len(days),
        "total_load_hours": round(total_load, 2),
        "total_capacity_hours": round(total_capacity, 2),
        "utilization": round(utilization, 1),
        "mean_daily_load": round(mean_load, 2),
        "std_daily_load": round(std_load, 2),
        "peak_percentage": int(max((day.percentage for day in days), default=0)),
        "overloaded_periods": sum(1 for day in days if day.status == "overloaded"),
        "actual_hours": round(actual_hours, 2),
        "predicted_hours": round(predicted_hours, 2),
        "slippage_hours": round(slippage_hours, 2),
        "projected_completion": projected_completion,
        "unscheduled_hours": unscheduled_hours,
    }


def status_counts(statuses: List[Optional[str]]) -> Dict[str, int]:
    """Count flexibility statuses, ignoring unscored items."""
    counts = {"completed": 0, "on-track": 0, "at-risk": 0, "overbooked": 0}
    for status in statuses:
        if status in counts:
            counts[status] += 1
    return counts
