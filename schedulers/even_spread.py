"""
Even-spread baseline: every item contributes estimate / working days on each of its days.
"""
from datetime import date
from typing import Dict, List, Sequence

from models import DailyCapacity, WorkItem
from schedulers.interfaces import CapacityModel, round_hours, round_percent
from utils.dates import count_working_days, date_in_range, iter_days
from utils.logger import logger


class EvenSpreadModel(CapacityModel):
    """
    Pro-rata load model.

    Concurrent items each add their full daily share, so a day can exceed
    100% of capacity. Items need start date, due date and estimate to
    contribute; closed items never do.
    """

    def hours_per_day(self, item: WorkItem) -> float:
        if item.start_date is None or item.due_date is None or not item.estimated_hours:
            return 0.0
        working_days = count_working_days(item.start_date, item.due_date, self.schedule)
        if working_days <= 0:
            return 0.0
        return item.estimated_hours / working_days

    def calculate(
        self, items: Sequence[WorkItem], start: date, end: date
    ) -> List[DailyCapacity]:
        self.check_range(start, end)

        open_items = [item for item in items if not item.is_closed]
        per_day: Dict[int, float] = {}
        for item in open_items:
            hours = self.hours_per_day(item)
            if hours > 0:
                per_day[item.id] = hours

        result = []
        for day in iter_days(start, end):
            capacity_hours = self.schedule.hours_on(day)
            if capacity_hours <= 0:
                continue

            load_hours = sum(
                per_day.get(item.id, 0.0)
                for item in open_items
                if date_in_range(day, item.start_date, item.due_date)
            )
            percentage = self.percentage_of(load_hours, capacity_hours)
            result.append(
                DailyCapacity(
                    date=day,
                    load_hours=round_hours(load_hours),
                    capacity_hours=capacity_hours,
                    percentage=round_percent(percentage),
                    status=self.status_for(percentage),
                )
            )

        logger.debug(
            f"Even-spread load for {len(per_day)} items over {len(result)} working days."
        )
        return result
