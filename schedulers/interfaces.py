"""
Interfaces for capacity models.
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Sequence

from config import CapacityConfig
from models import Schedule, WorkItem
from utils.validators import validate_date_range, validate_schedule


class CapacityModel(ABC):
    """Base interface for models that turn work items into per-day load."""

    def __init__(self, schedule: Schedule, config: Optional[CapacityConfig] = None):
        validate_schedule(schedule)
        self.schedule = schedule
        self.config = config or CapacityConfig()

    def status_for(self, percentage: float) -> str:
        """available below the busy threshold, busy up to 100%, overloaded above."""
        if percentage < self.config.busy_threshold:
            return "available"
        if percentage <= self.config.overloaded_threshold:
            return "busy"
        return "overloaded"

    @staticmethod
    def percentage_of(load_hours: float, capacity_hours: float) -> float:
        return load_hours / capacity_hours * 100 if capacity_hours > 0 else 0.0

    def check_range(self, start: date, end: date) -> None:
        validate_date_range(start, end)

    @abstractmethod
    def calculate(self, items: Sequence[WorkItem], start: date, end: date) -> List:
        """
        Compute load for every working day in a range.

        Args:
            items: Work items to load
            start: First day (inclusive)
            end: Last day (inclusive)

        Returns:
            List: One record per working day, in date order
        """
        pass


def round_hours(value: float) -> float:
    return round(value + 1e-9, 2)


def round_percent(value: float) -> int:
    return int(value + 0.5)
