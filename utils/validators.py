"""
Validation utilities for engine inputs and dependency graphs.
"""
from datetime import date
from typing import List

import networkx as nx

from models import WEEKDAY_KEYS, Schedule, WorkCalendar
from utils.dates import GRANULARITIES
from utils.logger import logger


def validate_date_range(start: date, end: date) -> None:
    """Raise if the range is inverted."""
    if start > end:
        raise ValueError(f"Invalid date range: start {start} is after end {end}")


def validate_schedule(schedule: Schedule) -> None:
    """Raise if the schedule cannot provide hours for every weekday."""
    schedules = [schedule]
    if isinstance(schedule, WorkCalendar):
        schedules = [schedule.default, *schedule.monthly_overrides.values()]

    for weekly in schedules:
        hours = getattr(weekly, "hours", None)
        if not isinstance(hours, dict):
            raise ValueError(f"Schedule has no weekday hours: {weekly!r}")
        missing = [key for key in WEEKDAY_KEYS if key not in hours]
        if missing:
            raise ValueError(f"Schedule is missing weekdays: {missing}")
        negative = [key for key in WEEKDAY_KEYS if hours[key] < 0]
        if negative:
            raise ValueError(f"Schedule has negative hours for: {negative}")


def validate_granularity(granularity: str) -> None:
    if granularity not in GRANULARITIES:
        raise ValueError(
            f"Unknown granularity {granularity!r}; expected one of {GRANULARITIES}"
        )


def validate_graph(graph) -> bool:
    """Validate the dependency graph for circular blocking chains."""
    digraph = graph.to_networkx()

    if not nx.is_directed_acyclic_graph(digraph):
        cycle = nx.find_cycle(digraph)
        logger.error(f"Dependency graph has circular blocking chain: {cycle}")
        return False

    return True


def find_cycles(graph) -> List[List[int]]:
    """Return every elementary blocking cycle, each as a list of item ids."""
    return [sorted(cycle) for cycle in nx.simple_cycles(graph.to_networkx())]
