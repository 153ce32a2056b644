"""
Core data models for the workload forecasting engine.
"""
import json
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Union

WEEKDAY_KEYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

# Owner must finish before target
BLOCKING_RELATIONS = {"blocks", "precedes"}
# Owner waits on target
BLOCKED_RELATIONS = {"blocked", "follows"}

RELATION_TYPES = BLOCKING_RELATIONS | BLOCKED_RELATIONS | {
    "relates",
    "duplicates",
    "duplicated",
    "copied_to",
    "copied_from",
    "finish_to_start",
    "start_to_start",
    "finish_to_finish",
    "start_to_finish",
}


def _to_date(value: Union[str, date, None]) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass
class RelationRecord:
    """A relation as reported from the perspective of its owner item."""

    owner_item_id: int
    target_item_id: int
    relation_type: str

    @classmethod
    def from_dict(cls, data: Dict) -> "RelationRecord":
        return cls(
            owner_item_id=int(data["owner_item_id"]),
            target_item_id=int(data["target_item_id"]),
            relation_type=str(data["relation_type"]),
        )


@dataclass
class WorkItem:
    """Work item snapshot as delivered by the work-item source."""

    id: int
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    estimated_hours: Optional[float] = None
    spent_hours: float = 0.0
    done_ratio: int = 0
    closed_at: Optional[str] = None
    assignee_id: Optional[int] = None
    relations: List[RelationRecord] = field(default_factory=list)
    subject: str = ""
    status: str = ""
    assignee_name: Optional[str] = None

    def __post_init__(self):
        """Normalize dates given as ISO strings."""
        self.start_date = _to_date(self.start_date)
        self.due_date = _to_date(self.due_date)
        if self.spent_hours is None:
            self.spent_hours = 0.0
        if self.done_ratio is None:
            self.done_ratio = 0

    def __repr__(self) -> str:
        return (
            f"WorkItem({self.id}, start={self.start_date}, due={self.due_date}, "
            f"est={self.estimated_hours}, spent={self.spent_hours}, "
            f"done={self.done_ratio}%, closed={self.is_closed})"
        )

    @property
    def is_closed(self) -> bool:
        return self.closed_at is not None

    @classmethod
    def from_dict(cls, data: Dict) -> "WorkItem":
        """Build a work item from a JSON-style dictionary."""
        item_id = int(data["id"])
        relations = [
            RelationRecord.from_dict(
                {"owner_item_id": item_id, **rel} if "owner_item_id" not in rel else rel
            )
            for rel in data.get("relations") or []
        ]
        return cls(
            id=item_id,
            start_date=data.get("start_date"),
            due_date=data.get("due_date"),
            estimated_hours=data.get("estimated_hours"),
            spent_hours=data.get("spent_hours") or 0.0,
            done_ratio=data.get("done_ratio") or 0,
            closed_at=data.get("closed_at"),
            assignee_id=data.get("assignee_id"),
            relations=relations,
            subject=data.get("subject", ""),
            status=data.get("status", ""),
            assignee_name=data.get("assignee_name"),
        )


@dataclass
class WeeklySchedule:
    """Working hours available per weekday."""

    hours: Dict[str, float] = field(
        default_factory=lambda: {
            "Mon": 8, "Tue": 8, "Wed": 8, "Thu": 8, "Fri": 8, "Sat": 0, "Sun": 0,
        }
    )

    def __post_init__(self):
        missing = [key for key in WEEKDAY_KEYS if key not in self.hours]
        if missing:
            raise ValueError(f"Weekly schedule is missing weekdays: {missing}")
        unknown = [key for key in self.hours if key not in WEEKDAY_KEYS]
        if unknown:
            raise ValueError(f"Weekly schedule has unknown keys: {unknown}")
        for key in WEEKDAY_KEYS:
            if self.hours[key] < 0:
                raise ValueError(f"Negative working hours for {key}: {self.hours[key]}")

    def hours_on(self, day: date) -> float:
        """Scheduled hours for a calendar date."""
        return self.hours[WEEKDAY_KEYS[day.weekday()]]

    def fingerprint(self) -> str:
        return json.dumps([self.hours[key] for key in WEEKDAY_KEYS])

    @property
    def hours_per_week(self) -> float:
        return sum(self.hours.values())


@dataclass
class WorkCalendar:
    """Default weekly schedule with optional per-month overrides keyed "YYYY-MM"."""

    default: WeeklySchedule = field(default_factory=WeeklySchedule)
    monthly_overrides: Dict[str, WeeklySchedule] = field(default_factory=dict)

    def schedule_for(self, day: date) -> WeeklySchedule:
        return self.monthly_overrides.get(f"{day.year:04d}-{day.month:02d}", self.default)

    def hours_on(self, day: date) -> float:
        return self.schedule_for(day).hours_on(day)

    def fingerprint(self) -> str:
        overrides = {
            month: schedule.fingerprint()
            for month, schedule in sorted(self.monthly_overrides.items())
        }
        return json.dumps([self.default.fingerprint(), overrides])


Schedule = Union[WeeklySchedule, WorkCalendar]


@dataclass
class InternalEstimate:
    """Manual "hours remaining" override for a work item."""

    hours_remaining: float
    updated_at: str = ""


InternalEstimates = Dict[int, InternalEstimate]
ActualTimeByDay = Dict[int, Dict[str, float]]


@dataclass
class DependencyNode:
    upstream: set = field(default_factory=set)
    downstream: set = field(default_factory=set)


@dataclass
class BlockerInfo:
    """Direct blocker or dependent as shown to the caller."""

    id: int
    subject: str = ""
    assignee: Optional[str] = None
    status: str = "Unknown"
    hidden: bool = False

    def label(self) -> str:
        if self.hidden:
            return f"#{self.id} (filtered out)"
        return f"#{self.id} {self.subject}".rstrip()


@dataclass
class FlexibilityScore:
    initial_percent: int
    remaining_percent: int
    status: str
    days_remaining: int
    hours_remaining: float

    def to_dict(self) -> Dict:
        return {
            "initial_percent": self.initial_percent,
            "remaining_percent": self.remaining_percent,
            "status": self.status,
            "days_remaining": self.days_remaining,
            "hours_remaining": self.hours_remaining,
        }


@dataclass
class DailyCapacity:
    date: date
    load_hours: float
    capacity_hours: float
    percentage: int
    status: str

    def to_dict(self) -> Dict:
        return {
            "date": self.date.isoformat(),
            "load_hours": self.load_hours,
            "capacity_hours": self.capacity_hours,
            "percentage": self.percentage,
            "status": self.status,
        }


@dataclass
class ScheduleEntry:
    """Hours forecast (or logged) for one item on one day."""

    item_id: int
    hours: float
    is_slippage: bool = False
    is_actual: bool = False

    def to_dict(self) -> Dict:
        return {
            "item_id": self.item_id,
            "hours": self.hours,
            "is_slippage": self.is_slippage,
            "is_actual": self.is_actual,
        }


@dataclass
class PeriodCapacity:
    start_date: date
    end_date: date
    load_hours: float
    capacity_hours: float
    percentage: int
    status: str
    breakdown: List[ScheduleEntry] = field(default_factory=list)

    @property
    def date(self) -> date:
        """Start date; single-day periods are keyed by it."""
        return self.start_date

    def to_dict(self) -> Dict:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "load_hours": self.load_hours,
            "capacity_hours": self.capacity_hours,
            "percentage": self.percentage,
            "status": self.status,
            "breakdown": [entry.to_dict() for entry in self.breakdown],
        }
