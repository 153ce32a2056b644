"""
Configuration management for the forecasting engine.
"""
from dataclasses import dataclass, field
from typing import Dict, Any

from models import WEEKDAY_KEYS, WeeklySchedule, WorkCalendar


@dataclass
class ScheduleConfig:
    """Standard working hours per weekday."""

    mon: float = 8.0
    tue: float = 8.0
    wed: float = 8.0
    thu: float = 8.0
    fri: float = 8.0
    sat: float = 0.0
    sun: float = 0.0

    def to_schedule(self) -> WeeklySchedule:
        return WeeklySchedule({key: getattr(self, key.lower()) for key in WEEKDAY_KEYS})


@dataclass
class CapacityConfig:
    """Configuration for capacity forecasting."""

    daily_cap_ratio: float = 0.75
    overplan_ratio: float = 1.0
    busy_threshold: float = 80.0
    overloaded_threshold: float = 100.0


@dataclass
class FlexibilityConfig:
    """Configuration for flexibility scoring."""

    at_risk_threshold: float = 20.0


@dataclass
class AppConfig:
    """Main application configuration."""

    seed: int = 42
    log_level: str = "INFO"
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    capacity: CapacityConfig = field(default_factory=CapacityConfig)
    flexibility: FlexibilityConfig = field(default_factory=FlexibilityConfig)
    monthly_schedules: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def calendar(self) -> WorkCalendar:
        """Working calendar built from the weekly schedule and monthly overrides."""
        return WorkCalendar(
            default=self.schedule.to_schedule(),
            monthly_overrides={
                month: WeeklySchedule(dict(hours))
                for month, hours in self.monthly_schedules.items()
            },
        )

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "AppConfig":
        """Create a configuration from a flat dictionary."""
        schedule_config = ScheduleConfig(
            **{
                k.split("_", 1)[1].lower(): float(v)
                for k, v in config_dict.items()
                if k.startswith("SCHEDULE_")
            }
        )

        capacity_config = CapacityConfig(
            **{
                k.split("_", 1)[1].lower(): float(v)
                for k, v in config_dict.items()
                if k.startswith("CAPACITY_")
            }
        )

        flexibility_config = FlexibilityConfig(
            at_risk_threshold=config_dict.get("FLEXIBILITY_AT_RISK_THRESHOLD", 20.0),
        )

        return cls(
            seed=config_dict.get("SEED", 42),
            log_level=config_dict.get("LOG_LEVEL", "INFO"),
            schedule=schedule_config,
            capacity=capacity_config,
            flexibility=flexibility_config,
            monthly_schedules=config_dict.get("MONTHLY_SCHEDULES", {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a flat dictionary."""
        result = {"SEED": self.seed, "LOG_LEVEL": self.log_level}

        for key, value in vars(self.schedule).items():
            result[f"SCHEDULE_{key.upper()}"] = value

        for key, value in vars(self.capacity).items():
            result[f"CAPACITY_{key.upper()}"] = value

        for key, value in vars(self.flexibility).items():
            result[f"FLEXIBILITY_{key.upper()}"] = value

        if self.monthly_schedules:
            result["MONTHLY_SCHEDULES"] = self.monthly_schedules

        return result
