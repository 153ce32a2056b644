"""
Main entry point: run the workload forecast over a work-item snapshot.
"""
import argparse
import json
import logging
import os
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from analysis.dependency_graph import build_dependency_graph
from analysis.export import breakdown_rows, export_forecast_to_excel
from analysis.flexibility import FlexibilityCalculator
from analysis.metrics import compute_forecast_metrics, status_counts
from config import AppConfig
from models import InternalEstimate, WeeklySchedule, WorkCalendar, WorkItem
from schedulers.capacity import CapacityCalculator
from utils.dates import parse_date
from utils.generators import DataGenerator
from utils.logger import logger, setup_logger
from utils.validators import find_cycles, validate_graph


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from file or use defaults.

    Args:
        config_path: Path to configuration file

    Returns:
        AppConfig: Application configuration
    """
    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                config_dict = json.load(f)
            return AppConfig.from_dict(config_dict)
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")
            logger.info("Using default configuration.")
            return AppConfig()
    else:
        return AppConfig()


def load_snapshot(path: str, config: AppConfig) -> Dict[str, Any]:
    """
    Load a work-item snapshot from JSON.

    Args:
        path: Snapshot file
        config: Configuration supplying the default calendar

    Returns:
        Dict with items, calendar, internal_estimates, actuals and precedence
    """
    with open(path, "r") as f:
        raw = json.load(f)

    calendar = config.calendar()
    if raw.get("schedule"):
        calendar = WorkCalendar(WeeklySchedule(dict(raw["schedule"])), calendar.monthly_overrides)
    for month, hours in (raw.get("monthly_schedules") or {}).items():
        calendar.monthly_overrides[month] = WeeklySchedule(dict(hours))

    internal_estimates = {
        int(item_id): InternalEstimate(
            hours_remaining=float(value["hours_remaining"]),
            updated_at=value.get("updated_at", ""),
        )
        for item_id, value in (raw.get("internal_estimates") or {}).items()
    }
    actuals = {
        int(item_id): {day: float(hours) for day, hours in by_day.items()}
        for item_id, by_day in (raw.get("actuals") or {}).items()
    }

    return {
        "items": [WorkItem.from_dict(entry) for entry in raw.get("items", [])],
        "calendar": calendar,
        "internal_estimates": internal_estimates,
        "actuals": actuals,
        "precedence": {int(i) for i in raw.get("precedence") or []},
    }


def default_range(items: List[WorkItem], today: date) -> tuple:
    """From today to the latest due date (at least four weeks)."""
    due_dates = [item.due_date for item in items if item.due_date and not item.is_closed]
    end = max(due_dates + [today + timedelta(days=27)])
    return today, end


def run_forecast(
    snapshot: Dict[str, Any],
    config: AppConfig,
    today: date,
    start: Optional[date] = None,
    end: Optional[date] = None,
    zoom: str = "week",
    user_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Run flexibility scoring, the even-spread baseline and the scheduled forecast.

    Args:
        snapshot: Output of load_snapshot (or an equivalent generated snapshot)
        config: Application configuration
        today: Reconciliation day and flexibility reference day
        start: First forecast day (defaults to today)
        end: Last forecast day (defaults to the latest due date)
        zoom: Aggregation granularity for the scheduled forecast
        user_id: Current user, for external block detection

    Returns:
        Dict[str, Any]: Serializable forecast results
    """
    items = snapshot["items"]
    calendar = snapshot["calendar"]
    default_start, default_end = default_range(items, today)
    start = start or default_start
    end = end or default_end

    graph = build_dependency_graph(items)
    if not validate_graph(graph):
        logger.warning(f"Blocking cycles found: {find_cycles(graph)}")

    flexibility = FlexibilityCalculator(calendar, config.flexibility).build_cache(items, today)

    calculator = CapacityCalculator(calendar, config.capacity)
    daily = calculator.daily_capacity(items, start, end)
    scheduled = calculator.scheduled_capacity(
        items,
        start,
        end,
        graph=graph,
        internal_estimates=snapshot["internal_estimates"],
        self_user_id=user_id,
        actual_time_by_day=snapshot["actuals"],
        today=today,
        precedence_ids=snapshot["precedence"],
    )
    zoomed = calculator.aggregate(scheduled, zoom)
    metrics = compute_forecast_metrics(scheduled, items, snapshot["internal_estimates"], today)

    logger.info(
        f"Forecast {start} to {end}: utilization {metrics['utilization']}%, "
        f"{metrics['overloaded_periods']} overloaded days, "
        f"{metrics['slippage_hours']}h at the deadline."
    )

    return {
        "range": {"start": start.isoformat(), "end": end.isoformat(), "today": today.isoformat()},
        "flexibility": {
            str(item_id): score.to_dict() if score else None
            for item_id, score in flexibility.items()
        },
        "flexibility_summary": status_counts(
            [score.status if score else None for score in flexibility.values()]
        ),
        "daily_capacity": [day.to_dict() for day in daily],
        "scheduled": [period.to_dict() for period in zoomed],
        "breakdown": breakdown_rows(scheduled),
        "metrics": {
            **metrics,
            "projected_completion": {
                str(k): v for k, v in metrics["projected_completion"].items()
            },
            "unscheduled_hours": {str(k): v for k, v in metrics["unscheduled_hours"].items()},
        },
        "_scheduled_days": scheduled,
        "_flexibility": flexibility,
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments and run the forecast."""
    parser = argparse.ArgumentParser(description="Workload & capacity forecast")
    parser.add_argument("--input", type=str, help="Path to work-item snapshot JSON")
    parser.add_argument("--config", type=str, help="Path to configuration file")
    parser.add_argument("--demo", type=int, default=0, help="Generate N synthetic items instead of --input")
    parser.add_argument("--seed", type=int, default=None, help="Seed for --demo data")
    parser.add_argument("--today", type=str, help="Reconciliation day (YYYY-MM-DD)")
    parser.add_argument("--start", type=str, help="First forecast day (YYYY-MM-DD)")
    parser.add_argument("--end", type=str, help="Last forecast day (YYYY-MM-DD)")
    parser.add_argument(
        "--zoom",
        choices=["day", "week", "month", "quarter", "year"],
        default="week",
        help="Aggregation level of the scheduled forecast",
    )
    parser.add_argument("--user-id", type=int, default=None, help="Current user id")
    parser.add_argument("--output", type=str, default="output/forecast.json", help="JSON output path")
    parser.add_argument("--excel", type=str, default=None, help="Optional Excel report path")
    parser.add_argument("--log-file", type=str, default=None, help="Also write log output to this file")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set the logging level",
    )
    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logger(level=getattr(logging, args.log_level or config.log_level), log_file=args.log_file)

    if args.demo:
        generator = DataGenerator(seed=args.seed if args.seed is not None else config.seed)
        today = parse_date(args.today) if args.today else None
        items, actuals = generator.generate_snapshot(args.demo, today)
        today = today or generator.config["project_start_date"] + timedelta(days=7)
        snapshot = {
            "items": items,
            "calendar": config.calendar(),
            "internal_estimates": {},
            "actuals": actuals,
            "precedence": set(),
        }
        user_id = args.user_id if args.user_id is not None else generator.config["self_user_id"]
    elif args.input:
        snapshot = load_snapshot(args.input, config)
        today = parse_date(args.today, "--today") if args.today else date.today()
        user_id = args.user_id
    else:
        parser.error("either --input or --demo is required")

    start = parse_date(args.start, "--start") if args.start else None
    end = parse_date(args.end, "--end") if args.end else None

    results = run_forecast(snapshot, config, today, start, end, args.zoom, user_id)

    if args.excel:
        export_forecast_to_excel(
            args.excel,
            snapshot["items"],
            results["_scheduled_days"],
            results["_flexibility"],
            results["metrics"],
        )

    serializable = {k: v for k, v in results.items() if not k.startswith("_")}
    directory = os.path.dirname(args.output)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(args.output, "w") as f:
        json.dump(serializable, f, indent=2)
    logger.info(f"Forecast saved to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
