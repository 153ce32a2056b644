"""End-to-end tests for the command line entry point."""

import json
from datetime import date

import pytest

from config import AppConfig
from main import default_range, load_snapshot, main, run_forecast

SNAPSHOT = {
    "schedule": {"Mon": 8, "Tue": 8, "Wed": 8, "Thu": 8, "Fri": 8, "Sat": 0, "Sun": 0},
    "items": [
        {
            "id": 1,
            "subject": "Design",
            "start_date": "2026-03-02",
            "due_date": "2026-03-13",
            "estimated_hours": 12,
            "relations": [{"target_item_id": 2, "relation_type": "blocks"}],
        },
        {
            "id": 2,
            "subject": "Build",
            "start_date": "2026-03-02",
            "due_date": "2026-03-13",
            "estimated_hours": 6,
            "relations": [{"target_item_id": 1, "relation_type": "blocked"}],
        },
        {"id": 3, "subject": "Done", "estimated_hours": 4, "closed_at": "2026-02-27"},
    ],
    "internal_estimates": {},
    "actuals": {"1": {"2026-03-02": 2}},
    "precedence": [],
}


@pytest.fixture
def snapshot_path(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(SNAPSHOT))
    return path


class TestLoadSnapshot:
    def test_parses_items_and_actuals(self, snapshot_path):
        snapshot = load_snapshot(str(snapshot_path), AppConfig())
        assert [item.id for item in snapshot["items"]] == [1, 2, 3]
        assert snapshot["items"][0].relations[0].owner_item_id == 1
        assert snapshot["items"][0].start_date == date(2026, 3, 2)
        assert snapshot["actuals"] == {1: {"2026-03-02": 2.0}}
        assert snapshot["precedence"] == set()

    def test_monthly_schedule_override(self, tmp_path):
        data = dict(SNAPSHOT, monthly_schedules={
            "2026-03": {"Mon": 4, "Tue": 4, "Wed": 4, "Thu": 4, "Fri": 4, "Sat": 0, "Sun": 0},
        })
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps(data))
        calendar = load_snapshot(str(path), AppConfig())["calendar"]
        assert calendar.hours_on(date(2026, 3, 2)) == 4
        assert calendar.hours_on(date(2026, 4, 6)) == 8


class TestRunForecast:
    def test_blocked_item_left_unscheduled(self, snapshot_path):
        snapshot = load_snapshot(str(snapshot_path), AppConfig())
        results = run_forecast(
            snapshot, AppConfig(), date(2026, 3, 2), date(2026, 3, 2), date(2026, 3, 13), "week"
        )
        assert len(results["scheduled"]) == 2
        monday = [row for row in results["breakdown"] if row["date"] == "2026-03-02"]
        assert [(row["item_id"], row["hours"], row["is_actual"]) for row in monday] == [
            (1, 2, True),
            (1, 4, False),
        ]
        assert results["metrics"]["projected_completion"] == {"1": "2026-03-03", "2": None}
        assert results["metrics"]["unscheduled_hours"] == {"2": 6}
        assert results["flexibility"]["3"] is None
        assert results["flexibility_summary"]["on-track"] == 2

    def test_default_range_is_at_least_four_weeks(self):
        start, end = default_range([], date(2026, 3, 2))
        assert start == date(2026, 3, 2)
        assert end == date(2026, 3, 29)

    def test_default_range_extends_to_latest_due_date(self, snapshot_path):
        items = load_snapshot(str(snapshot_path), AppConfig())["items"]
        assert default_range(items, date(2026, 2, 2)) == (date(2026, 2, 2), date(2026, 3, 13))


class TestMain:
    def test_writes_json(self, snapshot_path, tmp_path):
        output = tmp_path / "out" / "forecast.json"
        code = main([
            "--input", str(snapshot_path),
            "--today", "2026-03-02",
            "--start", "2026-03-02",
            "--end", "2026-03-13",
            "--zoom", "day",
            "--output", str(output),
        ])
        assert code == 0
        data = json.loads(output.read_text())
        assert set(data) == {
            "range", "flexibility", "flexibility_summary", "daily_capacity",
            "scheduled", "breakdown", "metrics",
        }
        assert len(data["scheduled"]) == 10
        assert data["range"]["today"] == "2026-03-02"

    def test_demo_with_excel(self, tmp_path):
        output = tmp_path / "forecast.json"
        excel = tmp_path / "forecast.xlsx"
        code = main(["--demo", "15", "--seed", "3", "--output", str(output), "--excel", str(excel)])
        assert code == 0
        assert output.exists()
        assert excel.exists()

    def test_log_file(self, snapshot_path, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        main([
            "--input", str(snapshot_path),
            "--today", "2026-03-02",
            "--output", str(tmp_path / "forecast.json"),
            "--log-level", "INFO",
            "--log-file", str(log_file),
        ])
        assert "Forecast saved to" in log_file.read_text()

    def test_requires_input(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["--output", str(tmp_path / "forecast.json")])
