"""
Utility functions for generating synthetic work items and logged time.
"""
import random
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from faker import Faker

from models import ActualTimeByDay, RelationRecord, WorkItem
from utils.logger import logger


class DataGenerator:
    """Generator for demo snapshots: work items, relations and actuals."""

    def __init__(self, seed: int = 42, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the generator with a specific seed and optional configuration.

        Args:
            seed: Random seed for reproducibility
            config: Optional configuration settings
        """
        self.seed = seed
        self.fake = Faker()
        self.fake.seed_instance(seed)
        self.random = random.Random(seed)

        self.config = config or {
            "assignee_ids": [1, 2, 3],
            "self_user_id": 1,
            "item_hours_min": 4,
            "item_hours_max": 40,
            "duration_days_min": 2,
            "duration_days_max": 15,
            "start_offset_days_max": 20,
            "dependency_ratio": 0.2,
            "closed_ratio": 0.1,
            "project_start_date": date(2026, 3, 2),
        }

    def generate_items(self, num_items: int) -> List[WorkItem]:
        """
        Generate work items with blocking relations.

        Relations are reported from both endpoints, the way the work-item
        API delivers them.

        Args:
            num_items: Number of items to generate

        Returns:
            List[WorkItem]: Generated items
        """
        base_date = self.config["project_start_date"]
        items = []

        for i in range(num_items):
            start = base_date + timedelta(
                days=self.random.randint(0, self.config["start_offset_days_max"])
            )
            due = start + timedelta(
                days=self.random.randint(
                    self.config["duration_days_min"], self.config["duration_days_max"]
                )
            )
            estimated = float(
                self.random.randint(self.config["item_hours_min"], self.config["item_hours_max"])
            )
            done_ratio = self.random.choice([0, 0, 0, 10, 20, 50, 80])
            spent = round(estimated * done_ratio / 100 * self.random.uniform(0.8, 1.3), 1)
            assignee_id = self.random.choice(self.config["assignee_ids"])
            closed = self.random.random() < self.config["closed_ratio"]

            item = WorkItem(
                id=i + 1,
                start_date=start,
                due_date=due,
                estimated_hours=estimated,
                spent_hours=spent,
                done_ratio=done_ratio,
                closed_at=due.isoformat() if closed else None,
                assignee_id=assignee_id,
                subject=self.fake.catch_phrase(),
                status="Closed" if closed else self.random.choice(["New", "In Progress"]),
                assignee_name=f"User {assignee_id}",
            )
            items.append(item)
            logger.debug(f"Created item: {item}")

        num_relations = 0
        for item in items[1:]:
            if self.random.random() >= self.config["dependency_ratio"]:
                continue
            # Only earlier items can block, which keeps the graph acyclic
            blocker = self.random.choice([other for other in items if other.id < item.id])
            relation_type = self.random.choice(["blocks", "precedes"])
            mirror_type = "blocked" if relation_type == "blocks" else "follows"

            record = RelationRecord(blocker.id, item.id, relation_type)
            mirror = RelationRecord(item.id, blocker.id, mirror_type)
            blocker.relations.extend([record, mirror])
            item.relations.extend([mirror, record])
            num_relations += 1

        logger.info(f"Generated {len(items)} items, {num_relations} blocking relations.")
        return items

    def generate_actuals(
        self, items: List[WorkItem], today: date, days_back: int = 5
    ) -> ActualTimeByDay:
        """
        Generate logged hours for open items for the last few days up to today.

        Args:
            items: Items to log time against
            today: Last day with logged time
            days_back: How many days before today may have entries

        Returns:
            ActualTimeByDay: item id -> ISO date -> hours
        """
        actuals: ActualTimeByDay = {}
        open_items = [item for item in items if not item.is_closed and item.start_date]

        for offset in range(days_back, -1, -1):
            day = today - timedelta(days=offset)
            if day.weekday() >= 5:
                continue
            active = [
                item
                for item in open_items
                if item.start_date <= day and (item.due_date is None or day <= item.due_date)
            ]
            for item in self.random.sample(active, min(2, len(active))):
                hours = float(self.random.choice([0.5, 1, 1.5, 2, 3]))
                actuals.setdefault(item.id, {})[day.isoformat()] = hours

        logger.info(f"Generated actuals for {len(actuals)} items.")
        return actuals

    def generate_snapshot(
        self, num_items: int, today: Optional[date] = None
    ) -> Tuple[List[WorkItem], ActualTimeByDay]:
        """
        Generate a complete snapshot with items and logged time.

        Args:
            num_items: Number of items to generate
            today: Reconciliation day for actuals (defaults to a week into the project)

        Returns:
            Tuple[List[WorkItem], ActualTimeByDay]: Generated items and actuals
        """
        items = self.generate_items(num_items)
        today = today or self.config["project_start_date"] + timedelta(days=7)
        actuals = self.generate_actuals(items, today)
        return items, actuals
