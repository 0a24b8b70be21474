import os
from copy import deepcopy
from typing import Dict, List, Optional

import pytest

os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from app.utils.dates import to_datetime  # noqa: E402


class InMemoryStore:
    """Drop-in replacement for app.db.dynamo keeping every table in dicts."""

    def __init__(self):
        self.incomes: Dict[tuple, dict] = {}
        self.expenses: Dict[tuple, dict] = {}
        self.budgets: Dict[tuple, dict] = {}
        self.goals: Dict[tuple, dict] = {}
        self.behavior: Dict[str, dict] = {}
        self.alerts: Dict[tuple, dict] = {}
        self.reports: Dict[tuple, dict] = {}

    # generic helpers

    @staticmethod
    def _update(table, key, updates) -> Optional[dict]:
        if not updates or key not in table:
            return None
        table[key].update(deepcopy(updates))
        return deepcopy(table[key])

    @staticmethod
    def _in_window(value, start, end) -> bool:
        when = to_datetime(value)
        if start is not None and when < to_datetime(start):
            return False
        if end is not None and when > to_datetime(end):
            return False
        return True

    def _by_user(self, table, user_id) -> List[dict]:
        return [deepcopy(item) for (owner, _), item in table.items() if owner == user_id]

    # incomes

    def put_income(self, item):
        self.incomes[(item["user_id"], item["income_id"])] = deepcopy(item)
        return True

    def get_income(self, user_id, income_id):
        return deepcopy(self.incomes.get((user_id, income_id)))

    def update_income(self, user_id, income_id, updates):
        return self._update(self.incomes, (user_id, income_id), updates)

    def delete_income(self, user_id, income_id):
        return self.incomes.pop((user_id, income_id), None) is not None

    def get_incomes(self, user_id, start=None, end=None):
        return [i for i in self._by_user(self.incomes, user_id) if self._in_window(i["date"], start, end)]

    # expenses

    def put_expense(self, item):
        self.expenses[(item["user_id"], item["expense_id"])] = deepcopy(item)
        return True

    def get_expense(self, user_id, expense_id):
        return deepcopy(self.expenses.get((user_id, expense_id)))

    def update_expense(self, user_id, expense_id, updates):
        return self._update(self.expenses, (user_id, expense_id), updates)

    def delete_expense(self, user_id, expense_id):
        return self.expenses.pop((user_id, expense_id), None) is not None

    def get_expenses(self, user_id, start=None, end=None):
        return [e for e in self._by_user(self.expenses, user_id) if self._in_window(e["date"], start, end)]

    # budgets

    def put_budget(self, item):
        self.budgets[(item["user_id"], item["budget_id"])] = deepcopy(item)
        return True

    def get_budget(self, user_id, budget_id):
        return deepcopy(self.budgets.get((user_id, budget_id)))

    def update_budget(self, user_id, budget_id, updates):
        return self._update(self.budgets, (user_id, budget_id), updates)

    def delete_budget(self, user_id, budget_id):
        return self.budgets.pop((user_id, budget_id), None) is not None

    def get_budgets(self, user_id, start=None, end=None):
        budgets = self._by_user(self.budgets, user_id)
        if start is not None:
            budgets = [b for b in budgets if to_datetime(b["end_date"]) >= to_datetime(start)]
        if end is not None:
            budgets = [b for b in budgets if to_datetime(b["start_date"]) <= to_datetime(end)]
        return budgets

    # goals

    def put_goal(self, item):
        self.goals[(item["user_id"], item["goal_id"])] = deepcopy(item)
        return True

    def get_goal(self, user_id, goal_id):
        return deepcopy(self.goals.get((user_id, goal_id)))

    def update_goal(self, user_id, goal_id, updates):
        return self._update(self.goals, (user_id, goal_id), updates)

    def delete_goal(self, user_id, goal_id):
        return self.goals.pop((user_id, goal_id), None) is not None

    def get_goals(self, user_id, status=None):
        goals = self._by_user(self.goals, user_id)
        return [g for g in goals if status is None or g.get("status") == status]

    # behavior

    def get_user_behavior(self, user_id):
        return deepcopy(self.behavior.get(user_id))

    def put_user_behavior(self, item):
        self.behavior[item["user_id"]] = deepcopy(item)
        return True

    # fraud alerts

    def put_fraud_alert(self, item):
        self.alerts[(item["user_id"], item["alert_id"])] = deepcopy(item)
        return True

    def get_fraud_alert(self, user_id, alert_id):
        return deepcopy(self.alerts.get((user_id, alert_id)))

    def update_fraud_alert(self, user_id, alert_id, updates):
        return self._update(self.alerts, (user_id, alert_id), updates)

    def get_fraud_alerts(self, user_id, status=None):
        alerts = self._by_user(self.alerts, user_id)
        return [a for a in alerts if status is None or a.get("status") == status]

    # reports

    def put_report(self, item):
        self.reports[(item["user_id"], item["report_id"])] = deepcopy(item)
        return True

    def get_reports(self, user_id):
        return self._by_user(self.reports, user_id)


class FakeS3:
    def __init__(self):
        self.objects = {}

    def upload_fileobj(self, fileobj, bucket, key, ExtraArgs=None):
        self.objects[(bucket, key)] = {"body": fileobj.read(), "extra": ExtraArgs}


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def fake_s3():
    return FakeS3()
