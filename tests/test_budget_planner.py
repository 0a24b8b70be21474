from datetime import datetime, timedelta

from app.utils.budget_planner import BudgetPlanner, confidence_for, recommend_limits, suggest_adjustment

now = datetime(2025, 6, 15, 12, 0, 0)

history = [
    {"category": "Food", "amount": 100.0},
    {"category": "Food", "amount": 300.0},
    {"category": "Rent", "amount": 1000.0},
    {"category": "Rent", "amount": 1000.0},
]


def stored_expense(expense_id, category, amount, days_ago):
    return {
        "user_id": "u1",
        "expense_id": expense_id,
        "category": category,
        "amount": amount,
        "date": (now - timedelta(days=days_ago)).isoformat(),
    }


def test_recommend_limits_mean_plus_std_dev():
    recs = recommend_limits(history)
    assert [r["category"] for r in recs] == ["Rent", "Food"]

    food = recs[1]
    assert food["current_average"] == 200.0
    assert food["std_dev"] == 100.0
    assert food["recommended_limit"] == 300.0
    assert food["total_spent_last_6_months"] == 400.0
    assert food["transaction_count"] == 2
    # coefficient of variation is exactly 0.5
    assert food["confidence"] == "MEDIUM"

    rent = recs[0]
    assert rent["recommended_limit"] == 1000.0
    assert rent["confidence"] == "HIGH"


def test_confidence_tiers():
    assert confidence_for(100, 10) == "HIGH"
    assert confidence_for(100, 30) == "HIGH"
    assert confidence_for(100, 31) == "MEDIUM"
    assert confidence_for(100, 51) == "LOW"
    assert confidence_for(0, 0) == "LOW"


def test_no_history_means_no_budgets(store):
    planner = BudgetPlanner(store)
    assert planner.generate_recommendations("u1", now=now)["success"] is False

    result = planner.create_ai_budgets("u1", now=now)
    assert result["success"] is False
    assert store.get_budgets("u1") == []


def test_history_window_is_six_months(store):
    store.put_expense(stored_expense("e1", "Food", 100, days_ago=10))
    store.put_expense(stored_expense("e2", "Food", 5000, days_ago=200))

    recs = BudgetPlanner(store).generate_recommendations("u1", now=now)["recommendations"]
    assert recs[0]["current_average"] == 100.0


def test_create_ai_budgets(store):
    store.put_expense(stored_expense("e1", "Food", 100, days_ago=10))
    store.put_expense(stored_expense("e2", "Food", 300, days_ago=20))
    store.put_expense(stored_expense("e3", "Rent", 1000, days_ago=5))

    result = BudgetPlanner(store).create_ai_budgets("u1", now=now)

    assert result["success"] is True
    assert len(result["budgets"]) == 2
    budgets = {b["category"]: b for b in store.get_budgets("u1")}
    assert budgets["Food"]["limit"] == 300.0
    assert budgets["Food"]["ai_confidence"] == 0.7
    assert budgets["Rent"]["ai_confidence"] == 0.9
    assert budgets["Rent"]["is_ai_generated"] is True
    assert budgets["Rent"]["period"] == "MONTHLY"
    assert budgets["Rent"]["start_date"].startswith("2025-06-01")
    assert budgets["Rent"]["end_date"].startswith("2025-06-30")


def test_suggest_adjustment():
    over = suggest_adjustment({"budget_id": "b1", "category": "Food", "limit": 100, "spent": 95})
    assert over["suggested_limit"] == 120.0

    under_ai = suggest_adjustment({"budget_id": "b2", "limit": 100, "spent": 10, "is_ai_generated": True})
    assert under_ai["suggested_limit"] == 80.0

    assert suggest_adjustment({"budget_id": "b3", "limit": 100, "spent": 10}) is None
    assert suggest_adjustment({"budget_id": "b4", "limit": 100, "spent": 70}) is None


def test_adjust_budgets_only_running_budgets(store):
    store.put_budget({
        "user_id": "u1", "budget_id": "active", "category": "Food", "limit": 100, "spent": 150,
        "start_date": "2025-06-01T00:00:00", "end_date": "2025-06-30T23:59:59",
    })
    store.put_budget({
        "user_id": "u1", "budget_id": "expired", "category": "Food", "limit": 100, "spent": 150,
        "start_date": "2025-04-01T00:00:00", "end_date": "2025-04-30T23:59:59",
    })

    adjustments = BudgetPlanner(store).adjust_budgets("u1", now=now)["adjustments"]
    assert [a["budget_id"] for a in adjustments] == ["active"]
    assert adjustments[0]["utilization"] == 150.0
