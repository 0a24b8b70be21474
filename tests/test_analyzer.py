from datetime import datetime

from app.utils.analyzer import FinanceAnalyzer

sample_expenses = [
    {"expense_id": "e1", "category": "Food", "amount": 250.0, "merchant": "Cafe", "date": "2025-11-01T12:00:00Z"},
    {"expense_id": "e2", "category": "Rent", "amount": 1000.0, "merchant": "Landlord", "date": "2025-11-02T12:00:00Z"},
    {"expense_id": "e3", "category": "Food", "amount": 150.0, "merchant": "Cafe", "date": "2025-11-03T12:00:00Z"},
    {"expense_id": "e4", "category": "Shopping", "amount": 1200.0, "merchant": "Mall", "date": "2025-11-04T12:00:00Z"},
]

sample_incomes = [
    {"income_id": "i1", "category": "SALARY", "amount": 4000.0, "date": "2025-11-01T09:00:00Z"},
    {"income_id": "i2", "category": None, "amount": 500.0, "date": "2025-11-15T09:00:00Z"},
]

sample_budgets = [
    {"budget_id": "b1", "category": "Food", "limit": 300.0, "spent": 400.0},
    {"budget_id": "b2", "category": "Shopping", "limit": 2000.0, "spent": 1200.0},
]


def test_monthly_summary_totals():
    analyzer = FinanceAnalyzer()
    report = analyzer.monthly_summary(sample_incomes, sample_expenses, sample_budgets, 2025, 11)

    assert report["summary"] == {
        "total_income": 4500.0,
        "total_expenses": 2600.0,
        "net_savings": 1900.0,
        "savings_rate": 42.22,
    }
    assert report["income_breakdown"] == {"SALARY": 4000.0, "Other": 500.0}
    assert report["expense_breakdown"] == {"Food": 400.0, "Rent": 1000.0, "Shopping": 1200.0}
    assert report["period"]["end_date"] == datetime(2025, 11, 30, 23, 59, 59, 999999)


def test_monthly_summary_budget_performance():
    analyzer = FinanceAnalyzer()
    report = analyzer.monthly_summary([], sample_expenses, sample_budgets, 2025, 11)
    utilization = {b["category"]: b["utilization"] for b in report["budget_performance"]}
    assert utilization == {"Food": 133.33, "Shopping": 60.0}


def test_top_expenses_largest_first():
    analyzer = FinanceAnalyzer()
    top = analyzer.top_expenses(sample_expenses, limit=2)
    assert [e["amount"] for e in top] == [1200.0, 1000.0]


def test_expense_analysis():
    analyzer = FinanceAnalyzer()
    report = analyzer.expense_analysis(sample_expenses, datetime(2025, 11, 1), datetime(2025, 11, 30))

    assert report["summary"]["transaction_count"] == 4
    assert report["summary"]["average_transaction"] == 650.0
    food = report["category_analysis"]["Food"]
    assert food == {"count": 2, "total": 400.0, "average": 200.0, "percentage": 15.38}
    assert [e["expense_id"] for e in report["expenses"]] == ["e4", "e3", "e2", "e1"]


def test_expense_analysis_empty_window():
    analyzer = FinanceAnalyzer()
    report = analyzer.expense_analysis([], datetime(2025, 11, 1), datetime(2025, 11, 30))
    assert report["summary"]["average_transaction"] == 0
    assert report["category_analysis"] == {}


def test_budget_status_identity():
    analyzer = FinanceAnalyzer()
    over = analyzer.budget_status(sample_budgets[0])
    assert over["is_over_budget"] is True
    assert over["remaining"] == -100.0
    assert over["utilization"] == 133.33

    assert analyzer.budget_status({"limit": 0, "spent": 0})["utilization"] == 0


def test_monthly_trend_covers_six_months():
    analyzer = FinanceAnalyzer()
    trend = analyzer.monthly_trend(sample_incomes, sample_expenses, datetime(2026, 1, 10))
    assert [m["month"] for m in trend] == ["Aug 2025", "Sep 2025", "Oct 2025", "Nov 2025", "Dec 2025", "Jan 2026"]
    assert trend[3] == {"month": "Nov 2025", "income": 4500.0, "expenses": 2600.0}
    assert trend[5]["expenses"] == 0


def test_dashboard_counts():
    analyzer = FinanceAnalyzer()
    alerts = [
        {"alert_id": f"a{i}", "created_at": f"2025-11-0{i + 1}T00:00:00"} for i in range(7)
    ]
    budgets = [
        {"budget_id": "b1", "limit": 100, "spent": 50, "end_date": "2025-11-30T23:59:59"},
        {"budget_id": "b2", "limit": 100, "spent": 50, "end_date": "2025-10-31T23:59:59"},
    ]
    goals = [{"goal_id": "g1", "name": "Car", "target_amount": 1000, "current_amount": 250}]

    dashboard = analyzer.dashboard(
        sample_incomes, sample_expenses, budgets, goals, alerts, total_goals=3,
        start=datetime(2025, 11, 1), end=datetime(2025, 11, 30), period="month",
        now=datetime(2025, 11, 15),
    )

    assert dashboard["overview"]["net_savings"] == 1900.0
    assert dashboard["goals"][0]["progress"] == 25.0
    assert [a["alert_id"] for a in dashboard["alerts"]] == ["a6", "a5", "a4", "a3", "a2"]
    assert dashboard["recent_transactions"][0]["expense_id"] == "e4"
    assert dashboard["stats"] == {
        "total_budgets": 2,
        "active_budgets": 1,
        "total_goals": 3,
        "active_goals": 1,
        "pending_alerts": 5,
    }
