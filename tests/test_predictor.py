from datetime import datetime, timedelta

from app.utils.predictor import ExpensePredictor, detect_recurring, project_category, sample_confidence

now = datetime(2025, 6, 15, 12, 0, 0)


def stored_expense(expense_id, amount, days_ago, category="Food", merchant=None):
    return {
        "user_id": "u1",
        "expense_id": expense_id,
        "category": category,
        "merchant": merchant,
        "amount": amount,
        "date": (now - timedelta(days=days_ago)).isoformat(),
    }


def test_sample_confidence():
    assert sample_confidence(10) == "HIGH"
    assert sample_confidence(5) == "MEDIUM"
    assert sample_confidence(4) == "LOW"


def test_project_category_damps_trend():
    rows = [
        stored_expense("e1", 100, 100),
        stored_expense("e2", 100, 60),
        stored_expense("e3", 100, 10),
        stored_expense("e4", 100, 5),
    ]
    # average 100, last 30 days 200 -> +100% trend, half carried over
    projection = project_category("Food", rows, now)
    assert projection["historical_average"] == 100.0
    assert projection["last_month_total"] == 200.0
    assert projection["trend"] == "increasing"
    assert projection["trend_percentage"] == 100.0
    assert projection["predicted_amount"] == 150.0
    assert projection["confidence"] == "LOW"


def test_predict_next_month_needs_ten_expenses(store):
    for i in range(9):
        store.put_expense(stored_expense(f"e{i}", 50, i + 1))
    assert ExpensePredictor(store).predict_next_month("u1", now)["success"] is False


def test_predict_next_month(store):
    for i in range(10):
        store.put_expense(stored_expense(f"e{i}", 50, 40 + i))
    result = ExpensePredictor(store).predict_next_month("u1", now)

    assert result["success"] is True
    food = result["predictions"][0]
    # nothing in the last 30 days: -100% trend halves the forecast
    assert food["trend"] == "decreasing"
    assert food["predicted_amount"] == 25.0
    assert result["total_predicted"] == 25.0
    assert result["next_month"]["start"] == datetime(2025, 7, 1)


def test_detect_recurring_monthly_merchant():
    rows = [
        stored_expense("e1", 499, 60, "Entertainment", "Netflix"),
        stored_expense("e2", 499, 30, "Entertainment", "Netflix"),
        stored_expense("e3", 499, 0, "Entertainment", "Netflix"),
        stored_expense("e4", 80, 50, "Food", "Cafe"),
    ]
    recurring = detect_recurring(rows)
    assert len(recurring) == 1
    netflix = recurring[0]
    assert netflix["merchant"] == "Netflix"
    assert netflix["frequency"] == 30
    assert netflix["occurrences"] == 3
    assert netflix["average_amount"] == 499.0
    assert netflix["next_expected_date"] == now + timedelta(days=30)


def test_detect_recurring_ignores_sparse_merchants():
    rows = [
        stored_expense("e1", 100, 80, merchant="Gym"),
        stored_expense("e2", 100, 40, merchant="Gym"),
        stored_expense("e3", 100, 0, merchant="Gym"),
    ]
    assert detect_recurring(rows) == []


def test_upcoming_bills(store):
    store.put_expense(stored_expense("e1", 499, 50, merchant="Netflix"))
    store.put_expense(stored_expense("e2", 499, 20, merchant="Netflix"))
    store.put_expense(stored_expense("e3", 1200, 25, merchant="Power"))
    store.put_expense(stored_expense("e4", 1200, 20, merchant="Power"))

    result = ExpensePredictor(store).predict_upcoming_bills("u1", days_ahead=30, now=now)

    # Power was due 15 days ago, Netflix is due in 10 days
    assert [bill["merchant"] for bill in result["upcoming_bills"]] == ["Netflix"]
    assert result["total_amount"] == 499.0
