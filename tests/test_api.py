import logging
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.deps import get_fraud_detector, get_report_exporter, get_store
from app.core.security import create_access_token
from app.main import app, run
from app.utils.report_export import ReportExporter

auth_headers = {"Authorization": f"Bearer {create_access_token({'sub': 'u1'})}"}


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def recent(days=1):
    return (datetime.utcnow() - timedelta(days=days)).isoformat()


def test_requires_token(client):
    response = client.get("/api/expenses/")
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Token required"}


def test_rejects_bad_token(client):
    response = client.get("/api/expenses/", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid token"


def test_health_is_public(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_create_expense_runs_fraud_analysis(client, store):
    store.put_user_behavior({
        "user_id": "u1", "avg_transaction_amount": 100, "common_merchants": ["StoreA"],
        "common_locations": [], "common_categories": ["Food"],
    })
    response = client.post("/api/expenses/", headers=auth_headers, json={
        "amount": 350, "category": "Food", "merchant": "StoreB", "date": recent(),
    })

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    expense_id = body["data"]["expense_id"]
    assert body["data"]["is_suspicious"] is False

    scored = store.get_expense("u1", expense_id)
    assert scored["is_suspicious"] is True
    assert scored["risk_score"] == 50
    assert len(store.get_fraud_alerts("u1")) == 1


class FailingDetector:
    def analyze_expense(self, user_id, expense_id):
        raise RuntimeError("scorer down")


def test_fraud_analysis_failure_is_logged_not_raised(client, store, caplog):
    app.dependency_overrides[get_fraud_detector] = lambda: FailingDetector()
    with caplog.at_level(logging.ERROR, logger="app.routers.expenses"):
        response = client.post("/api/expenses/", headers=auth_headers, json={
            "amount": 40, "category": "Food", "merchant": "StoreA", "date": recent(),
        })

    assert response.status_code == 201
    expense_id = response.json()["data"]["expense_id"]
    assert store.get_expense("u1", expense_id)["amount"] == 40
    assert f"Fraud detection failed for expense {expense_id}: scorer down" in caplog.text


def test_create_expense_validation(client):
    response = client.post("/api/expenses/", headers=auth_headers, json={"amount": -5, "category": "Food"})
    assert response.status_code == 422


def test_expense_filters_and_ordering(client, store):
    for expense_id, category, days, suspicious in [
        ("e1", "Food", 3, False),
        ("e2", "Rent", 2, True),
        ("e3", "Food", 1, False),
    ]:
        store.put_expense({
            "user_id": "u1", "expense_id": expense_id, "amount": 10.0, "category": category,
            "date": recent(days), "is_suspicious": suspicious,
        })

    listed = client.get("/api/expenses/", headers=auth_headers).json()["data"]
    assert [e["expense_id"] for e in listed] == ["e3", "e2", "e1"]

    food = client.get("/api/expenses/", headers=auth_headers, params={"category": "Food"}).json()["data"]
    assert {e["expense_id"] for e in food} == {"e1", "e3"}

    flagged = client.get("/api/expenses/", headers=auth_headers, params={"is_suspicious": "true"}).json()["data"]
    assert [e["expense_id"] for e in flagged] == ["e2"]


def test_missing_expense_is_404(client):
    response = client.get("/api/expenses/nope", headers=auth_headers)
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Expense not found"}


def test_update_and_delete_expense(client, store):
    store.put_expense({"user_id": "u1", "expense_id": "e1", "amount": 10.0, "category": "Food", "date": recent()})

    updated = client.patch("/api/expenses/e1", headers=auth_headers, json={"amount": 25})
    assert updated.json()["data"]["amount"] == 25

    deleted = client.delete("/api/expenses/e1", headers=auth_headers)
    assert deleted.status_code == 200
    assert store.get_expense("u1", "e1") is None


def test_other_users_rows_are_invisible(client, store):
    store.put_expense({"user_id": "u2", "expense_id": "e9", "amount": 10.0, "category": "Food", "date": recent()})
    assert client.get("/api/expenses/e9", headers=auth_headers).status_code == 404
    assert client.get("/api/expenses/", headers=auth_headers).json()["data"] == []


def test_budget_rejects_reversed_dates(client):
    response = client.post("/api/budgets/", headers=auth_headers, json={
        "category": "Food", "limit": 100,
        "start_date": "2025-06-30T00:00:00", "end_date": "2025-06-01T00:00:00",
    })
    assert response.status_code == 422


def test_budget_listing_includes_status(client):
    client.post("/api/budgets/", headers=auth_headers, json={
        "category": "Food", "limit": 100, "spent": 120,
        "start_date": "2025-06-01T00:00:00", "end_date": "2025-06-30T00:00:00",
    })
    budgets = client.get("/api/budgets/", headers=auth_headers).json()["data"]
    assert budgets[0]["utilization"] == 120.0
    assert budgets[0]["is_over_budget"] is True
    assert budgets[0]["remaining"] == -20.0


def test_ai_budgets_without_history(client, store):
    response = client.post("/api/budgets/ai-generate", headers=auth_headers)
    assert response.json()["data"]["success"] is False
    assert store.get_budgets("u1") == []


def test_goal_crud(client):
    created = client.post("/api/goals/", headers=auth_headers, json={
        "name": "Emergency fund", "target_amount": 1000, "current_amount": 250,
    }).json()["data"]
    assert created["progress"] == 25.0

    goals = client.get("/api/goals/", headers=auth_headers, params={"status": "IN_PROGRESS"}).json()["data"]
    assert [g["goal_id"] for g in goals] == [created["goal_id"]]


def test_resolve_unknown_alert(client):
    response = client.post("/api/fraud/alerts/nope/resolve", headers=auth_headers, json={"is_confirmed": True})
    assert response.status_code == 404


def test_health_score_endpoint(client):
    data = client.get("/api/analytics/health-score", headers=auth_headers).json()["data"]
    assert 0 <= data["overall_score"] <= 100
    assert data["rating"] in {"Excellent", "Good", "Fair", "Needs Improvement"}


def test_predictions_need_history(client):
    data = client.get("/api/analytics/predictions", headers=auth_headers).json()["data"]
    assert data["success"] is False


def test_dashboard(client, store):
    store.put_income({"user_id": "u1", "income_id": "i1", "amount": 1000.0, "category": "SALARY", "date": recent(0)})
    data = client.get("/api/dashboard/", headers=auth_headers, params={"period": "last30days"}).json()["data"]
    assert data["overview"]["total_income"] == 1000.0
    assert data["period"]["type"] == "last30days"


def test_report_json(client):
    response = client.post("/api/reports/", headers=auth_headers, json={"type": "monthly-summary"})
    assert response.status_code == 200
    assert response.json()["data"]["summary"]["total_income"] == 0


def test_report_export_returns_201(client, store, fake_s3):
    app.dependency_overrides[get_report_exporter] = lambda: ReportExporter(store, s3_client=fake_s3, bucket="b")
    response = client.post("/api/reports/", headers=auth_headers, json={"type": "monthly-summary", "format": "csv"})

    assert response.status_code == 201
    assert response.json()["data"]["report"]["format"] == "CSV"
    assert len(client.get("/api/reports/", headers=auth_headers).json()["data"]) == 1


def test_invalid_report_type(client):
    response = client.post("/api/reports/", headers=auth_headers, json={"type": "weekly"})
    assert response.status_code == 422


def test_run_serves_app_with_configured_address(monkeypatch):
    calls = []
    monkeypatch.setattr("uvicorn.run", lambda target, host, port: calls.append((target, host, port)))
    run()
    assert calls == [(app, settings.HOST, settings.PORT)]
