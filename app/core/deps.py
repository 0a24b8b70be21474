"""
Shared FastAPI dependencies.

Routers receive the data store through ``get_store`` so tests can swap in
an in-memory implementation with ``app.dependency_overrides``.
"""
from fastapi import Depends

from app.db import dynamo
from app.utils.behavior import BehaviorProfiler
from app.utils.budget_planner import BudgetPlanner
from app.utils.financial_health import FinancialHealthAnalyzer
from app.utils.fraud import FraudDetector
from app.utils.predictor import ExpensePredictor
from app.utils.report_export import ReportExporter


def get_store():
    return dynamo


def get_profiler(store=Depends(get_store)) -> BehaviorProfiler:
    return BehaviorProfiler(store)


def get_fraud_detector(store=Depends(get_store)) -> FraudDetector:
    return FraudDetector(store)


def get_budget_planner(store=Depends(get_store)) -> BudgetPlanner:
    return BudgetPlanner(store)


def get_predictor(store=Depends(get_store)) -> ExpensePredictor:
    return ExpensePredictor(store)


def get_health_analyzer(store=Depends(get_store)) -> FinancialHealthAnalyzer:
    return FinancialHealthAnalyzer(store)


def get_report_exporter(store=Depends(get_store)) -> ReportExporter:
    return ReportExporter(store)
