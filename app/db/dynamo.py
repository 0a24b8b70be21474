"""
DynamoDB data store.

Every table is partitioned by user_id. Incomes and expenses additionally
carry a GSI (settings.DYNAMO_DATE_INDEX) keyed on user_id + date so date
windows can be queried without a scan. Dates are stored as naive-UTC ISO
strings, which sort lexicographically in time order.
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from app.core.config import settings
from app.utils.dates import to_datetime

logger = logging.getLogger(__name__)

# Initialize DynamoDB resource
dynamodb = boto3.resource("dynamodb", region_name=settings.DYNAMO_REGION)

# Get table references
incomes_table = dynamodb.Table(settings.DYNAMO_INCOMES_TABLE)
expenses_table = dynamodb.Table(settings.DYNAMO_EXPENSES_TABLE)
budgets_table = dynamodb.Table(settings.DYNAMO_BUDGETS_TABLE)
goals_table = dynamodb.Table(settings.DYNAMO_GOALS_TABLE)
behavior_table = dynamodb.Table(settings.DYNAMO_BEHAVIOR_TABLE)
alerts_table = dynamodb.Table(settings.DYNAMO_ALERTS_TABLE)
reports_table = dynamodb.Table(settings.DYNAMO_REPORTS_TABLE)

ALL_TABLES = {
    "incomes": incomes_table,
    "expenses": expenses_table,
    "budgets": budgets_table,
    "goals": goals_table,
    "user_behavior": behavior_table,
    "fraud_alerts": alerts_table,
    "reports": reports_table,
}


# --------------------------------------------------------------------------
# Incomes
# --------------------------------------------------------------------------

def put_income(income_item: dict) -> bool:
    return _put(incomes_table, income_item, "put_income")


def get_income(user_id: str, income_id: str) -> Optional[dict]:
    return _get(incomes_table, {"user_id": user_id, "income_id": income_id}, "get_income")


def update_income(user_id: str, income_id: str, updates: dict) -> Optional[dict]:
    return _update(incomes_table, {"user_id": user_id, "income_id": income_id}, updates, "update_income")


def delete_income(user_id: str, income_id: str) -> bool:
    return _delete(incomes_table, {"user_id": user_id, "income_id": income_id}, "delete_income")


def get_incomes(user_id: str, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[dict]:
    """All incomes of a user dated within [start, end]; open bounds are unbounded."""
    return _query_date_window(incomes_table, user_id, start, end, "get_incomes")


# --------------------------------------------------------------------------
# Expenses
# --------------------------------------------------------------------------

def put_expense(expense_item: dict) -> bool:
    """Insert or update an expense for a user."""
    return _put(expenses_table, expense_item, "put_expense")


def get_expense(user_id: str, expense_id: str) -> Optional[dict]:
    """Fetch a single expense item."""
    return _get(expenses_table, {"user_id": user_id, "expense_id": expense_id}, "get_expense")


def update_expense(user_id: str, expense_id: str, updates: dict) -> Optional[dict]:
    """
    Apply partial updates to an expense. Returns the updated item or None.
    """
    return _update(expenses_table, {"user_id": user_id, "expense_id": expense_id}, updates, "update_expense")


def delete_expense(user_id: str, expense_id: str) -> bool:
    """Delete a specific expense item."""
    return _delete(expenses_table, {"user_id": user_id, "expense_id": expense_id}, "delete_expense")


def get_expenses(user_id: str, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[dict]:
    """All expenses of a user dated within [start, end]; open bounds are unbounded."""
    return _query_date_window(expenses_table, user_id, start, end, "get_expenses")


# --------------------------------------------------------------------------
# Budgets
# --------------------------------------------------------------------------

def put_budget(budget_item: dict) -> bool:
    return _put(budgets_table, budget_item, "put_budget")


def get_budget(user_id: str, budget_id: str) -> Optional[dict]:
    return _get(budgets_table, {"user_id": user_id, "budget_id": budget_id}, "get_budget")


def update_budget(user_id: str, budget_id: str, updates: dict) -> Optional[dict]:
    return _update(budgets_table, {"user_id": user_id, "budget_id": budget_id}, updates, "update_budget")


def delete_budget(user_id: str, budget_id: str) -> bool:
    return _delete(budgets_table, {"user_id": user_id, "budget_id": budget_id}, "delete_budget")


def get_budgets(user_id: str, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[dict]:
    """
    Budgets whose [start_date, end_date] overlaps [start, end].
    With only ``start`` this is every budget still running at ``start``.
    """
    filter_expression = None
    if start is not None:
        filter_expression = Attr("end_date").gte(_iso(start))
    if end is not None:
        condition = Attr("start_date").lte(_iso(end))
        filter_expression = condition if filter_expression is None else filter_expression & condition

    kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("user_id").eq(user_id)}
    if filter_expression is not None:
        kwargs["FilterExpression"] = filter_expression
    return _query_all(budgets_table, kwargs, "get_budgets")


# --------------------------------------------------------------------------
# Financial goals
# --------------------------------------------------------------------------

def put_goal(goal_item: dict) -> bool:
    return _put(goals_table, goal_item, "put_goal")


def get_goal(user_id: str, goal_id: str) -> Optional[dict]:
    return _get(goals_table, {"user_id": user_id, "goal_id": goal_id}, "get_goal")


def update_goal(user_id: str, goal_id: str, updates: dict) -> Optional[dict]:
    return _update(goals_table, {"user_id": user_id, "goal_id": goal_id}, updates, "update_goal")


def delete_goal(user_id: str, goal_id: str) -> bool:
    return _delete(goals_table, {"user_id": user_id, "goal_id": goal_id}, "delete_goal")


def get_goals(user_id: str, status: Optional[str] = None) -> List[dict]:
    kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("user_id").eq(user_id)}
    if status:
        kwargs["FilterExpression"] = Attr("status").eq(status)
    return _query_all(goals_table, kwargs, "get_goals")


# --------------------------------------------------------------------------
# Behavioral profile (one item per user)
# --------------------------------------------------------------------------

def get_user_behavior(user_id: str) -> Optional[dict]:
    return _get(behavior_table, {"user_id": user_id}, "get_user_behavior")


def put_user_behavior(behavior_item: dict) -> bool:
    """Replace the whole profile; concurrent rebuilds are last-write-wins."""
    return _put(behavior_table, behavior_item, "put_user_behavior")


# --------------------------------------------------------------------------
# Fraud alerts
# --------------------------------------------------------------------------

def put_fraud_alert(alert_item: dict) -> bool:
    return _put(alerts_table, alert_item, "put_fraud_alert")


def get_fraud_alert(user_id: str, alert_id: str) -> Optional[dict]:
    return _get(alerts_table, {"user_id": user_id, "alert_id": alert_id}, "get_fraud_alert")


def update_fraud_alert(user_id: str, alert_id: str, updates: dict) -> Optional[dict]:
    return _update(alerts_table, {"user_id": user_id, "alert_id": alert_id}, updates, "update_fraud_alert")


def get_fraud_alerts(user_id: str, status: Optional[str] = None) -> List[dict]:
    kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("user_id").eq(user_id)}
    if status:
        kwargs["FilterExpression"] = Attr("status").eq(status)
    return _query_all(alerts_table, kwargs, "get_fraud_alerts")


# --------------------------------------------------------------------------
# Reports
# --------------------------------------------------------------------------

def put_report(report_item: dict) -> bool:
    return _put(reports_table, report_item, "put_report")


def get_reports(user_id: str) -> List[dict]:
    kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("user_id").eq(user_id)}
    return _query_all(reports_table, kwargs, "get_reports")


# --------------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------------

def _put(table, item: dict, operation: str) -> bool:
    try:
        table.put_item(Item=_convert_for_dynamo(item))
        return True
    except ClientError as e:
        logger.error(f"{operation} failed: {e.response['Error']['Message']}")
        return False


def _get(table, key: dict, operation: str) -> Optional[dict]:
    try:
        response = table.get_item(Key=key)
        item = response.get("Item")
        return _from_dynamo(item) if item else None
    except ClientError as e:
        logger.error(f"{operation} failed: {e.response['Error']['Message']}")
        return None


def _update(table, key: dict, updates: dict, operation: str) -> Optional[dict]:
    """
    SET the given attributes on an existing item. Returns the updated item,
    or None when nothing matched the key.
    """
    if not updates:
        return None

    update_expression_parts = []
    expression_attribute_values = {}
    expression_attribute_names = {}

    for idx, (name, value) in enumerate(updates.items()):
        placeholder = f"#f{idx}"
        value_placeholder = f":v{idx}"
        update_expression_parts.append(f"{placeholder} = {value_placeholder}")
        expression_attribute_names[placeholder] = name
        expression_attribute_values[value_placeholder] = value

    # Guard against update_item creating a new item for an unknown key
    expression_attribute_names["#pk"] = "user_id"

    try:
        response = table.update_item(
            Key=key,
            UpdateExpression="SET " + ", ".join(update_expression_parts),
            ConditionExpression="attribute_exists(#pk)",
            ExpressionAttributeNames=expression_attribute_names,
            ExpressionAttributeValues=_convert_for_dynamo(expression_attribute_values),
            ReturnValues="ALL_NEW",
        )
        attributes = response.get("Attributes")
        return _from_dynamo(attributes) if attributes else None
    except ClientError as e:
        if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
            return None
        logger.error(f"{operation} failed: {e.response['Error']['Message']}")
        return None


def _delete(table, key: dict, operation: str) -> bool:
    try:
        response = table.delete_item(Key=key, ReturnValues="ALL_OLD")
        return "Attributes" in response
    except ClientError as e:
        logger.error(f"{operation} failed: {e.response['Error']['Message']}")
        return False


def _query_date_window(table, user_id: str, start, end, operation: str) -> List[dict]:
    condition = Key("user_id").eq(user_id)
    if start is not None and end is not None:
        condition = condition & Key("date").between(_iso(start), _iso(end))
    elif start is not None:
        condition = condition & Key("date").gte(_iso(start))
    elif end is not None:
        condition = condition & Key("date").lte(_iso(end))

    kwargs = {"IndexName": settings.DYNAMO_DATE_INDEX, "KeyConditionExpression": condition}
    return _query_all(table, kwargs, operation)


def _query_all(table, kwargs: Dict[str, Any], operation: str) -> List[dict]:
    """Run a query and follow LastEvaluatedKey until every page is read."""
    items: List[dict] = []
    try:
        while True:
            response = table.query(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            kwargs = dict(kwargs, ExclusiveStartKey=last_key)
    except ClientError as e:
        logger.error(f"{operation} failed: {e.response['Error']['Message']}")
        return []
    return [_from_dynamo(item) for item in items]


def _iso(value) -> str:
    return to_datetime(value).isoformat()


def _convert_for_dynamo(obj: Any):
    """
    Recursively convert floats to Decimal (and dates/enums to strings) for DynamoDB.
    """
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return _iso(obj)
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def _from_dynamo(obj: Any):
    """
    Recursively convert Decimal instances back to native Python numeric types.
    """
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, set):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    return obj
