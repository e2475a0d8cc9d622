import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from app.core.config import settings
from app.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

# Initialize DynamoDB resource
dynamodb = boto3.resource(
    "dynamodb",
    region_name=settings.DYNAMO_REGION,
    endpoint_url=settings.DYNAMO_ENDPOINT_URL,
)

# Get table references
users_table = dynamodb.Table(settings.DYNAMO_USERS_TABLE)
expenses_table = dynamodb.Table(settings.DYNAMO_EXPENSES_TABLE)
savings_goals_table = dynamodb.Table(settings.DYNAMO_SAVINGS_GOALS_TABLE)

# Numeric attributes that stay Decimal when read back
MONEY_FIELDS = {"amount", "target_amount"}


def _raise_persistence_error(operation: str, error: ClientError):
    message = error.response["Error"]["Message"]
    logger.error(f"{operation} failed: {message}", exc_info=True)
    raise PersistenceError(operation, message) from error


def _is_conditional_failure(error: ClientError) -> bool:
    return error.response["Error"]["Code"] == "ConditionalCheckFailedException"


def _query_all(table, **kwargs) -> List[Dict[str, Any]]:
    """Run a query and follow LastEvaluatedKey until every page is read."""
    items = []
    while True:
        response = table.query(**kwargs)
        items.extend(response["Items"])
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return items
        kwargs["ExclusiveStartKey"] = last_key


def _build_update(updates: Dict[str, Any]) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
    update_expression_parts = []
    expression_attribute_values = {}
    expression_attribute_names = {}

    for idx, (key, value) in enumerate(updates.items()):
        placeholder = f"#f{idx}"
        value_placeholder = f":v{idx}"
        update_expression_parts.append(f"{placeholder} = {value_placeholder}")
        expression_attribute_names[placeholder] = key
        expression_attribute_values[value_placeholder] = value

    update_expression = "SET " + ", ".join(update_expression_parts)
    return update_expression, expression_attribute_names, _convert_for_dynamo(expression_attribute_values)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def get_user_by_email(email: str):
    """Query the Users table by email through the email-index GSI."""
    try:
        response = users_table.query(
            IndexName="email-index",
            KeyConditionExpression=Key("email").eq(email),
        )
        return _from_dynamo(response["Items"][0]) if response["Items"] else None
    except ClientError as e:
        _raise_persistence_error("get_user_by_email", e)


def get_user_by_id(user_id: str):
    """Get user by user_id from the Users table."""
    try:
        response = users_table.get_item(Key={"user_id": user_id})
        item = response.get("Item")
        return _from_dynamo(item) if item else None
    except ClientError as e:
        _raise_persistence_error("get_user_by_id", e)


def put_user(user_item: dict) -> bool:
    """Insert a new user. Returns False if the user_id is already taken."""
    try:
        users_table.put_item(
            Item=_convert_for_dynamo(user_item),
            ConditionExpression="attribute_not_exists(user_id)",
        )
        return True
    except ClientError as e:
        if _is_conditional_failure(e):
            return False
        _raise_persistence_error("put_user", e)


def update_user(user_id: str, updates: dict):
    """Apply partial updates to an existing user. Returns the updated item or None."""
    if not updates:
        return get_user_by_id(user_id)

    update_expression, names, values = _build_update(updates)
    try:
        response = users_table.update_item(
            Key={"user_id": user_id},
            UpdateExpression=update_expression,
            ConditionExpression="attribute_exists(user_id)",
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=values,
            ReturnValues="ALL_NEW",
        )
        return _from_dynamo(response["Attributes"])
    except ClientError as e:
        if _is_conditional_failure(e):
            return None
        _raise_persistence_error("update_user", e)


# ---------------------------------------------------------------------------
# Expenses
# ---------------------------------------------------------------------------

def put_expense(expense_item: dict) -> bool:
    """Insert an expense for a user."""
    try:
        expenses_table.put_item(Item=_convert_for_dynamo(expense_item))
        return True
    except ClientError as e:
        _raise_persistence_error("put_expense", e)


def get_expense(user_id: str, expense_id: str):
    """Fetch a single expense item."""
    try:
        response = expenses_table.get_item(Key={"user_id": user_id, "expense_id": expense_id})
        item = response.get("Item")
        return _from_dynamo(item) if item else None
    except ClientError as e:
        _raise_persistence_error("get_expense", e)


def query_expenses(
    user_id: str,
    year: Optional[int] = None,
    month: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Fetch a user's expenses, optionally narrowed by year, month, an inclusive
    date range and a category. Dates are stored as YYYY-MM-DD strings so
    range filters compare lexicographically.
    """
    conditions = []
    if year is not None:
        conditions.append(Attr("year").eq(year))
    if month is not None:
        conditions.append(Attr("month").eq(month))
    if start_date is not None:
        conditions.append(Attr("date").gte(start_date.isoformat()))
    if end_date is not None:
        conditions.append(Attr("date").lte(end_date.isoformat()))
    if category:
        conditions.append(Attr("category").eq(_convert_for_dynamo(category)))

    kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("user_id").eq(user_id)}
    if conditions:
        filter_expression = conditions[0]
        for condition in conditions[1:]:
            filter_expression = filter_expression & condition
        kwargs["FilterExpression"] = filter_expression

    try:
        return [_from_dynamo(item) for item in _query_all(expenses_table, **kwargs)]
    except ClientError as e:
        _raise_persistence_error("query_expenses", e)


def update_expense(user_id: str, expense_id: str, updates: dict):
    """
    Apply updates to an existing expense. Returns the updated item, or None
    when the expense does not exist for this user.
    """
    if not updates:
        return None

    update_expression, names, values = _build_update(updates)
    try:
        response = expenses_table.update_item(
            Key={"user_id": user_id, "expense_id": expense_id},
            UpdateExpression=update_expression,
            ConditionExpression="attribute_exists(expense_id)",
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=values,
            ReturnValues="ALL_NEW",
        )
        attributes = response.get("Attributes")
        return _from_dynamo(attributes) if attributes else None
    except ClientError as e:
        if _is_conditional_failure(e):
            return None
        _raise_persistence_error("update_expense", e)


def delete_expense(user_id: str, expense_id: str) -> bool:
    """Delete a specific expense item."""
    try:
        response = expenses_table.delete_item(
            Key={"user_id": user_id, "expense_id": expense_id},
            ReturnValues="ALL_OLD",
        )
        return "Attributes" in response
    except ClientError as e:
        _raise_persistence_error("delete_expense", e)


# ---------------------------------------------------------------------------
# Savings goals (sort key "period" = YYYY-MM, one item per user and month)
# ---------------------------------------------------------------------------

def goal_period(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def upsert_savings_goal(user_id: str, year: int, month: int, target_amount: Decimal) -> Tuple[Dict[str, Any], bool]:
    """
    Create or update the goal for (user, year, month) in a single UpdateItem.
    Returns the stored goal and whether it was newly created.
    """
    now = datetime.utcnow().isoformat()
    try:
        response = savings_goals_table.update_item(
            Key={"user_id": user_id, "period": goal_period(year, month)},
            UpdateExpression=(
                "SET target_amount = :target, updated_at = :now, #yr = :year, #mo = :month, "
                "goal_id = if_not_exists(goal_id, :goal_id), "
                "created_at = if_not_exists(created_at, :now)"
            ),
            ExpressionAttributeNames={"#yr": "year", "#mo": "month"},
            ExpressionAttributeValues=_convert_for_dynamo({
                ":target": target_amount,
                ":now": now,
                ":year": year,
                ":month": month,
                ":goal_id": str(uuid4()),
            }),
            ReturnValues="ALL_NEW",
        )
        goal = _from_dynamo(response["Attributes"])
        return goal, goal["created_at"] == now
    except ClientError as e:
        _raise_persistence_error("upsert_savings_goal", e)


def get_savings_goal(user_id: str, year: int, month: int):
    try:
        response = savings_goals_table.get_item(Key={"user_id": user_id, "period": goal_period(year, month)})
        item = response.get("Item")
        return _from_dynamo(item) if item else None
    except ClientError as e:
        _raise_persistence_error("get_savings_goal", e)


def list_savings_goals(user_id: str, year: Optional[int] = None) -> List[Dict[str, Any]]:
    """All goals for a user in chronological order, optionally for one year."""
    key_condition = Key("user_id").eq(user_id)
    if year is not None:
        key_condition = key_condition & Key("period").begins_with(f"{year:04d}-")
    try:
        items = _query_all(savings_goals_table, KeyConditionExpression=key_condition)
        return [_from_dynamo(item) for item in items]
    except ClientError as e:
        _raise_persistence_error("list_savings_goals", e)


def get_savings_goals_between(
    user_id: str, start: Tuple[int, int], end: Tuple[int, int]
) -> List[Dict[str, Any]]:
    """Goals whose (year, month) falls inside the inclusive range, chronologically."""
    key_condition = Key("user_id").eq(user_id) & Key("period").between(
        goal_period(*start), goal_period(*end)
    )
    try:
        items = _query_all(savings_goals_table, KeyConditionExpression=key_condition)
        return [_from_dynamo(item) for item in items]
    except ClientError as e:
        _raise_persistence_error("get_savings_goals_between", e)


def delete_savings_goal(user_id: str, goal_id: str) -> bool:
    """Delete a goal by its id. Returns False when the user has no such goal."""
    try:
        matches = _query_all(
            savings_goals_table,
            KeyConditionExpression=Key("user_id").eq(user_id),
            FilterExpression=Attr("goal_id").eq(goal_id),
        )
        if not matches:
            return False
        savings_goals_table.delete_item(
            Key={"user_id": user_id, "period": matches[0]["period"]},
            ConditionExpression=Attr("goal_id").eq(goal_id),
        )
        return True
    except ClientError as e:
        if _is_conditional_failure(e):
            return False
        _raise_persistence_error("delete_savings_goal", e)


def _convert_for_dynamo(obj: Any):
    """
    Recursively convert values into types DynamoDB accepts: floats to Decimal,
    dates to ISO strings and enums to their values.
    """
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def _from_dynamo(obj: Any, field: Optional[str] = None):
    """
    Recursively convert Decimal instances back to native Python numeric types.
    Money fields keep their exact Decimal value.
    """
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _from_dynamo(v, k) for k, v in obj.items()}
    if isinstance(obj, Decimal):
        if field in MONEY_FIELDS:
            return obj
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    return obj
