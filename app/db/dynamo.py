import logging
from datetime import datetime
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from app.core.config import settings
from app.core.errors import DuplicateResourceError, NotFoundError
from app.models.common import to_iso

logger = logging.getLogger(__name__)

DUPLICATE_BUDGET_MESSAGE = "Budget already exists for this category and period"

# (table name setting, sort key) for every per-user collection
TABLE_KEYS = {
    "transactions": ("DYNAMO_TRANSACTIONS_TABLE", "transaction_id"),
    "budgets": ("DYNAMO_BUDGETS_TABLE", "budget_id"),
    "budget_keys": ("DYNAMO_BUDGET_KEYS_TABLE", "budget_key"),
    "investments": ("DYNAMO_INVESTMENTS_TABLE", "investment_id"),
}


@lru_cache(maxsize=1)
def get_dynamodb():
    """Lazily build the shared DynamoDB resource (boto3 pools connections per resource)."""
    return boto3.resource(
        "dynamodb",
        region_name=settings.DYNAMO_REGION,
        endpoint_url=settings.DYNAMO_ENDPOINT_URL,
    )


def reset_connection() -> None:
    get_dynamodb.cache_clear()


def users_table():
    return get_dynamodb().Table(settings.DYNAMO_USERS_TABLE)


def transactions_table():
    return get_dynamodb().Table(settings.DYNAMO_TRANSACTIONS_TABLE)


def budgets_table():
    return get_dynamodb().Table(settings.DYNAMO_BUDGETS_TABLE)


def budget_keys_table():
    return get_dynamodb().Table(settings.DYNAMO_BUDGET_KEYS_TABLE)


def investments_table():
    return get_dynamodb().Table(settings.DYNAMO_INVESTMENTS_TABLE)


# ---------- Table management ----------

def create_tables() -> List[str]:
    """
    Create any missing tables (on-demand billing). Returns the names created.
    Used for DynamoDB Local and by the test suite.
    """
    dynamodb = get_dynamodb()
    existing = set(dynamodb.meta.client.list_tables()["TableNames"])
    created = []

    if settings.DYNAMO_USERS_TABLE not in existing:
        dynamodb.create_table(
            TableName=settings.DYNAMO_USERS_TABLE,
            KeySchema=[{"AttributeName": "user_id", "KeyType": "HASH"}],
            AttributeDefinitions=[
                {"AttributeName": "user_id", "AttributeType": "S"},
                {"AttributeName": "email", "AttributeType": "S"},
            ],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": "email-index",
                    "KeySchema": [{"AttributeName": "email", "KeyType": "HASH"}],
                    "Projection": {"ProjectionType": "ALL"},
                }
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        created.append(settings.DYNAMO_USERS_TABLE)

    for setting_name, sort_key in TABLE_KEYS.values():
        table_name = getattr(settings, setting_name)
        if table_name in existing:
            continue
        dynamodb.create_table(
            TableName=table_name,
            KeySchema=[
                {"AttributeName": "user_id", "KeyType": "HASH"},
                {"AttributeName": sort_key, "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "user_id", "AttributeType": "S"},
                {"AttributeName": sort_key, "AttributeType": "S"},
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        created.append(table_name)

    for table_name in created:
        dynamodb.meta.client.get_waiter("table_exists").wait(TableName=table_name)
        logger.info(f"Created DynamoDB table {table_name}")
    return created


def table_status() -> Dict[str, Dict[str, Any]]:
    """Describe each configured table; used by the health router."""
    client = get_dynamodb().meta.client
    names = [settings.DYNAMO_USERS_TABLE] + [getattr(settings, s) for s, _ in TABLE_KEYS.values()]
    status = {}
    for name in names:
        try:
            description = client.describe_table(TableName=name)["Table"]
            status[name] = {"status": description["TableStatus"], "items": description.get("ItemCount", 0)}
        except ClientError as e:
            status[name] = {"status": "error", "error": e.response["Error"]["Message"]}
    return status


# ---------- Filters ----------

def build_filter_expression(
    equals: Optional[Dict[str, Any]] = None,
    contains: Optional[Dict[str, str]] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    date_field: str = "date",
):
    """
    AND together the given conditions; None values are skipped. Returns None
    when nothing is filtered. Dates are compared in their stored ISO form.
    """
    conditions = []
    for field, value in (equals or {}).items():
        if value is not None:
            conditions.append(Attr(field).eq(value))
    for field, value in (contains or {}).items():
        if value:
            conditions.append(Attr(field).contains(value))
    if date_from is not None:
        conditions.append(Attr(date_field).gte(to_iso(date_from)))
    if date_to is not None:
        conditions.append(Attr(date_field).lte(to_iso(date_to)))

    if not conditions:
        return None
    expression = conditions[0]
    for condition in conditions[1:]:
        expression = expression & condition
    return expression


# ---------- Generic item helpers ----------

def _get(table, key: Dict[str, str]) -> Optional[dict]:
    try:
        response = table.get_item(Key=key)
    except ClientError as e:
        # malformed keys (e.g. oversized ids) are reported like missing records
        if e.response["Error"]["Code"] == "ValidationException":
            return None
        logger.error(f"get_item on {table.name} failed: {e.response['Error']['Message']}")
        raise
    item = response.get("Item")
    return _from_dynamo(item) if item else None


def _put(table, item: dict) -> dict:
    try:
        table.put_item(Item=_convert_for_dynamo(item))
    except ClientError as e:
        logger.error(f"put_item on {table.name} failed: {e.response['Error']['Message']}")
        raise
    return item


def _replace(table, item: dict, sort_key: str, resource: str) -> dict:
    """Overwrite an existing item; fails with NotFoundError if it was deleted meanwhile."""
    try:
        table.put_item(
            Item=_convert_for_dynamo(item),
            ConditionExpression=Attr(sort_key).exists(),
        )
    except ClientError as e:
        if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
            raise NotFoundError(resource)
        logger.error(f"put_item on {table.name} failed: {e.response['Error']['Message']}")
        raise
    return item


def _delete(table, key: Dict[str, str]) -> bool:
    try:
        response = table.delete_item(Key=key, ReturnValues="ALL_OLD")
    except ClientError as e:
        if e.response["Error"]["Code"] == "ValidationException":
            return False
        logger.error(f"delete_item on {table.name} failed: {e.response['Error']['Message']}")
        raise
    return "Attributes" in response


def _query_user(table, user_id: str, filter_expression=None) -> List[dict]:
    """Fetch every item a user owns in the table, following pagination."""
    kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("user_id").eq(user_id)}
    if filter_expression is not None:
        kwargs["FilterExpression"] = filter_expression

    items: List[dict] = []
    try:
        while True:
            response = table.query(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            kwargs["ExclusiveStartKey"] = last_key
    except ClientError as e:
        logger.error(f"query on {table.name} failed: {e.response['Error']['Message']}")
        raise
    return [_from_dynamo(item) for item in items]


# ---------- Users ----------

def get_user_by_email(email: str) -> Optional[dict]:
    """Query the Users table by email through the email-index GSI."""
    try:
        response = users_table().query(
            IndexName="email-index",
            KeyConditionExpression=Key("email").eq(email),
        )
    except ClientError as e:
        logger.error(f"get_user_by_email failed: {e.response['Error']['Message']}")
        raise
    return _from_dynamo(response["Items"][0]) if response["Items"] else None


def get_user_by_id(user_id: str) -> Optional[dict]:
    return _get(users_table(), {"user_id": user_id})


def put_user(user_item: dict) -> dict:
    return _put(users_table(), user_item)


# ---------- Transactions ----------

def put_transaction(item: dict) -> dict:
    return _put(transactions_table(), item)


def get_transaction(user_id: str, transaction_id: str) -> Optional[dict]:
    return _get(transactions_table(), {"user_id": user_id, "transaction_id": transaction_id})


def replace_transaction(item: dict) -> dict:
    return _replace(transactions_table(), item, "transaction_id", "Transaction")


def delete_transaction(user_id: str, transaction_id: str) -> bool:
    return _delete(transactions_table(), {"user_id": user_id, "transaction_id": transaction_id})


def query_transactions(user_id: str, filter_expression=None) -> List[dict]:
    return _query_user(transactions_table(), user_id, filter_expression)


# ---------- Budgets ----------

def budget_key(item: dict) -> str:
    return f"{item['category']}#{item['period']}"


def _key_guard(item: dict) -> dict:
    return {"user_id": item["user_id"], "budget_key": budget_key(item), "budget_id": item["budget_id"]}


def _transact(operations: List[dict], duplicate_index: Optional[int] = None) -> None:
    """
    Run a DynamoDB transaction. A failed condition on the operation at
    duplicate_index means the (user, category, period) key is taken; any
    other failed condition means the budget disappeared meanwhile.
    """
    try:
        get_dynamodb().meta.client.transact_write_items(TransactItems=operations)
    except ClientError as e:
        error = e.response["Error"]
        if error["Code"] != "TransactionCanceledException":
            logger.error(f"transact_write_items failed: {error['Message']}")
            raise
        reasons = [r.get("Code") for r in e.response.get("CancellationReasons", [])]
        if duplicate_index is not None:
            if len(reasons) > duplicate_index and reasons[duplicate_index] == "ConditionalCheckFailed":
                raise DuplicateResourceError(DUPLICATE_BUDGET_MESSAGE)
            if not reasons and "ConditionalCheckFailed" in error.get("Message", ""):
                raise DuplicateResourceError(DUPLICATE_BUDGET_MESSAGE)
        if "ConditionalCheckFailed" in reasons:
            raise NotFoundError("Budget")
        logger.error(f"transact_write_items cancelled: {error['Message']}")
        raise


def create_budget(item: dict) -> dict:
    """Insert a budget and claim its (category, period) key atomically."""
    _transact(
        [
            {
                "Put": {
                    "TableName": settings.DYNAMO_BUDGET_KEYS_TABLE,
                    "Item": _convert_for_dynamo(_key_guard(item)),
                    "ConditionExpression": "attribute_not_exists(budget_key)",
                }
            },
            {
                "Put": {
                    "TableName": settings.DYNAMO_BUDGETS_TABLE,
                    "Item": _convert_for_dynamo(item),
                }
            },
        ],
        duplicate_index=0,
    )
    return item


def get_budget(user_id: str, budget_id: str) -> Optional[dict]:
    return _get(budgets_table(), {"user_id": user_id, "budget_id": budget_id})


def query_budgets(user_id: str, filter_expression=None) -> List[dict]:
    return _query_user(budgets_table(), user_id, filter_expression)


def update_budget(old_item: dict, new_item: dict) -> dict:
    """Overwrite a budget, moving its uniqueness key when category or period changed."""
    if budget_key(old_item) == budget_key(new_item):
        return _replace(budgets_table(), new_item, "budget_id", "Budget")

    _transact(
        [
            {
                "Delete": {
                    "TableName": settings.DYNAMO_BUDGET_KEYS_TABLE,
                    "Key": {"user_id": old_item["user_id"], "budget_key": budget_key(old_item)},
                }
            },
            {
                "Put": {
                    "TableName": settings.DYNAMO_BUDGET_KEYS_TABLE,
                    "Item": _convert_for_dynamo(_key_guard(new_item)),
                    "ConditionExpression": "attribute_not_exists(budget_key)",
                }
            },
            {
                "Put": {
                    "TableName": settings.DYNAMO_BUDGETS_TABLE,
                    "Item": _convert_for_dynamo(new_item),
                    "ConditionExpression": "attribute_exists(budget_id)",
                }
            },
        ],
        duplicate_index=1,
    )
    return new_item


def delete_budget(item: dict) -> None:
    """Remove a budget and release its key."""
    _transact(
        [
            {
                "Delete": {
                    "TableName": settings.DYNAMO_BUDGETS_TABLE,
                    "Key": {"user_id": item["user_id"], "budget_id": item["budget_id"]},
                    "ConditionExpression": "attribute_exists(budget_id)",
                }
            },
            {
                "Delete": {
                    "TableName": settings.DYNAMO_BUDGET_KEYS_TABLE,
                    "Key": {"user_id": item["user_id"], "budget_key": budget_key(item)},
                }
            },
        ]
    )


# ---------- Investments ----------

def put_investment(item: dict) -> dict:
    return _put(investments_table(), item)


def get_investment(user_id: str, investment_id: str) -> Optional[dict]:
    return _get(investments_table(), {"user_id": user_id, "investment_id": investment_id})


def replace_investment(item: dict) -> dict:
    return _replace(investments_table(), item, "investment_id", "Investment")


def delete_investment(user_id: str, investment_id: str) -> bool:
    return _delete(investments_table(), {"user_id": user_id, "investment_id": investment_id})


def query_investments(user_id: str, filter_expression=None) -> List[dict]:
    return _query_user(investments_table(), user_id, filter_expression)


# ---------- Conversion ----------

def _convert_for_dynamo(obj: Any):
    """
    Recursively convert floats to Decimal for DynamoDB compatibility.
    """
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def _from_dynamo(obj: Any):
    """
    Recursively convert Decimal instances back to native Python numeric types.
    """
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    return obj
