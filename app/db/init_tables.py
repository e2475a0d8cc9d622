"""
app/db/init_tables.py
---------------------
Creates the DynamoDB tables used by the API if they do not already exist.
Handy against DynamoDB Local:
    DYNAMO_ENDPOINT_URL=http://localhost:8001 python -m app.db.init_tables
"""
import logging

from botocore.exceptions import ClientError

from app.core.config import settings
from app.db import dynamo

logger = logging.getLogger(__name__)

TABLE_DEFINITIONS = [
    {
        "TableName": settings.DYNAMO_USERS_TABLE,
        "KeySchema": [{"AttributeName": "user_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "user_id", "AttributeType": "S"},
            {"AttributeName": "email", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [
            {
                "IndexName": "email-index",
                "KeySchema": [{"AttributeName": "email", "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            }
        ],
    },
    {
        "TableName": settings.DYNAMO_EXPENSES_TABLE,
        "KeySchema": [
            {"AttributeName": "user_id", "KeyType": "HASH"},
            {"AttributeName": "expense_id", "KeyType": "RANGE"},
        ],
        "AttributeDefinitions": [
            {"AttributeName": "user_id", "AttributeType": "S"},
            {"AttributeName": "expense_id", "AttributeType": "S"},
        ],
    },
    {
        "TableName": settings.DYNAMO_SAVINGS_GOALS_TABLE,
        "KeySchema": [
            {"AttributeName": "user_id", "KeyType": "HASH"},
            {"AttributeName": "period", "KeyType": "RANGE"},
        ],
        "AttributeDefinitions": [
            {"AttributeName": "user_id", "AttributeType": "S"},
            {"AttributeName": "period", "AttributeType": "S"},
        ],
    },
]


def create_tables() -> list:
    """Create any missing table. Returns the names of the tables created."""
    existing = {table.name for table in dynamo.dynamodb.tables.all()}
    created = []
    for definition in TABLE_DEFINITIONS:
        name = definition["TableName"]
        if name in existing:
            logger.info(f"Table {name} already exists")
            continue
        try:
            table = dynamo.dynamodb.create_table(BillingMode="PAY_PER_REQUEST", **definition)
            table.wait_until_exists()
            created.append(name)
            logger.info(f"Created table {name}")
        except ClientError as e:
            logger.error(f"Could not create table {name}: {e.response['Error']['Message']}")
            raise
    return created


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    create_tables()
