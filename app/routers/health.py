"""
Health Check Router
Liveness endpoint plus a DynamoDB connectivity check
"""
import logging
from datetime import datetime

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter

from app.core.config import settings
from app.db import dynamo

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check():
    """
    Health check endpoint.
    Returns API status.
    """
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get("/status")
def database_status():
    """Check that every DynamoDB table the API uses is reachable."""
    tables = {
        "users": dynamo.users_table,
        "expenses": dynamo.expenses_table,
        "savings_goals": dynamo.savings_goals_table,
    }
    table_status = {}
    for label, table in tables.items():
        try:
            table.scan(Limit=1)
            table_status[label] = {"name": table.name, "status": "accessible"}
        except (ClientError, BotoCoreError) as e:
            logger.error(f"DynamoDB check failed for {table.name}: {str(e)}")
            table_status[label] = {"name": table.name, "status": "error", "error": str(e)}

    connected = all(entry["status"] == "accessible" for entry in table_status.values())
    return {
        "timestamp": datetime.utcnow().isoformat(),
        "region": settings.DYNAMO_REGION,
        "tables": table_status,
        "overall_status": "healthy" if connected else "degraded",
    }
