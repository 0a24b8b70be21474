"""
Health Check Router
Liveness plus connectivity of the AWS services the API depends on
"""
from fastapi import APIRouter
from datetime import datetime
import logging
import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings
from app.db import dynamo
from app.utils.scheduler import get_scheduler_status

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns API status and the available endpoint groups.
    """
    prefix = settings.API_PREFIX
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "timestamp": datetime.utcnow().isoformat(),
        "endpoints": {
            "incomes": f"{prefix}/incomes",
            "expenses": f"{prefix}/expenses",
            "budgets": f"{prefix}/budgets",
            "goals": f"{prefix}/goals",
            "analytics": f"{prefix}/analytics/*",
            "fraud": f"{prefix}/fraud/*",
            "dashboard": f"{prefix}/dashboard",
            "reports": f"{prefix}/reports",
        },
    }


@router.get("/status")
def aws_services_status():
    """
    Check connectivity and status of:
    - every DynamoDB table
    - S3 (Reports bucket)
    - the in-process scheduler
    """
    status = {
        "timestamp": datetime.utcnow().isoformat(),
        "services": {}
    }

    # Check DynamoDB
    dynamodb_status = {
        "connected": False,
        "region": settings.DYNAMO_REGION,
        "tables": {},
    }
    for name, table in dynamo.ALL_TABLES.items():
        try:
            table.scan(Limit=1)
            dynamodb_status["tables"][name] = {"name": table.name, "status": "accessible"}
        except (ClientError, BotoCoreError) as e:
            dynamodb_status["tables"][name] = {"name": table.name, "status": "error", "error": str(e)}
            logger.error(f"DynamoDB check failed for {name}: {str(e)}")

    dynamodb_status["connected"] = all(
        table["status"] == "accessible" for table in dynamodb_status["tables"].values()
    )
    status["services"]["dynamodb"] = dynamodb_status

    # Check S3
    s3_status = {
        "connected": False,
        "bucket": settings.S3_BUCKET_NAME,
        "region": settings.S3_REGION,
        "error": None
    }
    try:
        s3_client = boto3.client("s3", region_name=settings.S3_REGION)
        s3_client.head_bucket(Bucket=settings.S3_BUCKET_NAME)
        s3_status["connected"] = True
        s3_status["status"] = "accessible"
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        s3_status["error"] = f"{error_code}: {str(e)}"
        s3_status["status"] = "error"
        logger.error(f"S3 check failed: {str(e)}")
    except BotoCoreError as e:
        s3_status["error"] = str(e)
        s3_status["status"] = "error"
        logger.error(f"S3 check failed: {str(e)}")

    status["services"]["s3"] = s3_status

    scheduler_status = get_scheduler_status()
    status["scheduler"] = scheduler_status

    all_connected = all(
        service.get("connected", False)
        for service in status["services"].values()
    )
    status["overall_status"] = "healthy" if all_connected else "degraded"

    return status
