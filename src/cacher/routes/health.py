"""Health check endpoint."""

import logging
import os

from fastapi import APIRouter, Depends

from .. import __version__
from ..config import settings
from ..dependencies import get_record_store
from ..errors import RecordStoreError
from ..storage.records import RecordStore

logger = logging.getLogger(__name__)
router = APIRouter()


async def check_database(store: RecordStore) -> dict:
    """Check if the record store can be queried.

    Returns:
        Status dictionary
    """
    try:
        records = await store.count()
        return {"status": "healthy", "path": str(store.db_path), "records": records}
    except RecordStoreError as e:
        logger.warning(f"Database health check failed: {e}")
        return {"status": "unhealthy", "error": str(e)}


def check_storage() -> dict:
    """Check if object storage is configured.

    Returns:
        Status dictionary
    """
    if not os.environ.get("AWS_ACCESS_KEY_ID") or not os.environ.get(
        "AWS_SECRET_ACCESS_KEY"
    ):
        return {"status": "missing_credentials"}
    return {"status": "configured", "bucket": settings.S3_BUCKET}


@router.get("/health")
async def health_check(store: RecordStore = Depends(get_record_store)) -> dict:
    """Health check endpoint.

    Returns:
        Service health status
    """
    database = await check_database(store)
    return {
        "status": "healthy" if database["status"] == "healthy" else "degraded",
        "version": __version__,
        "services": {
            "database": database,
            "storage": check_storage(),
        },
    }
