"""FastAPI dependency providers.

Shared clients are created once in the application lifespan and kept on
``app.state``; routes receive them through these providers.
"""

from fastapi import HTTPException, Request

from .orchestrator import CacheOrchestrator
from .storage.records import RecordStore


def get_orchestrator(request: Request) -> CacheOrchestrator:
    """Return the application's cache orchestrator.

    Raises:
        HTTPException: If the application has not finished starting up
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(500, "Cache orchestrator not initialized")
    return orchestrator


def get_record_store(request: Request) -> RecordStore:
    """Return the application's record store.

    Raises:
        HTTPException: If the application has not finished starting up
    """
    store = getattr(request.app.state, "record_store", None)
    if store is None:
        raise HTTPException(500, "Record store not initialized")
    return store
