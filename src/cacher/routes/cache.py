"""Cache gateway endpoint."""

import asyncio
import logging

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError
from starlette.requests import ClientDisconnect

from ..config import settings
from ..dependencies import get_orchestrator
from ..errors import InvalidRequest, RequestTimeoutError
from ..models import CacheRequest
from ..orchestrator import CacheOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/")
async def retrieve_or_fetch_and_cache(
    request: Request,
    orchestrator: CacheOrchestrator = Depends(get_orchestrator),
) -> Response:
    """Resolve a URL to its cached copy.

    The body is parsed by hand so malformed input is answered with a
    plain-text 400 instead of FastAPI's JSON validation error.

    Args:
        request: Incoming request with a JSON CacheRequest body
        orchestrator: Cache orchestrator

    Returns:
        JSON-encoded CacheRecord
    """
    try:
        body = await request.body()
    except ClientDisconnect as e:
        raise InvalidRequest("client disconnected while sending body") from e

    try:
        cache_request = CacheRequest.model_validate_json(body)
    except ValidationError as e:
        raise InvalidRequest(str(e)) from e

    try:
        record = await asyncio.wait_for(
            orchestrator.resolve(
                cache_request.url,
                force_refetch=cache_request.force_refetch,
                expiry_seconds=cache_request.expiry_seconds,
            ),
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError as e:
        logger.error(
            f"Request for {cache_request.url} timed out after "
            f"{settings.REQUEST_TIMEOUT_SECONDS}s"
        )
        raise RequestTimeoutError("Request timed out") from e

    return Response(content=record.to_json(), media_type="application/json")
