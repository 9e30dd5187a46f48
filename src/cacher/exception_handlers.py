"""Exception handlers mapping gateway errors to plain-text responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from .errors import CacherError

logger = logging.getLogger(__name__)


async def cacher_error_handler(request: Request, exc: CacherError) -> PlainTextResponse:
    """Render a CacherError as a plain-text body with its status code."""
    logger.warning(
        f"{request.method} {request.url.path} -> {exc.status_code} "
        f"{type(exc).__name__}: {exc}"
    )
    return PlainTextResponse(str(exc), status_code=exc.status_code)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the gateway's exception handlers on app."""
    app.add_exception_handler(CacherError, cacher_error_handler)
