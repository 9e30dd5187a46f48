"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

from . import __version__
from .exception_handlers import setup_exception_handlers
from .orchestrator import CacheOrchestrator
from .routes import cache, health
from .storage.records import RecordStore
from .storage.s3 import S3Relocator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan.

    Creates the record store, relocator and orchestrator once and shares
    them through ``app.state``.

    Args:
        app: FastAPI application

    Yields:
        None
    """
    logger.info("Cacher starting up")

    store = RecordStore(settings.DB_PATH, settings.TABLE_NAME)
    await store.initialize()

    relocator = S3Relocator(
        bucket=settings.S3_BUCKET,
        endpoint_url=settings.S3_ENDPOINT_URL,
        region=settings.S3_REGION,
        public_base_url=settings.PUBLIC_BASE_URL,
        fetch_timeout=settings.FETCH_TIMEOUT_SECONDS,
    )

    app.state.record_store = store
    app.state.relocator = relocator
    app.state.orchestrator = CacheOrchestrator(
        store, relocator, single_flight=settings.SINGLE_FLIGHT
    )
    logger.info(
        f"Caching into bucket {settings.S3_BUCKET!r}, records in {settings.DB_PATH}"
    )

    yield

    # Shutdown
    logger.info("Cacher shutting down")
    app.state.orchestrator = None
    await relocator.close()
    await store.close()


app = FastAPI(
    title="Cacher",
    version=__version__,
    lifespan=lifespan,
)

setup_exception_handlers(app)

app.include_router(health.router)
app.include_router(cache.router)


@app.get("/")
async def root() -> dict:
    """Root endpoint.

    Returns:
        Service info
    """
    return {
        "message": "Cacher",
        "version": __version__,
    }


def main() -> None:
    """Entry point for running the service directly."""
    import uvicorn

    logger.info(f"Serving at address {settings.HOST}:{settings.PORT}")
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        reload=False,
    )


if __name__ == "__main__":
    main()
