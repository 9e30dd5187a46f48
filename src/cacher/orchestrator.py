"""Cache orchestration: resolve an origin URL to its cache record.

A request is served from the record store when a record exists. Otherwise
the content is relocated to object storage under a name derived from the
origin, the record is written, and the record is read back from the store.
The store is the only source of truth: a record is never returned unless it
was read from the store.
"""

import logging
import time
from typing import Callable, Optional, Protocol
from urllib.parse import urlsplit, urlunsplit

from .errors import (
    InconsistentStateError,
    InvalidRequest,
    PersistenceError,
    RecordNotFound,
    RecordStoreError,
    RelocationError,
    UpstreamFetchError,
)
from .hasher import destination_name
from .models import CacheRecord
from .singleflight import SingleFlight

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = ("http", "https")

# Longest origin URL the HTTP client will accept
_MAX_URL_LENGTH = 65536


class RecordStoreLike(Protocol):
    async def get(self, origin: str) -> CacheRecord: ...

    async def upsert(self, record: CacheRecord) -> None: ...


class RelocatorLike(Protocol):
    async def relocate(
        self, source_url: str, destination_name: str, public: bool = True
    ) -> str: ...


def normalize_origin(raw_url: str) -> str:
    """Parse and normalize an origin URL.

    Scheme and host are lowercased; path, query and fragment are kept as
    given.

    Args:
        raw_url: URL as supplied by the client

    Returns:
        Normalized URL string

    Raises:
        InvalidRequest: If the URL is not an absolute http(s) URL, contains
            control characters, or is too long
    """
    candidate = raw_url.strip()
    if len(candidate) > _MAX_URL_LENGTH:
        raise InvalidRequest(f"parse {raw_url[:64]!r}...: URL too long")
    if any(ord(c) < 0x20 or ord(c) == 0x7F for c in candidate):
        raise InvalidRequest(f"parse {raw_url!r}: invalid control character in URL")

    try:
        parts = urlsplit(candidate)
        # Accessing port validates it
        parts.port
    except ValueError as e:
        raise InvalidRequest(f"parse {raw_url!r}: {e}") from e

    scheme = parts.scheme.lower()
    if scheme not in _ALLOWED_SCHEMES:
        raise InvalidRequest(f"parse {raw_url!r}: missing or unsupported scheme")
    if not parts.hostname:
        raise InvalidRequest(f"parse {raw_url!r}: missing host")

    userinfo, at, hostport = parts.netloc.rpartition("@")
    netloc = f"{userinfo}{at}{hostport.lower()}"
    return urlunsplit((scheme, netloc, parts.path, parts.query, parts.fragment))


class CacheOrchestrator:
    """Resolves origin URLs to cache records.

    Holds no per-request state. With single_flight enabled, concurrent
    misses for the same origin share one relocation; without it, each miss
    relocates independently and the deterministic destination name keeps
    the outcome identical.
    """

    def __init__(
        self,
        store: RecordStoreLike,
        relocator: RelocatorLike,
        single_flight: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the orchestrator.

        Args:
            store: Record store used for lookups and writes
            relocator: Relocator used on cache misses
            single_flight: Coalesce concurrent misses for the same origin
            clock: Returns the current time in seconds since the epoch
        """
        self.store = store
        self.relocator = relocator
        self.clock = clock
        self._flights: Optional[SingleFlight[CacheRecord]] = (
            SingleFlight() if single_flight else None
        )

    async def resolve(
        self, origin: str, force_refetch: bool = False, expiry_seconds: int = 0
    ) -> CacheRecord:
        """Return the cache record for origin, caching the content if needed.

        Args:
            origin: Origin URL as supplied by the client
            force_refetch: Relocate even if a record exists
            expiry_seconds: Accepted for compatibility; not used

        Returns:
            The record as stored

        Raises:
            InvalidRequest: If origin is not a valid URL
            UpstreamFetchError: If the content could not be relocated
            PersistenceError: If the record store failed
            InconsistentStateError: If the written record cannot be read back
        """
        origin = normalize_origin(origin)

        if not force_refetch:
            record = await self._lookup(origin)
            if record is not None:
                logger.debug(f"Cache hit for {origin}")
                return record

        logger.info(f"Cache {'refetch' if force_refetch else 'miss'} for {origin}")

        if self._flights is None:
            return await self._fetch_and_record(origin)
        return await self._flights.do(origin, lambda: self._fetch_and_record(origin))

    async def _lookup(self, origin: str) -> Optional[CacheRecord]:
        try:
            return await self.store.get(origin)
        except RecordNotFound:
            return None
        except RecordStoreError as e:
            logger.error(f"Record lookup failed for {origin}: {e}")
            raise PersistenceError(str(e)) from e

    async def _fetch_and_record(self, origin: str) -> CacheRecord:
        destination = destination_name(origin)

        try:
            cached_url = await self.relocator.relocate(origin, destination, public=True)
        except RelocationError as e:
            logger.error(f"Relocation failed for {origin}: {e}")
            raise UpstreamFetchError(str(e)) from e

        record = CacheRecord(
            original_url=origin,
            cached_url=cached_url,
            time_at=int(self.clock()),
        )
        try:
            await self.store.upsert(record)
        except RecordStoreError as e:
            logger.error(f"Record write failed for {origin}: {e}")
            raise PersistenceError(str(e)) from e

        logger.info(f"Cached {origin} at {cached_url}")

        try:
            return await self.store.get(origin)
        except (RecordNotFound, RecordStoreError) as e:
            logger.error(f"Record for {origin} not readable after write: {e!r}")
            raise InconsistentStateError("Failed to process record") from e
