"""Exception types for the caching gateway.

Errors raised by the orchestrator derive from CacherError and carry the
HTTP status the gateway answers with. Adapter errors (RecordNotFound,
RecordStoreError, RelocationError) are translated by the orchestrator and
never reach the HTTP layer directly.
"""


class CacherError(Exception):
    """Base class for errors surfaced to gateway clients."""

    status_code = 400


class InvalidRequest(CacherError):
    """Malformed body, malformed JSON or an unparseable URL."""

    status_code = 400


class UpstreamFetchError(CacherError):
    """The content could not be fetched or deposited in object storage."""

    status_code = 400


class PersistenceError(CacherError):
    """The record store rejected or failed an operation."""

    status_code = 400


class InconsistentStateError(CacherError):
    """The write reported success but the record could not be read back."""

    status_code = 422


class RequestTimeoutError(CacherError):
    """The request was abandoned before it completed."""

    status_code = 504


class RecordNotFound(Exception):
    """No record exists for the requested origin."""

    pass


class RecordStoreError(Exception):
    """The record store backend failed."""

    pass


class RelocationError(Exception):
    """Fetching or uploading content failed."""

    pass
