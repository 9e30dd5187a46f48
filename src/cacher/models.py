"""Pydantic models for gateway requests and cache records."""

from pydantic import BaseModel, ConfigDict, Field


class CacheRequest(BaseModel):
    """Request to resolve a URL to its cached copy."""

    model_config = ConfigDict(strict=True)

    url: str
    force_refetch: bool = False
    # Accepted for compatibility; expiration is not implemented
    expiry_seconds: int = 0


class CacheRecord(BaseModel):
    """Mapping from an origin URL to the location of its cached copy."""

    original_url: str = Field("", description="Normalized origin URL (primary key)")
    cached_url: str = Field("", description="URL of the relocated content")
    err: str = Field("", description="Diagnostic from a failed attempt")
    time_at: int = Field(0, description="Write time, seconds since epoch (UTC)")

    def to_json(self) -> str:
        """Serialize with empty and zero fields omitted."""
        return self.model_dump_json(exclude_defaults=True)
