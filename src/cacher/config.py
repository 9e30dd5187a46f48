"""Service configuration using pydantic-settings."""

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Caching gateway configuration."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, env_prefix="CACHER_"
    )

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 9444
    LOG_LEVEL: str = "INFO"

    # Record store
    DB_PATH: Path = Path("cacher-demo.db")
    TABLE_NAME: str = "cacher"

    # Object storage (credentials come from AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY)
    S3_BUCKET: str = "cacher-app"
    S3_ENDPOINT_URL: str = ""  # e.g. "https://<account>.r2.cloudflarestorage.com"
    S3_REGION: str = ""
    PUBLIC_BASE_URL: str = ""  # overrides the URL returned for cached objects

    # Timeouts and concurrency
    FETCH_TIMEOUT_SECONDS: float = 60.0
    REQUEST_TIMEOUT_SECONDS: float = 300.0
    SINGLE_FLIGHT: bool = True


settings = Settings()
