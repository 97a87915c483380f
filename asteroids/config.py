"""Settings for the asteroids service.

Values come from environment variables, or from a ``.env`` file in the
working directory when one exists::

    NEO_BASE_URL=https://api.nasa.gov/neo/rest/v1/feed
    NEO_API_KEY=DEMO_KEY

The feed settings are checked once by :func:`load_client_config` during
application startup; a missing value stops the process before it serves.
"""

from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

DEFAULT_TIMEOUT_SECONDS = 10.0


class Settings(BaseSettings):
    # Required for the feed client; left empty here so that
    # load_client_config can report which one is missing.
    NEO_BASE_URL: str = Field(default="", description="NEO feed endpoint")
    NEO_API_KEY: str = Field(default="", description="Static API key sent as api_key")

    NEO_TIMEOUT_SECONDS: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        description="Timeout for the outbound feed request",
    )

    LOG_LEVEL: str = Field(default="INFO")

    API_HOST: str = Field(default="127.0.0.1", description="Host to bind the API server to")
    API_PORT: int = Field(default=8000, ge=1, le=65535, description="Port for the API server")

    CORS_ORIGINS: str = Field(
        default="*",
        description="Allowed CORS origins (comma-separated)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


class ClientConfig(BaseModel):
    """Immutable connection settings handed to the NEO fetcher."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    api_key: str
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)

    @field_validator("base_url", "api_key")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()


def load_client_config(settings: Settings | None = None) -> ClientConfig:
    """Build the feed client config, failing fast on missing settings."""
    if settings is None:
        try:
            settings = Settings()
        except ValidationError as exc:
            field = str(exc.errors()[0]["loc"][0])
            raise ConfigurationError(field, "is invalid") from exc

    for name in ("NEO_BASE_URL", "NEO_API_KEY"):
        if not getattr(settings, name).strip():
            raise ConfigurationError(name)

    return ClientConfig(
        base_url=settings.NEO_BASE_URL.strip(),
        api_key=settings.NEO_API_KEY.strip(),
        timeout=settings.NEO_TIMEOUT_SECONDS,
    )
