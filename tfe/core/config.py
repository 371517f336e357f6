"""Client configuration loaded from environment variables."""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import field_validator
from pydantic_settings import BaseSettings

DEFAULT_ADDRESS = "https://app.terraform.io"
DEFAULT_BASE_PATH = "/api/v2/"


class Settings(BaseSettings):
    """Central configuration for the API client. Reads from .env automatically."""

    model_config = {
        "env_prefix": "TFE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    # Address of the Terraform Cloud / Enterprise instance.
    # Example: TFE_ADDRESS=https://tfe.internal
    address: str = DEFAULT_ADDRESS

    # Path on which the API is served.
    base_path: str = DEFAULT_BASE_PATH

    # User or team API token.  Required to build a client.
    token: str = ""

    # Also retry 5xx responses and connection errors (429 is always retried).
    retry_server_errors: bool = False

    timeout_seconds: float = 30.0

    @field_validator("address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"address must be an http(s) URL, got {value!r}")
        return value

    @field_validator("base_path")
    @classmethod
    def _normalise_base_path(cls, value: str) -> str:
        value = value.strip().strip("/")
        return f"/{value}/" if value else "/"

    # Logging
    log_level: str = "WARNING"
    log_file: str = ""


_settings: Settings | None = None


def get_settings() -> Settings:
    """Singleton accessor."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next access re-reads the environment."""
    global _settings
    _settings = None
