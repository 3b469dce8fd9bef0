"""Client configuration with environment variable loading.

Pydantic-based configuration for the document assistant client.
The remote service location is the only required setting; time budgets
and intervals have defaults matching the service's expected latency.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


class ClientConfig(BaseModel):
    """Configuration for the document assistant client.

    Attributes:
        api_base_url: Base URL of the remote document assistant API.
        health_timeout: Time budget for a health probe, in seconds.
        chat_timeout: Time budget for a chat exchange, in seconds.
        upload_timeout: Time budget for an upload submission, in seconds.
        health_retry_interval: Seconds between probes while disconnected.
        poll_interval: Seconds between upload job status polls.
        demo_mode: Answer chat offline with canned responses.
    """

    api_base_url: str = Field(
        default_factory=lambda: os.getenv("API_BASE_URL", "http://localhost:8000"),
        description="Base URL of the remote API",
    )
    health_timeout: float = Field(
        default_factory=lambda: _env_float("HEALTH_TIMEOUT", 5.0),
        gt=0.0,
        description="Health probe timeout in seconds",
    )
    chat_timeout: float = Field(
        default_factory=lambda: _env_float("CHAT_TIMEOUT", 30.0),
        gt=0.0,
        description="Chat request timeout in seconds",
    )
    upload_timeout: float = Field(
        default_factory=lambda: _env_float("UPLOAD_TIMEOUT", 120.0),
        gt=0.0,
        description="Upload submission timeout in seconds",
    )
    health_retry_interval: float = Field(
        default_factory=lambda: _env_float("HEALTH_RETRY_INTERVAL", 10.0),
        gt=0.0,
        description="Seconds between health probes while disconnected",
    )
    poll_interval: float = Field(
        default_factory=lambda: _env_float("UPLOAD_POLL_INTERVAL", 1.0),
        gt=0.0,
        description="Seconds between upload job status polls",
    )
    demo_mode: bool = Field(
        default_factory=lambda: os.getenv("DEMO_MODE", "").lower() in ("1", "true", "yes"),
        description="Use canned offline responses instead of the API",
    )

    @field_validator("api_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                "API base URL must start with http:// or https://. Set API_BASE_URL in .env"
            )
        return v.rstrip("/")


def get_client_config() -> ClientConfig:
    """Create client configuration from environment.

    Returns:
        Configured ClientConfig instance.

    Raises:
        ValueError: If API_BASE_URL is not an http(s) URL.
    """
    return ClientConfig()
