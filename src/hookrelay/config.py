"""Configuration management for hookrelay."""

import logging
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """hookrelay configuration loaded from environment variables.

    All settings can be overridden via environment variables with
    the HOOKRELAY_ prefix. For example:
        HOOKRELAY_QDRANT_URL=http://localhost:6333
        HOOKRELAY_DISPATCH_BATCH_SIZE=25
    """

    # Environment
    env: Literal["development", "production", "test"] = Field(
        default="development",
        description="Environment: development, production, or test",
    )

    # Storage
    qdrant_url: str = Field(
        default="http://localhost:6333",
        description="Qdrant connection URL",
    )
    qdrant_api_key: str | None = Field(
        default=None,
        description="Qdrant API key (for cloud)",
    )
    collection_prefix: str = Field(
        default="hookrelay",
        description="Prefix for Qdrant collection names",
    )
    seed_targets: list[str] = Field(
        default_factory=list,
        description="Target URLs inserted when the registry is empty at startup",
    )

    # Dispatch
    dispatch_batch_size: int = Field(
        default=10,
        ge=1,
        description="Maximum deliveries in flight at once (one batch)",
    )
    dispatch_max_retries: int = Field(
        default=5,
        ge=0,
        description="Additional attempts for a target whose first delivery failed",
    )
    delivery_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="Timeout for a single outbound webhook call",
    )
    retry_delay_seconds: float = Field(
        default=0.0,
        ge=0.0,
        description="Base delay between retries (doubles each attempt, 0 disables waiting)",
    )
    retry_max_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Upper bound for the retry delay",
    )
    accepted_status_codes: list[int] = Field(
        default_factory=lambda: [200],
        description="HTTP status codes that count as a delivered webhook",
    )

    # Registry listing
    list_default_page_size: int = Field(
        default=10,
        ge=1,
        description="Page size used when a list request does not specify one",
    )
    list_max_page_size: int = Field(
        default=100,
        ge=1,
        description="Largest page a list request may ask for",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format",
    )

    # CORS Configuration
    cors_enabled: bool = Field(
        default=True,
        description="Enable CORS middleware",
    )
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="List of allowed CORS origins",
    )
    cors_allow_methods: list[str] = Field(
        default_factory=lambda: ["GET", "POST", "PUT", "OPTIONS"],
        description="Allowed HTTP methods for CORS requests",
    )
    cors_allow_headers: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed headers for CORS requests",
    )
    cors_max_age: int = Field(
        default=600,
        ge=0,
        le=86400,
        description="Max age (seconds) for CORS preflight cache",
    )

    @model_validator(mode="after")
    def validate_dispatch_settings(self) -> "Settings":
        """Validate retry delays and the success policy."""
        if self.retry_max_delay_seconds < self.retry_delay_seconds:
            raise ValueError(
                f"retry_max_delay_seconds ({self.retry_max_delay_seconds}) must be at least "
                f"retry_delay_seconds ({self.retry_delay_seconds})"
            )
        if not self.accepted_status_codes:
            raise ValueError("accepted_status_codes must contain at least one status code")
        if self.list_default_page_size > self.list_max_page_size:
            logger.warning(
                "list_default_page_size (%d) exceeds list_max_page_size (%d); clamping",
                self.list_default_page_size,
                self.list_max_page_size,
            )
            object.__setattr__(self, "list_default_page_size", self.list_max_page_size)
        return self

    model_config = {
        "env_prefix": "HOOKRELAY_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",
    }


# Global settings instance
settings = Settings()
