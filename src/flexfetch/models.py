"""Pydantic configuration models shared across flexfetch modules.

These models are serialised as JSON in the user's config directory and
resolved by :func:`flexfetch.config.resolve_config`:
:class:`RequestConfig`, :class:`CacheConfig`, :class:`OutputConfig`, and
the top-level :class:`GlobalConfig`.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


DEFAULT_ENDPOINT = "https://flex.symfony.com"


class RequestConfig(BaseModel):
    """HTTP request and retry settings applied to every fetch."""

    timeout: float = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(
        default=3, ge=1, description="Total attempts per fetch, including the first"
    )
    retry_delay: float = Field(
        default=0.1, ge=0, description="Fixed delay in seconds between attempts"
    )


class OutputConfig(BaseModel):
    """Default output format preferences."""

    format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto", description="Used when neither --json nor --plain is given"
    )


class CacheConfig(BaseModel):
    """Response cache settings."""

    enabled: bool = Field(default=True, description="Enable the response cache")


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/flexfetch/config.json``.

    Loaded and saved by :func:`~flexfetch.config.load_global_config` and
    :func:`~flexfetch.config.save_global_config`. ``endpoint`` and
    ``project_id`` can be overridden by environment variables or CLI flags;
    see :func:`~flexfetch.config.resolve_config`.
    """

    endpoint: str = Field(default=DEFAULT_ENDPOINT, description="Base URL of the origin")
    project_id: Optional[str] = Field(
        default=None, description="Project identity sent with every request"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @field_validator("endpoint")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")
