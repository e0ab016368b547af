"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/youtube/cache/logging).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="tubegarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="HTTP timeout in seconds for every upstream request.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether the HTTP client follows redirects.",
    )
    http_max_retries: int = Field(
        default=2,
        validation_alias=AliasChoices(
            "http_max_retries",
            AliasPath("http", "max_retries"),
        ),
        description="Retries on 502/503/504 (429 is never retried).",
    )
    http_rate_limit_rps: float = Field(
        default=5.0,
        validation_alias=AliasChoices(
            "http_rate_limit_rps",
            AliasPath("http", "rate_limit_rps"),
        ),
        description="Requests per second per upstream host.",
    )
    http_rate_limit_burst: int = Field(
        default=10,
        validation_alias=AliasChoices(
            "http_rate_limit_burst",
            AliasPath("http", "rate_limit_burst"),
        ),
        description="Token bucket size per upstream host.",
    )

    # YouTube clients (YAML section: youtube.*)
    youtube_hl: str = Field(
        default="en",
        validation_alias=AliasChoices("youtube_hl", AliasPath("youtube", "hl")),
        description="Interface language sent in every client context.",
    )
    youtube_gl: str = Field(
        default="US",
        validation_alias=AliasChoices("youtube_gl", AliasPath("youtube", "gl")),
        description="Content country sent in every client context.",
    )
    youtube_fetch_ios: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "youtube_fetch_ios",
            AliasPath("youtube", "fetch_ios"),
        ),
        description="Also query the iOS client (HLS manifests).",
    )
    youtube_discover_client_version: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "youtube_discover_client_version",
            AliasPath("youtube", "discover_client_version"),
        ),
        description="Read the current WEB client version from sw.js.",
    )

    # Result cache (YAML section: cache.*)
    cache_max_items: int = Field(
        default=60,
        validation_alias=AliasChoices(
            "cache_max_items",
            AliasPath("cache", "max_items"),
        ),
        description="Hard bound of the result cache.",
    )
    cache_trim_to: int = Field(
        default=30,
        validation_alias=AliasChoices(
            "cache_trim_to",
            AliasPath("cache", "trim_to"),
        ),
        description="Size the result cache is trimmed to.",
    )
    cache_ttl_seconds: int = Field(
        default=3600,
        validation_alias=AliasChoices(
            "cache_ttl_seconds",
            AliasPath("cache", "ttl_seconds"),
        ),
        description="Result TTL in seconds.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("http_max_retries", "cache_ttl_seconds")
    @classmethod
    def _validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must be >= 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        if self.cache_trim_to > self.cache_max_items:
            raise ValueError("cache.trim_to must not exceed cache.max_items")
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "max_retries": self.http_max_retries,
                "rate_limit_rps": self.http_rate_limit_rps,
                "rate_limit_burst": self.http_rate_limit_burst,
            },
            "youtube": {
                "hl": self.youtube_hl,
                "gl": self.youtube_gl,
                "fetch_ios": self.youtube_fetch_ios,
                "discover_client_version": self.youtube_discover_client_version,
            },
            "cache": {
                "max_items": self.cache_max_items,
                "trim_to": self.cache_trim_to,
                "ttl_seconds": self.cache_ttl_seconds,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Supported env var examples (flat, explicit):
    - TUBEGARR_HTTP_TIMEOUT_SECONDS
    - TUBEGARR_YOUTUBE_FETCH_IOS
    - TUBEGARR_CACHE_TTL_SECONDS
    - TUBEGARR_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="TUBEGARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_max_retries: Optional[int] = None
    http_rate_limit_rps: Optional[float] = None
    http_rate_limit_burst: Optional[int] = None

    youtube_hl: Optional[str] = None
    youtube_gl: Optional[str] = None
    youtube_fetch_ios: Optional[bool] = None
    youtube_discover_client_version: Optional[bool] = None

    cache_max_items: Optional[int] = None
    cache_trim_to: Optional[int] = None
    cache_ttl_seconds: Optional[int] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
