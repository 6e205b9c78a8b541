"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
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


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class CacheConfig(BaseModel):
    """In-memory response cache of the request proxy."""

    ttl_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Lifetime of a cached response (seconds).",
    )
    max_entries: int = Field(
        default=100,
        ge=1,
        description="Entry cap; the oldest inserted entry is evicted first.",
    )
    cleanup_interval_seconds: float = Field(
        default=600.0,
        gt=0,
        description="Period of the background expiry sweep (seconds).",
    )


class ProxyConfig(BaseModel):
    """Request queue throttling and health thresholds."""

    request_delay_seconds: float = Field(
        default=0.1,
        ge=0,
        description="Pause between two dequeued requests (seconds).",
    )
    max_queue_length: int = Field(
        default=100,
        ge=1,
        description="Queue length at which the health check reports a warning.",
    )


class RetryConfig(BaseModel):
    """Outer retry loop around a whole registry pass."""

    max_attempts: int = Field(default=5, ge=1)
    delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Linear delay unit: attempt N waits N * delay_seconds.",
    )


class RegistryConfig(BaseModel):
    """Source selection, rate limiting and breaker tuning."""

    rate_limit_window_seconds: float = Field(default=60.0, gt=0)
    failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures after which a source is disabled.",
    )
    cooldown_seconds: float = Field(
        default=300.0,
        gt=0,
        description="How long a disabled source stays out of rotation.",
    )
    success_weight: float = Field(
        default=10.0,
        ge=0,
        description="Composite score weight of (1 - success_rate).",
    )
    failure_weight: float = Field(
        default=2.0,
        ge=0,
        description="Composite score weight of failure_count.",
    )


class MediaConfig(BaseModel):
    """Reachability check of the resolved media URL."""

    verify: bool = Field(
        default=False,
        description="Send a HEAD request to the media URL after resolution.",
    )
    timeout_seconds: float = Field(default=5.0, gt=0)


class SourceOverride(BaseModel):
    """Per-source overrides (YAML section ``sources.<name>``)."""

    enabled: Optional[bool] = None
    priority: Optional[int] = None
    rate_limit: Optional[int] = Field(default=None, ge=1)
    timeout_seconds: Optional[float] = Field(default=None, gt=0)


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/cache/proxy/retry/registry/sources).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="clipharvest", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=10.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Timeout for short-link expansion and requests without a source timeout.",
    )
    http_max_redirects: int = Field(
        default=10,
        validation_alias=AliasChoices(
            "http_max_redirects",
            AliasPath("http", "max_redirects"),
        ),
        description="Redirect hop cap when following short links.",
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
    log_file: Optional[Path] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_file",
            AliasPath("logging", "file"),
        ),
        description="Append-only JSON-lines log file. Disabled when unset.",
    )

    cache: CacheConfig = Field(default_factory=CacheConfig)
    proxy: ProxyConfig = Field(default_factory=ProxyConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    media: MediaConfig = Field(default_factory=MediaConfig)
    sources: dict[str, SourceOverride] = Field(default_factory=dict)

    @field_validator("log_file", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return _normalize_path(v)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("http_max_redirects")
    @classmethod
    def _validate_max_redirects(cls, v: int) -> int:
        if v < 0:
            raise ValueError("http_max_redirects must be >= 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
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
                "max_redirects": self.http_max_redirects,
            },
            "logging": {
                "level": self.log_level,
                "format": self.log_format,
                "file": str(self.log_file) if self.log_file else None,
            },
            "cache": self.cache.model_dump(),
            "proxy": self.proxy.model_dump(),
            "retry": self.retry.model_dump(),
            "registry": self.registry.model_dump(),
            "media": self.media.model_dump(),
            "sources": {
                name: override.model_dump(exclude_none=True)
                for name, override in self.sources.items()
            },
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read CLIPHARVEST_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - CLIPHARVEST_HTTP_TIMEOUT_SECONDS
    - CLIPHARVEST_LOG_LEVEL
    - CLIPHARVEST_LOG_FILE
    - CLIPHARVEST_CACHE_TTL_SECONDS
    - CLIPHARVEST_RETRY_MAX_ATTEMPTS
    - CLIPHARVEST_MEDIA_VERIFY
    """

    model_config = SettingsConfigDict(
        env_prefix="CLIPHARVEST_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_max_redirects: Optional[int] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None
    log_file: Optional[Path] = None

    cache_ttl_seconds: Optional[float] = None
    cache_max_entries: Optional[int] = None
    cache_cleanup_interval_seconds: Optional[float] = None

    proxy_request_delay_seconds: Optional[float] = None

    retry_max_attempts: Optional[int] = None
    retry_delay_seconds: Optional[float] = None

    registry_failure_threshold: Optional[int] = None
    registry_cooldown_seconds: Optional[float] = None

    media_verify: Optional[bool] = None
    media_timeout_seconds: Optional[float] = None

    @field_validator("log_file", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
