# restclient/core/config.py
from __future__ import annotations

from functools import lru_cache
from typing import Any, Callable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RETRY_CODES = [502, 503, 429, 408, 504, 599]


# ----- App settings (env-driven) -----
class RestClientSettings(BaseSettings):
    base_url: Optional[str] = None
    timeout_seconds: float = 20.0
    cache_max_items: int = 1000
    cache_ttl_ms: int = 30_000           # safety net for every cache entry
    default_data_ttl_ms: int = 3_000     # used when a GET is cached with a falsy ttl
    cache_native: bool = False           # honour cache-control on the transport (hishel)
    retry_http_codes: List[int] = list(DEFAULT_RETRY_CODES)
    retry_base_timeout_ms: int = 300
    retry_max_timeout_ms: int = 30_000
    retry_max_retry: int = 3
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="RESTCLIENT_", env_file=".env", case_sensitive=False)


@lru_cache(maxsize=1)
def get_settings() -> RestClientSettings:
    return RestClientSettings()


# ----- Retry configuration (immutable, captured per client) -----
class RetryConfig(BaseModel):
    """
    Retry knobs handed to the retry policy at call time.

    All durations are milliseconds. ``backoff`` replaces the exponential
    formula entirely when supplied: it receives the 0-based attempt index and
    returns the delay in ms.
    """
    model_config = ConfigDict(frozen=True)

    http_codes: frozenset[int] = frozenset(DEFAULT_RETRY_CODES)
    base_timeout: float = 300
    max_timeout: float = 30_000
    max_retry: int = 3
    backoff: Optional[Callable[[int], float]] = None

    @classmethod
    def from_settings(cls, settings: RestClientSettings, **overrides: Any) -> "RetryConfig":
        values: dict[str, Any] = {
            "http_codes": frozenset(settings.retry_http_codes),
            "base_timeout": settings.retry_base_timeout_ms,
            "max_timeout": settings.retry_max_timeout_ms,
            "max_retry": settings.retry_max_retry,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def resolve_retry_config(
    retry: "RetryConfig | Mapping[str, Any] | None",
    settings: RestClientSettings,
) -> RetryConfig:
    """Accept a ready RetryConfig, a mapping of overrides, or nothing."""
    if isinstance(retry, RetryConfig):
        return retry
    return RetryConfig.from_settings(settings, **dict(retry or {}))
