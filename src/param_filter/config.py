"""Configuration management for parameter filtering.

Filter and logging settings are loaded separately: building a policy only
reads the ``PARAM_FILTER_*`` variables, so a host's logging configuration can
never make policy construction fail.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError

from param_filter.errors import InvalidPolicyConfiguration
from param_filter.policy.models import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_SENTINEL,
    MAX_DEPTH_LIMIT,
    FilterConfig,
    FilterPolicy,
)

_config_logger = logging.getLogger(__name__)


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class FilterSettings(BaseModel):
    mode: str = Field(
        default="disabled",
        description="Filter mode: disabled | denylist | allowlist | filter_all",
    )
    keys: tuple[str, ...] = Field(default=(), description="Denylisted keys")
    allow_patterns: tuple[str, ...] = Field(
        default=(),
        description="Regular expressions for keys sent unfiltered in allowlist mode",
    )
    sentinel: str = Field(default=DEFAULT_SENTINEL, min_length=1)
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1, le=MAX_DEPTH_LIMIT)


class Settings(BaseModel):
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    filter: FilterSettings = Field(default_factory=FilterSettings)


ENV_KEYS = {
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
    "filter_mode": "PARAM_FILTER_MODE",
    "filter_keys": "PARAM_FILTER_KEYS",
    "filter_allow_patterns": "PARAM_FILTER_ALLOW_PATTERNS",
    "filter_sentinel": "PARAM_FILTER_SENTINEL",
    "filter_max_depth": "PARAM_FILTER_MAX_DEPTH",
}


def _split_csv_preserve_case(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _load_env_file() -> None:
    # The host's working directory decides which .env applies, not the install location.
    load_dotenv(dotenv_path=find_dotenv(usecwd=True))


def _resolve_path(path: str) -> str:
    return str(Path(path).expanduser().resolve())


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        _config_logger.warning(
            "Invalid integer value for %s: %r, using default %d", key, value, default
        )
        return default


@lru_cache(maxsize=1)
def load_filter_settings() -> FilterSettings:
    """Load the ``PARAM_FILTER_*`` settings and cache the result.

    Raises ``InvalidPolicyConfiguration`` for out-of-range values.
    """
    _load_env_file()
    data: dict[str, object] = {
        "mode": os.getenv(ENV_KEYS["filter_mode"], FilterSettings().mode),
        "keys": tuple(_split_csv_preserve_case(os.getenv(ENV_KEYS["filter_keys"]))),
        "allow_patterns": tuple(
            _split_csv_preserve_case(os.getenv(ENV_KEYS["filter_allow_patterns"]))
        ),
        "sentinel": os.getenv(ENV_KEYS["filter_sentinel"], FilterSettings().sentinel),
        "max_depth": _env_int(ENV_KEYS["filter_max_depth"], FilterSettings().max_depth),
    }
    try:
        return FilterSettings.model_validate(data)
    except ValidationError as exc:
        raise InvalidPolicyConfiguration(f"Invalid filter configuration: {exc}") from exc


@lru_cache(maxsize=1)
def load_logging_settings() -> LoggingSettings:
    _load_env_file()
    log_file_env = os.getenv(ENV_KEYS["log_file"])
    data: dict[str, object] = {
        "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
        "file": _resolve_path(log_file_env) if log_file_env else None,
    }
    try:
        return LoggingSettings.model_validate(data)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid logging configuration: {exc}") from exc


def load_settings() -> Settings:
    """Load filter and logging configuration together."""

    return Settings(logging=load_logging_settings(), filter=load_filter_settings())


def clear_settings_cache() -> None:
    load_filter_settings.cache_clear()
    load_logging_settings.cache_clear()


def load_policy(predicate: object | None = None) -> FilterPolicy:
    """Build the process-wide filter policy from settings.

    Raises ``InvalidPolicyConfiguration`` when the configured mode is unknown,
    lacks the keys or predicate it needs, or carries out-of-range values.
    """
    settings = load_filter_settings()
    config = FilterConfig.from_mapping(
        {
            "mode": settings.mode,
            "keys": list(settings.keys),
            "allow_patterns": list(settings.allow_patterns),
            "sentinel": settings.sentinel,
            "max_depth": settings.max_depth,
        }
    )
    policy = FilterPolicy.from_config(config, predicate=predicate)
    _config_logger.info("Loaded filter policy: %s", policy.describe())
    return policy
