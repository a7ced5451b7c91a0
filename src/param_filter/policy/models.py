"""Filter policy models."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from param_filter.errors import InvalidPolicyConfiguration
from param_filter.policy.predicates import KeyPredicate, RegexKeyPredicate, as_predicate

DEFAULT_SENTINEL = "[FILTERED]"
DEFAULT_MAX_DEPTH = 100
# Keeps walker recursion well inside the interpreter's default recursion limit.
MAX_DEPTH_LIMIT = 200


def _ensure_list(v: Any) -> list:
    """Convert None to empty list, pass through lists."""
    if v is None:
        return []
    return v


class FilterMode(str, Enum):
    DISABLED = "disabled"
    DENYLIST = "denylist"
    ALLOWLIST = "allowlist"
    FILTER_ALL = "filter_all"

    @classmethod
    def parse(cls, value: object) -> "FilterMode":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_")
            for member in cls:
                if member.value == normalized:
                    return member
        raise InvalidPolicyConfiguration(f"Unrecognized filter mode: {value!r}")


class FilterConfig(BaseModel):
    """Policy construction parameters as supplied by process configuration."""

    model_config = ConfigDict(frozen=True)

    mode: FilterMode = Field(default=FilterMode.DISABLED)
    keys: list[str] = Field(default_factory=list)
    allow_patterns: list[str] = Field(default_factory=list)
    sentinel: str = Field(default=DEFAULT_SENTINEL, min_length=1)
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1, le=MAX_DEPTH_LIMIT)

    @field_validator("mode", mode="before")
    @classmethod
    def _validate_mode(cls, v: Any) -> FilterMode:
        return FilterMode.parse(v)

    @field_validator("keys", "allow_patterns", mode="before")
    @classmethod
    def _validate_lists(cls, v: Any) -> list:
        return _ensure_list(v)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "FilterConfig":
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise InvalidPolicyConfiguration(f"Invalid filter configuration: {exc}") from exc


@dataclass(frozen=True)
class FilterPolicy:
    """Immutable filtering rules shared by every filtering call.

    Exactly one of ``keys`` (denylist) or ``predicate`` (allowlist) is kept,
    depending on ``mode``; ``disabled`` and ``filter_all`` keep neither.
    Construction fails with ``InvalidPolicyConfiguration`` instead of
    producing a policy with an ambiguous mode.
    """

    mode: FilterMode
    keys: frozenset[str] = field(default_factory=frozenset)
    predicate: KeyPredicate | None = None
    sentinel: str = DEFAULT_SENTINEL
    max_depth: int = DEFAULT_MAX_DEPTH

    def __post_init__(self) -> None:
        mode = FilterMode.parse(self.mode)
        object.__setattr__(self, "mode", mode)

        if not isinstance(self.sentinel, str) or not self.sentinel:
            raise InvalidPolicyConfiguration("Sentinel must be a non-empty string")
        if (
            isinstance(self.max_depth, bool)
            or not isinstance(self.max_depth, int)
            or not 1 <= self.max_depth <= MAX_DEPTH_LIMIT
        ):
            raise InvalidPolicyConfiguration(
                f"max_depth must be an integer between 1 and {MAX_DEPTH_LIMIT}, "
                f"got {self.max_depth!r}"
            )

        if mode is FilterMode.DENYLIST:
            object.__setattr__(self, "keys", _normalize_keys(self.keys))
            object.__setattr__(self, "predicate", None)
        elif mode is FilterMode.ALLOWLIST:
            if self.predicate is None:
                raise InvalidPolicyConfiguration("Allowlist mode requires a predicate")
            object.__setattr__(self, "predicate", as_predicate(self.predicate))
            object.__setattr__(self, "keys", frozenset())
        else:
            object.__setattr__(self, "keys", frozenset())
            object.__setattr__(self, "predicate", None)

    @classmethod
    def disabled(cls) -> "FilterPolicy":
        return cls(FilterMode.DISABLED)

    @classmethod
    def filter_all(cls, *, sentinel: str = DEFAULT_SENTINEL) -> "FilterPolicy":
        return cls(FilterMode.FILTER_ALL, sentinel=sentinel)

    @classmethod
    def denylist(
        cls,
        keys: Iterable[str],
        *,
        sentinel: str = DEFAULT_SENTINEL,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> "FilterPolicy":
        return cls(FilterMode.DENYLIST, keys=keys, sentinel=sentinel, max_depth=max_depth)

    @classmethod
    def allowlist(
        cls,
        predicate: object,
        *,
        sentinel: str = DEFAULT_SENTINEL,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> "FilterPolicy":
        return cls(
            FilterMode.ALLOWLIST, predicate=predicate, sentinel=sentinel, max_depth=max_depth
        )

    @classmethod
    def from_config(
        cls,
        config: FilterConfig | Mapping[str, object],
        predicate: object | None = None,
    ) -> "FilterPolicy":
        """Build a policy from configuration values.

        ``predicate`` is only consulted in allowlist mode. When it is omitted,
        the configured ``allow_patterns`` are compiled into a
        ``RegexKeyPredicate`` instead.
        """
        if not isinstance(config, FilterConfig):
            config = FilterConfig.from_mapping(config)

        if config.mode is FilterMode.ALLOWLIST and predicate is None and config.allow_patterns:
            predicate = RegexKeyPredicate(config.allow_patterns)

        return cls(
            config.mode,
            keys=config.keys,
            predicate=predicate,
            sentinel=config.sentinel,
            max_depth=config.max_depth,
        )

    def describe(self) -> dict[str, object]:
        """Summary that is safe to log (no key names or predicate internals)."""
        return {
            "mode": self.mode.value,
            "key_count": len(self.keys),
            "has_predicate": self.predicate is not None,
            "max_depth": self.max_depth,
        }


def _normalize_keys(keys: object) -> frozenset[str]:
    if isinstance(keys, str) or not isinstance(keys, Iterable):
        raise InvalidPolicyConfiguration(
            "Denylist keys must be a collection of strings, "
            f"got {type(keys).__name__}"
        )
    items = tuple(keys)
    if not items:
        raise InvalidPolicyConfiguration("Denylist mode requires at least one key")
    bad = [key for key in items if not isinstance(key, str)]
    if bad:
        raise InvalidPolicyConfiguration(f"Denylist keys must be strings, got {bad[0]!r}")
    return frozenset(items)
