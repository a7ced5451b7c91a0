"""Allowlist predicates.

An allowlist policy is driven by a predicate that reports which keys are
*allowed* through unfiltered. Static configuration cannot carry executable
logic, so ``RegexKeyPredicate`` and ``KeySetPredicate`` cover the common
cases, and ``CallablePredicate`` adapts plain functions supplied in code.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from typing import Protocol, runtime_checkable

from param_filter.errors import InvalidPolicyConfiguration

_MAX_PATTERN_LENGTH = 256
_BACKREFERENCE_PATTERN = re.compile(r"\\[1-9]")
_NESTED_QUANTIFIER_PATTERN = re.compile(
    r"\((?:[^()\\]|\\.)*[+*](?:[^()\\]|\\.)*\)\s*(?:[+*]|\{\d+(?:,\d*)?\})"
)
_LOOKBEHIND_TOKENS = ("(?<=", "(?<!")


@runtime_checkable
class KeyPredicate(Protocol):
    def is_allowed(self, key: str) -> bool: ...


class KeySetPredicate:
    """Allows exactly the keys in a fixed set (case-sensitive)."""

    def __init__(self, keys: Iterable[str]) -> None:
        self._keys = frozenset(keys)

    @property
    def keys(self) -> frozenset[str]:
        return self._keys

    def is_allowed(self, key: str) -> bool:
        return key in self._keys

    def __repr__(self) -> str:
        return f"KeySetPredicate({sorted(self._keys)!r})"


class RegexKeyPredicate:
    """Allows keys matched by any of a list of regular expressions.

    Patterns are applied with ``re.search``, so anchors belong in the pattern
    itself (``^(ids?|action|controller)$``).
    """

    def __init__(self, patterns: Iterable[str]) -> None:
        self._patterns = tuple(patterns)
        self._compiled = [self._compile(pattern) for pattern in self._patterns]

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    @classmethod
    def _compile(cls, pattern: str) -> re.Pattern[str]:
        cls._validate_pattern_safety(pattern)
        try:
            return re.compile(pattern)
        except re.error as exc:
            raise InvalidPolicyConfiguration(
                f"Invalid regex in allowlist pattern '{pattern}': {exc}"
            ) from exc

    @staticmethod
    def _validate_pattern_safety(pattern: str) -> None:
        if len(pattern) > _MAX_PATTERN_LENGTH:
            raise InvalidPolicyConfiguration(
                f"Unsafe regex in allowlist pattern '{pattern}': exceeds "
                f"{_MAX_PATTERN_LENGTH} characters"
            )
        if any(token in pattern for token in _LOOKBEHIND_TOKENS):
            raise InvalidPolicyConfiguration(
                f"Unsafe regex in allowlist pattern '{pattern}': look-behind is not allowed"
            )
        if _BACKREFERENCE_PATTERN.search(pattern):
            raise InvalidPolicyConfiguration(
                f"Unsafe regex in allowlist pattern '{pattern}': "
                "backreferences are not allowed"
            )
        if _NESTED_QUANTIFIER_PATTERN.search(pattern):
            raise InvalidPolicyConfiguration(
                f"Unsafe regex in allowlist pattern '{pattern}': "
                "nested quantifiers are not allowed"
            )

    def is_allowed(self, key: str) -> bool:
        return any(regex.search(key) for regex in self._compiled)

    def __repr__(self) -> str:
        return f"RegexKeyPredicate({list(self._patterns)!r})"


class CallablePredicate:
    """Adapts a ``Callable[[str], bool]`` to the ``KeyPredicate`` protocol."""

    def __init__(self, func: Callable[[str], bool]) -> None:
        self._func = func

    def is_allowed(self, key: str) -> bool:
        return bool(self._func(key))

    def __repr__(self) -> str:
        name = getattr(self._func, "__qualname__", repr(self._func))
        return f"CallablePredicate({name})"


def as_predicate(value: object) -> KeyPredicate:
    if isinstance(value, KeyPredicate):
        return value
    if callable(value):
        return CallablePredicate(value)
    raise InvalidPolicyConfiguration(
        f"Allowlist predicate must provide is_allowed(key) or be callable, "
        f"got {type(value).__name__}"
    )
