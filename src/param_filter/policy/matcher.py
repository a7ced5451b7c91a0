"""Key matching against a filter policy."""

from __future__ import annotations

from param_filter.errors import InvalidPolicyConfiguration
from param_filter.policy.models import FilterMode, FilterPolicy


def matches(policy: FilterPolicy, key: object) -> bool:
    """Return True when the value stored under ``key`` must be filtered.

    Matching is flat: the same rule applies to a key at any nesting depth.
    Denylist keys compare by exact, case-sensitive equality. Allowlist
    predicates report allowed keys, so the result is inverted.
    """
    mode = policy.mode
    if mode is FilterMode.DISABLED:
        return False
    if mode is FilterMode.FILTER_ALL:
        return True

    name = key if isinstance(key, str) else str(key)
    if mode is FilterMode.DENYLIST:
        return name in policy.keys
    predicate = policy.predicate
    if predicate is None:
        raise InvalidPolicyConfiguration("Allowlist mode requires a predicate")
    return not predicate.is_allowed(name)
