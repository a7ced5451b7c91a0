"""Filter policy objects and key matching."""

from param_filter.policy.models import DEFAULT_SENTINEL, FilterConfig, FilterMode, FilterPolicy
from param_filter.policy.predicates import (
    CallablePredicate,
    KeyPredicate,
    KeySetPredicate,
    RegexKeyPredicate,
    as_predicate,
)

__all__ = [
    "DEFAULT_SENTINEL",
    "CallablePredicate",
    "FilterConfig",
    "FilterMode",
    "FilterPolicy",
    "KeyPredicate",
    "KeySetPredicate",
    "RegexKeyPredicate",
    "as_predicate",
]
