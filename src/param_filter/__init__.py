"""Sensitive-data filtering for telemetry payloads."""

from param_filter.errors import InvalidPolicyConfiguration, MalformedPayload, ParamFilterError
from param_filter.filter import PayloadFilter, apply
from param_filter.instrumentation import ScrubResult, scrub_event, scrub_sections
from param_filter.logging_utils import configure_logging
from param_filter.policy import (
    DEFAULT_SENTINEL,
    CallablePredicate,
    FilterConfig,
    FilterMode,
    FilterPolicy,
    KeyPredicate,
    KeySetPredicate,
    RegexKeyPredicate,
)

__all__ = [
    "DEFAULT_SENTINEL",
    "CallablePredicate",
    "FilterConfig",
    "FilterMode",
    "FilterPolicy",
    "InvalidPolicyConfiguration",
    "KeyPredicate",
    "KeySetPredicate",
    "MalformedPayload",
    "ParamFilterError",
    "PayloadFilter",
    "RegexKeyPredicate",
    "ScrubResult",
    "apply",
    "configure_logging",
    "scrub_event",
    "scrub_sections",
]
