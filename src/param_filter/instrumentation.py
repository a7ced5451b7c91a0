"""Helpers for instrumentation hooks that hand payloads to the filter.

A payload that cannot be filtered must never leave the process as if it had
been filtered. ``scrub_event`` turns ``MalformedPayload`` into an explicit
outcome: the event is dropped, or kept with its payload replaced by the
sentinel and flagged, or the error is re-raised.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from param_filter.errors import MalformedPayload
from param_filter.filter import apply
from param_filter.policy.models import FilterPolicy

logger = logging.getLogger(__name__)

OnMalformed = Literal["drop", "flag", "raise"]
_ON_MALFORMED_CHOICES = ("drop", "flag", "raise")


@dataclass(frozen=True)
class ScrubResult:
    payload: Any
    dropped: bool = False
    flagged: bool = False
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return not (self.dropped or self.flagged)


def scrub_event(
    policy: FilterPolicy,
    payload: Any,
    *,
    on_malformed: OnMalformed = "drop",
    section: str | None = None,
) -> ScrubResult:
    if on_malformed not in _ON_MALFORMED_CHOICES:
        raise ValueError(
            f"on_malformed must be one of {', '.join(_ON_MALFORMED_CHOICES)}, "
            f"got {on_malformed!r}"
        )
    try:
        filtered = apply(policy, payload)
    except MalformedPayload as exc:
        if on_malformed == "raise":
            raise
        label = section or "payload"
        if on_malformed == "drop":
            logger.warning(
                "Dropping telemetry %s: %s (path=%s)", label, exc.reason, exc.path or "<root>"
            )
            return ScrubResult(payload=None, dropped=True, reason=exc.reason)
        logger.warning(
            "Flagging telemetry %s as unfilterable: %s (path=%s)",
            label,
            exc.reason,
            exc.path or "<root>",
        )
        return ScrubResult(payload=policy.sentinel, flagged=True, reason=exc.reason)
    return ScrubResult(payload=filtered)


def scrub_sections(
    policy: FilterPolicy,
    sections: Mapping[str, Any],
    *,
    on_malformed: OnMalformed = "drop",
) -> dict[str, ScrubResult]:
    """Filter each named section of one event (params, session data, job args)."""
    return {
        name: scrub_event(policy, payload, on_malformed=on_malformed, section=name)
        for name, payload in sections.items()
    }
