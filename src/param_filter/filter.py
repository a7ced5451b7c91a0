"""Public entry point for payload filtering."""

from __future__ import annotations

import logging
import threading
from typing import Any

from param_filter.config import load_policy
from param_filter.policy.models import FilterMode, FilterPolicy
from param_filter.walker import walk

logger = logging.getLogger(__name__)


def apply(policy: FilterPolicy, payload: Any) -> Any:
    """Filter one telemetry payload according to ``policy``.

    ``disabled`` returns the payload untouched, ``filter_all`` replaces the
    whole payload with the sentinel without traversing it, and the denylist
    and allowlist modes return a filtered copy.

    Raises:
        MalformedPayload: if the payload is cyclic or nested too deeply.
    """
    mode = policy.mode
    if mode is FilterMode.DISABLED:
        return payload
    if mode is FilterMode.FILTER_ALL:
        return policy.sentinel
    return walk(policy, payload)


class PayloadFilter:
    """Holds the process-wide policy and filters payloads with it.

    Each call reads the policy reference once, so a concurrent
    ``reconfigure`` never mixes two policies within a single payload.
    """

    def __init__(self, policy: FilterPolicy | None = None) -> None:
        self._lock = threading.Lock()
        self._policy = policy if policy is not None else FilterPolicy.disabled()

    @classmethod
    def from_settings(cls, predicate: object | None = None) -> "PayloadFilter":
        """Build a filter from environment settings.

        Host logging is left alone; see ``logging_utils.configure_logging``.
        """
        policy = load_policy(predicate=predicate)
        logger.info("Payload filter ready (mode=%s)", policy.mode.value)
        return cls(policy)

    @property
    def policy(self) -> FilterPolicy:
        with self._lock:
            return self._policy

    def reconfigure(self, policy: FilterPolicy) -> FilterPolicy:
        """Swap in a new policy and return the one it replaced."""
        if not isinstance(policy, FilterPolicy):
            raise TypeError(f"Expected FilterPolicy, got {type(policy).__name__}")
        with self._lock:
            previous = self._policy
            self._policy = policy
        logger.info(
            "Filter policy reconfigured: %s -> %s",
            previous.mode.value,
            policy.describe(),
        )
        return previous

    def apply(self, payload: Any) -> Any:
        return apply(self.policy, payload)
