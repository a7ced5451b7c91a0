"""Exceptions raised by the filtering engine."""

from __future__ import annotations


class ParamFilterError(Exception):
    """Base exception for parameter filtering."""

    pass


class InvalidPolicyConfiguration(ParamFilterError, ValueError):
    """Raised when a filter policy cannot be constructed."""

    pass


class MalformedPayload(ParamFilterError, ValueError):
    """Raised when a payload is cyclic or nested beyond the policy depth limit."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        where = path or "<root>"
        if reason == "cycle":
            message = f"Cyclic reference detected at '{where}'"
        else:
            message = f"Maximum nesting depth exceeded at '{where}'"
        super().__init__(message)
