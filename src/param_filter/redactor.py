"""Value replacement for filtered keys."""

from __future__ import annotations

from collections.abc import Mapping

_TEXT_TYPES = (str, bytes, bytearray)


def is_scalar(value: object) -> bool:
    """Return True for leaf values (anything but mappings, lists and tuples)."""
    if isinstance(value, _TEXT_TYPES):
        return True
    return not isinstance(value, (Mapping, list, tuple))


def redact(value: object, sentinel: str) -> str:
    """Replace a value stored under a filtered key.

    Non-string scalars become the sentinel string too, so the field type may
    change. Mappings and sequences are replaced wholesale; nothing beneath a
    filtered key is kept.
    """
    return sentinel
