"""Recursive traversal of nested payloads.

``walk`` rebuilds mappings and sequences, consulting the policy matcher at
every mapping key. A matched key has its whole value replaced by the
sentinel; anything else is descended into so that nested mappings, including
mappings held inside lists, are filtered too. The input is never mutated.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from param_filter.errors import MalformedPayload
from param_filter.policy.matcher import matches
from param_filter.policy.models import FilterPolicy
from param_filter.redactor import is_scalar, redact


class _Walker:
    def __init__(self, policy: FilterPolicy) -> None:
        self._policy = policy
        # ids of containers on the current descent path; shared siblings are fine
        self._active: set[int] = set()
        self._path: list[str] = []

    def visit(self, node: Any, depth: int) -> Any:
        if is_scalar(node):
            return node
        if isinstance(node, Mapping):
            return self._enter(node, depth, self._visit_mapping)
        return self._enter(node, depth, self._visit_sequence)

    def _enter(self, node: Any, depth: int, visit: Callable[[Any, int], Any]) -> Any:
        if depth > self._policy.max_depth:
            raise MalformedPayload(self._format_path(), "depth")
        marker = id(node)
        if marker in self._active:
            raise MalformedPayload(self._format_path(), "cycle")
        self._active.add(marker)
        try:
            return visit(node, depth)
        finally:
            self._active.discard(marker)

    def _visit_mapping(self, node: Mapping[Any, Any], depth: int) -> dict[Any, Any]:
        policy = self._policy
        filtered: dict[Any, Any] = {}
        for key, value in node.items():
            if matches(policy, key):
                filtered[key] = redact(value, policy.sentinel)
                continue
            self._path.append(f".{key}")
            try:
                filtered[key] = self.visit(value, depth + 1)
            finally:
                self._path.pop()
        return filtered

    def _visit_sequence(self, node: list[Any] | tuple[Any, ...], depth: int) -> Any:
        items: list[Any] = []
        for index, element in enumerate(node):
            self._path.append(f"[{index}]")
            try:
                items.append(self.visit(element, depth + 1))
            finally:
                self._path.pop()
        if isinstance(node, tuple):
            return tuple(items)
        return items

    def _format_path(self) -> str:
        return "".join(self._path).lstrip(".")


def walk(policy: FilterPolicy, node: Any) -> Any:
    """Return a filtered copy of ``node``.

    Raises:
        MalformedPayload: if a container contains itself, directly or
            transitively, or nesting goes deeper than ``policy.max_depth``.
    """
    return _Walker(policy).visit(node, 0)
