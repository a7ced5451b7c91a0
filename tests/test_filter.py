from __future__ import annotations

import copy
import logging
import re
import threading

import pytest

from param_filter.errors import InvalidPolicyConfiguration, MalformedPayload
from param_filter.filter import PayloadFilter, apply
from param_filter.policy.models import FilterMode, FilterPolicy
from param_filter.policy.predicates import RegexKeyPredicate

_ALLOW_PATTERN = re.compile(r"^(ids?|action|controller)$")

PAYLOADS: list[object] = [
    {"password": "abc", "user": {"password": "xyz", "name": "bob"}},
    {"id": 5, "secret": "abc", "nested": {"action": "show", "token": 1}},
    {"users": [{"password": "a"}, {"password": "b"}], "ids": [1, 2, 3]},
    [{"controller": "home", "password": None}, "plain", 4],
    "just a string",
    None,
    {},
]

POLICIES: list[FilterPolicy] = [
    FilterPolicy.disabled(),
    FilterPolicy.filter_all(),
    FilterPolicy.denylist(["password", "token"]),
    FilterPolicy.allowlist(lambda key: bool(_ALLOW_PATTERN.match(key))),
]


def _shape(node: object) -> object:
    if isinstance(node, dict):
        return {key: _shape(value) for key, value in node.items()}
    if isinstance(node, (list, tuple)):
        return [_shape(value) for value in node]
    return None


def test_denylist_correctness() -> None:
    policy = FilterPolicy.denylist(["password"])
    payload = {"password": "abc", "user": {"password": "xyz", "name": "bob"}}

    assert apply(policy, payload) == {
        "password": "[FILTERED]",
        "user": {"password": "[FILTERED]", "name": "bob"},
    }


def test_allowlist_correctness() -> None:
    policy = FilterPolicy.allowlist(RegexKeyPredicate([r"^(ids?|action|controller)$"]))

    assert apply(policy, {"id": 5, "secret": "abc"}) == {"id": 5, "secret": "[FILTERED]"}


def test_allowlist_filters_composite_under_disallowed_key() -> None:
    policy = FilterPolicy.allowlist(RegexKeyPredicate([r"^(ids?|action|controller)$"]))
    payload = {"ids": [1, 2], "user": {"id": 1, "email": "a@example.com"}}

    assert apply(policy, payload) == {"ids": [1, 2], "user": "[FILTERED]"}


@pytest.mark.parametrize("payload", PAYLOADS)
def test_filter_all_replaces_whole_payload(payload: object) -> None:
    assert apply(FilterPolicy.filter_all(), payload) == "[FILTERED]"


def test_filter_all_custom_sentinel() -> None:
    assert apply(FilterPolicy.filter_all(sentinel="<redacted>"), {"a": 1}) == "<redacted>"


def test_filter_all_skips_traversal_of_cyclic_payload() -> None:
    payload: dict[str, object] = {}
    payload["loop"] = payload

    assert apply(FilterPolicy.filter_all(), payload) == "[FILTERED]"


@pytest.mark.parametrize("payload", PAYLOADS)
def test_disabled_returns_payload_unchanged(payload: object) -> None:
    snapshot = copy.deepcopy(payload)

    result = apply(FilterPolicy.disabled(), payload)

    assert result is payload
    assert result == snapshot


def test_nested_in_array() -> None:
    policy = FilterPolicy.denylist(["password"])
    payload = {"users": [{"password": "a"}, {"password": "b"}]}

    result = apply(policy, payload)

    assert result == {"users": [{"password": "[FILTERED]"}, {"password": "[FILTERED]"}]}
    assert len(result["users"]) == 2


def test_cycle_rejection() -> None:
    payload: dict[str, object] = {"users": []}
    payload["users"].append({"owner": payload})  # type: ignore[attr-defined]

    with pytest.raises(MalformedPayload):
        apply(FilterPolicy.denylist(["password"]), payload)


@pytest.mark.parametrize("policy", POLICIES, ids=lambda p: p.mode.value)
@pytest.mark.parametrize("payload", PAYLOADS)
def test_idempotence(policy: FilterPolicy, payload: object) -> None:
    once = apply(policy, payload)

    assert apply(policy, once) == once


@pytest.mark.parametrize(
    "policy",
    [p for p in POLICIES if p.mode in (FilterMode.DENYLIST, FilterMode.ALLOWLIST)],
    ids=lambda p: p.mode.value,
)
@pytest.mark.parametrize("payload", [p for p in PAYLOADS if isinstance(p, (dict, list))])
def test_structure_preserved_apart_from_filtered_subtrees(
    policy: FilterPolicy, payload: object
) -> None:
    result = apply(policy, payload)

    if isinstance(payload, dict):
        assert list(result) == list(payload)
    else:
        assert len(result) == len(payload)


def test_structure_preserved_exactly_when_nothing_matches() -> None:
    policy = FilterPolicy.denylist(["not_present"])
    payload = {"a": [{"b": 1}, {"c": [1, 2, {"d": None}]}], "e": ()}

    assert _shape(apply(policy, payload)) == _shape(payload)


def test_policies_side_by_side_do_not_interfere() -> None:
    payload = {"password": "a", "email": "b"}
    production = FilterPolicy.denylist(["password", "email"])
    staging = FilterPolicy.denylist(["password"], sentinel="***")

    assert apply(production, payload) == {"password": "[FILTERED]", "email": "[FILTERED]"}
    assert apply(staging, payload) == {"password": "***", "email": "b"}


def test_payload_filter_defaults_to_disabled() -> None:
    payload_filter = PayloadFilter()

    assert payload_filter.policy.mode is FilterMode.DISABLED
    payload = {"password": "a"}
    assert payload_filter.apply(payload) is payload


def test_payload_filter_reconfigure_swaps_policy(caplog: pytest.LogCaptureFixture) -> None:
    payload_filter = PayloadFilter(FilterPolicy.denylist(["password"]))
    replacement = FilterPolicy.filter_all()

    with caplog.at_level(logging.INFO, logger="param_filter.filter"):
        previous = payload_filter.reconfigure(replacement)

    assert previous.mode is FilterMode.DENYLIST
    assert payload_filter.policy is replacement
    assert payload_filter.apply({"password": "a"}) == "[FILTERED]"
    assert "Filter policy reconfigured" in caplog.text
    assert "password" not in caplog.text


def test_payload_filter_reconfigure_rejects_non_policy() -> None:
    payload_filter = PayloadFilter()

    with pytest.raises(TypeError):
        payload_filter.reconfigure({"mode": "denylist"})  # type: ignore[arg-type]


def test_payload_filter_concurrent_calls_see_consistent_policy() -> None:
    payload_filter = PayloadFilter(FilterPolicy.denylist(["password"]))
    payload = {"rows": [{"password": str(i), "name": "n"} for i in range(200)]}
    results: list[object] = []
    errors: list[BaseException] = []

    def worker() -> None:
        try:
            for _ in range(20):
                results.append(payload_filter.apply(payload))
        except BaseException as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    payload_filter.reconfigure(FilterPolicy.filter_all())
    for thread in threads:
        thread.join()

    assert not errors
    denylist_result = {"rows": [{"password": "[FILTERED]", "name": "n"} for _ in range(200)]}
    assert all(result in ("[FILTERED]", denylist_result) for result in results)


def test_payload_filter_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PARAM_FILTER_MODE", "denylist")
    monkeypatch.setenv("PARAM_FILTER_KEYS", "password, ssn")

    payload_filter = PayloadFilter.from_settings()

    assert payload_filter.apply({"ssn": "1", "name": "a"}) == {"ssn": "[FILTERED]", "name": "a"}


def test_payload_filter_from_settings_fails_fast(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PARAM_FILTER_MODE", "allowlist")

    with pytest.raises(InvalidPolicyConfiguration):
        PayloadFilter.from_settings()


def test_payload_filter_from_settings_keeps_host_logging(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("PARAM_FILTER_MODE", "disabled")
    root = logging.getLogger()
    host_handler = logging.NullHandler()
    root.addHandler(host_handler)
    handlers_before = list(root.handlers)
    level_before = root.level
    try:
        PayloadFilter.from_settings()

        assert host_handler in root.handlers
        assert root.handlers == handlers_before
        assert root.level == level_before
    finally:
        root.removeHandler(host_handler)
