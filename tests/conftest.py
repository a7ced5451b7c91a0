from __future__ import annotations

import pytest

from param_filter import config

_FILTER_ENV = (
    "LOG_LEVEL",
    "LOG_FILE",
    "PARAM_FILTER_MODE",
    "PARAM_FILTER_KEYS",
    "PARAM_FILTER_ALLOW_PATTERNS",
    "PARAM_FILTER_SENTINEL",
    "PARAM_FILTER_MAX_DEPTH",
)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep a developer's .env and shell exports out of the tests.
    monkeypatch.setattr(config, "find_dotenv", lambda **_: "")
    monkeypatch.setattr(config, "load_dotenv", lambda **_: None)
    for key in _FILTER_ENV:
        monkeypatch.delenv(key, raising=False)
    config.clear_settings_cache()
    yield
    config.clear_settings_cache()
