# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from babeldesk.babeldoc.options import DEFAULT_ADVANCED, DEFAULT_MODEL, RunOptions


def test_from_settings_fills_defaults():
    options = RunOptions.from_settings({"apiKey": "sk-1", "advanced": {"qps": 4}})
    assert options.api_key == "sk-1"
    assert options.model == DEFAULT_MODEL
    assert options.extra["qps"] == 4
    assert options.extra["minTextLength"] == DEFAULT_ADVANCED["minTextLength"]
    assert options.has_credentials


def test_env_fallback(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("OPENAI_BASE_URL", "http://localhost:8000/v1")
    options = RunOptions.from_settings({})
    assert options.api_key == "sk-env"
    assert options.base_url == "http://localhost:8000/v1"


def test_blank_key_is_not_a_credential():
    assert not RunOptions(api_key="   ").has_credentials
    assert not RunOptions().has_credentials


def test_snapshot_is_detached_from_source():
    advanced = {"qps": 3}
    options = RunOptions(api_key="k", extra=advanced)
    advanced["qps"] = 99
    assert options.extra["qps"] == 3


def test_with_overrides():
    options = RunOptions(api_key="k", extra={"qps": 3})
    changed = options.with_overrides(model="m", api_key=None, pages="1-2")
    assert changed.model == "m"
    assert changed.api_key == "k"
    assert dict(changed.extra) == {"qps": 3, "pages": "1-2"}
    assert options.model == DEFAULT_MODEL
