from __future__ import annotations

import json

import pytest

from infrastructure.settings import JsonSettings, deep_merge


@pytest.fixture
def defaults_path(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "capture": {"headless": True, "navigation_timeout_ms": 35000},
                "llm": {"api_url": "http://localhost:11434/api/chat", "model": "m", "api_key": ""},
                "ui": {"dark_mode": False},
            }
        ),
        encoding="utf-8",
    )
    return path


def test_missing_defaults_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        JsonSettings(tmp_path / "nope.json")


def test_dotted_get_with_default(defaults_path):
    settings = JsonSettings(defaults_path)
    assert settings.get("capture.headless") is True
    assert settings.get("llm.model") == "m"
    assert settings.get("llm.missing", "fallback") == "fallback"
    assert settings.get("capture.headless.deeper", 1) == 1


def test_user_overrides_are_deep_merged(defaults_path, tmp_path):
    user = tmp_path / "user.json"
    user.write_text(json.dumps({"capture": {"headless": False}}), encoding="utf-8")
    settings = JsonSettings(defaults_path, user)
    assert settings.get("capture.headless") is False
    assert settings.get("capture.navigation_timeout_ms") == 35000


def test_set_persists_only_overrides(defaults_path, tmp_path):
    user = tmp_path / "sub" / "user.json"
    settings = JsonSettings(defaults_path, user)
    settings.set("llm.model", "gpt-4o-mini")
    settings.set("ui.dark_mode", True)

    assert settings.get("llm.model") == "gpt-4o-mini"
    assert json.loads(user.read_text(encoding="utf-8")) == {
        "llm": {"model": "gpt-4o-mini"},
        "ui": {"dark_mode": True},
    }
    reloaded = JsonSettings(defaults_path, user)
    assert reloaded.get("llm.model") == "gpt-4o-mini"
    assert reloaded.get("llm.api_url") == "http://localhost:11434/api/chat"


def test_unreadable_user_file_is_ignored(defaults_path, tmp_path):
    user = tmp_path / "user.json"
    user.write_text("{not json", encoding="utf-8")
    settings = JsonSettings(defaults_path, user)
    assert settings.get("llm.model") == "m"


def test_settings_snapshot_shape(defaults_path):
    snapshot = JsonSettings(defaults_path).settings_snapshot()
    assert snapshot == {
        "headless": True,
        "llmApiUrl": "http://localhost:11434/api/chat",
        "llmModel": "m",
        "llmApiKey": "",
    }


def test_deep_merge_does_not_mutate_inputs():
    base = {"a": {"b": 1, "c": 2}}
    merged = deep_merge(base, {"a": {"b": 9}})
    assert merged == {"a": {"b": 9, "c": 2}}
    assert base == {"a": {"b": 1, "c": 2}}
