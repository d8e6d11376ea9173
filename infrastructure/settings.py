"""Settings access helpers for JSON-based configuration.

Defaults ship next to the application in `settings.json`; per-user overrides
live in a separate JSON file that is deep-merged on top and is the only file
ever written back.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

from loguru import logger


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict with `override` merged recursively into `base`."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _read_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a JSON object: {path}")
    return data


class JsonSettings:
    """JSON settings with dotted-key access and persisted user overrides."""

    def __init__(self, settings_path: str | Path, user_path: str | Path | None = None) -> None:
        self._path = Path(settings_path)
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        self._defaults = _read_json(self._path)
        self._user_path = Path(user_path) if user_path else None
        self._overrides: dict[str, Any] = {}
        if self._user_path is not None and self._user_path.exists():
            try:
                self._overrides = _read_json(self._user_path)
            except (OSError, ValueError) as ex:
                logger.warning("Ignoring unreadable user settings {}: {}", self._user_path, ex)
        self._data = deep_merge(self._defaults, self._overrides)

    @property
    def user_path(self) -> Path | None:
        """File that receives overrides written through `set`."""
        return self._user_path

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def set(self, key: str, value: Any) -> None:
        """Set dotted `key` to `value` as a user override and save immediately."""
        parts = key.split(".")
        for target in (self._overrides, self._data):
            node = target
            for part in parts[:-1]:
                child = node.get(part)
                if not isinstance(child, dict):
                    child = {}
                    node[part] = child
                node = child
            node[parts[-1]] = copy.deepcopy(value)
        self.save()

    def save(self) -> None:
        """Write user overrides to `user_path`; no-op without one."""
        if self._user_path is None:
            return
        try:
            self._user_path.parent.mkdir(parents=True, exist_ok=True)
            with self._user_path.open("w", encoding="utf-8") as f:
                json.dump(self._overrides, f, indent=2)
        except OSError as ex:
            logger.error("Failed to save settings to {}: {}", self._user_path, ex)
            raise

    def settings_snapshot(self) -> dict[str, Any]:
        """Capture/LLM options in the shape the settings dialog edits."""
        return {
            "headless": bool(self.get("capture.headless", True)),
            "llmApiUrl": self.get("llm.api_url", "") or "",
            "llmModel": self.get("llm.model", "") or "",
            "llmApiKey": self.get("llm.api_key", "") or "",
        }
