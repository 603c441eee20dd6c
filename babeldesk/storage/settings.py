# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import copy
import json
from json import JSONDecodeError
from logging import Logger
from pathlib import Path
from typing import Any

from babeldesk.logger import global_logger
from babeldesk.storage.json_file import read_json_object, write_json_atomic
from babeldesk.storage.paths import data_path

SETTINGS_FILENAME = "settings.json"


class SettingsRepository:
    """
    Settings of all tools in one JSON document, grouped by namespace::

        {"babeldoc": {"apiKey": "...", "advanced": {...}},
         "text_translate": {"model": "qwen3-max", ...}}

    Components receive the repository explicitly. Every save rewrites the
    whole document; failures are logged and reported as False / {}.
    """

    def __init__(self, path: str | Path | None = None, logger: Logger = global_logger):
        self.path = Path(path) if path else data_path(SETTINGS_FILENAME)
        self.logger = logger

    def load(self) -> dict[str, Any]:
        return read_json_object(self.path, self.logger)

    def save(self, settings: dict[str, Any]) -> bool:
        return write_json_atomic(self.path, settings, self.logger)

    def namespace(self, name: str) -> dict[str, Any]:
        section = self.load().get(name)
        return copy.deepcopy(section) if isinstance(section, dict) else {}

    def get(self, name: str, key: str, default: Any = None) -> Any:
        return self.namespace(name).get(key, default)

    def update(self, name: str, values: dict[str, Any]) -> bool:
        settings = self.load()
        section = settings.get(name)
        if not isinstance(section, dict):
            section = {}
        section.update(values)
        settings[name] = section
        return self.save(settings)

    def set(self, name: str, key: str, value: Any) -> bool:
        """Set one value; a dotted key such as ``advanced.qps`` reaches into nested dicts."""
        settings = self.load()
        node = settings
        *parents, leaf = [name, *key.split(".")]
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[leaf] = value
        return self.save(settings)

    def export_to(self, path: str | Path) -> bool:
        return write_json_atomic(Path(path), self.load(), self.logger)

    def import_from(self, path: str | Path) -> bool:
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, JSONDecodeError) as e:
            self.logger.error(f"Importing settings from {path} failed: {e!r}")
            return False
        if not isinstance(data, dict):
            self.logger.error(f"{path} does not contain a settings object")
            return False
        return self.save(data)
