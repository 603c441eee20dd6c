# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from logging import Logger
from pathlib import Path
from typing import Any

from babeldesk.logger import global_logger
from babeldesk.storage.json_file import read_json_object, write_json_atomic
from babeldesk.storage.paths import data_path

DB_FILENAME = "db.json"


class KeyValueStore:
    """Keyed records in a single JSON file, each stored as ``{"data": ...}``."""

    def __init__(self, path: str | Path | None = None, logger: Logger = global_logger):
        self.path = Path(path) if path else data_path(DB_FILENAME)
        self.logger = logger

    def get(self, key: str) -> Any:
        record = read_json_object(self.path, self.logger).get(key)
        return record.get("data") if isinstance(record, dict) else None

    def put(self, key: str, data: Any) -> bool:
        records = read_json_object(self.path, self.logger)
        records[key] = {"data": data}
        return write_json_atomic(self.path, records, self.logger)

    def delete(self, key: str) -> bool:
        records = read_json_object(self.path, self.logger)
        if records.pop(key, None) is None:
            return False
        return write_json_atomic(self.path, records, self.logger)
