# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from logging import Logger
from pathlib import Path

from babeldesk.logger import global_logger
from babeldesk.storage.paths import data_path

CONFIG_FILENAME = "babeldoc.toml"


class ConfigFile:
    """The babeldoc TOML config, kept as opaque text."""

    def __init__(self, path: str | Path | None = None, logger: Logger = global_logger):
        self.path = Path(path) if path else data_path(CONFIG_FILENAME)
        self.logger = logger

    def read(self) -> str:
        if not self.path.is_file():
            return ""
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error(f"Reading {self.path} failed: {e!r}")
            return ""

    def write(self, content: str) -> Path | None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(content, encoding="utf-8")
        except OSError as e:
            self.logger.error(f"Writing {self.path} failed: {e!r}")
            return None
        return self.path
