# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import os
from pathlib import Path

HOME_ENV = "BABELDESK_HOME"


def data_dir() -> Path:
    """Per-user directory for settings, caches and the babeldoc config."""
    hint = os.getenv(HOME_ENV)
    return Path(hint).expanduser() if hint else Path.home() / ".babeldesk"


def data_path(name: str) -> Path:
    return data_dir() / name
