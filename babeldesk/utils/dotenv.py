# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

ENV_FILE_HINT = "BABELDESK_ENV_FILE"


@dataclass
class LoadedEnv:
    path: str | None = None
    keys: list[str] = field(default_factory=list)


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    # unquoted values may carry an inline comment
    if " #" in value:
        value = value.split(" #", 1)[0].rstrip()
    return value


def parse_env_lines(lines: Iterable[str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, value = line.split("=", 1)
        key = key.strip()
        if key:
            values[key] = _unquote(value)
    return values


def load_env_file(path: str | Path | None = None, *, override: bool = False) -> LoadedEnv:
    """
    Load ``KEY=VALUE`` pairs from a .env file into ``os.environ``.

    Without an explicit path, ``$BABELDESK_ENV_FILE`` is tried first and then
    ``./.env``. Existing variables win unless ``override`` is set. A missing
    or unreadable file loads nothing.
    """
    if path is None:
        hint = os.getenv(ENV_FILE_HINT)
        path = Path(hint) if hint else Path.cwd() / ".env"
    candidate = Path(path)
    if not candidate.is_file():
        return LoadedEnv()
    try:
        values = parse_env_lines(candidate.read_text(encoding="utf-8").splitlines())
    except (OSError, UnicodeDecodeError):
        return LoadedEnv()

    loaded = LoadedEnv(path=str(candidate))
    for key, value in values.items():
        if override or key not in os.environ:
            os.environ[key] = value
            loaded.keys.append(key)
    return loaded
