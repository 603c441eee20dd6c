# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import json
import os
import tempfile
from json import JSONDecodeError
from logging import Logger
from pathlib import Path
from typing import Any


def read_json_object(path: Path, logger: Logger) -> dict[str, Any]:
    """Read a JSON object; a missing, unreadable or non-object file gives {}."""
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, JSONDecodeError) as e:
        logger.error(f"Reading {path} failed: {e!r}")
        return {}
    if not isinstance(data, dict):
        logger.error(f"{path} does not contain a JSON object")
        return {}
    return data


def write_json_atomic(path: Path, data: Any, logger: Logger) -> bool:
    """Replace ``path`` with ``data``; readers see either the old or the new file."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Writing {path} failed: {e!r}")
        return False
    return True
