# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import json
import re
from json import JSONDecodeError
from typing import Any

import json_repair

# Python reprs leak into babeldoc's debug log: None/True/False and single quotes
_PY_LITERALS = re.compile(r"(?<![\w\"])(None|True|False)(?![\w\"])")
_PY_TO_JSON = {"None": "null", "True": "true", "False": "false"}


def normalize_python_repr(text: str) -> str:
    """Turn a printed Python dict into something close to JSON."""
    text = text.replace("'", '"')
    return _PY_LITERALS.sub(lambda m: _PY_TO_JSON[m.group(1)], text)


def loads_tolerant(text: str) -> Any:
    """
    Parse JSON that may be slightly broken.

    Strict parsing is tried first; on failure the text is handed to
    json_repair. Raises ValueError when nothing usable comes back.
    """
    try:
        return json.loads(text)
    except JSONDecodeError:
        pass
    try:
        repaired = json_repair.loads(text)
    except (RuntimeError, JSONDecodeError, RecursionError) as e:
        raise ValueError(f"Unparseable JSON fragment: {e!r}") from e
    if repaired in ("", None):
        raise ValueError("Unparseable JSON fragment")
    return repaired


def dumps_pretty(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)
