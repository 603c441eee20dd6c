# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
"""
Recover progress from babeldoc's log output.

babeldoc has no machine-readable progress channel. With ``--debug`` it prints
its progress dict through ``logging``, e.g.::

    DEBUG:babeldoc.main:{'type': 'progress_update', 'stage': 'Parse Page Layout',
    'stage_progress': 40.0, 'overall_progress': 13.159218108456686}

and at info level it prints a handful of recognizable sentences. Each way
of reading a chunk is a separate matcher; ``LogEventExtractor`` tries them in
order, so a change in babeldoc's log format only touches one matcher.
"""
from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Sequence

from babeldesk.utils.json_utils import loads_tolerant, normalize_python_repr


@dataclass(frozen=True)
class ProgressSignal:
    stage_name: str | None = None
    progress: float | None = None
    status_message: str | None = None


def parse_progress(value: Any) -> float | None:
    """Return ``value`` as a finite float, or None."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_stage(stage: str, progress: float) -> str:
    return f"{stage} ({round_half_up(progress)}%)"


class LogMatcher(ABC):
    @abstractmethod
    def match(self, text: str) -> ProgressSignal | None:
        ...


_PROGRESS_RE = re.compile(
    r"""['"]?overall_progress['"]?\s*:\s*"""
    r"""([-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?(?![\w.])|[A-Za-z]+)"""
)
_STAGE_RE = re.compile(r"""(?<!\w)['"]?stage['"]?\s*:\s*(['"])(.+?)\1""")


def _find_progress(text: str) -> float | None:
    m = _PROGRESS_RE.search(text)
    return parse_progress(m.group(1)) if m else None


class OverallProgressMatcher(LogMatcher):
    """``'overall_progress': 13.15`` -> progress only."""

    def match(self, text: str) -> ProgressSignal | None:
        progress = _find_progress(text)
        if progress is None:
            return None
        return ProgressSignal(progress=progress)


class StageProgressMatcher(LogMatcher):
    """``'stage': 'Parse Page Layout'`` next to a valid overall_progress."""

    def match(self, text: str) -> ProgressSignal | None:
        stage_match = _STAGE_RE.search(text)
        if not stage_match:
            return None
        progress = _find_progress(text)
        if progress is None:
            return None
        stage = stage_match.group(2)
        return ProgressSignal(stage_name=stage, progress=progress,
                              status_message=format_stage(stage, progress))


class DebugRecordMatcher(LogMatcher):
    """A whole ``DEBUG:babeldoc.main:{...}`` record, parsed as a dict."""

    pattern = re.compile(r"DEBUG:babeldoc\.main:(\{.*\})")

    def match(self, text: str) -> ProgressSignal | None:
        m = self.pattern.search(text)
        if not m:
            return None
        try:
            data = loads_tolerant(normalize_python_repr(m.group(1)))
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        progress = parse_progress(data.get("overall_progress"))
        stage = data.get("stage")
        if not isinstance(stage, str) or not stage:
            return ProgressSignal(progress=progress) if progress is not None else None
        message = format_stage(stage, progress) if progress is not None else stage
        return ProgressSignal(stage_name=stage, progress=progress, status_message=message)


KNOWN_STATUS_LINES: tuple[tuple[str, str], ...] = (
    ("Loading ONNX model", "loading model"),
    ("start to translate", "starting translation"),
    ("Automatic Term Extraction", "extracting terms"),
    ("Found title paragraph", "detecting structure"),
    ("Translation result", "translating paragraph"),
    ("Fallback to simple translation", "falling back to simple translation"),
)


class LiteralStatusMatcher(LogMatcher):
    def __init__(self, table: Sequence[tuple[str, str]] = KNOWN_STATUS_LINES):
        self.table = tuple(table)

    def match(self, text: str) -> ProgressSignal | None:
        for needle, message in self.table:
            if needle in text:
                return ProgressSignal(status_message=message)
        return None


def default_matchers() -> list[LogMatcher]:
    return [
        OverallProgressMatcher(),
        StageProgressMatcher(),
        DebugRecordMatcher(),
        LiteralStatusMatcher(),
    ]


class LogEventExtractor:
    """
    Turns one chunk of process output into at most one ProgressSignal.

    Matchers run in order. The first progress value found is kept; the
    first matcher that produces a status message ends the search. A chunk
    that only carries a progress value yields a progress-only signal.
    Never raises, never touches job state.
    """

    def __init__(self, matchers: Sequence[LogMatcher] | None = None):
        self.matchers = list(matchers) if matchers is not None else default_matchers()

    def extract(self, text: str) -> ProgressSignal | None:
        if not text:
            return None
        progress: float | None = None
        for matcher in self.matchers:
            signal = matcher.match(text)
            if signal is None:
                continue
            if progress is None and signal.progress is not None:
                progress = signal.progress
            if signal.status_message:
                return ProgressSignal(stage_name=signal.stage_name,
                                      progress=progress if progress is not None else signal.progress,
                                      status_message=signal.status_message)
        if progress is None:
            return None
        return ProgressSignal(progress=progress)
