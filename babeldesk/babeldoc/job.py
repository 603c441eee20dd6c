# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, TYPE_CHECKING

from babeldesk.errors import JobBusyError

if TYPE_CHECKING:
    from babeldesk.babeldoc.log_parser import ProgressSignal


class JobStatus(str, Enum):
    PENDING = "pending"
    TRANSLATING = "translating"
    COMPLETED = "completed"
    FAILED = "failed"


MSG_WAITING = "waiting"
MSG_STARTING = "starting"
MSG_DONE = "done"
MSG_FAILED = "failed"


@dataclass
class TranslationJob:
    """
    One input file queued for translation.

    ``path`` and ``display_name`` never change after creation. Only the
    orchestrator mutates ``status``, ``progress`` and ``status_message``.
    """
    path: str
    display_name: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: JobStatus = JobStatus.PENDING
    progress: float = 0.0
    status_message: str = MSG_WAITING

    @classmethod
    def from_path(cls, path: str | Path) -> TranslationJob:
        resolved = Path(path).expanduser().resolve()
        return cls(path=str(resolved), display_name=resolved.name)

    @property
    def is_runnable(self) -> bool:
        return self.status in (JobStatus.PENDING, JobStatus.FAILED)

    def start(self) -> None:
        self.status = JobStatus.TRANSLATING
        self.progress = 0.0
        self.status_message = MSG_STARTING

    def apply(self, signal: ProgressSignal) -> None:
        # regressing progress is tolerated as-is
        if signal.progress is not None:
            self.progress = min(max(signal.progress, 0.0), 100.0)
        if signal.status_message:
            self.status_message = signal.status_message

    def finish(self, exit_code: int | None) -> None:
        if exit_code == 0:
            self.status = JobStatus.COMPLETED
            self.progress = 100.0
            self.status_message = MSG_DONE
        else:
            self.status = JobStatus.FAILED
            self.status_message = MSG_FAILED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "path": self.path,
            "name": self.display_name,
            "status": self.status.value,
            "progress": round(self.progress, 2),
            "status_message": self.status_message,
        }


class JobQueue:
    """Insertion-ordered list of jobs for one batch."""

    def __init__(self, jobs: Iterable[TranslationJob] = ()):
        self._jobs: list[TranslationJob] = list(jobs)

    def __iter__(self) -> Iterator[TranslationJob]:
        return iter(list(self._jobs))

    def __len__(self) -> int:
        return len(self._jobs)

    def add_paths(self, paths: Iterable[str | Path]) -> list[TranslationJob]:
        added = [TranslationJob.from_path(p) for p in paths]
        self._jobs.extend(added)
        return added

    def get(self, job_id: str) -> TranslationJob:
        for job in self._jobs:
            if job.id == job_id:
                return job
        raise KeyError(job_id)

    def remove(self, job_id: str) -> TranslationJob:
        job = self.get(job_id)
        if job.status == JobStatus.TRANSLATING:
            raise JobBusyError(f"{job.display_name} is being translated and cannot be removed")
        self._jobs.remove(job)
        return job

    def clear_finished(self) -> int:
        before = len(self._jobs)
        self._jobs = [j for j in self._jobs if j.status != JobStatus.COMPLETED]
        return before - len(self._jobs)

    def translating(self) -> list[TranslationJob]:
        return [j for j in self._jobs if j.status == JobStatus.TRANSLATING]
