# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from dataclasses import dataclass, field
from logging import Logger
from pathlib import Path
from typing import Callable, Protocol

from babeldesk.babeldoc.job import JobQueue, JobStatus, TranslationJob
from babeldesk.babeldoc.log_parser import LogEventExtractor
from babeldesk.babeldoc.options import RunOptions
from babeldesk.babeldoc.runner import EventCallback, ExitEvent, OutputEvent, ProcessEvent, ProcessRunner
from babeldesk.errors import ConfigurationError, RunnerError
from babeldesk.logger import global_logger
from babeldesk.utils.i18n import t

Notifier = Callable[[str], None]
JobObserver = Callable[[TranslationJob], None]


class BabeldocRunner(Protocol):
    async def run_babeldoc(self, options: RunOptions, file: str | Path, on_event: EventCallback) -> int:
        ...


@dataclass
class RunSummary:
    completed: list[TranslationJob] = field(default_factory=list)
    failed: list[TranslationJob] = field(default_factory=list)
    skipped: list[TranslationJob] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass(kw_only=True)
class BatchOrchestratorConfig:
    logger: Logger = global_logger
    lang: str | None = None


def _log_notifier(message: str) -> None:
    global_logger.info(message)


class BatchOrchestrator:
    """
    Translates the queued PDFs one after another with babeldoc.

    Only one process is ever in flight, so every output event belongs to
    the single active job. Failed jobs do not stop the batch; per-job status
    is the result. Running again only retries pending and failed jobs.
    """

    def __init__(self, queue: JobQueue, runner: BabeldocRunner | None = None,
                 notifier: Notifier | None = None, extractor: LogEventExtractor | None = None,
                 config: BatchOrchestratorConfig | None = None, on_job_update: JobObserver | None = None):
        self.queue = queue
        self.runner = runner or ProcessRunner()
        self.notifier = notifier or _log_notifier
        self.extractor = extractor or LogEventExtractor()
        self.config = config or BatchOrchestratorConfig()
        self.logger = self.config.logger
        self.on_job_update = on_job_update
        self.transcript: list[str] = []
        self.running = False
        self.current_job: TranslationJob | None = None

    def _notify(self, key: str, **kwargs) -> str:
        message = t(key, lang=self.config.lang, **kwargs)
        self.notifier(message)
        return message

    def _changed(self, job: TranslationJob) -> None:
        if self.on_job_update:
            self.on_job_update(job)

    def _check_can_start(self, options: RunOptions) -> None:
        for key, failed in (
            ("already_running", self.running),
            ("no_files", len(self.queue) == 0),
            ("missing_api_key", not options.has_credentials),
        ):
            if failed:
                self._notify(key)
                raise ConfigurationError(key)

    def _handle_event(self, job: TranslationJob, event: ProcessEvent) -> None:
        if isinstance(event, OutputEvent):
            self.transcript.append(event.text)
            signal = self.extractor.extract(event.text)
            if signal is not None:
                job.apply(signal)
                self._changed(job)
        elif isinstance(event, ExitEvent):
            self.transcript.append(f"\nProcess exited with code {event.code}")
            job.finish(event.code)
            self._changed(job)

    async def _translate(self, job: TranslationJob, options: RunOptions) -> None:
        self.current_job = job
        job.start()
        self._changed(job)
        self.logger.info(f"Translating {job.display_name}")
        try:
            await self.runner.run_babeldoc(options, job.path, lambda event: self._handle_event(job, event))
        except RunnerError as e:
            self.logger.error(f"{job.display_name}: {e}")
            self.transcript.append(f"\n{e}")
            job.finish(None)
            self._changed(job)
            self._notify("job_failed_to_start", name=job.display_name, error=str(e))
        finally:
            self.current_job = None
        if job.status == JobStatus.TRANSLATING:
            # runner returned without an exit event
            job.finish(None)
            self._changed(job)
        self.logger.info(f"{job.display_name}: {job.status.value}")

    async def run(self, options: RunOptions) -> RunSummary:
        self._check_can_start(options)
        self.running = True
        self.transcript = []
        summary = RunSummary()
        try:
            for job in self.queue:
                if not job.is_runnable:
                    summary.skipped.append(job)
                    continue
                await self._translate(job, options)
                if job.status == JobStatus.COMPLETED:
                    summary.completed.append(job)
                else:
                    summary.failed.append(job)
        finally:
            self.running = False
        self._notify("all_done", completed=len(summary.completed), failed=len(summary.failed),
                     skipped=len(summary.skipped))
        return summary
