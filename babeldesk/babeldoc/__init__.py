# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from babeldesk.babeldoc.job import JobQueue, JobStatus, TranslationJob
from babeldesk.babeldoc.log_parser import LogEventExtractor, ProgressSignal
from babeldesk.babeldoc.options import RunOptions
from babeldesk.babeldoc.orchestrator import BatchOrchestrator, BatchOrchestratorConfig, RunSummary
from babeldesk.babeldoc.runner import ExitEvent, OutputEvent, ProcessRunner, ProcessRunnerConfig

__all__ = [
    "BatchOrchestrator",
    "BatchOrchestratorConfig",
    "ExitEvent",
    "JobQueue",
    "JobStatus",
    "LogEventExtractor",
    "OutputEvent",
    "ProcessRunner",
    "ProcessRunnerConfig",
    "ProgressSignal",
    "RunOptions",
    "RunSummary",
    "TranslationJob",
]
