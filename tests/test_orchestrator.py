# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import asyncio
import os
import stat
import sys
from pathlib import Path

import pytest

from babeldesk.babeldoc import BatchOrchestrator, BatchOrchestratorConfig, JobQueue, RunOptions
from babeldesk.babeldoc.job import JobStatus
from babeldesk.babeldoc.runner import ExitEvent, OutputEvent, ProcessRunner, ProcessRunnerConfig
from babeldesk.errors import ConfigurationError, RunnerError

OPTIONS = RunOptions(api_key="sk-test")


class FakeRunner:
    """Plays back scripted output per file name."""

    def __init__(self, queue, scripts=None, fail_to_start=()):
        self.queue = queue
        self.scripts = scripts or {}
        self.fail_to_start = set(fail_to_start)
        self.calls = []
        self.active = 0
        self.max_active = 0

    async def run_babeldoc(self, options, file, on_event):
        name = Path(file).name
        self.calls.append(name)
        if name in self.fail_to_start:
            raise RunnerError("Executable not found: babeldoc")
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            lines, code = self.scripts.get(name, ([], 0))
            for line in lines:
                assert len(self.queue.translating()) == 1
                on_event(OutputEvent("stderr", line))
                await asyncio.sleep(0)
            on_event(ExitEvent(code))
            return code
        finally:
            self.active -= 1


def _queue(tmp_path, *names):
    queue = JobQueue()
    queue.add_paths([tmp_path / n for n in names])
    return queue


def _orchestrator(queue, runner, notes=None, updates=None):
    return BatchOrchestrator(
        queue,
        runner=runner,
        notifier=(notes.append if notes is not None else lambda m: None),
        config=BatchOrchestratorConfig(lang="en"),
        on_job_update=(lambda job: updates.append((job.display_name, job.status, job.progress,
                                                   job.status_message))) if updates is not None else None,
    )


def test_jobs_run_in_order_one_at_a_time(tmp_path):
    queue = _queue(tmp_path, "a.pdf", "b.pdf", "c.pdf")
    runner = FakeRunner(queue, {"c.pdf": (["boom"], 1)})
    notes = []
    summary = asyncio.run(_orchestrator(queue, runner, notes).run(OPTIONS))

    assert runner.calls == ["a.pdf", "b.pdf", "c.pdf"]
    assert runner.max_active == 1
    assert [j.status for j in queue] == [JobStatus.COMPLETED, JobStatus.COMPLETED, JobStatus.FAILED]
    assert [j.progress for j in queue][:2] == [100.0, 100.0]
    assert [j.display_name for j in summary.failed] == ["c.pdf"]
    assert not summary.ok
    assert notes[-1] == "All files processed: 2 completed, 1 failed, 0 skipped"


def test_progress_lines_update_the_active_job(tmp_path):
    queue = _queue(tmp_path, "a.pdf")
    lines = [
        "INFO:babeldoc.high_level:start to translate: a.pdf",
        "DEBUG:babeldoc.main:{'stage': 'Parse Page Layout', 'overall_progress': 12.5}",
        "nothing to see",
        "DEBUG: Translation result: hi",
    ]
    updates = []
    asyncio.run(_orchestrator(queue, FakeRunner(queue, {"a.pdf": (lines, 0)}), updates=updates).run(OPTIONS))

    assert updates == [
        ("a.pdf", JobStatus.TRANSLATING, 0.0, "starting"),
        ("a.pdf", JobStatus.TRANSLATING, 0.0, "starting translation"),
        ("a.pdf", JobStatus.TRANSLATING, 12.5, "Parse Page Layout (13%)"),
        ("a.pdf", JobStatus.TRANSLATING, 12.5, "translating paragraph"),
        ("a.pdf", JobStatus.COMPLETED, 100.0, "done"),
    ]


def test_rerun_only_retries_failed_and_pending(tmp_path):
    queue = _queue(tmp_path, "a.pdf", "b.pdf", "c.pdf")
    a, b, _ = list(queue)
    a.finish(0)
    b.finish(1)
    runner = FakeRunner(queue)
    summary = asyncio.run(_orchestrator(queue, runner).run(OPTIONS))

    assert runner.calls == ["b.pdf", "c.pdf"]
    assert [j.display_name for j in summary.skipped] == ["a.pdf"]
    assert summary.ok


def test_empty_queue_is_rejected(tmp_path):
    runner = FakeRunner(JobQueue())
    notes = []
    with pytest.raises(ConfigurationError) as exc:
        asyncio.run(_orchestrator(JobQueue(), runner, notes).run(OPTIONS))
    assert exc.value.key == "no_files"
    assert notes == ["Add files first"]
    assert runner.calls == []


def test_missing_api_key_is_rejected(tmp_path):
    queue = _queue(tmp_path, "a.pdf")
    runner = FakeRunner(queue)
    orchestrator = _orchestrator(queue, runner)
    with pytest.raises(ConfigurationError) as exc:
        asyncio.run(orchestrator.run(RunOptions(api_key="")))
    assert exc.value.key == "missing_api_key"
    assert runner.calls == []
    assert list(queue)[0].status == JobStatus.PENDING
    assert not orchestrator.running


def test_start_failure_marks_job_failed_and_continues(tmp_path):
    queue = _queue(tmp_path, "a.pdf", "b.pdf")
    runner = FakeRunner(queue, fail_to_start={"a.pdf"})
    notes = []
    orchestrator = _orchestrator(queue, runner, notes)
    summary = asyncio.run(orchestrator.run(OPTIONS))

    assert runner.calls == ["a.pdf", "b.pdf"]
    assert [j.status for j in queue] == [JobStatus.FAILED, JobStatus.COMPLETED]
    assert any("a.pdf" in n and "Executable not found" in n for n in notes)
    assert [j.display_name for j in summary.failed] == ["a.pdf"]
    assert "Executable not found" in "".join(orchestrator.transcript)


def test_transcript_collects_output_and_exit_codes(tmp_path):
    queue = _queue(tmp_path, "a.pdf", "b.pdf")
    runner = FakeRunner(queue, {"a.pdf": (["line one\n"], 0), "b.pdf": (["line two\n"], 2)})
    orchestrator = _orchestrator(queue, runner)
    asyncio.run(orchestrator.run(OPTIONS))

    transcript = "".join(orchestrator.transcript)
    assert transcript == ("line one\n\nProcess exited with code 0"
                          "line two\n\nProcess exited with code 2")


def test_runner_returning_without_exit_event_fails_the_job(tmp_path):
    class SilentRunner:
        async def run_babeldoc(self, options, file, on_event):
            return 0

    queue = _queue(tmp_path, "a.pdf")
    summary = asyncio.run(_orchestrator(queue, SilentRunner()).run(OPTIONS))
    assert list(queue)[0].status == JobStatus.FAILED
    assert not summary.ok


def _sleeping_babeldoc(tmp_path):
    """A babeldoc stand-in that records each start and then hangs."""
    starts = tmp_path / "starts.log"
    script = tmp_path / "bin" / "babeldoc"
    script.parent.mkdir()
    script.write_text(
        f"#!{sys.executable}\n"
        "import sys, time\n"
        f"with open({str(starts)!r}, 'a') as f:\n"
        "    f.write(sys.argv[sys.argv.index('--files') + 1] + '\\n')\n"
        "time.sleep(30)\n",
        encoding="utf-8",
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return script, starts


@pytest.mark.skipif(os.name == "nt", reason="uses a shebang script as the babeldoc executable")
def test_bad_output_encoding_starts_no_process(tmp_path):
    script, starts = _sleeping_babeldoc(tmp_path)
    queue = _queue(tmp_path, "a.pdf", "b.pdf")
    runner = ProcessRunner(ProcessRunnerConfig(executable=str(script), encoding="no-such-codec"))
    summary = asyncio.run(_orchestrator(queue, runner).run(OPTIONS))

    assert [j.status for j in queue] == [JobStatus.FAILED, JobStatus.FAILED]
    assert len(summary.failed) == 2
    assert runner.pid is None
    assert not starts.exists()


@pytest.mark.skipif(os.name == "nt", reason="uses a shebang script as the babeldoc executable")
def test_terminated_job_is_failed(tmp_path):
    script, starts = _sleeping_babeldoc(tmp_path)
    queue = _queue(tmp_path, "a.pdf")
    runner = ProcessRunner(ProcessRunnerConfig(executable=str(script), encoding="utf-8"))
    orchestrator = _orchestrator(queue, runner)

    async def go():
        run = asyncio.ensure_future(orchestrator.run(OPTIONS))
        while runner.pid is None:
            await asyncio.sleep(0.01)
        assert runner.terminate() is True
        return await run

    summary = asyncio.run(go())
    job = list(queue)[0]
    assert job.status == JobStatus.FAILED
    assert summary.failed == [job]
    assert "Process exited with code -9" in "".join(orchestrator.transcript)
