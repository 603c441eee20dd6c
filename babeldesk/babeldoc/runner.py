# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import asyncio
import codecs
import os
import re
import shlex
import shutil
from dataclasses import dataclass, field
from logging import Logger
from pathlib import Path
from typing import Callable, Literal, Mapping, Union

from babeldesk.babeldoc.options import RunOptions
from babeldesk.errors import RunnerError
from babeldesk.logger import global_logger

DEFAULT_EXECUTABLE = "babeldoc"
# babeldoc is usually installed with `uv tool install`/`pipx`, which land here
LOCAL_BIN = Path(".local") / "bin"
# Windows builds of babeldoc write in the console codepage; zh-CN consoles use cp936
DEFAULT_OUTPUT_ENCODING = "cp936"

# options consumed by the fixed part of the command line
_FIXED_KEYS = {"file", "api_key", "apiKey", "model", "base_url", "baseUrl", "prompt", "debug"}
_SECRET_FLAGS = {"--openai-api-key"}


@dataclass(frozen=True)
class OutputEvent:
    source: Literal["stdout", "stderr"]
    text: str


@dataclass(frozen=True)
class ExitEvent:
    code: int


ProcessEvent = Union[OutputEvent, ExitEvent]
EventCallback = Callable[[ProcessEvent], None]


def camel_to_kebab(key: str) -> str:
    return re.sub(r"[A-Z]", lambda m: "-" + m.group(0).lower(), key)


def option_flags(options: Mapping[str, object]) -> list[str]:
    """
    ``{"splitShortLines": True, "minTextLength": 5}`` ->
    ``["--split-short-lines", "--min-text-length", "5"]``.

    True emits the bare flag, False/None/"" emit nothing.
    """
    args: list[str] = []
    for key, value in options.items():
        flag = "--" + camel_to_kebab(key)
        if isinstance(value, bool):
            if value:
                args.append(flag)
        elif value is not None and value != "":
            args.extend([flag, str(value)])
    return args


def build_babeldoc_args(options: RunOptions, file: str | Path) -> list[str]:
    file = str(file)
    output_dir = os.path.dirname(file)
    args = [
        "--openai",
        "--openai-model", options.model,
        "--openai-base-url", options.base_url,
        "--openai-api-key", options.api_key,
        "--files", file,
        "-o", output_dir,
        "--custom-system-prompt", options.prompt,
        "--enable-json-mode-if-requested",
        # progress dicts are only logged at debug level
        "--debug",
    ]
    extra = {k: v for k, v in options.extra.items() if k not in _FIXED_KEYS}
    args.extend(option_flags(extra))
    return args


def build_env(base_env: Mapping[str, str] | None = None, home: str | Path | None = None) -> dict[str, str]:
    env = dict(os.environ if base_env is None else base_env)
    local_bin = str(Path(home or Path.home()) / LOCAL_BIN)
    current = env.get("PATH", "")
    env["PATH"] = f"{current}{os.pathsep}{local_bin}" if current else local_bin
    return env


def mask_args(args: list[str]) -> list[str]:
    masked = list(args)
    for i, arg in enumerate(masked[:-1]):
        if arg in _SECRET_FLAGS:
            masked[i + 1] = "***"
    return masked


def default_output_encoding() -> str:
    return os.getenv("BABELDESK_OUTPUT_ENCODING") or DEFAULT_OUTPUT_ENCODING


class OutputDecoder:
    """Incremental decoder; multibyte characters split across reads survive."""

    def __init__(self, encoding: str | None = None, errors: str = "replace"):
        self.encoding = encoding or default_output_encoding()
        try:
            factory = codecs.getincrementaldecoder(self.encoding)
        except LookupError as e:
            raise RunnerError(f"Unknown output encoding: {self.encoding}") from e
        self._decoder = factory(errors=errors)

    def feed(self, data: bytes) -> str:
        return self._decoder.decode(data)

    def flush(self) -> str:
        return self._decoder.decode(b"", final=True)


@dataclass(kw_only=True)
class ProcessRunnerConfig:
    logger: Logger = global_logger
    executable: str = DEFAULT_EXECUTABLE
    encoding: str = field(default_factory=default_output_encoding)
    read_size: int = 4096


class ProcessRunner:
    """
    Runs one external process and reports its output as events.

    ``run`` delivers OutputEvents per stream in emission order and then
    exactly one ExitEvent. There is no graceful cancel; ``terminate`` kills
    the process.
    """

    def __init__(self, config: ProcessRunnerConfig | None = None):
        self.config = config or ProcessRunnerConfig()
        self.logger = self.config.logger
        self.pid: int | None = None
        self._process: asyncio.subprocess.Process | None = None

    def _resolve_executable(self, env: Mapping[str, str]) -> str:
        found = shutil.which(self.config.executable, path=env.get("PATH"))
        if found is None:
            raise RunnerError(
                f"Executable not found: {self.config.executable}. Install it and make sure it is on PATH "
                f"or in ~/{LOCAL_BIN.as_posix()}."
            )
        return found

    async def _pump(self, stream: asyncio.StreamReader, decoder: OutputDecoder, source: str,
                    on_event: EventCallback) -> None:
        while True:
            chunk = await stream.read(self.config.read_size)
            if not chunk:
                break
            text = decoder.feed(chunk)
            if text:
                on_event(OutputEvent(source, text))
        tail = decoder.flush()
        if tail:
            on_event(OutputEvent(source, tail))

    async def _reap(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            self.logger.warning(f"Killing process {process.pid}")
            try:
                process.kill()
            except ProcessLookupError:
                pass
        await process.wait()

    async def run(self, args: list[str], on_event: EventCallback, env: Mapping[str, str] | None = None) -> int:
        env = dict(env) if env is not None else build_env()
        # an unknown encoding must fail before anything is spawned
        stdout_decoder = OutputDecoder(self.config.encoding)
        stderr_decoder = OutputDecoder(self.config.encoding)
        executable = self._resolve_executable(env)
        self.logger.info(f"Running: {shlex.join([self.config.executable, *mask_args(args)])}")
        try:
            process = await asyncio.create_subprocess_exec(
                executable, *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            raise RunnerError(f"Failed to start {self.config.executable}: {e}") from e

        self._process = process
        self.pid = process.pid
        pumps = [
            asyncio.ensure_future(self._pump(process.stdout, stdout_decoder, "stdout", on_event)),
            asyncio.ensure_future(self._pump(process.stderr, stderr_decoder, "stderr", on_event)),
        ]
        try:
            await asyncio.gather(*pumps)
            code = await process.wait()
        except BaseException:
            # the process never outlives run(), whatever interrupted it
            for task in pumps:
                task.cancel()
            await self._reap(process)
            raise
        finally:
            self._process = None
        self.logger.debug(f"Process {self.pid} exited with code {code}")
        on_event(ExitEvent(code))
        return code

    async def run_babeldoc(self, options: RunOptions, file: str | Path, on_event: EventCallback) -> int:
        return await self.run(build_babeldoc_args(options, file), on_event)

    def terminate(self) -> bool:
        if self._process is None or self._process.returncode is not None:
            return False
        self.logger.info(f"Terminating process {self.pid}")
        self._process.kill()
        return True
