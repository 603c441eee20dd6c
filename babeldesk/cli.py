# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import argparse
import asyncio
import json
import os
import sys  # Used to check command line argument count
import time
import webbrowser
from pathlib import Path
from typing import Any

from babeldesk.errors import ConfigurationError, ScrapeError, TranslateError
from babeldesk.storage.paths import HOME_ENV
from babeldesk.utils.dotenv import load_env_file
from babeldesk.utils.i18n import t
from babeldesk.utils.json_utils import dumps_pretty

# Exit codes for orchestration environments
EC_OK = 0
EC_INVALID_INPUT = 10
EC_DEP_MISSING = 20
EC_LLM_ERROR = 30
EC_RUN_FAILED = 40

_SECRET_KEYS = {"apiKey", "api_key"}


def _parse_value(raw: str) -> Any:
    """``true`` -> True, ``5`` -> 5, anything that is not JSON stays a string."""
    try:
        value = json.loads(raw)
    except ValueError:
        return raw
    return value if isinstance(value, (bool, int, float, str)) else raw


def _parse_options(pairs: list[str] | None) -> dict[str, Any]:
    options: dict[str, Any] = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise SystemExit(f"--option expects key=value, got: {pair}")
        key, value = pair.split("=", 1)
        options[key.strip()] = _parse_value(value)
    return options


def _mask_secrets(settings: Any) -> Any:
    if isinstance(settings, dict):
        return {k: ("***" if k in _SECRET_KEYS and v else _mask_secrets(v)) for k, v in settings.items()}
    return settings


def _settings_repo():
    from babeldesk.storage.settings import SettingsRepository
    return SettingsRepository()


def _cmd_translate(args: argparse.Namespace) -> int:
    from babeldesk.babeldoc import BatchOrchestrator, BatchOrchestratorConfig, JobQueue, RunOptions
    from babeldesk.babeldoc.options import SETTINGS_NAMESPACE
    from babeldesk.babeldoc.runner import ProcessRunner, ProcessRunnerConfig

    def _emit(event: str, data: dict[str, Any] | None = None):
        if args.progress == "jsonl":
            payload = {"event": event, "ts": time.time()}
            if data:
                payload.update(data)
            print(json.dumps(payload, ensure_ascii=False), flush=True)

    paths: list[Path] = []
    for raw in args.files:
        p = Path(raw)
        if not p.is_file():
            print(t("file_not_found", lang=args.lang, path=str(p)))
            return EC_INVALID_INPUT
        if p.suffix.lower() != ".pdf":
            print(t("not_a_pdf", lang=args.lang, path=str(p)))
            continue
        paths.append(p)

    repo = _settings_repo()
    options = RunOptions.from_settings(repo.namespace(SETTINGS_NAMESPACE)).with_overrides(
        api_key=args.api_key, model=args.model, base_url=args.base_url, prompt=args.prompt,
        **_parse_options(args.option),
    )

    queue = JobQueue()
    queue.add_paths(paths)

    last_message: dict[str, str] = {}

    def on_job_update(job):
        if args.progress == "jsonl":
            _emit("job_update", job.to_dict())
            return
        line = f"[{job.display_name}] {job.status_message}"
        if last_message.get(job.id) != line:
            last_message[job.id] = line
            print(line, flush=True)

    def _notify(message: str):
        if args.progress == "jsonl":
            _emit("notify", {"message": message})
        else:
            print(message, flush=True)

    runner_cfg = ProcessRunnerConfig(executable=args.executable)
    if args.encoding:
        runner_cfg.encoding = args.encoding
    orchestrator = BatchOrchestrator(
        queue,
        runner=ProcessRunner(runner_cfg),
        notifier=_notify,
        config=BatchOrchestratorConfig(lang=args.lang),
        on_job_update=on_job_update,
    )
    _emit("run_start", {"files": [str(p) for p in paths]})
    try:
        summary = asyncio.run(orchestrator.run(options))
    except ConfigurationError:
        return EC_INVALID_INPUT
    finally:
        if args.log_file:
            log_path = Path(args.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            log_path.write_text("".join(orchestrator.transcript), encoding="utf-8")
    _emit("run_end", {
        "completed": len(summary.completed),
        "failed": len(summary.failed),
        "skipped": len(summary.skipped),
    })
    return EC_OK if summary.ok else EC_RUN_FAILED


def _read_text_arg(value: str | None) -> str:
    if value is None or value == "-":
        if sys.stdin.isatty() and value is None:
            return ""
        return sys.stdin.read()
    return value


def _cmd_text(args: argparse.Namespace) -> int:
    from babeldesk.text_translate import TextTranslator, TextTranslatorConfig
    from babeldesk.text_translate.clipboard import copy_text
    from babeldesk.text_translate.translator import SETTINGS_NAMESPACE

    repo = _settings_repo()
    config = TextTranslatorConfig.from_settings(
        repo.namespace(SETTINGS_NAMESPACE),
        api_key=args.api_key or os.getenv("TEXT_TRANSLATE_API_KEY"),
        model=args.model, base_url=args.base_url, prompt=args.prompt,
        thinking=args.thinking, temperature=args.temperature, system_proxy_enable=args.system_proxy,
    )

    translator = TextTranslator(config, copy_text=copy_text)
    try:
        result = translator.translate(_read_text_arg(args.text), copy=True if args.copy else None)
    except ConfigurationError as e:
        print(t(e.key, lang=args.lang), file=sys.stderr)
        return EC_INVALID_INPUT
    except TranslateError as e:
        print(t("translate_failed", lang=args.lang, error=str(e)), file=sys.stderr)
        return EC_LLM_ERROR
    print(result.translation)
    if result.copy_error:
        print(t("copy_failed", lang=args.lang, error=result.copy_error), file=sys.stderr)
    key = "translate_done_copied" if result.copied else "translate_done"
    print(t(key, lang=args.lang), file=sys.stderr)
    return EC_OK


def _cmd_bookmarks(args: argparse.Namespace) -> int:
    from babeldesk.bookmarks import BookmarkCache, BookmarkScraper, BookmarkScraperConfig, filter_bookmarks
    from babeldesk.storage.kv import KeyValueStore

    cache = BookmarkCache(KeyValueStore())
    cached = cache.load()
    bookmarks = cached.bookmarks
    if args.refresh:
        scraper_cfg = BookmarkScraperConfig()
        if args.url:
            scraper_cfg.url = args.url
        try:
            bookmarks = asyncio.run(BookmarkScraper(scraper_cfg).fetch())
        except ScrapeError as e:
            print(t("bookmarks_failed", lang=args.lang, error=str(e)), file=sys.stderr)
            if not bookmarks:
                return EC_RUN_FAILED
        else:
            cache.save(bookmarks)
            print(t("bookmarks_fetched", lang=args.lang, count=len(bookmarks)), file=sys.stderr)
    elif not bookmarks:
        print(t("bookmarks_empty", lang=args.lang), file=sys.stderr)
    elif cached.stale:
        print(t("bookmarks_stale", lang=args.lang), file=sys.stderr)

    shown = filter_bookmarks(bookmarks, args.search)
    if args.open is not None:
        return _open_bookmark(shown, args.open, args.lang)
    if args.json:
        print(dumps_pretty([b.to_dict() for b in shown]))
    else:
        for i, b in enumerate(shown, 1):
            print(f"{i}\t{' '.join(b.title.split())}\t{b.url}")
    return EC_OK


def _open_bookmark(shown, index: int, lang: str) -> int:
    """Open the ``index``-th listed bookmark (1-based) in the system browser."""
    if not 1 <= index <= len(shown):
        print(t("bookmark_not_found", lang=lang, index=index, count=len(shown)), file=sys.stderr)
        return EC_INVALID_INPUT
    url = shown[index - 1].url
    if not webbrowser.open(url, new=2):
        print(t("bookmark_open_failed", lang=lang, url=url), file=sys.stderr)
        return EC_RUN_FAILED
    print(t("bookmark_opened", lang=lang, url=url), file=sys.stderr)
    return EC_OK


def _cmd_settings(args: argparse.Namespace) -> int:
    repo = _settings_repo()
    if args.action == "show":
        settings = repo.namespace(args.namespace) if args.namespace else repo.load()
        print(dumps_pretty(settings if args.reveal else _mask_secrets(settings)))
        return EC_OK
    if args.action == "set":
        ok = repo.set(args.namespace, args.key, _parse_value(args.value))
        print(t("settings_saved" if ok else "settings_save_failed", lang=args.lang))
        return EC_OK if ok else EC_INVALID_INPUT
    if args.action == "export":
        if repo.export_to(args.path):
            print(t("settings_exported", lang=args.lang, path=str(Path(args.path).resolve())))
            return EC_OK
        print(t("settings_export_failed", lang=args.lang))
        return EC_INVALID_INPUT
    if args.action == "import":
        if repo.import_from(args.path):
            print(t("settings_imported", lang=args.lang, path=args.path))
            return EC_OK
        print(t("settings_import_failed", lang=args.lang, path=args.path))
        return EC_INVALID_INPUT
    return EC_INVALID_INPUT


def _cmd_config(args: argparse.Namespace) -> int:
    from babeldesk.storage.config_file import ConfigFile

    config_file = ConfigFile()
    if args.action == "path":
        print(config_file.path)
        return EC_OK
    if args.action == "show":
        print(config_file.read(), end="")
        return EC_OK
    if args.action == "write":
        source = args.source
        if source == "-":
            content = sys.stdin.read()
        else:
            src = Path(source)
            if not src.is_file():
                print(t("file_not_found", lang=args.lang, path=source))
                return EC_INVALID_INPUT
            content = src.read_text(encoding="utf-8")
        written = config_file.write(content)
        if written is None:
            return EC_INVALID_INPUT
        print(t("config_written", lang=args.lang, path=str(written)))
        return EC_OK
    return EC_INVALID_INPUT


def _add_api_args(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("--api-key", help="API key; defaults to the saved setting")
    sp.add_argument("--model", help="Model ID; defaults to the saved setting")
    sp.add_argument("--base-url", help="OpenAI-compatible base URL; defaults to the saved setting")
    sp.add_argument("--prompt", help="System prompt; defaults to the saved setting")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="babeldesk: PDF translation with babeldoc, quick text translation and bookmarks",
        epilog=(
            "Examples:\n"
            "  babeldesk translate a.pdf b.pdf --option pages=1-3 --option splitShortLines=true\n"
            "  echo 你好 | babeldesk text --copy\n"
            "  babeldesk bookmarks --refresh --search python\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--env-file", help="Load environment variables from file (default: ./.env)", default=None)
    parser.add_argument("--no-env", action="store_true", help="Do not auto-load .env from current directory")
    parser.add_argument("--data-dir", help=f"Settings and cache directory (default: ${HOME_ENV} or ~/.babeldesk)")
    parser.add_argument(
        "--lang", choices=["en", "zh"], default=os.getenv("BABELDESK_LANG", "en"), help="Language for messages (default: en)"
    )
    subparsers = parser.add_subparsers(dest="cmd")

    sp = subparsers.add_parser("translate", help="Translate PDF files one after another with babeldoc",
                               formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    sp.add_argument("files", nargs="+", help="PDF files to translate")
    _add_api_args(sp)
    sp.add_argument("--option", action="append", metavar="KEY=VALUE",
                    help="babeldoc option in camelCase, e.g. pages=1-3, qps=5, splitShortLines=true; repeatable")
    sp.add_argument("--executable", default="babeldoc", help="babeldoc executable name or path")
    sp.add_argument("--encoding", help="Encoding of babeldoc output (default: $BABELDESK_OUTPUT_ENCODING or cp936)")
    sp.add_argument("--log-file", help="Write the full babeldoc output of the run to this file")
    sp.add_argument("--progress", choices=["none", "jsonl"], default="none", help="Emit step-by-step progress events")
    sp.set_defaults(func=_cmd_translate)

    sp = subparsers.add_parser("text", help="Translate a text snippet between Chinese and English")
    sp.add_argument("text", nargs="?", help="Text to translate; '-' or omitted reads stdin")
    _add_api_args(sp)
    sp.add_argument("--copy", action="store_true", help="Copy the translation to the clipboard")
    sp.add_argument("--thinking", choices=["enable", "disable", "default"],
                    help="Switch model thinking on or off where the provider supports it")
    sp.add_argument("--temperature", type=float, help="Sampling temperature")
    sp.add_argument("--system-proxy", action="store_true", default=None,
                    help="Use HTTP(S)_PROXY from the environment")
    sp.set_defaults(func=_cmd_text)

    sp = subparsers.add_parser("bookmarks", help="List bookmarks scraped from the bookmark page")
    sp.add_argument("--refresh", action="store_true", help="Scrape the page again and update the cache")
    sp.add_argument("--search", help="Only show bookmarks whose title contains this text")
    sp.add_argument("--url", help="Bookmark page to scrape")
    sp.add_argument("--json", action="store_true", help="Print JSON instead of tab-separated lines")
    sp.add_argument("--open", type=int, metavar="N", help="Open the N-th listed bookmark in the browser")
    sp.set_defaults(func=_cmd_bookmarks)

    sp = subparsers.add_parser("settings", help="Show, change, export or import settings")
    settings_sub = sp.add_subparsers(dest="action", required=True)
    show = settings_sub.add_parser("show")
    show.add_argument("namespace", nargs="?", help="babeldoc or text_translate")
    show.add_argument("--reveal", action="store_true", help="Do not mask API keys")
    set_ = settings_sub.add_parser("set")
    set_.add_argument("namespace")
    set_.add_argument("key")
    set_.add_argument("value")
    export = settings_sub.add_parser("export")
    export.add_argument("path")
    import_ = settings_sub.add_parser("import")
    import_.add_argument("path")
    sp.set_defaults(func=_cmd_settings)

    sp = subparsers.add_parser("config", help="Read or replace the babeldoc TOML config")
    config_sub = sp.add_subparsers(dest="action", required=True)
    config_sub.add_parser("path")
    config_sub.add_parser("show")
    write = config_sub.add_parser("write")
    write.add_argument("source", help="File to copy from, or '-' for stdin")
    sp.set_defaults(func=_cmd_config)

    ver = subparsers.add_parser("version", help="Show version")
    ver.set_defaults(func=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()

    # No-arg hint
    if argv is None and len(sys.argv) == 1:
        parser.print_help()
        return EC_OK

    args = parser.parse_args(argv)

    if not args.no_env:
        load_env_file(args.env_file)
    if args.data_dir:
        os.environ[HOME_ENV] = args.data_dir

    if args.cmd == "version":
        from babeldesk import __version__
        print(__version__)
        return EC_OK

    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return EC_INVALID_INPUT
    try:
        return func(args)
    except ModuleNotFoundError as e:
        print(t("missing_dependency", lang=args.lang, missing=str(e)))
        return EC_DEP_MISSING


if __name__ == "__main__":
    sys.exit(main())
