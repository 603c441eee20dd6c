# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import json
import os
import stat
import sys
import webbrowser

import httpx
import pytest

from babeldesk import __version__
from babeldesk.agents import ChatAgent
from babeldesk.bookmarks import Bookmark, BookmarkCache, BookmarkScraper
from babeldesk.cli import EC_INVALID_INPUT, EC_OK, EC_RUN_FAILED, main
from babeldesk.errors import ScrapeError
from babeldesk.storage import ConfigFile, KeyValueStore, SettingsRepository


def run(*argv):
    return main(["--no-env", "--lang", "en", *argv])


def test_version(capsys, data_home):
    assert run("version") == EC_OK
    assert capsys.readouterr().out.strip() == __version__


def test_settings_set_and_show_masks_keys(capsys, data_home):
    assert run("settings", "set", "babeldoc", "apiKey", "sk-secret") == EC_OK
    assert run("settings", "set", "babeldoc", "advanced.qps", "5") == EC_OK
    assert run("settings", "set", "babeldoc", "advanced.splitShortLines", "true") == EC_OK
    assert SettingsRepository().namespace("babeldoc") == {
        "apiKey": "sk-secret", "advanced": {"qps": 5, "splitShortLines": True},
    }
    capsys.readouterr()

    assert run("settings", "show", "babeldoc") == EC_OK
    shown = json.loads(capsys.readouterr().out)
    assert shown["apiKey"] == "***"
    assert run("settings", "show", "--reveal") == EC_OK
    assert json.loads(capsys.readouterr().out)["babeldoc"]["apiKey"] == "sk-secret"


def test_settings_export_import(tmp_path, data_home):
    SettingsRepository().update("text_translate", {"model": "qwen-plus"})
    backup = tmp_path / "backup.json"
    assert run("settings", "export", str(backup)) == EC_OK

    SettingsRepository().save({})
    assert run("settings", "import", str(backup)) == EC_OK
    assert SettingsRepository().get("text_translate", "model") == "qwen-plus"

    bad = tmp_path / "bad.json"
    bad.write_text("oops", encoding="utf-8")
    assert run("settings", "import", str(bad)) == EC_INVALID_INPUT


def test_config_write_and_show(tmp_path, capsys, data_home):
    source = tmp_path / "my.toml"
    source.write_text("[babeldoc]\nqps = 2\n", encoding="utf-8")
    assert run("config", "write", str(source)) == EC_OK
    assert ConfigFile().read() == "[babeldoc]\nqps = 2\n"
    capsys.readouterr()
    assert run("config", "show") == EC_OK
    assert capsys.readouterr().out == "[babeldoc]\nqps = 2\n"
    assert run("config", "write", str(tmp_path / "missing.toml")) == EC_INVALID_INPUT


def test_data_dir_option(tmp_path, monkeypatch):
    monkeypatch.setenv("BABELDESK_HOME", str(tmp_path / "unused"))
    target = tmp_path / "elsewhere"
    assert main(["--no-env", "--data-dir", str(target), "settings", "set", "babeldoc", "model", "m"]) == EC_OK
    assert (target / "settings.json").is_file()


def test_translate_missing_file(tmp_path, data_home):
    assert run("translate", str(tmp_path / "missing.pdf")) == EC_INVALID_INPUT


def test_translate_without_api_key(tmp_path, capsys, data_home):
    pdf = tmp_path / "a.pdf"
    pdf.write_bytes(b"%PDF-1.4")
    assert run("translate", str(pdf), "--executable", "babeldesk-no-such-binary") == EC_INVALID_INPUT
    assert "Configure the API key first" in capsys.readouterr().out


def test_translate_only_non_pdf_files(tmp_path, capsys, data_home):
    txt = tmp_path / "notes.txt"
    txt.write_text("x", encoding="utf-8")
    assert run("translate", str(txt), "--api-key", "k") == EC_INVALID_INPUT
    assert "Add files first" in capsys.readouterr().out


def test_text_without_api_key(capsys, data_home):
    assert run("text", "hello") == EC_INVALID_INPUT
    assert "Configure the API key first" in capsys.readouterr().err


FAKE_BABELDOC = """\
import sys
args = sys.argv[1:]
pdf = args[args.index("--files") + 1]
print("INFO:babeldoc.high_level:start to translate: " + pdf, file=sys.stderr, flush=True)
print("DEBUG:babeldoc.main:{'stage': 'Parse Page Layout', 'overall_progress': 42.0}", file=sys.stderr, flush=True)
print("翻译完成", flush=True)
sys.exit(1 if pdf.endswith("bad.pdf") else 0)
"""


@pytest.fixture
def fake_babeldoc(tmp_path):
    script = tmp_path / "bin" / "babeldoc"
    script.parent.mkdir()
    script.write_text(f"#!{sys.executable}\n{FAKE_BABELDOC}", encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return script


@pytest.mark.skipif(os.name == "nt", reason="uses a shebang script as the babeldoc executable")
def test_translate_runs_each_file(tmp_path, capsys, data_home, fake_babeldoc):
    good = tmp_path / "good.pdf"
    bad = tmp_path / "bad.pdf"
    for pdf in (good, bad):
        pdf.write_bytes(b"%PDF-1.4")
    log_file = tmp_path / "logs" / "run.log"

    code = run("translate", str(good), str(bad), "--api-key", "sk-1", "--executable", str(fake_babeldoc),
               "--encoding", "utf-8", "--progress", "jsonl", "--log-file", str(log_file),
               "--option", "pages=1-2")
    assert code == EC_RUN_FAILED

    events = [json.loads(line) for line in capsys.readouterr().out.splitlines() if line.strip()]
    assert events[0]["event"] == "run_start"
    end = events[-1]
    assert (end["event"], end["completed"], end["failed"], end["skipped"]) == ("run_end", 1, 1, 0)
    updates = [e for e in events if e["event"] == "job_update"]
    staged = next(u for u in updates if u["progress"] == 42.0)
    assert (staged["name"], staged["status"], staged["status_message"]) == \
        ("good.pdf", "translating", "Parse Page Layout (42%)")
    final = {u["name"]: u["status"] for u in updates}
    assert final == {"good.pdf": "completed", "bad.pdf": "failed"}

    transcript = log_file.read_text(encoding="utf-8")
    assert "翻译完成" in transcript
    assert "Process exited with code 0" in transcript
    assert "Process exited with code 1" in transcript


def test_text_passes_model_switches(capsys, data_home, monkeypatch):
    seen = []
    proxies = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"choices": [{"message": {"content": "hello"}}]})

    def new_client(agent):
        proxies.append(agent.system_proxy_enable)
        return httpx.Client(transport=httpx.MockTransport(handler))

    monkeypatch.setattr(ChatAgent, "_new_client", new_client)
    SettingsRepository().update("text_translate", {"apiKey": "k", "thinking": "enable"})

    assert run("text", "你好", "--thinking", "disable", "--temperature", "0.3", "--system-proxy") == EC_OK
    assert capsys.readouterr().out.strip() == "hello"
    assert seen[0]["enable_thinking"] is False
    assert seen[0]["temperature"] == 0.3
    assert proxies == [True]


T0 = 1_700_000_000_000
SAVED = [Bookmark("Python Docs", "https://docs.python.org"), Bookmark("Rust\n Book", "https://doc.rust-lang.org")]


def _seed_bookmarks(now=T0):
    BookmarkCache(KeyValueStore()).save(SAVED, now=now)


def _scrape_fails(monkeypatch):
    async def fetch(self):
        raise ScrapeError("net::ERR_CONNECTION_RESET")

    monkeypatch.setattr(BookmarkScraper, "fetch", fetch)


def test_bookmarks_lists_stale_cache(capsys, data_home):
    _seed_bookmarks()
    assert run("bookmarks") == EC_OK
    captured = capsys.readouterr()
    assert captured.out.splitlines() == [
        "1\tPython Docs\thttps://docs.python.org",
        "2\tRust Book\thttps://doc.rust-lang.org",
    ]
    assert "older than one hour" in captured.err


def test_bookmarks_search_json(capsys, data_home):
    _seed_bookmarks()
    assert run("bookmarks", "--search", "rust", "--json") == EC_OK
    assert json.loads(capsys.readouterr().out) == [{"title": "Rust\n Book", "url": "https://doc.rust-lang.org"}]


def test_failed_refresh_keeps_showing_the_cache(capsys, data_home, monkeypatch):
    _seed_bookmarks()
    _scrape_fails(monkeypatch)

    assert run("bookmarks", "--refresh") == EC_OK
    captured = capsys.readouterr()
    assert "Fetching bookmarks failed: net::ERR_CONNECTION_RESET" in captured.err
    assert "1\tPython Docs\thttps://docs.python.org" in captured.out.splitlines()
    cached = BookmarkCache(KeyValueStore()).load()
    assert cached.timestamp == T0
    assert cached.bookmarks == SAVED


def test_failed_refresh_without_cache(capsys, data_home, monkeypatch):
    _scrape_fails(monkeypatch)
    assert run("bookmarks", "--refresh") == EC_RUN_FAILED
    assert capsys.readouterr().out == ""
    assert BookmarkCache(KeyValueStore()).load().timestamp is None


def test_refresh_updates_the_cache(capsys, data_home, monkeypatch):
    _seed_bookmarks()

    async def fetch(self):
        assert self.config.url == "https://example.com/links"
        return [Bookmark("Fresh", "https://fresh")]

    monkeypatch.setattr(BookmarkScraper, "fetch", fetch)
    assert run("bookmarks", "--refresh", "--url", "https://example.com/links") == EC_OK
    assert capsys.readouterr().out.splitlines() == ["1\tFresh\thttps://fresh"]
    cached = BookmarkCache(KeyValueStore()).load()
    assert cached.bookmarks == [Bookmark("Fresh", "https://fresh")]
    assert not cached.stale


def test_open_bookmark(capsys, data_home, monkeypatch):
    _seed_bookmarks()
    opened = []
    monkeypatch.setattr(webbrowser, "open", lambda url, new=0: opened.append((url, new)) or True)

    assert run("bookmarks", "--search", "o", "--open", "2") == EC_OK
    assert opened == [("https://doc.rust-lang.org", 2)]
    assert run("bookmarks", "--open", "3") == EC_INVALID_INPUT
    assert len(opened) == 1


def test_open_bookmark_without_browser(data_home, monkeypatch):
    _seed_bookmarks()
    monkeypatch.setattr(webbrowser, "open", lambda url, new=0: False)
    assert run("bookmarks", "--open", "1") == EC_RUN_FAILED
