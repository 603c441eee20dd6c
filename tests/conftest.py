# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import pytest


@pytest.fixture
def data_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    monkeypatch.setenv("BABELDESK_HOME", str(home))
    return home


@pytest.fixture(autouse=True)
def _no_ambient_credentials(monkeypatch):
    for name in ("OPENAI_API_KEY", "OPENAI_BASE_URL", "OPENAI_MODEL", "TEXT_TRANSLATE_API_KEY",
                 "BABELDESK_OUTPUT_ENCODING", "BABELDESK_ENV_FILE"):
        monkeypatch.delenv(name, raising=False)
