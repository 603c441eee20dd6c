# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

SETTINGS_NAMESPACE = "babeldoc"

DEFAULT_MODEL = "gpt-4o"
DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_PROMPT = "Translate this PDF to Chinese."

# Secondary options, keyed the way they are stored in settings.
# Each becomes a --kebab-case flag on the babeldoc command line.
DEFAULT_ADVANCED: dict[str, Any] = {
    # General
    "qps": 10,
    "watermarkOutputMode": "watermarked",
    "debug": False,
    "showCharBox": False,
    # PDF processing
    "pages": "",
    "splitShortLines": False,
    "ocrWorkaround": False,
    "enhanceCompatibility": False,
    # Translation
    "glossaryFiles": "",
    "minTextLength": 5,
}


@dataclass(frozen=True, kw_only=True)
class RunOptions:
    """Snapshot of the settings a batch run uses, taken once at start."""
    api_key: str = ""
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    prompt: str = DEFAULT_PROMPT
    extra: Mapping[str, Any] = field(default_factory=lambda: dict(DEFAULT_ADVANCED))

    def __post_init__(self):
        # detach from the caller's dict so later edits do not leak into a run
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> RunOptions:
        """Build from the ``babeldoc`` settings namespace, env vars as fallback."""
        advanced = dict(DEFAULT_ADVANCED)
        stored_advanced = settings.get("advanced")
        if isinstance(stored_advanced, Mapping):
            advanced.update(stored_advanced)
        return cls(
            api_key=settings.get("apiKey") or os.getenv("OPENAI_API_KEY") or "",
            model=settings.get("model") or os.getenv("OPENAI_MODEL") or DEFAULT_MODEL,
            base_url=settings.get("baseUrl") or os.getenv("OPENAI_BASE_URL") or DEFAULT_BASE_URL,
            prompt=settings.get("prompt") or DEFAULT_PROMPT,
            extra=advanced,
        )

    def with_overrides(self, **overrides: Any) -> RunOptions:
        """Copy with CLI overrides applied; None values are ignored."""
        base = {
            "api_key": self.api_key,
            "model": self.model,
            "base_url": self.base_url,
            "prompt": self.prompt,
        }
        extra = dict(self.extra)
        for key, value in overrides.items():
            if value is None:
                continue
            if key in base:
                base[key] = value
            else:
                extra[key] = value
        return RunOptions(**base, extra=extra)
