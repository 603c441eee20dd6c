# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import re
from dataclasses import dataclass
from logging import Logger
from typing import Callable, Literal, Mapping

import httpx

from babeldesk.agents import AgentConfig, ChatAgent
from babeldesk.agents.agent import ThinkingMode
from babeldesk.errors import ClipboardError, ConfigurationError
from babeldesk.logger import global_logger

SETTINGS_NAMESPACE = "text_translate"

TranslateMode = Literal["show", "copy"]

_CJK = re.compile(r"[\u4e00-\u9fa5]")


def detect_language(text: str) -> str:
    return "zh" if _CJK.search(text) else "en"


def target_language(text: str) -> str:
    return "English" if detect_language(text) == "zh" else "Chinese"


def build_user_prompt(text: str) -> str:
    return (f"Translate the following text to {target_language(text)}. "
            f"Only return the translation, no explanations:\n\n{text}")


@dataclass(kw_only=True)
class TextTranslatorConfig:
    logger: Logger = global_logger
    api_key: str = ""
    model: str = "qwen3-max"
    base_url: str = "https://dashscope.aliyuncs.com/compatible-mode/v1"
    prompt: str = "You are a professional translator."
    mode: TranslateMode = "show"
    thinking: ThinkingMode = "default"
    temperature: float | None = None
    system_proxy_enable: bool = False
    timeout: int = 120
    retry: int = 1

    @classmethod
    def from_settings(cls, settings: Mapping[str, object], **kwargs) -> TextTranslatorConfig:
        values = {
            "api_key": settings.get("apiKey"),
            "model": settings.get("model"),
            "base_url": settings.get("baseUrl"),
            "prompt": settings.get("prompt"),
            "mode": settings.get("mode"),
            "thinking": settings.get("thinking"),
            "temperature": settings.get("temperature"),
            "system_proxy_enable": settings.get("systemProxy"),
        }
        values.update(kwargs)
        # None and "" mean unset; 0.0 and False are kept
        return cls(**{k: v for k, v in values.items() if v is not None and v != ""})


@dataclass
class TextTranslation:
    source: str
    translation: str
    target_language: str
    copied: bool = False
    copy_error: str | None = None


class TextTranslator:
    """
    Translates a snippet between Chinese and English.

    The direction is picked from the text itself. In ``copy`` mode the
    result goes to the clipboard through ``copy_text``.
    """

    def __init__(self, config: TextTranslatorConfig, copy_text: Callable[[str], None] | None = None):
        self.config = config
        self.logger = config.logger
        self.copy_text = copy_text

    def _agent(self) -> ChatAgent:
        return ChatAgent(AgentConfig(
            logger=self.logger,
            base_url=self.config.base_url,
            api_key=self.config.api_key,
            model_id=self.config.model,
            temperature=self.config.temperature,
            timeout=self.config.timeout,
            thinking=self.config.thinking,
            retry=self.config.retry,
            system_proxy_enable=self.config.system_proxy_enable,
        ))

    def _check(self, text: str) -> None:
        if not text or not text.strip():
            raise ConfigurationError("empty_text")
        if not self.config.api_key:
            raise ConfigurationError("missing_api_key")

    def _finish(self, text: str, translation: str, copy: bool | None) -> TextTranslation:
        result = TextTranslation(source=text, translation=translation, target_language=target_language(text))
        if copy is None:
            copy = self.config.mode == "copy"
        if copy and self.copy_text is not None:
            try:
                self.copy_text(translation)
                result.copied = True
            except ClipboardError as e:
                self.logger.warning(f"Copy to clipboard failed: {e}")
                result.copy_error = str(e)
        return result

    def translate(self, text: str, copy: bool | None = None, client: httpx.Client | None = None) -> TextTranslation:
        self._check(text)
        self.logger.info(f"Translating {len(text)} chars to {target_language(text)} with {self.config.model}")
        translation = self._agent().send(build_user_prompt(text), self.config.prompt, client=client)
        return self._finish(text, translation, copy)

    async def translate_async(self, text: str, copy: bool | None = None,
                              client: httpx.AsyncClient | None = None) -> TextTranslation:
        self._check(text)
        self.logger.info(f"(Async) Translating {len(text)} chars to {target_language(text)} with {self.config.model}")
        translation = await self._agent().send_async(build_user_prompt(text), self.config.prompt, client=client)
        return self._finish(text, translation, copy)
