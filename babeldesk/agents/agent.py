# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlparse

import httpx

from babeldesk.errors import TranslateError
from babeldesk.logger import global_logger

ThinkingMode = Literal["enable", "disable", "default"]

# statuses worth another attempt; everything else is the caller's mistake
RETRYABLE_STATUS = {408, 409, 429, 500, 502, 503, 504}


@dataclass(kw_only=True)
class AgentConfig:
    logger: logging.Logger = global_logger
    base_url: str
    api_key: str | None = None
    model_id: str
    temperature: float | None = None
    timeout: int = 120  # seconds (httpx read timeout)
    thinking: ThinkingMode = "default"
    retry: int = 1
    system_proxy_enable: bool = False


def error_message(response: httpx.Response) -> str:
    """``error.message`` from an OpenAI-style error body, else ``"<status> <reason>"``."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return f"{response.status_code} {response.reason_phrase}".strip()


def extract_content(data: dict) -> str:
    choices = data.get("choices") or []
    if not choices:
        return ""
    message = choices[0].get("message") or {}
    return message.get("content") or ""


class ChatAgent:
    """Single-prompt client for OpenAI-compatible ``/chat/completions``."""

    _think_factory = {
        "open.bigmodel.cn": ("thinking", {"type": "enabled"}, {"type": "disabled"}),
        "dashscope.aliyuncs.com": (
            "enable_thinking",
            True,
            False,
        ),
        "ark.cn-beijing.volces.com": (
            "thinking",
            {"type": "enabled"},
            {"type": "disabled"},
        ),
        "api.siliconflow.cn": ("enable_thinking", True, False),
    }

    def __init__(self, config: AgentConfig):
        self.baseurl = config.base_url.strip().rstrip("/")
        self.domain = urlparse(self.baseurl).netloc
        self.key = config.api_key.strip() if config.api_key else ""
        self.model_id = config.model_id.strip()
        self.temperature = config.temperature
        self.timeout = httpx.Timeout(connect=5, read=config.timeout, write=60, pool=10)
        self.thinking = config.thinking
        self.logger = config.logger
        self.retry = config.retry
        self.system_proxy_enable = config.system_proxy_enable

    def _add_thinking_mode(self, data: dict):
        if self.domain not in self._think_factory:
            return
        field_thinking, val_enable, val_disable = self._think_factory[self.domain]
        if self.thinking == "enable":
            data[field_thinking] = val_enable
        elif self.thinking == "disable":
            data[field_thinking] = val_disable

    def _prepare_request_data(self, prompt: str, system_prompt: str):
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.key}",
        }
        data = {
            "model": self.model_id,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
        }
        if self.temperature is not None:
            data["temperature"] = self.temperature
        if self.thinking != "default":
            self._add_thinking_mode(data)
        return headers, data

    def _new_client(self) -> httpx.Client:
        # trust_env picks up HTTP(S)_PROXY when the system proxy is wanted
        return httpx.Client(trust_env=self.system_proxy_enable, timeout=self.timeout)

    def _new_async_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(trust_env=self.system_proxy_enable, timeout=self.timeout)

    def _handle_response(self, response: httpx.Response) -> str:
        if response.is_error:
            raise TranslateError(error_message(response), status_code=response.status_code)
        try:
            return extract_content(response.json())
        except (ValueError, AttributeError, TypeError) as e:
            raise TranslateError(f"Unexpected response from {self.baseurl}: {e!r}") from e

    def _should_retry(self, error: Exception, attempt: int) -> bool:
        if attempt >= self.retry:
            return False
        if isinstance(error, TranslateError):
            return error.status_code in RETRYABLE_STATUS
        return isinstance(error, httpx.RequestError)

    def send(self, prompt: str, system_prompt: str = "", client: httpx.Client | None = None) -> str:
        headers, data = self._prepare_request_data(prompt, system_prompt)
        owns_client = client is None
        client = client or self._new_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.post(f"{self.baseurl}/chat/completions", json=data,
                                           headers=headers, timeout=self.timeout)
                    result = self._handle_response(response)
                    if attempt > 0:
                        self.logger.info(f"Retry succeeded ({attempt}/{self.retry}).")
                    return result
                except (TranslateError, httpx.RequestError) as e:
                    self.logger.error(f"Chat completion request failed: {e!r}")
                    if not self._should_retry(e, attempt):
                        if isinstance(e, TranslateError):
                            raise
                        raise TranslateError(str(e) or e.__class__.__name__) from e
                    attempt += 1
                    self.logger.info(f"Retrying {attempt}/{self.retry} ...")
                    time.sleep(0.5)
        finally:
            if owns_client:
                client.close()

    async def send_async(self, prompt: str, system_prompt: str = "",
                         client: httpx.AsyncClient | None = None) -> str:
        headers, data = self._prepare_request_data(prompt, system_prompt)
        owns_client = client is None
        client = client or self._new_async_client()
        try:
            attempt = 0
            while True:
                try:
                    response = await client.post(f"{self.baseurl}/chat/completions", json=data,
                                                 headers=headers, timeout=self.timeout)
                    result = self._handle_response(response)
                    if attempt > 0:
                        self.logger.info(f"Retry succeeded ({attempt}/{self.retry}).")
                    return result
                except (TranslateError, httpx.RequestError) as e:
                    self.logger.error(f"Chat completion request failed (async): {e!r}")
                    if not self._should_retry(e, attempt):
                        if isinstance(e, TranslateError):
                            raise
                        raise TranslateError(str(e) or e.__class__.__name__) from e
                    attempt += 1
                    self.logger.info(f"Retrying {attempt}/{self.retry} ...")
                    await asyncio.sleep(0.5)
        finally:
            if owns_client:
                await client.aclose()
