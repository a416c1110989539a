from __future__ import annotations

import asyncio
import json
import logging
import re
import time

import httpx

from cloze_trainer.config import API_KEY_ENV, GenerationConfig
from cloze_trainer.errors import (
    ConfigurationError,
    EmptyResponseError,
    GenerationTimeoutError,
    UpstreamError,
)
from cloze_trainer.providers.base import LLMProvider

log = logging.getLogger("cloze_trainer.llm")

_FENCE_OPEN = re.compile(r"^```[ \t]*(?:json)?[ \t]*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\n?[ \t]*```$")

ERROR_BODY_PREVIEW = 200


def strip_code_fences(text: str) -> str:
    """Drop a leading ```/```json fence and a trailing ``` fence, if present."""
    text = text.strip()
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def _upstream_message(status_code: int, body: str) -> str:
    """Best-effort error message from a failed response body."""
    message = f"API error: {status_code}"
    try:
        payload = json.loads(body)
    except ValueError:
        if body:
            message += ": " + body[:ERROR_BODY_PREVIEW]
        return message
    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
    return body[:ERROR_BODY_PREVIEW] or message


def _extract_content(data: object) -> str:
    """Pull ``choices[0].message.content`` out of the response envelope."""
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    return content.strip() if isinstance(content, str) else ""


class DeepSeekProvider(LLMProvider):
    """Client for an OpenAI-compatible ``/chat/completions`` endpoint."""

    def __init__(
        self,
        config: GenerationConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._transport = transport

    async def generate(self, prompt: str, temperature: float | None = None) -> str:
        if not self.config.api_key.strip():
            raise ConfigurationError(
                f"{API_KEY_ENV} is not configured. Set it in the server environment "
                "and restart."
            )
        body = {
            "model": self.config.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.config.temperature if temperature is None else temperature,
        }
        log.info("── PROMPT (%s, %d chars) ──", self.config.model, len(prompt))
        log.debug("%s", prompt)
        t0 = time.monotonic()
        try:
            resp = await asyncio.wait_for(self._post(body), timeout=self.config.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            log.warning("Generation request timed out after %.0fs", self.config.timeout)
            raise GenerationTimeoutError(
                f"The generation service did not respond within "
                f"{self.config.timeout:.0f} seconds. Please try again."
            ) from None
        except httpx.HTTPError as e:
            raise UpstreamError(f"Request to the generation service failed: {e}") from e

        if not resp.is_success:
            raise UpstreamError(
                _upstream_message(resp.status_code, resp.text),
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError:
            data = None
        text = _extract_content(data)
        elapsed = time.monotonic() - t0
        log.info("── RESPONSE (%.1fs, %d chars) ──", elapsed, len(text))
        log.debug("%s", text)
        if not text:
            raise EmptyResponseError("The generation service returned an empty response. Please try again.")
        return strip_code_fences(text)

    async def _post(self, body: dict) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        async with httpx.AsyncClient(
            timeout=self.config.timeout, transport=self._transport,
        ) as client:
            return await client.post(self.config.endpoint, headers=headers, json=body)

    def name(self) -> str:
        return f"deepseek/{self.config.model}"
