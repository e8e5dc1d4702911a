"""
Text-generation collaborator.

The analyst core only needs one capability from a language model: turn a
prompt into prose.  ``TextGenerator`` is that seam; jobs depend on the
protocol and tests substitute a scripted fake.

Production implementation
-------------------------
``AnthropicTextGenerator`` posts to the Anthropic Messages API::

    POST {base_url}/v1/messages
      x-api-key:         $ANTHROPIC_API_KEY
      anthropic-version: 2023-06-01
      {"model": ..., "max_tokens": ..., "system": ..., "messages": [...]}

The system prompt is rebuilt for every call from a provider callable, so
each request sees the latest investor, performance and knowledge context.

There are no retries here.  Any transport error, non-2xx status or
unexpected payload is raised as ``CollaboratorError``; callers log it and
skip their output for the cycle.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, Optional, Protocol

import httpx

from market_analyst.config import AppConfig, LLMConfig

logger = logging.getLogger(__name__)

API_KEY_ENV = "ANTHROPIC_API_KEY"


class CollaboratorError(RuntimeError):
    """The text-generation collaborator failed to produce a response."""


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str: ...


class AnthropicTextGenerator:
    """Messages API client.

    Args:
        api_key:       Anthropic API key.
        config:        Model, endpoint and timeout settings.
        system_prompt: Zero-argument callable returning the system prompt
                       for each request.  ``None`` sends no system prompt.
        transport:     Optional httpx transport (tests use ``MockTransport``).
    """

    def __init__(
        self,
        api_key: Optional[str],
        config: Optional[LLMConfig] = None,
        system_prompt: Optional[Callable[[], str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.config = config or LLMConfig()
        self.system_prompt = system_prompt
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        system_prompt: Optional[Callable[[], str]] = None,
    ) -> "AnthropicTextGenerator":
        return cls(os.environ.get(API_KEY_ENV), config.llm, system_prompt=system_prompt)

    def _payload(self, prompt: str) -> dict:
        payload: dict = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if self.system_prompt is not None:
            system = self.system_prompt()
            if system:
                payload["system"] = system
        return payload

    async def generate(self, prompt: str) -> str:
        if not self.api_key:
            raise CollaboratorError(f"{API_KEY_ENV} is not set.")

        payload = self._payload(prompt)
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": self.config.api_version,
            "content-type": "application/json",
        }
        logger.debug(
            "Collaborator request: model=%s prompt=%d chars system=%d chars",
            self.config.model, len(prompt), len(payload.get("system", "")),
        )

        try:
            async with httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            ) as client:
                resp = await client.post("/v1/messages", json=payload, headers=headers)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise CollaboratorError(
                f"Messages API returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise CollaboratorError(f"Messages API request failed: {exc}") from exc
        except ValueError as exc:
            raise CollaboratorError("Messages API returned invalid JSON") from exc

        text = _extract_text(data)
        logger.debug("Collaborator response: %d chars", len(text))
        return text


def _extract_text(data: object) -> str:
    """Join the text blocks of a Messages API response."""
    if not isinstance(data, dict) or not isinstance(data.get("content"), list):
        raise CollaboratorError("Messages API response has no content blocks")
    text = "".join(
        block.get("text", "")
        for block in data["content"]
        if isinstance(block, dict) and block.get("type") == "text"
    ).strip()
    if not text:
        raise CollaboratorError("Messages API response contained no text")
    return text
