"""Thin wrapper around an OpenAI-compatible streaming chat-completion API."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator

from openai import AsyncOpenAI as _HTTPClient

from app.config import settings

logger = logging.getLogger(__name__)

_client: _HTTPClient | None = None


def _get_client() -> _HTTPClient:
    global _client
    if _client is None:
        _client = _HTTPClient(
            base_url=settings.llm_base_url,
            api_key=settings.llm_api_key,
            timeout=settings.llm_timeout_seconds,
        )
    return _client


async def stream_chat(
    messages: list[dict[str, Any]],
    *,
    tools: list[dict[str, Any]] | None = None,
    model: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> AsyncIterator[Any]:
    """Start a streaming chat completion and yield its chunks as they arrive."""
    client = _get_client()
    kwargs: dict[str, Any] = {}
    if tools:
        kwargs["tools"] = tools
        kwargs["tool_choice"] = "auto"

    stream = await client.chat.completions.create(
        model=model or settings.llm_model,
        messages=messages,
        temperature=settings.llm_temperature if temperature is None else temperature,
        max_tokens=max_tokens or settings.llm_max_tokens,
        stream=True,
        **kwargs,
    )
    logger.debug("LLM stream opened (model=%s).", model or settings.llm_model)
    async for chunk in stream:
        yield chunk
