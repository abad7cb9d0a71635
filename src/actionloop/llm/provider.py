"""LLM provider abstraction — unified via litellm.

The loop only needs text in, text out. Providers expose two call shapes:

- ``send_agentic_message`` — the system prompt may carry the action manifest
  and the reply may embed action-call JSON.
- ``send_message`` — a plain completion with no action semantics.

litellm handles all provider-specific details (Anthropic, OpenAI, Gemini,
Ollama, ...) and normalizes streaming to OpenAI-format chunks. We convert
those to a small chunk dict and concatenate the text deltas:

    {
        "finish_reason": str | None,
        "delta": {"role": str | None, "content": str | None},
        "usage": {"prompt_tokens": int, ...} | None,
    }
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from actionloop.llm.message import Message

if TYPE_CHECKING:
    from litellm import CustomStreamWrapper, ModelResponse, ModelResponseStream

logger = logging.getLogger(__name__)


@dataclass
class ProviderConfig:
    """Configuration for an LLM provider."""

    model: str
    temperature: float | None = None
    max_tokens: int | None = None


@runtime_checkable
class ChatProvider(Protocol):
    """Protocol for model-sending capabilities.

    Both calls must be safe to repeat: the agent retries them when the
    output fails validation.
    """

    async def send_message(
        self, messages: Sequence[Message], system_prompt: str | None = None
    ) -> str:
        """Plain completion, no action semantics expected."""
        ...

    async def send_agentic_message(
        self, messages: Sequence[Message], system_prompt: str
    ) -> str:
        """Completion whose reply may embed action-call JSON."""
        ...


# ---------------------------------------------------------------------------
# litellm provider
# ---------------------------------------------------------------------------


@dataclass
class LiteLLMProvider:
    """Unified LLM provider using litellm.

    litellm handles provider detection from the model string prefix
    (e.g. "anthropic/claude-...", "gemini/gemini-...", "openai/gpt-...")
    and reads API keys from environment variables automatically.
    """

    _config: ProviderConfig
    on_text: Callable[[str], None] | None = field(default=None, repr=False)

    @property
    def config(self) -> ProviderConfig:
        return self._config

    async def send_message(
        self, messages: Sequence[Message], system_prompt: str | None = None
    ) -> str:
        return await self._collect(system_prompt or None, messages)

    async def send_agentic_message(
        self, messages: Sequence[Message], system_prompt: str
    ) -> str:
        return await self._collect(system_prompt, messages)

    async def _collect(self, system: str | None, messages: Sequence[Message]) -> str:
        text_buffer = ""
        finish_reason = None

        async for chunk in self.stream(system, [m.to_openai_dict() for m in messages]):
            if chunk.get("finish_reason"):
                finish_reason = chunk["finish_reason"]

            content = chunk.get("delta", {}).get("content")
            if content:
                text_buffer += content
                if self.on_text:
                    self.on_text(content)
                    # Yield control so listeners can render the delta.
                    await asyncio.sleep(0)

            if "usage" in chunk:
                logger.debug("Token usage: %s", chunk["usage"])

        if finish_reason == "length":
            logger.warning("Model %s hit max_tokens; reply truncated", self._config.model)
        return text_buffer

    async def stream(
        self,
        system: str | None,
        messages: list[dict[str, Any]],
    ) -> AsyncIterator[dict[str, Any]]:
        """Stream from litellm, yielding normalized chunk dicts."""
        api_messages: list[dict[str, Any]] = []
        if system:
            api_messages.append({"role": "system", "content": system})
        api_messages.extend(messages)

        kwargs: dict[str, Any] = {
            "model": self._config.model,
            "messages": api_messages,
            "stream": True,
            "stream_options": {"include_usage": True},
        }

        if self._config.temperature is not None:
            kwargs["temperature"] = self._config.temperature

        if self._config.max_tokens is not None:
            kwargs["max_tokens"] = self._config.max_tokens

        response = await _acompletion_with_retry(**kwargs)

        async for chunk in response:  # type: ignore[union-attr]
            yield _chunk_to_dict(chunk)


@retry(
    retry=retry_if_exception_type((ConnectionError, TimeoutError, OSError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=30),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def _acompletion_with_retry(**kwargs: Any) -> CustomStreamWrapper | ModelResponse:
    """Call litellm.acompletion with retry on transient errors."""
    import litellm

    return await litellm.acompletion(**kwargs)


def _chunk_to_dict(chunk: ModelResponseStream) -> dict[str, Any]:
    """Convert a litellm ModelResponseStream chunk to our normalized dict."""
    result: dict[str, Any] = {}

    choices = getattr(chunk, "choices", None)
    if choices:
        choice = choices[0]
        delta = choice.delta
        result["finish_reason"] = choice.finish_reason
        result["delta"] = {}

        if delta.content is not None:
            result["delta"]["content"] = delta.content

        if delta.role is not None:
            result["delta"]["role"] = delta.role
    else:
        result["finish_reason"] = None
        result["delta"] = {}

    usage = getattr(chunk, "usage", None)
    if usage:
        result["usage"] = {
            "prompt_tokens": getattr(usage, "prompt_tokens", 0) or 0,
            "completion_tokens": getattr(usage, "completion_tokens", 0) or 0,
            "total_tokens": getattr(usage, "total_tokens", 0) or 0,
        }

    return result


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_provider(
    model: str,
    temperature: float | None = None,
    max_tokens: int | None = None,
    on_text: Callable[[str], None] | None = None,
) -> ChatProvider:
    """Create a LiteLLM provider.

    Args:
        model: Model name with provider prefix (e.g. "openai/gpt-4o",
               "anthropic/claude-sonnet-4-5-20250929", "ollama/llama3").
        temperature: Sampling temperature.
        max_tokens: Max output tokens.
        on_text: Optional callback receiving streamed text deltas.
    """
    config = ProviderConfig(model=model, temperature=temperature, max_tokens=max_tokens)
    return LiteLLMProvider(_config=config, on_text=on_text)
