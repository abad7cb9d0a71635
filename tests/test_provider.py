"""Tests for actionloop.llm.provider (retry logic, chunk handling, factory)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, patch

import pytest

from actionloop.llm.message import Message
from actionloop.llm.provider import (
    ChatProvider,
    LiteLLMProvider,
    ProviderConfig,
    _acompletion_with_retry,
    _chunk_to_dict,
    create_provider,
)


# ---------------------------------------------------------------------------
# Fakes for litellm stream chunks
# ---------------------------------------------------------------------------


class _FakeDelta:
    def __init__(self, content: str | None = None, role: str | None = None) -> None:
        self.content = content
        self.role = role


class _FakeChoice:
    def __init__(self, delta: _FakeDelta, finish_reason: str | None = None) -> None:
        self.delta = delta
        self.finish_reason = finish_reason


class _FakeChunk:
    def __init__(
        self,
        choices: list[_FakeChoice] | None = None,
        usage: object | None = None,
    ) -> None:
        self.choices = choices
        self.usage = usage


def _text_chunk(text: str, finish_reason: str | None = None) -> _FakeChunk:
    return _FakeChunk(choices=[_FakeChoice(_FakeDelta(content=text), finish_reason)])


async def _stream(*chunks: _FakeChunk) -> AsyncIterator[_FakeChunk]:
    for chunk in chunks:
        yield chunk


# ---------------------------------------------------------------------------
# ProviderConfig / create_provider
# ---------------------------------------------------------------------------


class TestProviderConfig:
    def test_defaults(self) -> None:
        config = ProviderConfig(model="test/model")
        assert config.model == "test/model"
        assert config.temperature is None
        assert config.max_tokens is None


class TestCreateProvider:
    def test_returns_litellm_provider(self) -> None:
        provider = create_provider("test/model")
        assert isinstance(provider, LiteLLMProvider)
        assert isinstance(provider, ChatProvider)

    def test_config_propagated(self) -> None:
        provider = create_provider("openai/gpt-4o", temperature=0.7, max_tokens=2048)
        assert provider.config.model == "openai/gpt-4o"
        assert provider.config.temperature == 0.7
        assert provider.config.max_tokens == 2048


# ---------------------------------------------------------------------------
# send_message / send_agentic_message
# ---------------------------------------------------------------------------


class TestSend:
    async def test_agentic_collects_text(self) -> None:
        mock = AsyncMock(
            return_value=_stream(_text_chunk('{"action": '), _text_chunk('"x"}', "stop"))
        )
        provider = create_provider("test/model", temperature=0.2)
        with patch("actionloop.llm.provider._acompletion_with_retry", mock):
            text = await provider.send_agentic_message(
                [Message.user("hi")], "SYSTEM"
            )

        assert text == '{"action": "x"}'
        kwargs = mock.call_args.kwargs
        assert kwargs["model"] == "test/model"
        assert kwargs["stream"] is True
        assert kwargs["temperature"] == 0.2
        assert "max_tokens" not in kwargs
        assert kwargs["messages"] == [
            {"role": "system", "content": "SYSTEM"},
            {"role": "user", "content": "hi"},
        ]

    async def test_plain_without_system_prompt(self) -> None:
        mock = AsyncMock(return_value=_stream(_text_chunk("hello")))
        provider = create_provider("test/model")
        with patch("actionloop.llm.provider._acompletion_with_retry", mock):
            text = await provider.send_message([Message.user("hi")])

        assert text == "hello"
        assert mock.call_args.kwargs["messages"] == [{"role": "user", "content": "hi"}]

    async def test_plain_with_system_prompt(self) -> None:
        mock = AsyncMock(return_value=_stream(_text_chunk("hello")))
        provider = create_provider("test/model")
        with patch("actionloop.llm.provider._acompletion_with_retry", mock):
            await provider.send_message([Message.user("hi")], system_prompt="ctx")

        assert mock.call_args.kwargs["messages"][0] == {
            "role": "system",
            "content": "ctx",
        }

    async def test_on_text_receives_deltas(self) -> None:
        seen: list[str] = []
        mock = AsyncMock(return_value=_stream(_text_chunk("a"), _text_chunk("b")))
        provider = create_provider("test/model", on_text=seen.append)
        with patch("actionloop.llm.provider._acompletion_with_retry", mock):
            await provider.send_message([Message.user("hi")])
        assert seen == ["a", "b"]

    async def test_empty_stream(self) -> None:
        mock = AsyncMock(return_value=_stream(_FakeChunk(choices=None)))
        provider = create_provider("test/model")
        with patch("actionloop.llm.provider._acompletion_with_retry", mock):
            assert await provider.send_message([Message.user("hi")]) == ""


# ---------------------------------------------------------------------------
# _acompletion_with_retry — retry logic
# ---------------------------------------------------------------------------


class TestRetryLogic:
    async def test_success_on_first_try(self) -> None:
        mock_acompletion = AsyncMock(return_value="ok")
        with patch("litellm.acompletion", mock_acompletion):
            result = await _acompletion_with_retry(model="test", messages=[])
            assert result == "ok"
            assert mock_acompletion.call_count == 1

    async def test_retries_on_connection_error(self) -> None:
        mock_acompletion = AsyncMock(side_effect=[ConnectionError("conn failed"), "ok"])
        with patch("litellm.acompletion", mock_acompletion):
            result = await _acompletion_with_retry(model="test", messages=[])
            assert result == "ok"
            assert mock_acompletion.call_count == 2

    async def test_gives_up_after_3_attempts(self) -> None:
        mock_acompletion = AsyncMock(
            side_effect=[
                ConnectionError("fail 1"),
                ConnectionError("fail 2"),
                ConnectionError("fail 3"),
            ]
        )
        with patch("litellm.acompletion", mock_acompletion):
            with pytest.raises(ConnectionError, match="fail 3"):
                await _acompletion_with_retry(model="test", messages=[])
            assert mock_acompletion.call_count == 3

    async def test_does_not_retry_on_value_error(self) -> None:
        """Non-transient errors should not be retried."""
        mock_acompletion = AsyncMock(side_effect=ValueError("bad input"))
        with patch("litellm.acompletion", mock_acompletion):
            with pytest.raises(ValueError, match="bad input"):
                await _acompletion_with_retry(model="test", messages=[])
            assert mock_acompletion.call_count == 1


# ---------------------------------------------------------------------------
# _chunk_to_dict — normalization
# ---------------------------------------------------------------------------


class TestChunkToDict:
    def test_text_content(self) -> None:
        d = _chunk_to_dict(_text_chunk("hello"))
        assert d["delta"]["content"] == "hello"
        assert d["finish_reason"] is None

    def test_finish_reason(self) -> None:
        d = _chunk_to_dict(_FakeChunk(choices=[_FakeChoice(_FakeDelta(), "stop")]))
        assert d["finish_reason"] == "stop"

    def test_no_choices(self) -> None:
        d = _chunk_to_dict(_FakeChunk(choices=None))
        assert d["finish_reason"] is None
        assert d["delta"] == {}

    def test_empty_choices(self) -> None:
        d = _chunk_to_dict(_FakeChunk(choices=[]))
        assert d["finish_reason"] is None

    def test_usage_present(self) -> None:
        class FakeUsage:
            prompt_tokens = 100
            completion_tokens = 50
            total_tokens = 150

        d = _chunk_to_dict(
            _FakeChunk(choices=[_FakeChoice(_FakeDelta())], usage=FakeUsage())
        )
        assert d["usage"] == {
            "prompt_tokens": 100,
            "completion_tokens": 50,
            "total_tokens": 150,
        }

    def test_role_present(self) -> None:
        d = _chunk_to_dict(_FakeChunk(choices=[_FakeChoice(_FakeDelta(role="assistant"))]))
        assert d["delta"]["role"] == "assistant"

    def test_content_none_not_in_delta(self) -> None:
        d = _chunk_to_dict(_FakeChunk(choices=[_FakeChoice(_FakeDelta(content=None))]))
        assert "content" not in d["delta"]
