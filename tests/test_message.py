"""Tests for actionloop.llm.message."""

from __future__ import annotations

import dataclasses

import pytest

from actionloop.llm.message import Message


class TestMessage:
    def test_constructors(self) -> None:
        assert Message.system("s") == Message(role="system", content="s")
        assert Message.user("u") == Message(role="user", content="u")
        assert Message.assistant("a") == Message(role="assistant", content="a")

    def test_default_content(self) -> None:
        assert Message(role="user").content == ""

    def test_to_openai_dict(self) -> None:
        assert Message.user("hello").to_openai_dict() == {
            "role": "user",
            "content": "hello",
        }

    def test_frozen(self) -> None:
        msg = Message.user("hi")
        with pytest.raises(dataclasses.FrozenInstanceError):
            msg.content = "changed"  # type: ignore[misc]
