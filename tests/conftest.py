"""Shared fixtures: scripted model providers and test actions."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Callable, ClassVar

import pytest

from actionloop.action.base import BaseAction, ParameterSpec
from actionloop.llm.message import Message


class ScriptedProvider:
    """Replays canned replies and records every call it receives.

    Once the script runs out the last reply is repeated.
    """

    def __init__(self, replies: Sequence[str], plain_reply: str = "plain reply") -> None:
        self.replies = list(replies)
        self.plain_reply = plain_reply
        self.agentic_calls: list[tuple[list[Message], str]] = []
        self.plain_calls: list[tuple[list[Message], str | None]] = []

    async def send_agentic_message(
        self, messages: Sequence[Message], system_prompt: str
    ) -> str:
        index = min(len(self.agentic_calls), len(self.replies) - 1)
        self.agentic_calls.append((list(messages), system_prompt))
        return self.replies[index]

    async def send_message(
        self, messages: Sequence[Message], system_prompt: str | None = None
    ) -> str:
        self.plain_calls.append((list(messages), system_prompt))
        return self.plain_reply


class WeatherAction(BaseAction):
    name: ClassVar[str] = "get_weather"
    description: ClassVar[str] = "Get current weather for a location"
    parameters: ClassVar[tuple[ParameterSpec, ...]] = (
        ParameterSpec(name="location", description="City name"),
        ParameterSpec(
            name="units", description="celsius or fahrenheit", required=False
        ),
    )

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    async def run(self, params: dict[str, Any]) -> Any:
        self.calls.append(params)
        return {"location": params["location"], "condition": "Sunny", "temp": 22}


class FlakyAction(BaseAction):
    """Fails the first ``failures`` executions, then succeeds."""

    name: ClassVar[str] = "flaky"
    description: ClassVar[str] = "Sometimes works"

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.attempts = 0

    async def run(self, params: dict[str, Any]) -> Any:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise RuntimeError(f"boom {self.attempts}")
        return "ok"


@pytest.fixture
def make_provider() -> Callable[..., ScriptedProvider]:
    return ScriptedProvider


@pytest.fixture
def weather() -> WeatherAction:
    return WeatherAction()


@pytest.fixture
def make_flaky() -> Callable[[int], FlakyAction]:
    return FlakyAction
