"""Query LLM action — lets the agent ask the model a side question."""

from __future__ import annotations

from typing import Any, ClassVar

from actionloop.action.base import BaseAction, ParameterSpec
from actionloop.llm.message import Message
from actionloop.llm.provider import ChatProvider

QUERY_LLM = "query_llm"


class QueryLLMAction(BaseAction):
    name: ClassVar[str] = QUERY_LLM
    description: ClassVar[str] = (
        "Query the LLM for additional information, clarification, "
        "or to break down complex tasks."
    )
    parameters: ClassVar[tuple[ParameterSpec, ...]] = (
        ParameterSpec(
            name="prompt",
            type="string",
            description="The question or prompt to send to the LLM",
        ),
        ParameterSpec(
            name="context",
            type="string",
            description="Optional context to provide with the query",
            required=False,
        ),
    )

    def __init__(self, provider: ChatProvider) -> None:
        self._provider = provider

    async def run(self, params: dict[str, Any]) -> Any:
        # Plain call: the side query never sees the action manifest.
        return await self._provider.send_message(
            [Message.user(str(params["prompt"]))],
            system_prompt=params.get("context") or None,
        )
