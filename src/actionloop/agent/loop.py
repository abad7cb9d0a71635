"""AgentLoop — a batteries-included wrapper around Agent."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from datetime import datetime, timezone
from typing import Any, Callable

from actionloop.action.base import Action, ActionCall
from actionloop.action.builtin import (
    QUERY_LLM,
    USER_OUTPUT,
    QueryLLMAction,
    UserOutputAction,
)
from actionloop.action.parser import parse_action_calls
from actionloop.agent.agent import (
    Agent,
    OnActionMaxRetries,
    OnActionRetry,
    OnInvalidOutput,
    OnStepComplete,
)
from actionloop.agent.types import ActionExecution, AgentLoopResult, AgentStep
from actionloop.config import LoopOptions
from actionloop.llm.message import Message
from actionloop.llm.provider import ChatProvider

logger = logging.getLogger(__name__)

OnUserOutput = Callable[[str], None] | None
OnActionExecuted = Callable[[ActionExecution], None] | None


class AgentLoop:
    """Chat agent that decides between answering directly and using actions.

    On top of ``Agent`` this adds the ``user_output`` and ``query_llm``
    built-ins, tracks which actions ran during each ``run``, and guarantees
    the caller a human-readable output whenever work was done.

    Usage:
        loop = AgentLoop(provider, on_user_output=print)
        loop.register_action(WeatherAction())
        result = await loop.run("What's the weather in Paris?")
    """

    def __init__(
        self,
        provider: ChatProvider,
        options: LoopOptions | None = None,
        *,
        on_step_complete: OnStepComplete = None,
        on_user_output: OnUserOutput = None,
        on_action_executed: OnActionExecuted = None,
        on_invalid_output: OnInvalidOutput = None,
        on_action_retry: OnActionRetry = None,
        on_action_max_retries: OnActionMaxRetries = None,
    ) -> None:
        self._provider = provider
        self._options = options or LoopOptions()
        self._on_step_complete = on_step_complete
        self._on_user_output = on_user_output
        self._on_action_executed = on_action_executed

        self._user_outputs: list[str] = []
        self._actions_executed: list[ActionExecution] = []
        # (name, parameters, result) of every successful dispatch this run
        self._results: list[tuple[str, dict[str, Any], Any]] = []
        # Transcript length when the current run started
        self._run_start = 0
        self._lock = asyncio.Lock()

        self._agent = Agent(
            provider,
            self._options.to_agent_options(),
            on_invalid_output=on_invalid_output,
            on_action_retry=on_action_retry,
            on_action_max_retries=on_action_max_retries,
            on_step_complete=self._step_completed,
        )
        self._register_default_actions()

    @property
    def agent(self) -> Agent:
        return self._agent

    @property
    def history(self) -> list[Message]:
        return self._agent.history

    @property
    def user_outputs(self) -> list[str]:
        return list(self._user_outputs)

    @property
    def actions_executed(self) -> list[ActionExecution]:
        return list(self._actions_executed)

    def register_action(self, action: Action) -> None:
        self._agent.register_action(action)

    def clear_history(self) -> None:
        self._agent.clear_history()
        self._reset()
        self._run_start = 0

    async def run(self, user_message: str) -> AgentLoopResult:
        """Process one user message. Never raises.

        Overlapping calls on one instance run one after another.
        """
        async with self._lock:
            return await self._run(user_message)

    async def _run(self, user_message: str) -> AgentLoopResult:
        self._reset()
        self._run_start = len(self._agent.history)

        try:
            await self._agent.chat(user_message)

            self._track_executed_actions()
            self._extract_user_outputs()

            if self._actions_executed and not self._user_outputs:
                message = self._auto_notification()
                self._emit(message)

            return AgentLoopResult(
                outputs=list(self._user_outputs),
                actions_executed=list(self._actions_executed),
                success=True,
            )
        except Exception as e:
            logger.error("Agent loop failed: %s", e, exc_info=True)
            return AgentLoopResult(
                outputs=list(self._user_outputs),
                actions_executed=list(self._actions_executed),
                success=False,
                error=str(e) or type(e).__name__,
            )

    # ------------------------------------------------------------------

    def _reset(self) -> None:
        self._user_outputs = []
        self._actions_executed = []
        self._results = []

    def _register_default_actions(self) -> None:
        builtins: dict[str, Callable[[], Action]] = {
            USER_OUTPUT: UserOutputAction,
            QUERY_LLM: lambda: QueryLLMAction(self._provider),
        }
        for name in self._options.include_default_actions:
            self._agent.register_action(builtins[name]())

    def _step_completed(self, step: AgentStep) -> None:
        if step.action and step.error is None:
            self._results.append((step.action, step.action_params or {}, step.result))
        if self._on_step_complete:
            self._on_step_complete(step)

    def _assistant_calls(self) -> Iterator[ActionCall]:
        for message in self._agent.history[self._run_start :]:
            if message.role == "assistant":
                yield from parse_action_calls(message.content)

    def _track_executed_actions(self) -> None:
        for call in self._assistant_calls():
            if call.action == USER_OUTPUT:
                continue

            already_tracked = any(
                e.action_name == call.action and e.parameters == call.parameters
                for e in self._actions_executed
            )
            if already_tracked:
                continue

            execution = ActionExecution(
                action_name=call.action,
                parameters=call.parameters,
                result=self._result_for(call.action, call.parameters),
                timestamp=datetime.now(timezone.utc).isoformat(),
            )
            self._actions_executed.append(execution)
            if self._on_action_executed:
                self._on_action_executed(execution)

    def _result_for(self, name: str, parameters: dict[str, Any]) -> Any:
        for result_name, result_params, value in self._results:
            if result_name == name and result_params == parameters:
                return value
        return None

    def _extract_user_outputs(self) -> None:
        for call in self._assistant_calls():
            if call.action != USER_OUTPUT:
                continue
            message = call.parameters.get("message")
            if not message:
                continue
            message = str(message)
            if message not in self._user_outputs:
                self._emit(message)

    def _emit(self, message: str) -> None:
        self._user_outputs.append(message)
        if self._on_user_output:
            self._on_user_output(message)

    def _auto_notification(self) -> str:
        names = ", ".join(e.action_name for e in self._actions_executed)
        return f"Executed actions: {names}"
