"""The orchestration loop — the heart of actionloop."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from actionloop.action.base import Action, ActionCall, ActionResult
from actionloop.action.parser import (
    format_action_results,
    looks_like_action_call,
    parse_action_calls,
)
from actionloop.action.registry import ActionRegistry
from actionloop.agent.types import AgentStep, StepStatus
from actionloop.config import AgentOptions
from actionloop.errors import InvalidOutputError, MaxIterationsExceeded
from actionloop.llm.message import Message
from actionloop.llm.provider import ChatProvider

logger = logging.getLogger(__name__)

# Callback types
OnInvalidOutput = Callable[[int, str, str], None] | None  # (attempt, error, raw_output)
OnActionRetry = Callable[[str, int, str], None] | None  # (action_name, attempt, error)
OnActionMaxRetries = Callable[[str, str], None] | None  # (action_name, error)
OnStepComplete = Callable[[AgentStep], None] | None


class Agent:
    """Drives a multi-round conversation in which the model may call actions.

    Each round:
    1. Build the system prompt (prefix + action manifest)
    2. Ask the provider for an agentic reply, retrying unusable output
    3. Record the reply and parse action calls out of it
    4. No calls: the reply is the final answer
    5. Otherwise dispatch every call in order, with per-action retries
    6. If the terminal action was among them, stop; else feed results back

    Args:
        provider: Model-sending capability.
        options: Immutable loop options.
        registry: Action registry to dispatch against. A fresh one is
            created when omitted.
        on_invalid_output: Called for every rejected model reply.
        on_action_retry: Called before each retry of a failing action.
        on_action_max_retries: Called once when an action exhausts retries.
        on_step_complete: Called after each dispatched action and for the
            final answer.
    """

    def __init__(
        self,
        provider: ChatProvider,
        options: AgentOptions | None = None,
        registry: ActionRegistry | None = None,
        *,
        on_invalid_output: OnInvalidOutput = None,
        on_action_retry: OnActionRetry = None,
        on_action_max_retries: OnActionMaxRetries = None,
        on_step_complete: OnStepComplete = None,
    ) -> None:
        self._provider = provider
        self._options = options or AgentOptions()
        self._registry = registry if registry is not None else ActionRegistry()
        self._history: list[Message] = []
        self._lock = asyncio.Lock()

        self._on_invalid_output = on_invalid_output
        self._on_action_retry = on_action_retry
        self._on_action_max_retries = on_action_max_retries
        self._on_step_complete = on_step_complete

    @property
    def options(self) -> AgentOptions:
        return self._options

    @property
    def registry(self) -> ActionRegistry:
        return self._registry

    @property
    def history(self) -> list[Message]:
        """A copy of the transcript."""
        return list(self._history)

    def register_action(self, action: Action) -> None:
        self._registry.register(action)

    def clear_history(self) -> None:
        self._history = []

    def build_system_prompt(self) -> str:
        prefix = self._options.system_prompt_prefix
        manifest = self._registry.render_manifest()
        if not manifest:
            return prefix
        if prefix:
            return f"{prefix}\n\n{manifest}"
        return manifest

    async def chat(self, user_message: str) -> str:
        """Send a user message and run rounds until a final answer.

        Raises:
            MaxIterationsExceeded: No final answer within ``max_iterations``.
            InvalidOutputError: The model's output stayed unusable for
                ``max_retries`` attempts in one round.
        """
        async with self._lock:
            self._history.append(Message.user(user_message))
            max_iterations = self._options.max_iterations

            for round_no in range(1, max_iterations + 1):
                logger.info("Round %d/%d", round_no, max_iterations)

                response, calls = await self._generate(self.build_system_prompt())
                self._history.append(Message.assistant(response))

                if not calls:
                    logger.info("Final answer after %d round(s)", round_no)
                    self._report(
                        AgentStep(
                            id=f"{round_no}",
                            description="Final response",
                            status=StepStatus.COMPLETED,
                            result=response,
                        )
                    )
                    return response

                results = await self._execute_actions(calls, round_no)

                terminal = self._options.terminal_action
                if any(call.action == terminal for call in calls):
                    logger.info("%s called in round %d; ending turn", terminal, round_no)
                    return response

                self._history.append(Message.user(format_action_results(results)))

            logger.warning("Hit max iterations (%d)", max_iterations)
            raise MaxIterationsExceeded(max_iterations)

    # ------------------------------------------------------------------
    # Model output
    # ------------------------------------------------------------------

    async def _generate(self, system_prompt: str) -> tuple[str, list[ActionCall]]:
        """Get a usable reply, retrying with linear backoff."""
        delay = self._options.retry_delay
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._options.max_retries),
            wait=wait_incrementing(start=delay, increment=delay),
            retry=retry_if_exception_type(InvalidOutputError),
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._provider.send_agentic_message(
                        list(self._history), system_prompt
                    )
                    calls = self._validate(
                        response or "", attempt.retry_state.attempt_number
                    )
        except InvalidOutputError as e:
            raise InvalidOutputError(
                e.reason, e.output, attempts=self._options.max_retries
            ) from e

        return response or "", calls

    def _validate(self, response: str, attempt: int) -> list[ActionCall]:
        if not response.strip():
            reason = "Empty response from model"
        else:
            calls = parse_action_calls(response)
            if calls or not looks_like_action_call(response):
                return calls
            reason = "Response looks like an action call but contains no valid action JSON"

        logger.warning("Invalid model output (attempt %d): %s", attempt, reason)
        if self._on_invalid_output:
            self._on_invalid_output(attempt, reason, response)
        raise InvalidOutputError(reason, response)

    # ------------------------------------------------------------------
    # Action dispatch
    # ------------------------------------------------------------------

    async def _execute_actions(
        self, calls: list[ActionCall], round_no: int
    ) -> list[ActionResult]:
        # Sequential, in textual order.
        results = []
        for index, call in enumerate(calls, start=1):
            result = await self._execute_action(call)
            results.append(result)
            self._report(
                AgentStep(
                    id=f"{round_no}.{index}",
                    description=f"Execute {call.action}",
                    status=StepStatus.COMPLETED if result.success else StepStatus.FAILED,
                    action=call.action,
                    action_params=call.parameters,
                    result=result.result,
                    error=result.error,
                )
            )
        return results

    async def _execute_action(self, call: ActionCall) -> ActionResult:
        action = self._registry.get(call.action)
        if action is None:
            logger.warning("Model called unknown action %s", call.action)
            return ActionResult.failed(call.action, f"Action '{call.action}' not found")

        max_attempts = self._options.max_action_retries
        delay = self._options.action_retry_delay

        def _before_retry(retry_state: RetryCallState) -> None:
            error = _error_text(retry_state.outcome.exception())  # type: ignore[union-attr]
            logger.warning(
                "Action %s failed (attempt %d/%d): %s",
                call.action,
                retry_state.attempt_number,
                max_attempts,
                error,
            )
            if self._on_action_retry:
                self._on_action_retry(call.action, retry_state.attempt_number, error)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_incrementing(start=delay, increment=delay),
            retry=retry_if_exception_type(Exception),
            before_sleep=_before_retry,
            reraise=True,
        )

        try:
            value = await retrying(action.execute, dict(call.parameters))
        except Exception as e:
            error = _error_text(e)
            logger.error(
                "Action %s failed after %d attempt(s): %s", call.action, max_attempts, error
            )
            if self._on_action_max_retries:
                self._on_action_max_retries(call.action, error)
            return ActionResult.failed(
                call.action, f"Failed after {max_attempts} attempt(s): {error}"
            )

        logger.debug("Action %s succeeded", call.action)
        return ActionResult.ok(call.action, value)

    def _report(self, step: AgentStep) -> None:
        if self._on_step_complete:
            self._on_step_complete(step)


def _error_text(error: BaseException | None) -> str:
    if error is None:
        return "unknown error"
    return str(error) or type(error).__name__
