"""User output action — the model's way of talking to the user."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, ClassVar

from actionloop.action.base import BaseAction, ParameterSpec

USER_OUTPUT = "user_output"


class UserOutputAction(BaseAction):
    """Emit a message to the user.

    Execution only echoes the message with a timestamp. The visible effect
    happens in AgentLoop, which collects these calls from the transcript,
    and calling it ends the agent's turn.
    """

    name: ClassVar[str] = USER_OUTPUT
    description: ClassVar[str] = (
        "Output a message to the user. Use this when you want to communicate "
        "with the user or provide information."
    )
    parameters: ClassVar[tuple[ParameterSpec, ...]] = (
        ParameterSpec(
            name="message",
            type="string",
            description="The message to display to the user",
        ),
    )

    async def run(self, params: dict[str, Any]) -> Any:
        return {
            "type": USER_OUTPUT,
            "message": params["message"],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
