"""Records reported by the agent and returned by AgentLoop."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class StepStatus(enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class AgentStep:
    """One unit of work inside a turn, reported to ``on_step_complete``."""

    id: str
    description: str
    status: StepStatus = StepStatus.PENDING
    action: str | None = None
    action_params: dict[str, Any] | None = None
    result: Any = None
    error: str | None = None


@dataclass
class ActionExecution:
    """An action the model invoked during ``AgentLoop.run``."""

    action_name: str
    parameters: dict[str, Any]
    result: Any = None
    timestamp: str = ""


@dataclass
class AgentLoopResult:
    """What ``AgentLoop.run`` hands back. ``run`` never raises."""

    outputs: list[str] = field(default_factory=list)
    actions_executed: list[ActionExecution] = field(default_factory=list)
    success: bool = True
    error: str | None = None
