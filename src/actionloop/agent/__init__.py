"""Agent system — orchestration loop and its batteries-included wrapper."""

from actionloop.agent.agent import Agent
from actionloop.agent.loop import AgentLoop
from actionloop.agent.types import (
    ActionExecution,
    AgentLoopResult,
    AgentStep,
    StepStatus,
)

__all__ = [
    "Agent",
    "AgentLoop",
    "ActionExecution",
    "AgentLoopResult",
    "AgentStep",
    "StepStatus",
]
