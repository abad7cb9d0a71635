"""actionloop — let a language model converse and call typed actions."""

from actionloop.action import (
    Action,
    ActionCall,
    ActionDefinition,
    ActionRegistry,
    ActionResult,
    BaseAction,
    FunctionAction,
    ParameterSpec,
    format_action_results,
    parse_action_calls,
)
from actionloop.action.builtin import QueryLLMAction, UserOutputAction
from actionloop.agent import (
    ActionExecution,
    Agent,
    AgentLoop,
    AgentLoopResult,
    AgentStep,
    StepStatus,
)
from actionloop.config import ActionLoopConfig, AgentOptions, LoopOptions
from actionloop.errors import (
    ActionLoopError,
    ActionParameterError,
    DuplicateActionError,
    InvalidOutputError,
    MaxIterationsExceeded,
)
from actionloop.llm import ChatProvider, LiteLLMProvider, Message, create_provider

__version__ = "0.1.0"

__all__ = [
    "Action",
    "ActionCall",
    "ActionDefinition",
    "ActionRegistry",
    "ActionResult",
    "BaseAction",
    "FunctionAction",
    "ParameterSpec",
    "format_action_results",
    "parse_action_calls",
    "QueryLLMAction",
    "UserOutputAction",
    "ActionExecution",
    "Agent",
    "AgentLoop",
    "AgentLoopResult",
    "AgentStep",
    "StepStatus",
    "ActionLoopConfig",
    "AgentOptions",
    "LoopOptions",
    "ActionLoopError",
    "ActionParameterError",
    "DuplicateActionError",
    "InvalidOutputError",
    "MaxIterationsExceeded",
    "ChatProvider",
    "LiteLLMProvider",
    "Message",
    "create_provider",
]
