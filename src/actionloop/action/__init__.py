"""Action system — capability types, parser, and registry."""

from actionloop.action.base import (
    Action,
    ActionCall,
    ActionDefinition,
    ActionResult,
    BaseAction,
    FunctionAction,
    ParameterSpec,
)
from actionloop.action.parser import (
    format_action_results,
    looks_like_action_call,
    parse_action_calls,
)
from actionloop.action.registry import ActionRegistry

__all__ = [
    "Action",
    "ActionCall",
    "ActionDefinition",
    "ActionResult",
    "BaseAction",
    "FunctionAction",
    "ParameterSpec",
    "ActionRegistry",
    "format_action_results",
    "looks_like_action_call",
    "parse_action_calls",
]
