"""Built-in actions registered by AgentLoop."""

from actionloop.action.builtin.query_llm import QUERY_LLM, QueryLLMAction
from actionloop.action.builtin.user_output import USER_OUTPUT, UserOutputAction

__all__ = [
    "QUERY_LLM",
    "QueryLLMAction",
    "USER_OUTPUT",
    "UserOutputAction",
]
