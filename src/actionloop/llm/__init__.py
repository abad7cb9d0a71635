"""LLM abstraction layer — unified via litellm with streaming."""

from actionloop.llm.message import Message
from actionloop.llm.provider import (
    ChatProvider,
    LiteLLMProvider,
    ProviderConfig,
    create_provider,
)

__all__ = [
    "Message",
    "ChatProvider",
    "LiteLLMProvider",
    "ProviderConfig",
    "create_provider",
]
