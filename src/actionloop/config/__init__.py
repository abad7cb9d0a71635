"""Configuration — Pydantic models for actionloop settings."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_ACTIONS: tuple[str, ...] = ("user_output", "query_llm")

DEFAULT_SYSTEM_PROMPT = """You are a helpful AI assistant that can use actions to accomplish tasks.

When the user sends a message, DECIDE whether to:
1. Just respond normally (for simple questions, greetings, etc.)
2. Use available actions to help the user

If you use actions, you MUST also call the user_output action afterward to tell the user what you did.

For example:
- User: "Hello" → Just respond normally
- User: "What's 5+5?" → Just respond normally
- User: "Search for Python tutorials" → Use search action, then user_output to summarize
- User: "Email john@example.com" → Use email action, then user_output to confirm

Always think about whether the user's request requires actions or just a normal response."""


class _Options(BaseModel):
    # Immutable once built; accepts both snake_case and camelCase keys.
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class AgentOptions(_Options):
    """Options for the orchestration loop (``Agent``)."""

    max_iterations: int = Field(default=10, ge=1, description="Model rounds per chat")
    system_prompt_prefix: str = Field(default="")
    max_retries: int = Field(
        default=3, ge=1, description="Attempts to get valid output per round"
    )
    max_action_retries: int = Field(
        default=2, ge=1, description="Attempts per action execution"
    )
    retry_delay: float = Field(
        default=0.5, ge=0, description="Base backoff (s) between output retries"
    )
    action_retry_delay: float = Field(
        default=0.3, ge=0, description="Base backoff (s) between action retries"
    )
    terminal_action: str = Field(
        default="user_output",
        description="Action whose call ends the agent's turn",
    )


class LoopOptions(_Options):
    """Options for the batteries-included wrapper (``AgentLoop``)."""

    max_steps: int = Field(default=10, ge=1)
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT)
    include_default_actions: tuple[str, ...] = Field(
        default=DEFAULT_ACTIONS,
        description="Built-in actions to register (True/False for all/none)",
    )
    max_retries: int = Field(default=3, ge=1)
    max_action_retries: int = Field(default=2, ge=1)
    retry_delay: float = Field(default=0.5, ge=0)
    action_retry_delay: float = Field(default=0.3, ge=0)

    @field_validator("include_default_actions", mode="before")
    @classmethod
    def _expand_flag(cls, value: Any) -> Any:
        if value is True:
            return DEFAULT_ACTIONS
        if value is False or value is None:
            return ()
        return value

    @field_validator("include_default_actions")
    @classmethod
    def _known_actions(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        unknown = [name for name in value if name not in DEFAULT_ACTIONS]
        if unknown:
            raise ValueError(
                f"Unknown default action(s): {', '.join(unknown)}; "
                f"choose from {', '.join(DEFAULT_ACTIONS)}"
            )
        return value

    def to_agent_options(self) -> AgentOptions:
        return AgentOptions(
            max_iterations=self.max_steps,
            system_prompt_prefix=self.system_prompt,
            max_retries=self.max_retries,
            max_action_retries=self.max_action_retries,
            retry_delay=self.retry_delay,
            action_retry_delay=self.action_retry_delay,
        )


class LLMConfig(BaseModel):
    """LLM provider configuration.

    Model names use litellm's provider-prefix format:
        "openai/gpt-4o"
        "anthropic/claude-sonnet-4-5-20250929"
        "ollama/llama3"

    API keys are read from env vars automatically by litellm
    (OPENAI_API_KEY, ANTHROPIC_API_KEY, GEMINI_API_KEY).
    """

    model: str = Field(default="openai/gpt-4o-mini")
    temperature: float | None = Field(default=None)
    max_tokens: int | None = Field(default=None)


class ActionLoopConfig(BaseModel):
    """Top-level actionloop configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    loop: LoopOptions = Field(default_factory=LoopOptions)

    @classmethod
    def load(cls, config_path: str | None = None) -> ActionLoopConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            ACTIONLOOP_MODEL               - Override model (litellm format with provider prefix)
            ACTIONLOOP_MAX_STEPS           - Override model rounds per turn
            ACTIONLOOP_MAX_RETRIES         - Override output validation attempts
            ACTIONLOOP_MAX_ACTION_RETRIES  - Override attempts per action
        """
        # .env values take precedence over stale shell exports.
        from dotenv import find_dotenv, load_dotenv

        load_dotenv(find_dotenv(usecwd=True), override=True)

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            import json

            with open(config_path) as f:
                config_data = json.load(f)

        llm = dict(config_data.get("llm", {}))
        env_model = os.environ.get("ACTIONLOOP_MODEL")
        if env_model:
            llm["model"] = env_model
        if llm:
            config_data["llm"] = llm

        loop = dict(config_data.get("loop", {}))
        for env_name, key in (
            ("ACTIONLOOP_MAX_STEPS", "max_steps"),
            ("ACTIONLOOP_MAX_RETRIES", "max_retries"),
            ("ACTIONLOOP_MAX_ACTION_RETRIES", "max_action_retries"),
        ):
            value = os.environ.get(env_name)
            if value:
                # Drop the camelCase spelling so the env value wins.
                loop.pop(to_camel(key), None)
                loop[key] = int(value)
        if loop:
            config_data["loop"] = loop

        return cls.model_validate(config_data)
