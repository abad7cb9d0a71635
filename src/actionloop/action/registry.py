"""Action registry — register, look up, and describe actions."""

from __future__ import annotations

import logging

from actionloop.action.base import Action
from actionloop.errors import DuplicateActionError

logger = logging.getLogger(__name__)

CALLING_CONVENTION = (
    '{"action": "action_name", "parameters": {"param1": "value1", "param2": "value2"}}'
)


class ActionRegistry:
    """Registry of available actions, keyed by name.

    Names are unique; registering a name twice is an error rather than an
    overwrite. Iteration order is registration order.
    """

    def __init__(self) -> None:
        self._actions: dict[str, Action] = {}

    def register(self, action: Action) -> None:
        """Register an action instance."""
        name = action.definition.name
        if name in self._actions:
            raise DuplicateActionError(name)
        self._actions[name] = action
        logger.debug("Registered action %s", name)

    def register_many(self, actions: list[Action]) -> None:
        """Register multiple actions."""
        for action in actions:
            self.register(action)

    def get(self, name: str) -> Action | None:
        """Get an action by name."""
        return self._actions.get(name)

    def list_all(self) -> list[Action]:
        return list(self._actions.values())

    def names(self) -> list[str]:
        """Get all registered action names."""
        return list(self._actions.keys())

    def render_manifest(self) -> str:
        """Describe every action for the system prompt.

        Returns an empty string when nothing is registered, meaning the
        prompt should carry no action section at all.
        """
        if not self._actions:
            return ""

        sections = []
        for action in self._actions.values():
            definition = action.definition
            params = "\n".join(
                f"  - {p.name} ({p.type}) "
                f"({'required' if p.required else 'optional'}): {p.description}"
                for p in definition.parameters
            )
            sections.append(
                f"### {definition.name}\n"
                f"{definition.description}\n\n"
                f"Parameters:\n"
                f"{params or '  None'}"
            )

        return (
            "# Available Actions\n\n"
            "You have access to the following actions. To use an action, respond "
            "with a JSON object in this exact format:\n"
            f"{CALLING_CONVENTION}\n\n"
            "You can call multiple actions by including multiple JSON objects "
            "in your response.\n\n"
            + "\n\n".join(sections)
            + "\n\nRemember: Always use the exact JSON format shown above when "
            "calling actions."
        )

    def __len__(self) -> int:
        return len(self._actions)

    def __contains__(self, name: str) -> bool:
        return name in self._actions
