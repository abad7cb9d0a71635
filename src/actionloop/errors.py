"""Exception taxonomy shared across actionloop."""

from __future__ import annotations


class ActionLoopError(Exception):
    """Base class for all actionloop errors."""


class DuplicateActionError(ActionLoopError):
    """Raised when an action name is registered twice."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Action with name '{name}' is already registered")


class ActionParameterError(ActionLoopError):
    """Raised by an action when required parameters are missing."""

    def __init__(self, action: str, missing: list[str]) -> None:
        self.action = action
        self.missing = missing
        super().__init__(
            f"Missing required parameter(s) for '{action}': {', '.join(missing)}"
        )


class MaxIterationsExceeded(ActionLoopError):
    """The conversation loop ran out of rounds without a final answer."""

    def __init__(self, max_iterations: int) -> None:
        self.max_iterations = max_iterations
        super().__init__(f"Maximum iterations ({max_iterations}) reached")


class InvalidOutputError(ActionLoopError):
    """The model kept producing unusable output.

    Raised once per rejected attempt inside the validation loop, and
    re-raised with the final attempt count when retries are exhausted.
    """

    def __init__(self, reason: str, output: str = "", attempts: int = 1) -> None:
        self.reason = reason
        self.output = output
        self.attempts = attempts
        super().__init__(reason)

    def __str__(self) -> str:
        if self.attempts > 1:
            return f"Invalid model output after {self.attempts} attempts: {self.reason}"
        return self.reason
