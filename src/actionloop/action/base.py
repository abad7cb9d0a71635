"""Action capability types with Pydantic definitions."""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from actionloop.errors import ActionParameterError

ParameterType = Literal["string", "number", "boolean", "object", "array"]


class ParameterSpec(BaseModel):
    """One named parameter of an action."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: ParameterType = "string"
    description: str = ""
    required: bool = True


class ActionDefinition(BaseModel):
    """Capability descriptor: what the model sees in the manifest."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    description: str = ""
    parameters: tuple[ParameterSpec, ...] = ()

    @property
    def required_parameters(self) -> list[str]:
        return [p.name for p in self.parameters if p.required]


@runtime_checkable
class Action(Protocol):
    """Anything the agent can dispatch to.

    ``execute`` returns the result value or raises on failure.
    """

    @property
    def definition(self) -> ActionDefinition: ...

    async def execute(self, params: dict[str, Any]) -> Any: ...


@dataclass(frozen=True)
class ActionCall:
    """An action request parsed from model text."""

    action: str
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ActionResult:
    """Outcome of dispatching one ActionCall."""

    action: str
    success: bool
    result: Any = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.success and self.error is not None:
            raise ValueError("Successful ActionResult cannot carry an error")
        if not self.success and self.result is not None:
            raise ValueError("Failed ActionResult cannot carry a result")

    @classmethod
    def ok(cls, action: str, result: Any = None) -> ActionResult:
        return cls(action=action, success=True, result=result)

    @classmethod
    def failed(cls, action: str, error: str) -> ActionResult:
        return cls(action=action, success=False, error=error)


class BaseAction(ABC):
    """Base class for class-defined actions.

    Subclasses declare their manifest entry as class variables and implement
    ``run``. ``execute`` checks required parameters before running.

    Usage:
        class WeatherAction(BaseAction):
            name = "get_weather"
            description = "Get current weather for a location"
            parameters = (
                ParameterSpec(name="location", description="City name"),
            )

            async def run(self, params: dict[str, Any]) -> Any:
                return {"location": params["location"], "temp": 22}
    """

    name: ClassVar[str]
    description: ClassVar[str] = ""
    parameters: ClassVar[tuple[ParameterSpec, ...]] = ()

    @property
    def definition(self) -> ActionDefinition:
        return ActionDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )

    async def execute(self, params: dict[str, Any]) -> Any:
        _check_required(self.definition, params)
        return await self.run(params)

    @abstractmethod
    async def run(self, params: dict[str, Any]) -> Any:
        """Perform the action with checked parameters."""
        ...


class FunctionAction:
    """Wrap a plain (sync or async) function as an action.

    The function receives the parameters as keyword arguments.

        async def get_weather(location: str) -> dict:
            ...

        action = FunctionAction(
            "get_weather",
            get_weather,
            description="Get current weather",
            parameters={"location": {"type": "string", "description": "City"}},
        )
    """

    def __init__(
        self,
        name: str,
        function: Callable[..., Any],
        description: str = "",
        parameters: Mapping[str, Mapping[str, Any]] | list[ParameterSpec] | None = None,
    ) -> None:
        if isinstance(parameters, Mapping):
            # The mapping key is the parameter name.
            specs = [
                ParameterSpec(
                    name=pname, **{k: v for k, v in pdef.items() if k != "name"}
                )
                for pname, pdef in parameters.items()
            ]
        else:
            specs = list(parameters or [])
        self._definition = ActionDefinition(
            name=name, description=description, parameters=tuple(specs)
        )
        self._function = function

    @property
    def definition(self) -> ActionDefinition:
        return self._definition

    async def execute(self, params: dict[str, Any]) -> Any:
        _check_required(self._definition, params)
        result = self._function(**params)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"FunctionAction({self._definition.name!r})"


def _check_required(definition: ActionDefinition, params: Mapping[str, Any]) -> None:
    missing = [p for p in definition.required_parameters if params.get(p) is None]
    if missing:
        raise ActionParameterError(definition.name, missing)
