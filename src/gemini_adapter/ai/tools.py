"""Tool definitions the model may invoke.

A :class:`Tool` carries its declaration (name, description, properties) and
the mutable state of one invocation: the inputs bound from the model's
function-call arguments and the result produced by executing it.
"""

from __future__ import annotations

import copy
import inspect
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    ToolExecutor = Callable[..., Union[Any, Awaitable[Any]]]
    """Sync or async callable invoked with the bound inputs as keyword arguments."""


class PropertyType(StrEnum):
    """JSON-schema primitive types a tool property can declare."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class ToolProperty:
    """One typed input of a tool."""

    name: str
    type: PropertyType | str
    description: str = ""
    required: bool = False


@dataclass
class Tool:
    """An invocable capability exposed to the model."""

    name: str
    description: str
    properties: list[ToolProperty] = field(default_factory=list)
    executor: ToolExecutor | None = None
    inputs: dict[str, Any] = field(default_factory=dict)
    result: Any = None

    def set_inputs(self, inputs: dict[str, Any] | None) -> Tool:
        self.inputs = dict(inputs or {})
        return self

    def copy(self) -> Tool:
        """Return a fresh instance for a single invocation.

        The declaration is shared; inputs and result are reset.
        """
        clone = copy.copy(self)
        clone.inputs = {}
        clone.result = None
        return clone

    @property
    def required_properties(self) -> list[str]:
        return [p.name for p in self.properties if p.required]

    async def execute(self) -> Any:
        """Run the executor with the bound inputs and store the result."""
        if self.executor is None:
            raise RuntimeError(f"Tool {self.name!r} has no executor")

        missing = [name for name in self.required_properties if name not in self.inputs]
        if missing:
            raise ValueError(
                f"Tool '{self.name}' missing required argument(s): {', '.join(missing)}"
            )

        result = self.executor(**self.inputs)
        if inspect.isawaitable(result):
            result = await result
        self.result = result
        return result
