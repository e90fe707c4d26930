"""Generic wrapper turning an operation descriptor into a simulated API call.

Every catalog operation runs the same sequence: validate the caller's
arguments, check the handle's saved stack out onto a live :class:`LuaStack`,
run the primitive, print the stack, check the stack back in and return the
declared result.
"""

from __future__ import annotations

import enum
import math
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Sequence, Tuple

from .config import DEMO_STATE_METATABLE, ApiDemoConfig
from .environment import LuaEnvironment
from .errors import ArgumentTypeError, LuaError, format_type_mismatch
from .events import OperationCompleted, OperationEvent, OperationFailed
from .printer import StackPrinter
from .stack import LuaStack
from .state_store import StateStore
from .values import NONE, LuaUserdata, tonumber, tostring, type_name


class ArgShape(enum.Enum):
    INT = "int"
    STRING = "string"
    NUMBER = "number"


class ResultShape(enum.Enum):
    NONE = "none"
    INT = "int"
    NUMBER = "number"
    STRING = "string"
    OPT_STRING = "string or nil"


@dataclass(frozen=True)
class OperationDescriptor:
    name: str
    inputs: Tuple[ArgShape, ...]
    result: ResultShape
    function: Callable[..., Any]
    error_propagating: bool = False

    @property
    def signature(self) -> str:
        params = ", ".join(["L", *(shape.value for shape in self.inputs)])
        return f"{self.name}({params}) -> {self.result.value}"


class Dispatcher:
    def __init__(
        self,
        env: LuaEnvironment,
        store: StateStore,
        descriptors: Iterable[OperationDescriptor],
        *,
        config: Optional[ApiDemoConfig] = None,
    ) -> None:
        self.env = env
        self.store = store
        self.config = config or store.config
        self.printer = StackPrinter(env, detect_cycles=self.config.detect_cycles)
        self._operations: Dict[str, OperationDescriptor] = {d.name: d for d in descriptors}
        # Only the most recent events are kept until drained.
        self._events: Deque[OperationEvent] = deque(maxlen=self.config.event_limit)

    # ------------------------------------------------------------ public API
    def names(self) -> List[str]:
        return sorted(self._operations)

    def descriptor(self, name: str) -> OperationDescriptor:
        return self._operations[name]

    def __contains__(self, name: str) -> bool:
        return name in self._operations

    def newstate(self) -> LuaUserdata:
        return self.store.create()

    def invoke(self, name: str, args: Sequence[Any]) -> Any:
        operation = self.descriptor(name)
        try:
            handle, values = self._validate(operation, args)
            surface = LuaStack(self.env, self.config)
            with self.store.checked_out(handle, surface):
                if operation.error_propagating:
                    line = self._observe(surface, omit=1)
                    self.store.checkin(surface, 1)
                    output = operation.function(surface, *values)
                else:
                    saved = surface.values()
                    try:
                        output = operation.function(surface, *values)
                    except LuaError:
                        # A failed primitive leaves the saved stack as it was.
                        surface.settop(0)
                        for value in saved:
                            surface.push(value)
                        raise
                    line = self._observe(surface, omit=0)
                    self.store.checkin(surface, 0)
        except LuaError as exc:
            self._emit(OperationFailed(name=name, args=tuple(args), error=str(exc), timestamp=time.time()))
            raise
        result = self._package(operation.result, output)
        self._emit(
            OperationCompleted(
                name=name,
                args=tuple(args),
                result=result,
                stack_line=line,
                timestamp=time.time(),
            )
        )
        return result

    def drain_events(self) -> List[OperationEvent]:
        events = list(self._events)
        self._events.clear()
        return events

    # ------------------------------------------------------------- internals
    def _validate(self, operation: OperationDescriptor, args: Sequence[Any]) -> Tuple[LuaUserdata, List[Any]]:
        handle = args[0] if args else NONE
        if not self.store.is_handle(handle):
            raise ArgumentTypeError(
                1,
                operation.name,
                format_type_mismatch(DEMO_STATE_METATABLE, self._describe(handle)),
            )
        values: List[Any] = []
        for position, shape in enumerate(operation.inputs, start=2):
            value = args[position - 1] if len(args) >= position else NONE
            values.append(self._coerce(operation.name, position, shape, value))
        return handle, values

    def _coerce(self, name: str, position: int, shape: ArgShape, value: Any) -> Any:
        if shape == ArgShape.STRING:
            text = tostring(value)
            if text is None:
                raise ArgumentTypeError(position, name, format_type_mismatch("string", self._describe(value)))
            return text
        number = tonumber(value)
        if number is None:
            raise ArgumentTypeError(position, name, format_type_mismatch("number", self._describe(value)))
        if shape == ArgShape.NUMBER:
            return number
        if not math.isfinite(number):
            raise ArgumentTypeError(position, name, "number has no integer representation")
        return int(number)

    @staticmethod
    def _describe(value: Any) -> str:
        return "no value" if value is NONE else type_name(value)

    def _observe(self, surface: LuaStack, omit: int) -> str:
        values = surface.values()
        shown = values[: max(len(values) - omit, 0)]
        line = self.printer.render(shown)
        self.config.sink(line)
        return line

    @staticmethod
    def _package(shape: ResultShape, output: Any) -> Any:
        if shape == ResultShape.NONE:
            return None
        if shape == ResultShape.INT:
            return float(int(output))
        if shape == ResultShape.NUMBER:
            return float(output)
        if shape == ResultShape.STRING:
            # A missing string comes back as the number 0, like C's NULL.
            return output if output is not None else 0.0
        return output

    def _emit(self, event: OperationEvent) -> None:
        self._events.append(event)


__all__ = [
    "ArgShape",
    "ResultShape",
    "OperationDescriptor",
    "Dispatcher",
]
