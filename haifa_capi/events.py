from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence


@dataclass(frozen=True)
class OperationCompleted:
    name: str
    args: Sequence[Any]
    result: Any
    stack_line: str
    timestamp: float


@dataclass(frozen=True)
class OperationFailed:
    name: str
    args: Sequence[Any]
    error: str
    timestamp: float


OperationEvent = OperationCompleted | OperationFailed


def format_operation_event(event: object) -> str:
    if isinstance(event, OperationCompleted):
        if event.result is None:
            return f"{event.name} -> {event.stack_line}"
        return f"{event.name} = {event.result!r} -> {event.stack_line}"
    if isinstance(event, OperationFailed):
        return f"{event.name} error: {event.error}"
    return str(event)


__all__ = ["OperationCompleted", "OperationFailed", "OperationEvent", "format_operation_event"]
