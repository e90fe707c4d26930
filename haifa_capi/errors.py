from __future__ import annotations

from typing import Any

from .values import display


class LuaError(RuntimeError):
    """Lua-level error carrying an arbitrary Lua value, like ``error(v)``."""

    def __init__(self, value: Any) -> None:
        super().__init__(display(value))
        self.value = value


class ArgumentTypeError(LuaError):
    """A caller-supplied argument is missing or has the wrong type."""

    def __init__(self, position: int, function_name: str, message: str) -> None:
        super().__init__(format_argument_error(position, function_name, message))
        self.position = position
        self.function_name = function_name


class ContractViolation(AssertionError):
    """Internal invariant breach; never recovered inside the package."""


def format_argument_error(position: int, function_name: str, message: str) -> str:
    return f"bad argument #{position} to '{function_name}' ({message})"


def format_type_mismatch(expected: str, actual: str) -> str:
    return f"{expected} expected, got {actual}"


def error_message(error: BaseException) -> Any:
    """Lua value that a protected call leaves on the stack for ``error``."""
    if isinstance(error, LuaError):
        return error.value
    return str(error)


__all__ = [
    "LuaError",
    "ArgumentTypeError",
    "ContractViolation",
    "format_argument_error",
    "format_type_mismatch",
    "error_message",
]
