from __future__ import annotations

import re
from typing import Any, List, Optional, Sequence

from .environment import LuaEnvironment
from .table import LuaTable
from .values import LuaType, display, format_pointer, rawequal, tostring, type_of

_IDENTIFIER = re.compile(r"[A-Za-z0-9_]+")


def is_identifier(text: str) -> bool:
    return _IDENTIFIER.fullmatch(text) is not None


def is_sequence(table: LuaTable) -> bool:
    """True when every pair position 1..N has a non-nil ``t[position]``.

    N is the number of pairs; the scan stops at the first gap. Empty tables
    are sequences.
    """
    for position, _ in enumerate(table.iter_items(), start=1):
        if table.raw_get(position) is None:
            return False
    return True


class StackPrinter:
    """Renders stack values as a single ``stack: ...`` line."""

    def __init__(self, env: LuaEnvironment, *, detect_cycles: bool = False) -> None:
        self.env = env
        self.detect_cycles = detect_cycles
        self._rendering: List[LuaTable] = []

    def render(self, values: Sequence[Any]) -> str:
        if not values:
            return "stack: <empty>"
        return "stack: " + " ".join(self.render_item(value) for value in values)

    def render_item(self, value: Any, as_key: bool = False) -> str:
        first, last = ("[", "]") if as_key else ("", "")
        kind = type_of(value)
        if kind == LuaType.NIL or kind == LuaType.NONE:
            return "nil"
        if kind == LuaType.NUMBER:
            return f"{first}{'%g' % float(value)}{last}"
        if kind == LuaType.BOOLEAN:
            return f"{first}{'true' if value else 'false'}{last}"
        if kind == LuaType.STRING:
            if as_key and is_identifier(value):
                return value
            return f"{first}'{value}'{last}"
        if kind == LuaType.TABLE:
            return f"{first}{self._render_table(value)}{last}"
        if kind == LuaType.FUNCTION:
            return f"{first}{self.function_name(value)}{last}"
        if kind in (LuaType.USERDATA, LuaType.LIGHTUSERDATA):
            return f"{first}userdata:{format_pointer(value)}{last}"
        if kind == LuaType.THREAD:
            return f"{first}thread:{format_pointer(value)}{last}"
        raise AssertionError(f"unhandled Lua type {kind!r}")

    def function_name(self, func: Any) -> str:
        name = self._global_name(func)
        if name is not None:
            return f"function:{name}"
        return f"function:{format_pointer(func)}"

    # ------------------------------------------------------------- internals
    def _global_name(self, func: Any) -> Optional[str]:
        for key, value in self.env.global_table().iter_items():
            if rawequal(func, value):
                text = tostring(key)
                return text if text is not None else display(key)
        return None

    def _render_table(self, table: LuaTable) -> str:
        if self.detect_cycles and any(seen is table for seen in self._rendering):
            return "{...}"
        self._rendering.append(table)
        try:
            if is_sequence(table):
                return self._render_sequence(table)
            return self._render_mapping(table)
        finally:
            self._rendering.pop()

    def _render_sequence(self, table: LuaTable) -> str:
        parts = []
        position = 1
        while True:
            value = table.raw_get(position)
            if value is None:
                break
            parts.append(self.render_item(value))
            position += 1
        return "{" + ", ".join(parts) + "}"

    def _render_mapping(self, table: LuaTable) -> str:
        parts = []
        for key, value in table.iter_items():
            parts.append(f"{self.render_item(key, as_key=True)} = {self.render_item(value)}")
        return "{" + ", ".join(parts) + "}"


__all__ = ["StackPrinter", "is_identifier", "is_sequence"]
