"""Lua value model used by the host runtime.

Lua values are represented by plain Python objects: ``None`` (nil), ``bool``,
``float``/``int`` (number), ``str``, :class:`LuaTable`, builtin functions,
:class:`LuaUserdata` and :class:`LuaThread`. :func:`type_of` is the single
place that classifies a value into its :class:`LuaType` tag.
"""

from __future__ import annotations

import enum
import itertools
import re
from typing import Any, Optional

from .table import LuaTable


class LuaType(enum.IntEnum):
    NONE = -1
    NIL = 0
    BOOLEAN = 1
    LIGHTUSERDATA = 2
    NUMBER = 3
    STRING = 4
    TABLE = 5
    FUNCTION = 6
    USERDATA = 7
    THREAD = 8


TYPE_NAMES = {
    LuaType.NONE: "no value",
    LuaType.NIL: "nil",
    LuaType.BOOLEAN: "boolean",
    LuaType.LIGHTUSERDATA: "userdata",
    LuaType.NUMBER: "number",
    LuaType.STRING: "string",
    LuaType.TABLE: "table",
    LuaType.FUNCTION: "function",
    LuaType.USERDATA: "userdata",
    LuaType.THREAD: "thread",
}


class _NoValue:
    """Marker for a stack position beyond the top (``LUA_TNONE``)."""

    __slots__ = ()

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return "<none>"


NONE = _NoValue()


class LuaUserdata:
    """Full userdata: an opaque payload with an individual metatable."""

    __slots__ = ("payload", "metatable")

    def __init__(self, payload: Any = None, metatable: Optional[LuaTable] = None) -> None:
        self.payload = payload
        self.metatable = metatable

    def get_metatable(self) -> Optional[LuaTable]:
        return self.metatable

    def set_metatable(self, metatable: Optional[LuaTable]) -> None:
        self.metatable = metatable

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<LuaUserdata {self.payload!r}>"


class LuaThread:
    """Opaque thread value; the host never runs it."""

    _ids = itertools.count(1)

    __slots__ = ("thread_id",)

    def __init__(self) -> None:
        self.thread_id = next(self._ids)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<LuaThread #{self.thread_id}>"


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_function(value: Any) -> bool:
    return bool(getattr(value, "__lua_builtin__", False))


def type_of(value: Any) -> LuaType:
    if value is NONE:
        return LuaType.NONE
    if value is None:
        return LuaType.NIL
    if isinstance(value, bool):
        return LuaType.BOOLEAN
    if is_number(value):
        return LuaType.NUMBER
    if isinstance(value, str):
        return LuaType.STRING
    if isinstance(value, LuaTable):
        return LuaType.TABLE
    if is_function(value):
        return LuaType.FUNCTION
    if isinstance(value, LuaUserdata):
        return LuaType.USERDATA
    if isinstance(value, LuaThread):
        return LuaType.THREAD
    return LuaType.LIGHTUSERDATA


def type_name(value: Any) -> str:
    return TYPE_NAMES[type_of(value)]


def topointer(value: Any) -> int:
    """Identity token for reference values, 0 for everything else."""
    if type_of(value) in (
        LuaType.TABLE,
        LuaType.FUNCTION,
        LuaType.USERDATA,
        LuaType.THREAD,
        LuaType.LIGHTUSERDATA,
    ):
        return id(value)
    return 0


def format_pointer(value: Any) -> str:
    return f"0x{topointer(value):08x}"


def format_number(value: Any) -> str:
    """Format a number the way C's ``%.14g`` does for ``tostring``."""
    return "%.14g" % float(value)


def is_truthy(value: Any) -> bool:
    return not (value is None or value is False or value is NONE)


_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_HEX_RE = re.compile(r"[+-]?0[xX][0-9a-fA-F]+")


def tonumber(value: Any) -> Optional[float]:
    """Lua number coercion: numbers and numeric strings, else None.

    Only Lua's numeral syntax is accepted, so Python spellings such as
    ``1_000`` or ``inf`` are not numbers here.
    """
    if is_number(value):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if _HEX_RE.fullmatch(text):
            return float(int(text, 16))
        if _DECIMAL_RE.fullmatch(text):
            return float(text)
    return None


def tostring(value: Any) -> Optional[str]:
    """Lua string coercion: strings and numbers, else None."""
    if isinstance(value, str):
        return value
    if is_number(value):
        return format_number(value)
    return None


def tointeger(value: Any) -> int:
    number = tonumber(value)
    if number is None or number != number or number in (float("inf"), float("-inf")):
        return 0
    return int(number)


def rawequal(left: Any, right: Any) -> bool:
    if left is right:
        return True
    if is_number(left) and is_number(right):
        return float(left) == float(right)
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return False


def display(value: Any) -> str:
    """Text produced by the host ``tostring`` builtin."""
    kind = type_of(value)
    if kind in (LuaType.NIL, LuaType.NONE):
        return "nil"
    if kind == LuaType.BOOLEAN:
        return "true" if value else "false"
    if kind == LuaType.NUMBER:
        return format_number(value)
    if kind == LuaType.STRING:
        return value
    return f"{TYPE_NAMES[kind]}: {format_pointer(value)}"


__all__ = [
    "LuaType",
    "TYPE_NAMES",
    "NONE",
    "LuaUserdata",
    "LuaThread",
    "is_number",
    "is_function",
    "type_of",
    "type_name",
    "topointer",
    "format_pointer",
    "format_number",
    "is_truthy",
    "tonumber",
    "tostring",
    "tointeger",
    "rawequal",
    "display",
]
