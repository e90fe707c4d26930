"""The live execution surface: one C frame's view of the Lua stack.

:class:`LuaStack` implements the ``lua_*`` primitives of Lua's C API (5.1
semantics, with the 5.2 ``rawlen`` spelling) on top of the host values. Stack
positions are 1-based; negative indices count down from the top; indices at or
below the registry pseudo-index address the registry and, in 5.1, the global
table.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from .config import LUA_ERRERR, LUA_ERRRUN, LUA_MULTRET, ApiDemoConfig
from .environment import LuaEnvironment, normalize_results
from .errors import LuaError, error_message
from .table import LuaTable
from .values import (
    NONE,
    TYPE_NAMES,
    LuaType,
    format_number,
    is_function,
    is_number,
    is_truthy,
    rawequal,
    tointeger,
    tonumber,
    topointer,
    tostring,
    type_name,
    type_of,
)

_MAXTAGLOOP = 100


class LuaStack:
    def __init__(self, env: LuaEnvironment, config: Optional[ApiDemoConfig] = None) -> None:
        self.env = env
        self.config = config or ApiDemoConfig()
        self._slots: List[Any] = []

    # ------------------------------------------------------------ index helpers
    def values(self) -> List[Any]:
        return list(self._slots)

    def _is_pseudo(self, index: int) -> bool:
        return index <= self.config.registry_index

    def absindex(self, index: int) -> int:
        if index > 0 or self._is_pseudo(index):
            return index
        return len(self._slots) + index + 1

    def _get(self, index: int) -> Any:
        if self._is_pseudo(index):
            if index == self.config.registry_index:
                return self.env.registry()
            if self.config.globals_index is not None and index >= self.config.globals_index:
                return self.env.global_table()
            raise LuaError(f"invalid pseudo-index {index}")
        position = self.absindex(index)
        if position < 1:
            raise LuaError(f"invalid stack index {index}")
        if position > len(self._slots):
            return NONE
        return self._slots[position - 1]

    def _require(self, index: int) -> Any:
        value = self._get(index)
        if value is NONE:
            raise LuaError(f"invalid stack index {index}")
        return value

    def _position(self, index: int) -> int:
        position = self.absindex(index)
        if self._is_pseudo(index) or not 1 <= position <= len(self._slots):
            raise LuaError(f"invalid stack index {index}")
        return position

    def _require_table(self, index: int) -> LuaTable:
        value = self._require(index)
        if not isinstance(value, LuaTable):
            raise LuaError(f"table expected, got {type_name(value)}")
        return value

    def _push(self, value: Any) -> None:
        self._slots.append(value)

    def _top_value(self) -> Any:
        if not self._slots:
            raise LuaError("stack is empty")
        return self._slots[-1]

    def _pop_value(self) -> Any:
        value = self._top_value()
        self._slots.pop()
        return value

    # --------------------------------------------------------- stack operations
    def gettop(self) -> int:
        return len(self._slots)

    def settop(self, index: int) -> None:
        if index >= 0:
            new_top = index
        else:
            new_top = len(self._slots) + index + 1
            if new_top < 0:
                raise LuaError(f"invalid new top {index}")
        if new_top > self.config.stack_limit:
            raise LuaError("stack overflow")
        if new_top < len(self._slots):
            del self._slots[new_top:]
        else:
            self._slots.extend([None] * (new_top - len(self._slots)))

    def pop(self, count: int) -> None:
        self.settop(-count - 1)

    def pushvalue(self, index: int) -> None:
        self._push(self._require(index))

    def remove(self, index: int) -> None:
        del self._slots[self._position(index) - 1]

    def insert(self, index: int) -> None:
        position = self._position(index)
        value = self._slots.pop()
        self._slots.insert(position - 1, value)

    def replace(self, index: int) -> None:
        position = self._position(index)
        value = self._pop_value()
        if position <= len(self._slots):
            self._slots[position - 1] = value

    def checkstack(self, extra: int) -> bool:
        return extra >= 0 and len(self._slots) + extra <= self.config.stack_limit

    # ------------------------------------------------------------ push values
    def push(self, value: Any) -> None:
        """Push an arbitrary host value (host-side code only, not in the catalog)."""
        if value is NONE:
            raise LuaError("cannot push an absent value")
        self._push(value)

    def pushnil(self) -> None:
        self._push(None)

    def pushnumber(self, number: float) -> None:
        self._push(float(number))

    def pushinteger(self, number: int) -> None:
        self._push(float(int(number)))

    def pushboolean(self, flag: Any) -> None:
        self._push(is_truthy(flag) and flag != 0)

    def pushstring(self, text: Optional[str]) -> None:
        self._push(None if text is None else str(text))

    def pushlstring(self, text: str, length: int) -> None:
        if length < 0:
            raise LuaError("string length must be non-negative")
        self._push(str(text)[:length])

    def newtable(self) -> None:
        self._push(LuaTable())

    def createtable(self, narr: int, nrec: int) -> None:
        # Capacity hints only; the host table grows on demand.
        self._push(LuaTable())

    # ------------------------------------------------------- type predicates
    def type(self, index: int) -> int:
        return int(type_of(self._get(index)))

    def typename(self, tp: int) -> str:
        try:
            return TYPE_NAMES[LuaType(tp)]
        except ValueError:
            raise LuaError(f"invalid type code {tp}") from None

    def isnone(self, index: int) -> bool:
        return self._get(index) is NONE

    def isnil(self, index: int) -> bool:
        return self._get(index) is None

    def isnoneornil(self, index: int) -> bool:
        return self.type(index) <= LuaType.NIL

    def isboolean(self, index: int) -> bool:
        return isinstance(self._get(index), bool)

    def isnumber(self, index: int) -> bool:
        return tonumber(self._get(index)) is not None

    def isstring(self, index: int) -> bool:
        return tostring(self._get(index)) is not None

    def istable(self, index: int) -> bool:
        return isinstance(self._get(index), LuaTable)

    def isfunction(self, index: int) -> bool:
        return is_function(self._get(index))

    def isuserdata(self, index: int) -> bool:
        return type_of(self._get(index)) in (LuaType.USERDATA, LuaType.LIGHTUSERDATA)

    # ------------------------------------------------------------ conversions
    def toboolean(self, index: int) -> bool:
        return is_truthy(self._get(index))

    def tointeger(self, index: int) -> int:
        return tointeger(self._get(index))

    def tonumber(self, index: int) -> float:
        number = tonumber(self._get(index))
        return 0.0 if number is None else number

    def tolstring(self, index: int) -> Optional[str]:
        value = self._get(index)
        text = tostring(value)
        if text is not None and is_number(value) and not self._is_pseudo(index):
            # Like C Lua, converting a number changes the stack slot itself.
            self._slots[self.absindex(index) - 1] = text
        return text

    def tostring(self, index: int) -> Optional[str]:
        return self.tolstring(index)

    def topointer(self, index: int) -> int:
        return topointer(self._get(index))

    def objlen(self, index: int) -> int:
        value = self._get(index)
        kind = type_of(value)
        if kind == LuaType.STRING:
            return len(value)
        if kind == LuaType.NUMBER:
            return len(self.tolstring(index) or "")
        if kind == LuaType.TABLE:
            return value.lua_len()
        return 0

    def rawlen(self, index: int) -> int:
        return self.objlen(index)

    # ------------------------------------------------------------ table access
    def gettable(self, index: int) -> None:
        target = self._require(index)
        if not self._slots:
            raise LuaError("gettable expects a key on the stack")
        self._slots[-1] = self.index_value(target, self._slots[-1])

    def getfield(self, index: int, key: str) -> None:
        target = self._require(index)
        self._push(self.index_value(target, key))

    def settable(self, index: int) -> None:
        target = self._require(index)
        if len(self._slots) < 2:
            raise LuaError("settable expects a key and a value on the stack")
        value = self._slots[-1]
        key = self._slots[-2]
        self.assign_value(target, key, value)
        del self._slots[-2:]

    def setfield(self, index: int, key: str) -> None:
        target = self._require(index)
        value = self._top_value()
        self.assign_value(target, key, value)
        self._slots.pop()

    def rawget(self, index: int) -> None:
        table = self._require_table(index)
        self._slots[-1] = table.raw_get(self._top_value())

    def rawgeti(self, index: int, n: int) -> None:
        table = self._require_table(index)
        self._push(table.raw_get(n))

    def rawset(self, index: int) -> None:
        table = self._require_table(index)
        if len(self._slots) < 2:
            raise LuaError("rawset expects a key and a value on the stack")
        self._raw_set(table, self._slots[-2], self._slots[-1])
        del self._slots[-2:]

    def rawseti(self, index: int, n: int) -> None:
        table = self._require_table(index)
        self._raw_set(table, n, self._top_value())
        self._slots.pop()

    def getglobal(self, name: str) -> None:
        self._push(self.index_value(self.env.global_table(), name))

    def setglobal(self, name: str) -> None:
        self.assign_value(self.env.global_table(), name, self._top_value())
        self._slots.pop()

    def getmetatable(self, index: int) -> bool:
        metatable = self.env.get_metatable(self._get(index))
        if metatable is None:
            return False
        self._push(metatable)
        return True

    def setmetatable(self, index: int) -> bool:
        target = self._require(index)
        metatable = self._top_value()
        if metatable is not None and not isinstance(metatable, LuaTable):
            raise LuaError("table expected")
        self.env.set_metatable(target, metatable)
        self._slots.pop()
        return True

    def next(self, index: int) -> bool:
        table = self._require_table(index)
        key = self._pop_value()
        try:
            pair = table.next(key)
        except RuntimeError as exc:
            raise LuaError(str(exc)) from exc
        if pair is None:
            return False
        self._push(pair[0])
        self._push(pair[1])
        return True

    # -------------------------------------------------------------- operators
    def concat(self, count: int) -> None:
        if count < 0 or count > len(self._slots):
            raise LuaError(f"cannot concatenate {count} values")
        if count == 0:
            self._push("")
            return
        while count > 1:
            right = self._slots.pop()
            left = self._slots.pop()
            self._push(self._concat_pair(left, right))
            count -= 1

    def equal(self, index1: int, index2: int) -> bool:
        left = self._get(index1)
        right = self._get(index2)
        if left is NONE or right is NONE:
            return False
        return self.values_equal(left, right)

    def lessthan(self, index1: int, index2: int) -> bool:
        left = self._get(index1)
        right = self._get(index2)
        if left is NONE or right is NONE:
            return False
        return self.values_less(left, right)

    def rawequal(self, index1: int, index2: int) -> bool:
        left = self._get(index1)
        right = self._get(index2)
        if left is NONE or right is NONE:
            return False
        return rawequal(left, right)

    # ------------------------------------------------------------------ calls
    def call(self, nargs: int, nresults: int) -> None:
        func_position = len(self._slots) - nargs
        if nargs < 0 or func_position < 1:
            raise LuaError(f"not enough values on the stack to call with {nargs} argument(s)")
        func = self._slots[func_position - 1]
        args = self._slots[func_position:]
        del self._slots[func_position - 1:]
        results = self.call_value(func, args)
        if nresults != LUA_MULTRET:
            if nresults < 0:
                raise LuaError(f"invalid result count {nresults}")
            results = (results + [None] * nresults)[:nresults]
        self._slots.extend(results)

    def pcall(self, nargs: int, nresults: int, errfunc: int) -> int:
        handler = self._require(errfunc) if errfunc != 0 else None
        if nargs < 0 or nargs + 1 > len(self._slots):
            raise LuaError(f"not enough values on the stack to call with {nargs} argument(s)")
        base = len(self._slots) - nargs - 1
        try:
            self.call(nargs, nresults)
        except LuaError as exc:
            del self._slots[max(base, 0):]
            message = error_message(exc)
            if handler is None:
                self._push(message)
                return LUA_ERRRUN
            try:
                handled = self.call_value(handler, [message])
            except LuaError as handler_exc:
                self._push(error_message(handler_exc))
                return LUA_ERRERR
            self._push(handled[0] if handled else None)
            return LUA_ERRRUN
        return 0

    def error(self) -> None:
        raise LuaError(self._slots[-1] if self._slots else None)

    # ------------------------------------------------- metamethod-aware helpers
    def call_value(self, func: Any, args: Sequence[Any]) -> List[Any]:
        if not is_function(func):
            handler = self.env.get_metamethod(func, "__call")
            if handler is None:
                raise LuaError(f"attempt to call a {type_name(func)} value")
            return self.call_value(handler, [func, *args])
        try:
            return normalize_results(func(list(args), self.env))
        except LuaError:
            raise
        except RuntimeError as exc:
            raise LuaError(str(exc)) from exc

    def index_value(self, target: Any, key: Any) -> Any:
        current = target
        for _ in range(_MAXTAGLOOP):
            if isinstance(current, LuaTable):
                value = current.raw_get(key)
                if value is not None:
                    return value
                handler = self.env.get_metamethod(current, "__index")
                if handler is None:
                    return None
            else:
                handler = self.env.get_metamethod(current, "__index")
                if handler is None:
                    raise LuaError(f"attempt to index a {type_name(current)} value")
            if is_function(handler):
                results = self.call_value(handler, [current, key])
                return results[0] if results else None
            current = handler
        raise LuaError("loop in gettable")

    def assign_value(self, target: Any, key: Any, value: Any) -> None:
        current = target
        for _ in range(_MAXTAGLOOP):
            if isinstance(current, LuaTable):
                handler = None
                if current.raw_get(key) is None:
                    handler = self.env.get_metamethod(current, "__newindex")
                if handler is None:
                    self._raw_set(current, key, value)
                    return
            else:
                handler = self.env.get_metamethod(current, "__newindex")
                if handler is None:
                    raise LuaError(f"attempt to index a {type_name(current)} value")
            if is_function(handler):
                self.call_value(handler, [current, key, value])
                return
            current = handler
        raise LuaError("loop in settable")

    def values_equal(self, left: Any, right: Any) -> bool:
        if rawequal(left, right):
            return True
        kind = type_of(left)
        if kind != type_of(right) or kind not in (LuaType.TABLE, LuaType.USERDATA):
            return False
        handler = self.env.get_metamethod(left, "__eq")
        if handler is None or not rawequal(handler, self.env.get_metamethod(right, "__eq")):
            return False
        results = self.call_value(handler, [left, right])
        return bool(results) and is_truthy(results[0])

    def values_less(self, left: Any, right: Any) -> bool:
        if is_number(left) and is_number(right):
            return float(left) < float(right)
        if isinstance(left, str) and isinstance(right, str):
            return left < right
        left_type = type_of(left)
        right_type = type_of(right)
        if left_type == right_type:
            handler = self.env.get_metamethod(left, "__lt")
            if handler is not None and rawequal(handler, self.env.get_metamethod(right, "__lt")):
                results = self.call_value(handler, [left, right])
                return bool(results) and is_truthy(results[0])
            raise LuaError(f"attempt to compare two {TYPE_NAMES[left_type]} values")
        raise LuaError(f"attempt to compare {TYPE_NAMES[left_type]} with {TYPE_NAMES[right_type]}")

    def _concat_pair(self, left: Any, right: Any) -> Any:
        left_text = tostring(left)
        right_text = tostring(right)
        if left_text is not None and right_text is not None:
            return left_text + right_text
        handler = self.env.get_metamethod(left, "__concat")
        if handler is None:
            handler = self.env.get_metamethod(right, "__concat")
        if handler is None:
            culprit = right if left_text is not None else left
            raise LuaError(f"attempt to concatenate a {type_name(culprit)} value")
        results = self.call_value(handler, [left, right])
        return results[0] if results else None

    @staticmethod
    def _raw_set(table: LuaTable, key: Any, value: Any) -> None:
        try:
            table.raw_set(key, value)
        except RuntimeError as exc:
            raise LuaError(str(exc)) from exc

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        shown = ", ".join(format_number(v) if is_number(v) else repr(v) for v in self._slots)
        return f"LuaStack([{shown}])"


__all__ = ["LuaStack"]
