"""``luaL_*`` helpers, written against the :class:`LuaStack` primitives."""

from __future__ import annotations

from typing import NoReturn, Optional

from .errors import LuaError, format_argument_error, format_type_mismatch
from .stack import LuaStack
from .values import TYPE_NAMES, LuaType

LUA_REFNIL = -1
_FREELIST_REF = 0

# Simulated frames carry no call information, so errors name the function '?'.
_UNKNOWN_FUNCTION = "?"


def argerror(L: LuaStack, narg: int, extramsg: str) -> NoReturn:
    raise LuaError(format_argument_error(narg, _UNKNOWN_FUNCTION, extramsg))


def typeerror(L: LuaStack, narg: int, tname: str) -> NoReturn:
    argerror(L, narg, format_type_mismatch(tname, typename(L, narg)))


def typename(L: LuaStack, index: int) -> str:
    return TYPE_NAMES[LuaType(L.type(index))]


def checkany(L: LuaStack, narg: int) -> None:
    if L.type(narg) == LuaType.NONE:
        argerror(L, narg, "value expected")


def checktype(L: LuaStack, narg: int, tp: int) -> None:
    if L.type(narg) != tp:
        typeerror(L, narg, L.typename(tp))


def checknumber(L: LuaStack, narg: int) -> float:
    if not L.isnumber(narg):
        typeerror(L, narg, TYPE_NAMES[LuaType.NUMBER])
    return L.tonumber(narg)


def checkinteger(L: LuaStack, narg: int) -> int:
    if not L.isnumber(narg):
        typeerror(L, narg, TYPE_NAMES[LuaType.NUMBER])
    return L.tointeger(narg)


def checkint(L: LuaStack, narg: int) -> int:
    return checkinteger(L, narg)


def checkstring(L: LuaStack, narg: int) -> str:
    text = L.tolstring(narg)
    if text is None:
        typeerror(L, narg, TYPE_NAMES[LuaType.STRING])
    return text


def optint(L: LuaStack, narg: int, default: int) -> int:
    if L.isnoneornil(narg):
        return default
    return checkint(L, narg)


def optinteger(L: LuaStack, narg: int, default: int) -> int:
    if L.isnoneornil(narg):
        return default
    return checkinteger(L, narg)


def optnumber(L: LuaStack, narg: int, default: float) -> float:
    if L.isnoneornil(narg):
        return default
    return checknumber(L, narg)


def optstring(L: LuaStack, narg: int, default: Optional[str]) -> Optional[str]:
    if L.isnoneornil(narg):
        return default
    return checkstring(L, narg)


def getmetafield(L: LuaStack, obj: int, event: str) -> bool:
    """Push ``metatable(stack[obj])[event]`` when it exists."""
    if not L.getmetatable(obj):
        return False
    L.pushstring(event)
    L.rawget(-2)
    if L.isnil(-1):
        L.pop(2)
        return False
    L.remove(-2)
    return True


def callmeta(L: LuaStack, obj: int, event: str) -> bool:
    """Call ``metatable(stack[obj])[event](stack[obj])`` and push its result."""
    obj = L.absindex(obj)
    if not getmetafield(L, obj, event):
        return False
    L.pushvalue(obj)
    L.call(1, 1)
    return True


def ref(L: LuaStack, t: int) -> int:
    """Pop the top value into a fresh integer slot of ``stack[t]``."""
    t = L.absindex(t)
    if L.isnil(-1):
        L.pop(1)
        return LUA_REFNIL
    L.rawgeti(t, _FREELIST_REF)
    slot = L.tointeger(-1)
    L.pop(1)
    if slot != 0:
        L.rawgeti(t, slot)
        L.rawseti(t, _FREELIST_REF)
    else:
        slot = L.objlen(t) + 1
    L.rawseti(t, slot)
    return slot


def getmetatable_registry(L: LuaStack, tname: str) -> None:
    L.getfield(L.config.registry_index, tname)


def newmetatable(L: LuaStack, tname: str) -> bool:
    """Create (or fetch) the registry metatable ``tname`` and push it."""
    getmetatable_registry(L, tname)
    if not L.isnil(-1):
        return False
    L.pop(1)
    L.newtable()
    L.pushvalue(-1)
    L.setfield(L.config.registry_index, tname)
    return True


__all__ = [
    "LUA_REFNIL",
    "argerror",
    "typeerror",
    "typename",
    "checkany",
    "checktype",
    "checknumber",
    "checkinteger",
    "checkint",
    "checkstring",
    "optint",
    "optinteger",
    "optnumber",
    "optstring",
    "getmetafield",
    "callmeta",
    "ref",
    "getmetatable_registry",
    "newmetatable",
]
