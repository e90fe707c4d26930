"""A small base library so simulated stacks have real functions to call."""

from __future__ import annotations

from typing import Any, Sequence

from .environment import BuiltinFunction, LuaEnvironment, LuaMultiReturn
from .errors import LuaError, error_message
from .stack import LuaStack
from .table import LuaTable
from .values import display, is_number, is_truthy, rawequal, tonumber, type_name


def _ensure_args(args: Sequence[Any], min_count: int, max_count: int | None = None) -> None:
    count = len(args)
    if count < min_count:
        raise RuntimeError(f"expected at least {min_count} argument(s), got {count}")
    if max_count is not None and count > max_count:
        raise RuntimeError(f"expected at most {max_count} argument(s), got {count}")


def _ensure_table(value: Any) -> LuaTable:
    if isinstance(value, LuaTable):
        return value
    raise RuntimeError(f"table expected, got {type_name(value)}")


def _lua_print(args: Sequence[Any], env: LuaEnvironment) -> None:
    print("\t".join(display(arg) for arg in args))


def _lua_type(args: Sequence[Any], env: LuaEnvironment) -> str:
    _ensure_args(args, 1)
    return type_name(args[0])


def _lua_tostring(args: Sequence[Any], env: LuaEnvironment) -> str:
    _ensure_args(args, 1)
    value = args[0]
    handler = env.get_metamethod(value, "__tostring")
    if handler is not None:
        results = LuaStack(env).call_value(handler, [value])
        return results[0] if results else None
    return display(value)


def _lua_tonumber(args: Sequence[Any], env: LuaEnvironment) -> float | None:
    _ensure_args(args, 1, 2)
    value = args[0]
    if len(args) == 1 or args[1] is None:
        return tonumber(value)
    base = int(tonumber(args[1]) or 0)
    if base < 2 or base > 36:
        raise RuntimeError("base out of range")
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return float(int(value.strip(), base))
    except ValueError:
        return None


def _lua_error(args: Sequence[Any], env: LuaEnvironment) -> None:
    raise LuaError(args[0] if args else None)


def _lua_assert(args: Sequence[Any], env: LuaEnvironment) -> LuaMultiReturn:
    _ensure_args(args, 1)
    if not is_truthy(args[0]):
        raise LuaError(args[1] if len(args) > 1 else "assertion failed!")
    return LuaMultiReturn(list(args))


def _lua_pcall(args: Sequence[Any], env: LuaEnvironment) -> LuaMultiReturn:
    _ensure_args(args, 1)
    try:
        results = LuaStack(env).call_value(args[0], list(args[1:]))
    except LuaError as exc:
        return LuaMultiReturn([False, error_message(exc)])
    return LuaMultiReturn([True, *results])


def _lua_select(args: Sequence[Any], env: LuaEnvironment) -> Any:
    _ensure_args(args, 1)
    selector = args[0]
    rest = list(args[1:])
    if selector == "#":
        return float(len(rest))
    if not is_number(selector):
        raise RuntimeError("bad argument #1 to 'select' (number expected)")
    index = int(selector)
    if index < 0:
        index = len(rest) + index + 1
    if index < 1:
        raise RuntimeError("bad argument #1 to 'select' (index out of range)")
    return LuaMultiReturn(rest[index - 1:])


def _lua_rawequal(args: Sequence[Any], env: LuaEnvironment) -> bool:
    _ensure_args(args, 2, 2)
    return rawequal(args[0], args[1])


def _lua_rawget(args: Sequence[Any], env: LuaEnvironment) -> Any:
    _ensure_args(args, 2, 2)
    return _ensure_table(args[0]).raw_get(args[1])


def _lua_rawset(args: Sequence[Any], env: LuaEnvironment) -> LuaTable:
    _ensure_args(args, 3, 3)
    table = _ensure_table(args[0])
    table.raw_set(args[1], args[2])
    return table


def _lua_setmetatable(args: Sequence[Any], env: LuaEnvironment) -> LuaTable:
    _ensure_args(args, 2, 2)
    table = _ensure_table(args[0])
    metatable = args[1]
    if metatable is not None:
        metatable = _ensure_table(metatable)
    table.set_metatable(metatable)
    return table


def _lua_getmetatable(args: Sequence[Any], env: LuaEnvironment) -> Any:
    _ensure_args(args, 1, 1)
    return env.get_metatable(args[0])


def _lua_next(args: Sequence[Any], env: LuaEnvironment) -> LuaMultiReturn:
    _ensure_args(args, 1, 2)
    table = _ensure_table(args[0])
    pair = table.next(args[1] if len(args) > 1 else None)
    if pair is None:
        return LuaMultiReturn([None])
    return LuaMultiReturn(list(pair))


def _lua_unpack(args: Sequence[Any], env: LuaEnvironment) -> LuaMultiReturn:
    _ensure_args(args, 1, 3)
    table = _ensure_table(args[0])
    start = int(tonumber(args[1]) or 1) if len(args) > 1 and args[1] is not None else 1
    stop = int(tonumber(args[2]) or 0) if len(args) > 2 and args[2] is not None else table.lua_len()
    return LuaMultiReturn([table.raw_get(i) for i in range(start, stop + 1)])


_BUILTINS = {
    "assert": _lua_assert,
    "error": _lua_error,
    "getmetatable": _lua_getmetatable,
    "next": _lua_next,
    "pcall": _lua_pcall,
    "print": _lua_print,
    "rawequal": _lua_rawequal,
    "rawget": _lua_rawget,
    "rawset": _lua_rawset,
    "select": _lua_select,
    "setmetatable": _lua_setmetatable,
    "tonumber": _lua_tonumber,
    "tostring": _lua_tostring,
    "type": _lua_type,
    "unpack": _lua_unpack,
}


def install_base_library(env: LuaEnvironment) -> LuaEnvironment:
    if env.stdlib_ready:
        return env
    for name, func in _BUILTINS.items():
        env.register(name, BuiltinFunction(name, func))
    env.mark_stdlib_ready()
    return env


def create_default_environment() -> LuaEnvironment:
    return install_base_library(LuaEnvironment())


__all__ = ["install_base_library", "create_default_environment"]
