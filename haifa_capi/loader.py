"""Chunk loading for ``luaL_load*`` and ``luaL_do*``.

Chunks are written in the call language of :mod:`haifa_capi.script`. A loaded
chunk is pushed as a function; calling it runs the statements against the
stack's environment and returns the values of its last ``return``.
"""

from __future__ import annotations

import pathlib
from typing import Sequence

from .config import LUA_ERRFILE, LUA_ERRSYNTAX, LUA_MULTRET
from .environment import BuiltinFunction, LuaEnvironment, LuaMultiReturn
from .script import ParserError, ScriptParser, ScriptRunner
from .stack import LuaStack


def compile_chunk(source: str, chunkname: str) -> BuiltinFunction:
    """Parse ``source`` into a callable chunk; raises ParserError on bad syntax."""
    statements = ScriptParser.parse(source)

    def _chunk(args: Sequence[object], env: LuaEnvironment) -> LuaMultiReturn:
        return LuaMultiReturn(ScriptRunner(env).run(statements))

    return BuiltinFunction(f"load:{chunkname}", _chunk)


def loadstring(L: LuaStack, source: str) -> int:
    return _load(L, source, _string_chunkname(source))


def loadfile(L: LuaStack, filename: str) -> int:
    path = pathlib.Path(filename)
    try:
        source = path.read_bytes().decode("utf-8", errors="replace")
    except OSError as exc:
        reason = exc.strerror or exc.__class__.__name__
        L.pushstring(f"cannot open {filename}: {reason}")
        return LUA_ERRFILE
    return _load(L, source, filename)


def dostring(L: LuaStack, source: str) -> int:
    status = loadstring(L, source)
    if status:
        return status
    return L.pcall(0, LUA_MULTRET, 0)


def dofile(L: LuaStack, filename: str) -> int:
    status = loadfile(L, filename)
    if status:
        return status
    return L.pcall(0, LUA_MULTRET, 0)


def _load(L: LuaStack, source: str, chunkname: str) -> int:
    try:
        chunk = compile_chunk(source, chunkname)
    except ParserError as exc:
        L.pushstring(f"{chunkname}: {exc}")
        return LUA_ERRSYNTAX
    L.push(chunk)
    return 0


def _string_chunkname(source: str) -> str:
    first_line = source.split("\n", 1)[0]
    if len(first_line) > 40 or first_line != source:
        first_line = first_line[:40] + "..."
    return f'[string "{first_line}"]'


__all__ = ["compile_chunk", "loadstring", "loadfile", "dostring", "dofile"]
