from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict

LUA_51 = 501
LUA_52 = 502
SUPPORTED_VERSIONS = (LUA_51, LUA_52)

LUA_MULTRET = -1

LUA_ERRRUN = 2
LUA_ERRSYNTAX = 3
LUA_ERRMEM = 4
LUA_ERRERR = 5
LUA_ERRFILE = 6

LUAI_MAXCSTACK = 8000

STATES_TABLE_KEY = "ApiDemo.SavedStates"
DEMO_STATE_METATABLE = "ApiDemo.LuaState"


def _default_sink(line: str) -> None:
    print(line)


@dataclass(frozen=True)
class ApiDemoConfig:
    lua_version: int = LUA_51
    stack_limit: int = LUAI_MAXCSTACK
    detect_cycles: bool = False
    event_limit: int = 256
    sink: Callable[[str], None] = field(default=_default_sink, compare=False)

    def __post_init__(self) -> None:
        if self.lua_version not in SUPPORTED_VERSIONS:
            options = ", ".join(str(v) for v in SUPPORTED_VERSIONS)
            raise ValueError(f"unsupported lua_version {self.lua_version}; expected one of {options}")
        if self.stack_limit < 1:
            raise ValueError("stack_limit must be positive")
        if self.event_limit < 1:
            raise ValueError("event_limit must be positive")

    @property
    def registry_index(self) -> int:
        return -10000 if self.lua_version == LUA_51 else -1001000

    @property
    def globals_index(self) -> int | None:
        return -10002 if self.lua_version == LUA_51 else None

    def constants(self) -> Dict[str, int]:
        """C constants exposed as globals by ``setup_globals``."""
        values = {
            "LUA_ERRRUN": LUA_ERRRUN,
            "LUA_ERRSYNTAX": LUA_ERRSYNTAX,
            "LUA_ERRMEM": LUA_ERRMEM,
            "LUA_ERRERR": LUA_ERRERR,
            "LUA_ERRFILE": LUA_ERRFILE,
            "LUA_TNONE": -1,
            "LUA_TNIL": 0,
            "LUA_TBOOLEAN": 1,
            "LUA_TLIGHTUSERDATA": 2,
            "LUA_TNUMBER": 3,
            "LUA_TSTRING": 4,
            "LUA_TTABLE": 5,
            "LUA_TFUNCTION": 6,
            "LUA_TUSERDATA": 7,
            "LUA_TTHREAD": 8,
            "LUA_REGISTRYINDEX": self.registry_index,
            "LUA_MULTRET": LUA_MULTRET,
        }
        if self.globals_index is not None:
            values["LUA_GLOBALSINDEX"] = self.globals_index
        return values


__all__ = [
    "ApiDemoConfig",
    "LUA_51",
    "LUA_52",
    "SUPPORTED_VERSIONS",
    "LUA_MULTRET",
    "LUA_ERRRUN",
    "LUA_ERRSYNTAX",
    "LUA_ERRMEM",
    "LUA_ERRERR",
    "LUA_ERRFILE",
    "LUAI_MAXCSTACK",
    "STATES_TABLE_KEY",
    "DEMO_STATE_METATABLE",
]
