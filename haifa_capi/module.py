"""Registration of the simulated API with a host environment.

``open_apidemo(env)`` plays the part of the C module's ``luaopen`` function: it
returns the ``apidemo`` module table whose ``setup_globals`` installs
``luaL_newstate``, every catalog operation and the C constants as globals.
:class:`ApiDemo` is the same surface for Python callers.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Callable, Dict, Optional, Sequence

from .baselib import create_default_environment
from .catalog import build_catalog
from .config import ApiDemoConfig
from .dispatcher import Dispatcher, ResultShape
from .environment import BuiltinFunction, LuaEnvironment, LuaMultiReturn
from .help import HELP_TEXT
from .state_store import StateStore
from .table import LuaTable
from .values import LuaUserdata

NEWSTATE_NAME = "luaL_newstate"


class ApiDemo:
    def __init__(self, env: Optional[LuaEnvironment] = None, config: Optional[ApiDemoConfig] = None) -> None:
        self.env = env if env is not None else create_default_environment()
        self.config = config or ApiDemoConfig()
        self.store = StateStore(self.env, self.config)
        self.dispatcher = Dispatcher(self.env, self.store, build_catalog(self.config), config=self.config)

    # ------------------------------------------------------------ public API
    def newstate(self) -> LuaUserdata:
        return self.dispatcher.newstate()

    def invoke(self, name: str, *args: Any) -> Any:
        if name == NEWSTATE_NAME:
            return self.newstate()
        return self.dispatcher.invoke(name, args)

    def help(self) -> None:
        self.config.sink(HELP_TEXT)

    def operation_names(self) -> list[str]:
        return [NEWSTATE_NAME, *self.dispatcher.names()]

    def __getattr__(self, name: str) -> Callable[..., Any]:
        dispatcher = self.__dict__.get("dispatcher")
        if dispatcher is None or name.startswith("_"):
            raise AttributeError(name)
        if name == NEWSTATE_NAME:
            return self.newstate
        if name in dispatcher:
            return partial(self.invoke, name)
        raise AttributeError(f"{type(self).__name__!s} has no operation {name!r}")

    # ---------------------------------------------------------- registration
    def builtins(self) -> Dict[str, BuiltinFunction]:
        functions = {NEWSTATE_NAME: BuiltinFunction(NEWSTATE_NAME, self._lua_newstate)}
        for name in self.dispatcher.names():
            functions[name] = BuiltinFunction(name, self._make_builtin(name))
        return functions

    def setup_globals(self) -> None:
        for name, function in self.builtins().items():
            self.env.register(name, function)
        self.env.register("NULL", 0.0)
        for name, value in self.config.constants().items():
            self.env.register(name, float(value))

    def module_table(self) -> LuaTable:
        table = LuaTable()
        table.raw_set("setup_globals", BuiltinFunction("setup_globals", self._lua_setup_globals))
        table.raw_set("help", BuiltinFunction("help", self._lua_help))
        return table

    # ------------------------------------------------------------- internals
    def _make_builtin(self, name: str) -> Callable[[Sequence[Any], Any], Any]:
        returns_value = self.dispatcher.descriptor(name).result != ResultShape.NONE

        def _builtin(args: Sequence[Any], env: Any) -> Any:  # noqa: ANN401 - env is dynamic
            result = self.dispatcher.invoke(name, args)
            if returns_value:
                return LuaMultiReturn([result])
            return None

        return _builtin

    def _lua_newstate(self, args: Sequence[Any], env: Any) -> LuaUserdata:  # noqa: ANN401
        return self.newstate()

    def _lua_setup_globals(self, args: Sequence[Any], env: Any) -> None:  # noqa: ANN401
        self.setup_globals()

    def _lua_help(self, args: Sequence[Any], env: Any) -> None:  # noqa: ANN401
        self.help()


def open_apidemo(env: LuaEnvironment, config: Optional[ApiDemoConfig] = None) -> LuaTable:
    """Create the ``apidemo`` module table and register it as a global."""
    api = ApiDemo(env, config)
    table = api.module_table()
    env.register("apidemo", table)
    return table


__all__ = ["ApiDemo", "open_apidemo", "NEWSTATE_NAME"]
