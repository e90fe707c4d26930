from __future__ import annotations

from haifa_capi import ApiDemo, ApiDemoConfig, BuiltinFunction, LuaTable, create_default_environment, open_apidemo
from haifa_capi.help import HELP_TEXT
from haifa_capi.script import ScriptRunner


def test_setup_globals_registers_operations_and_constants() -> None:
    env = create_default_environment()
    api = ApiDemo(env)
    api.setup_globals()
    assert isinstance(env["luaL_newstate"], BuiltinFunction)
    assert isinstance(env["lua_pushnumber"], BuiltinFunction)
    assert env["NULL"] == 0.0
    assert env["LUA_REGISTRYINDEX"] == -10000.0
    assert env["LUA_GLOBALSINDEX"] == -10002.0
    assert env["LUA_TSTRING"] == 4.0
    assert env["LUA_ERRRUN"] == 2.0


def test_lua52_constants() -> None:
    env = create_default_environment()
    ApiDemo(env, ApiDemoConfig(lua_version=502)).setup_globals()
    assert env["LUA_REGISTRYINDEX"] == -1001000.0
    assert "LUA_GLOBALSINDEX" not in env
    assert "lua_rawlen" in env
    assert "lua_objlen" not in env


def test_operation_names_start_with_newstate() -> None:
    names = ApiDemo().operation_names()
    assert names[0] == "luaL_newstate"
    assert "lua_pushnumber" in names
    assert "luaL_checkstring" in names


def test_help_goes_to_sink() -> None:
    lines = []
    ApiDemo(config=ApiDemoConfig(sink=lines.append)).help()
    assert lines == [HELP_TEXT]
    assert "lua_pushnumber(L, lua_Number)" in HELP_TEXT


def test_open_apidemo_registers_module_table(capsys) -> None:
    env = create_default_environment()
    table = open_apidemo(env)
    assert isinstance(table, LuaTable)
    assert env["apidemo"] is table
    assert "lua_gettop" not in env

    setup = table.raw_get("setup_globals")
    setup([], env)
    assert "lua_gettop" in env

    results = ScriptRunner(env).run_source(
        "L = luaL_newstate()\n"
        "lua_pushnumber(L, 10)\n"
        "lua_pushstring(L, 'hi')\n"
        "return lua_gettop(L)\n"
    )
    assert results == [2.0]
    out = capsys.readouterr().out.splitlines()
    assert out == ["stack: 10", "stack: 10 'hi'", "stack: 10 'hi'"]


def test_module_help_prints_reference(capsys) -> None:
    env = create_default_environment()
    table = open_apidemo(env)
    table.raw_get("help")([], env)
    assert "lua_gettop(L)" in capsys.readouterr().out


def test_builtins_return_values_only_for_valued_operations() -> None:
    env = create_default_environment()
    api = ApiDemo(env, ApiDemoConfig(sink=lambda line: None))
    functions = api.builtins()
    L = functions["luaL_newstate"]([], env)
    assert functions["lua_pushnil"]([L], env) is None
    assert functions["lua_gettop"]([L], env).values == [1.0]
