from __future__ import annotations

from haifa_capi import ApiDemo, ApiDemoConfig, BuiltinFunction, LuaStack, create_default_environment
from haifa_capi.config import LUA_ERRFILE, LUA_ERRRUN, LUA_ERRSYNTAX
from haifa_capi.loader import compile_chunk, loadstring


def _api():
    lines = []
    api = ApiDemo(config=ApiDemoConfig(sink=lines.append))
    return api, lines


def test_loadstring_pushes_callable_chunk() -> None:
    api, _ = _api()
    L = api.newstate()
    assert api.luaL_loadstring(L, "return 1, 'two'") == 0.0
    assert isinstance(api.store.snapshot(L)[0], BuiltinFunction)
    api.lua_call(L, 0, -1)
    assert api.store.snapshot(L) == [1.0, "two"]


def test_loadstring_syntax_error_pushes_message() -> None:
    api, lines = _api()
    L = api.newstate()
    assert api.luaL_loadstring(L, "return (") == float(LUA_ERRSYNTAX)
    [message] = api.store.snapshot(L)
    assert message.startswith('[string "return ("]: unexpected symbol')
    assert len(lines) == 1


def test_long_chunk_names_are_shortened() -> None:
    L = LuaStack(create_default_environment())
    assert loadstring(L, "x = 1\nreturn (") == LUA_ERRSYNTAX
    assert L.values()[0].startswith('[string "x = 1..."]:')


def test_dostring_runs_chunk_against_globals() -> None:
    api, lines = _api()
    L = api.newstate()
    assert api.luaL_dostring(L, "answer = 42; return type(answer)") == 0.0
    assert api.store.snapshot(L) == ["number"]
    assert api.env.global_table().raw_get("answer") == 42.0
    assert lines == ["stack: 'number'"]


def test_dostring_runtime_error_is_caught() -> None:
    api, _ = _api()
    L = api.newstate()
    api.lua_pushstring(L, "below")
    assert api.luaL_dostring(L, "error('bad')") == float(LUA_ERRRUN)
    assert api.store.snapshot(L) == ["below", "bad"]


def test_dofile_runs_script_file(tmp_path) -> None:
    script = tmp_path / "chunk.lua"
    script.write_text("-- values from a file\nreturn 'from file', 2\n", encoding="utf-8")
    api, _ = _api()
    L = api.newstate()
    assert api.luaL_dofile(L, str(script)) == 0.0
    assert api.store.snapshot(L) == ["from file", 2.0]


def test_loadfile_missing_file_reports_errfile(tmp_path) -> None:
    missing = tmp_path / "missing.lua"
    api, _ = _api()
    L = api.newstate()
    assert api.luaL_loadfile(L, str(missing)) == float(LUA_ERRFILE)
    [message] = api.store.snapshot(L)
    assert message.startswith(f"cannot open {missing}")
    assert api.luaL_dofile(L, str(missing)) == float(LUA_ERRFILE)
    assert api.lua_gettop(L) == 2.0


def test_compiled_chunk_can_run_more_than_once() -> None:
    env = create_default_environment()
    chunk = compile_chunk("count = 1; return count", "=test")
    L = LuaStack(env)
    L.push(chunk)
    L.pushvalue(1)
    L.call(0, 1)
    L.insert(1)
    L.call(0, 1)
    assert L.values() == [1.0, 1.0]
