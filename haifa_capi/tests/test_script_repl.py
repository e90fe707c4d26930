from __future__ import annotations

import pytest

from haifa_capi import ApiDemo, LuaError, create_default_environment
from haifa_capi.repl import ReplSession
from haifa_capi.script import Assign, Call, CallStatement, Literal, Name, ParserError, Return, ScriptLexer, ScriptParser, ScriptRunner


def _runner():
    env = create_default_environment()
    ApiDemo(env).setup_globals()
    return ScriptRunner(env)


def test_lexer_tokens() -> None:
    tokens = ScriptLexer("x = f(0x10, -2.5e1, 'a\\tb') -- note").tokenize()
    kinds = [token.kind for token in tokens]
    assert kinds == ["IDENT", "=", "IDENT", "(", "NUMBER", ",", "-", "NUMBER", ",", "STRING", ")", "EOF"]
    assert tokens[9].value == "a\tb"


def test_parser_builds_statements() -> None:
    statements = ScriptParser.parse("L = luaL_newstate(); lua_pushnil(L)\nreturn L, nil, -1")
    assert statements == [
        Assign("L", Call("luaL_newstate", [])),
        CallStatement(Call("lua_pushnil", [Name("L")])),
        Return([Name("L"), Literal(None), Literal(-1.0)]),
    ]


@pytest.mark.parametrize(
    "source",
    ["f(", "x 1", "'open", "return (", "x = #"],
)
def test_parser_errors(source) -> None:
    with pytest.raises(ParserError):
        ScriptParser.parse(source)


def test_runner_executes_api_calls(capsys) -> None:
    runner = _runner()
    results = runner.run_source(
        "L = luaL_newstate()\n"
        "lua_newtable(L)\n"
        "lua_pushstring(L, 'a')\n"
        "lua_rawseti(L, 1, 1)\n"
        "return lua_gettop(L), lua_objlen(L, 1)\n"
    )
    assert results == [1.0, 1.0]
    out = capsys.readouterr().out.splitlines()
    assert out[-1] == "stack: {'a'}"


def test_last_call_in_a_list_expands() -> None:
    runner = _runner()
    assert runner.run_source("return select('#', 1, 2, 3)") == [3.0]
    assert runner.run_source("return type(1), select(2, 'a', 'b', 'c')") == ["number", "b", "c"]
    assert runner.run_source("return select(2, 'a', 'b', 'c'), 'z'") == ["b", "z"]


def test_runner_propagates_lua_errors() -> None:
    runner = _runner()
    with pytest.raises(LuaError, match="attempt to call a nil value"):
        runner.run_source("missing()")
    with pytest.raises(LuaError, match="bad argument #1 to 'lua_gettop'"):
        runner.run_source("lua_gettop(1)")


def test_repl_runs_lines_and_prints_results(capsys) -> None:
    session = ReplSession(enable_readline=False)
    session.process_line("L = luaL_newstate()")
    session.process_line("lua_pushstring(L, 'hi')")
    session.process_line("=lua_gettop(L)")
    out = capsys.readouterr().out.splitlines()
    assert out == ["stack: 'hi'", "stack: 'hi'", "1"]


def test_repl_reports_errors_on_stderr(capsys) -> None:
    session = ReplSession(enable_readline=False)
    session.process_line("L = luaL_newstate()")
    assert session.process_line("lua_remove(L, 9)") is None
    assert session.process_line("lua_pushnumber(") is None
    err = capsys.readouterr().err.splitlines()
    assert err[0] == "<repl>: invalid stack index 9"
    assert err[1].startswith("<repl>: ")


def test_repl_events_toggle(capsys) -> None:
    session = ReplSession(enable_readline=False)
    session.process_line(":events on")
    session.process_line("L = luaL_newstate()")
    session.process_line("lua_pushnumber(L, 5)")
    out = capsys.readouterr().out.splitlines()
    assert out == [
        "Operation events on",
        "stack: 5",
        "Operation events:",
        "  - lua_pushnumber -> stack: 5",
    ]


def test_repl_commands(capsys) -> None:
    session = ReplSession(enable_readline=False)
    assert session.process_line(":help") is None
    assert session.process_line(":bogus") is None
    assert session.process_line(":quit") is True
    out = capsys.readouterr().out
    assert "Commands:" in out
    assert "Unknown command: :bogus" in out


def test_repl_normalize_source() -> None:
    session = ReplSession(enable_readline=False)
    assert session.normalize_source("  = x") == "  return x"
    assert session.normalize_source("x = 1") == "x = 1"
