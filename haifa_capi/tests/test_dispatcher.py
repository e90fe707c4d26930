from __future__ import annotations

import pytest

from haifa_capi import ApiDemo, ApiDemoConfig, ArgumentTypeError, BuiltinFunction, ContractViolation, LuaError, LuaTable
from haifa_capi.dispatcher import ArgShape, ResultShape
from haifa_capi.events import OperationCompleted, OperationFailed, format_operation_event


def _api(**config):
    lines = []
    api = ApiDemo(config=ApiDemoConfig(sink=lines.append, **config))
    return api, lines


def test_push_push_gettop_scenario() -> None:
    api, lines = _api()
    L = api.luaL_newstate()
    assert api.lua_pushnumber(L, 10) is None
    api.lua_pushstring(L, "hi")
    assert api.lua_gettop(L) == 2.0
    assert api.store.snapshot(L) == [10.0, "hi"]
    assert lines == ["stack: 10", "stack: 10 'hi'", "stack: 10 'hi'"]


def test_every_successful_operation_prints_one_line() -> None:
    api, lines = _api()
    L = api.newstate()
    api.lua_newtable(L)
    api.lua_pushstring(L, "v")
    api.lua_setfield(L, 1, "k")
    api.lua_getfield(L, 1, "k")
    api.lua_remove(L, 1)
    assert lines == ["stack: {}", "stack: {} 'v'", "stack: {k = 'v'}", "stack: {k = 'v'} 'v'", "stack: 'v'"]


def test_error_operation_persists_all_but_the_payload() -> None:
    api, lines = _api()
    L = api.newstate()
    for value in ("x", "y", "err"):
        api.lua_pushstring(L, value)
    with pytest.raises(LuaError) as excinfo:
        api.lua_error(L)
    assert excinfo.value.value == "err"
    assert lines[-1] == "stack: 'x' 'y'"
    assert api.store.snapshot(L) == ["x", "y"]
    assert api.store.active is None
    assert api.lua_gettop(L) == 2.0


def test_error_on_empty_stack_raises_nil() -> None:
    api, lines = _api()
    L = api.newstate()
    with pytest.raises(LuaError) as excinfo:
        api.lua_error(L)
    assert excinfo.value.value is None
    assert lines == ["stack: <empty>"]
    assert api.store.snapshot(L) == []


def test_failed_primitive_keeps_surface_and_prints_nothing() -> None:
    api, lines = _api()
    L = api.newstate()
    api.lua_pushnumber(L, 1)
    with pytest.raises(LuaError, match="invalid stack index 5"):
        api.lua_remove(L, 5)
    assert lines == ["stack: 1"]
    assert api.store.snapshot(L) == [1.0]
    assert api.store.active is None


def test_wrong_argument_type_names_position() -> None:
    api, lines = _api()
    L = api.newstate()
    with pytest.raises(ArgumentTypeError) as excinfo:
        api.lua_pushnumber(L, "abc")
    assert str(excinfo.value) == "bad argument #2 to 'lua_pushnumber' (number expected, got string)"
    assert excinfo.value.position == 2
    assert excinfo.value.function_name == "lua_pushnumber"
    assert lines == []


def test_missing_argument_reports_no_value() -> None:
    api, _ = _api()
    L = api.newstate()
    with pytest.raises(ArgumentTypeError) as excinfo:
        api.lua_getfield(L, 1)
    assert str(excinfo.value) == "bad argument #3 to 'lua_getfield' (string expected, got no value)"


def test_first_argument_must_be_a_handle() -> None:
    api, _ = _api()
    with pytest.raises(ArgumentTypeError) as excinfo:
        api.lua_pushnumber(10, 1)
    assert str(excinfo.value) == "bad argument #1 to 'lua_pushnumber' (ApiDemo.LuaState expected, got number)"
    with pytest.raises(ArgumentTypeError, match="got no value"):
        api.lua_gettop()


def test_arguments_are_coerced_like_luaL_check() -> None:
    api, _ = _api()
    L = api.newstate()
    api.lua_pushnumber(L, "12.5")
    api.lua_pushstring(L, 7)
    api.lua_pushinteger(L, 3.9)
    assert api.store.snapshot(L) == [12.5, "7", 3.0]


def test_integer_argument_must_be_finite() -> None:
    api, _ = _api()
    L = api.newstate()
    with pytest.raises(ArgumentTypeError, match="number has no integer representation"):
        api.lua_settop(L, float("inf"))


def test_results_are_packaged_by_shape() -> None:
    api, _ = _api()
    L = api.newstate()
    api.lua_pushnumber(L, 42)
    assert api.lua_isnumber(L, 1) == 1.0
    assert api.lua_isstring(L, 5) == 0.0
    assert api.lua_type(L, 5) == -1.0
    assert api.lua_typename(L, 3) == "number"
    assert api.lua_tonumber(L, 1) == 42.0
    assert api.lua_tostring(L, 2) == 0.0
    assert api.lua_tolstring(L, 2) is None
    assert api.lua_tolstring(L, 1) == "42"
    assert api.store.snapshot(L) == ["42"]


def test_error_through_pcall_is_caught() -> None:
    api, lines = _api()
    L = api.newstate()
    api.lua_getglobal(L, "error")
    api.lua_pushstring(L, "oops")
    assert api.lua_pcall(L, 1, 0, 0) == 2.0
    assert lines[-1] == "stack: 'oops'"


def test_reentrant_operation_is_a_contract_violation() -> None:
    api, _ = _api()
    L = api.newstate()
    api.env.register("reenter", BuiltinFunction("reenter", lambda args, env: api.lua_gettop(L)))
    api.lua_getglobal(L, "reenter")
    with pytest.raises(ContractViolation):
        api.lua_pcall(L, 0, 0, 0)
    assert api.store.active is None


def test_operations_on_other_handles_are_independent() -> None:
    api, _ = _api()
    first = api.newstate()
    second = api.newstate()
    api.lua_pushstring(first, "a")
    api.lua_pushstring(second, "b")
    api.lua_pushstring(second, "c")
    api.lua_settop(first, 0)
    assert api.store.snapshot(first) == []
    assert api.store.snapshot(second) == ["b", "c"]


def test_registry_holds_handle_metatable() -> None:
    api, lines = _api()
    L = api.newstate()
    api.lua_getfield(L, -10000, "ApiDemo.LuaState")
    assert lines[-1] == "stack: {}"
    api.lua_getfield(L, -10002, "print")
    assert lines[-1] == "stack: {} function:print"


def test_events_record_completed_and_failed_operations() -> None:
    api, _ = _api()
    L = api.newstate()
    api.lua_pushnumber(L, 1)
    assert api.lua_gettop(L) == 1.0
    with pytest.raises(LuaError):
        api.lua_remove(L, 3)
    events = api.dispatcher.drain_events()
    assert [type(event) for event in events] == [OperationCompleted, OperationCompleted, OperationFailed]
    assert format_operation_event(events[0]) == "lua_pushnumber -> stack: 1"
    assert format_operation_event(events[1]) == "lua_gettop = 1.0 -> stack: 1"
    assert format_operation_event(events[2]) == "lua_remove error: invalid stack index 3"
    assert api.dispatcher.drain_events() == []


def test_lua51_and_lua52_catalogs_differ() -> None:
    api51, _ = _api()
    api52, _ = _api(lua_version=502)
    assert "lua_objlen" in api51.dispatcher
    assert "lua_equal" in api51.dispatcher
    assert "lua_rawlen" not in api51.dispatcher
    assert "lua_rawlen" in api52.dispatcher
    assert "lua_lessthan" not in api52.dispatcher
    assert not hasattr(api52, "lua_objlen")
    L = api52.newstate()
    api52.lua_pushstring(L, "abc")
    assert api52.lua_rawlen(L, 1) == 3.0


def test_descriptor_signature() -> None:
    api, _ = _api()
    descriptor = api.dispatcher.descriptor("lua_getfield")
    assert descriptor.inputs == (ArgShape.INT, ArgShape.STRING)
    assert descriptor.result == ResultShape.NONE
    assert descriptor.signature == "lua_getfield(L, int, string) -> none"
    assert api.dispatcher.descriptor("lua_error").error_propagating


def test_auxiliary_check_failure_is_an_ordinary_error() -> None:
    api, lines = _api()
    L = api.newstate()
    api.lua_pushstring(L, "abc")
    with pytest.raises(LuaError) as excinfo:
        api.luaL_checknumber(L, 1)
    assert str(excinfo.value) == "bad argument #1 to '?' (number expected, got string)"
    assert api.luaL_optinteger(L, 2, 9) == 9.0
    assert api.luaL_optstring(L, 2, "dflt") == "dflt"
    assert api.store.snapshot(L) == ["abc"]


def test_failed_concat_keeps_its_operands() -> None:
    api, lines = _api()
    L = api.newstate()
    api.lua_pushnumber(L, 1)
    api.lua_newtable(L)
    with pytest.raises(LuaError, match="attempt to concatenate a table value"):
        api.lua_concat(L, 2)
    saved = api.store.snapshot(L)
    assert len(saved) == 2
    assert saved[0] == 1.0
    assert isinstance(saved[1], LuaTable)
    assert lines == ["stack: 1", "stack: 1 {}"]
    assert api.lua_gettop(L) == 2.0


def test_failed_call_keeps_function_and_arguments() -> None:
    api, lines = _api()
    L = api.newstate()
    api.lua_pushstring(L, "keep")
    api.lua_getglobal(L, "error")
    api.lua_pushstring(L, "boom")
    with pytest.raises(LuaError) as excinfo:
        api.lua_call(L, 1, 0)
    assert excinfo.value.value == "boom"
    error_function = api.env.global_table().raw_get("error")
    saved = api.store.snapshot(L)
    assert saved[0] == "keep"
    assert saved[1] is error_function
    assert saved[2] == "boom"
    assert len(saved) == 3
    assert lines[-1] == "stack: 'keep' function:error 'boom'"


def test_pcall_with_too_many_arguments_leaves_stack_alone() -> None:
    api, _ = _api()
    L = api.newstate()
    api.lua_pushstring(L, "a")
    api.lua_pushstring(L, "b")
    with pytest.raises(LuaError, match="not enough values"):
        api.lua_pcall(L, 5, 0, 0)
    assert api.store.snapshot(L) == ["a", "b"]


def test_event_history_is_bounded() -> None:
    api, _ = _api(event_limit=8)
    L = api.newstate()
    for _ in range(1000):
        api.lua_pushnil(L)
        api.lua_pop(L, 1)
    events = api.dispatcher.drain_events()
    assert len(events) == 8
    assert [event.name for event in events[-2:]] == ["lua_pushnil", "lua_pop"]
    assert api.dispatcher.drain_events() == []


def test_event_limit_must_be_positive() -> None:
    with pytest.raises(ValueError, match="event_limit"):
        ApiDemoConfig(event_limit=0)


def test_integer_argument_rejects_python_only_numerals() -> None:
    api, _ = _api()
    L = api.newstate()
    for text in ("1_0", "infinity", "nan"):
        with pytest.raises(ArgumentTypeError, match="number expected, got string"):
            api.lua_settop(L, text)
    api.lua_pushstring(L, "1_0")
    with pytest.raises(LuaError, match="number expected, got string"):
        api.luaL_checkint(L, 1)
