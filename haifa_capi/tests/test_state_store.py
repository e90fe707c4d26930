from __future__ import annotations

import pytest

from haifa_capi import ContractViolation, LuaStack, LuaTable, StateStore, create_default_environment
from haifa_capi.config import STATES_TABLE_KEY
from haifa_capi.errors import LuaError


def _make_store():
    env = create_default_environment()
    return env, StateStore(env)


def _fill(store, handle, env, *values) -> None:
    surface = LuaStack(env)
    store.checkout(handle, surface)
    surface.settop(0)
    for value in values:
        surface.push(value)
    store.checkin(surface)


def test_new_handle_has_empty_record_in_registry() -> None:
    env, store = _make_store()
    handle = store.create()
    states = env.registry().raw_get(STATES_TABLE_KEY)
    record = states.raw_get(handle.payload)
    assert isinstance(record, LuaTable)
    assert record.raw_get("num_items") == 0
    assert store.snapshot(handle) == []
    assert store.is_handle(handle)


def test_handles_get_distinct_references() -> None:
    _, store = _make_store()
    first = store.create()
    second = store.create()
    assert first.payload == 1
    assert second.payload == 2


def test_checkout_then_checkin_round_trips_exactly() -> None:
    env, store = _make_store()
    handle = store.create()
    table = LuaTable(["a"])
    _fill(store, handle, env, 1.0, None, "x", True, table)
    assert store.snapshot(handle) == [1.0, None, "x", True, table]

    surface = LuaStack(env)
    store.checkout(handle, surface)
    assert surface.values() == [1.0, None, "x", True, table]
    assert surface.values()[4] is table
    store.checkin(surface, 0)
    assert store.snapshot(handle) == [1.0, None, "x", True, table]


def test_checkout_replaces_whatever_was_on_the_surface() -> None:
    env, store = _make_store()
    handle = store.create()
    _fill(store, handle, env, "kept")
    surface = LuaStack(env)
    surface.pushstring("stale")
    store.checkout(handle, surface)
    assert surface.values() == ["kept"]
    store.checkin(surface)


def test_shrinking_stack_is_persisted_with_new_count() -> None:
    env, store = _make_store()
    handle = store.create()
    _fill(store, handle, env, 1.0, 2.0, 3.0)
    surface = LuaStack(env)
    store.checkout(handle, surface)
    surface.settop(1)
    store.checkin(surface)
    assert store.snapshot(handle) == [1.0]


def test_checkin_omits_trailing_values() -> None:
    env, store = _make_store()
    handle = store.create()
    surface = LuaStack(env)
    store.checkout(handle, surface)
    surface.pushstring("x")
    surface.pushstring("y")
    surface.pushstring("err")
    store.checkin(surface, 1)
    assert store.snapshot(handle) == ["x", "y"]


def test_checkin_omit_is_clamped_to_zero_items() -> None:
    env, store = _make_store()
    handle = store.create()
    surface = LuaStack(env)
    store.checkout(handle, surface)
    surface.pushnil()
    store.checkin(surface, 3)
    assert store.snapshot(handle) == []


def test_double_checkout_is_a_contract_violation() -> None:
    env, store = _make_store()
    first = store.create()
    second = store.create()
    store.checkout(first, LuaStack(env))
    for handle in (first, second):
        with pytest.raises(ContractViolation):
            store.checkout(handle, LuaStack(env))
    assert store.active is first


def test_checkin_without_checkout_is_a_contract_violation() -> None:
    env, store = _make_store()
    with pytest.raises(ContractViolation):
        store.checkin(LuaStack(env))


def test_invalid_persisted_count_is_a_contract_violation() -> None:
    env, store = _make_store()
    handle = store.create()
    env.registry().raw_get(STATES_TABLE_KEY).raw_get(handle.payload).raw_set("num_items", "three")
    with pytest.raises(ContractViolation):
        store.checkout(handle, LuaStack(env))
    assert store.active is None


def test_checked_out_releases_handle_when_block_raises() -> None:
    env, store = _make_store()
    handle = store.create()
    surface = LuaStack(env)
    with pytest.raises(LuaError):
        with store.checked_out(handle, surface):
            surface.pushnumber(5)
            surface.remove(7)
    assert store.active is None
    assert store.snapshot(handle) == [5.0]


def test_checked_out_leaves_explicit_checkin_alone() -> None:
    env, store = _make_store()
    handle = store.create()
    surface = LuaStack(env)
    with store.checked_out(handle, surface):
        surface.pushnumber(1)
        surface.pushnumber(2)
        store.checkin(surface, 1)
    assert store.active is None
    assert store.snapshot(handle) == [1.0]


def test_handles_do_not_share_stacks() -> None:
    env, store = _make_store()
    first = store.create()
    second = store.create()
    _fill(store, first, env, "a")
    _fill(store, second, env, "b", "c")
    _fill(store, first, env, "d")
    assert store.snapshot(first) == ["d"]
    assert store.snapshot(second) == ["b", "c"]
