from __future__ import annotations

from typing import List, Optional

from . import auxlib, loader
from .config import LUA_51, ApiDemoConfig
from .dispatcher import ArgShape, OperationDescriptor, ResultShape
from .stack import LuaStack

INT = ArgShape.INT
STRING = ArgShape.STRING
NUMBER = ArgShape.NUMBER


def _op(name, inputs, result, function, *, error_propagating=False) -> OperationDescriptor:
    return OperationDescriptor(name, tuple(inputs), result, function, error_propagating)


def _nothing_in(name, function):
    return _op(name, (), ResultShape.NONE, function)


def _nothing_in_int_out(name, function):
    return _op(name, (), ResultShape.INT, function)


def _int_in(name, function):
    return _op(name, (INT,), ResultShape.NONE, function)


def _int_int_in(name, function):
    return _op(name, (INT, INT), ResultShape.NONE, function)


def _int_string_in(name, function):
    return _op(name, (INT, STRING), ResultShape.NONE, function)


def _string_in(name, function):
    return _op(name, (STRING,), ResultShape.NONE, function)


def _string_int_in(name, function):
    return _op(name, (STRING, INT), ResultShape.NONE, function)


def _number_in(name, function):
    return _op(name, (NUMBER,), ResultShape.NONE, function)


def _int_in_int_out(name, function):
    return _op(name, (INT,), ResultShape.INT, function)


def _int_int_in_int_out(name, function):
    return _op(name, (INT, INT), ResultShape.INT, function)


def _int_in_double_out(name, function):
    return _op(name, (INT,), ResultShape.NUMBER, function)


def _int_in_string_out(name, function):
    return _op(name, (INT,), ResultShape.STRING, function)


def _int_string_in_int_out(name, function):
    return _op(name, (INT, STRING), ResultShape.INT, function)


def _string_in_int_out(name, function):
    return _op(name, (STRING,), ResultShape.INT, function)


def build_catalog(config: Optional[ApiDemoConfig] = None) -> List[OperationDescriptor]:
    """Descriptors for every simulated function, alphabetised by API name."""
    config = config or ApiDemoConfig()
    L = LuaStack
    operations = [
        _int_int_in("lua_call", L.call),
        _int_in_int_out("lua_checkstack", L.checkstack),
        _int_in("lua_concat", L.concat),
        _int_int_in("lua_createtable", L.createtable),
        _op("lua_error", (), ResultShape.NONE, L.error, error_propagating=True),
        _int_string_in("lua_getfield", L.getfield),
        _string_in("lua_getglobal", L.getglobal),
        _int_in_int_out("lua_getmetatable", L.getmetatable),
        _int_in("lua_gettable", L.gettable),
        _nothing_in_int_out("lua_gettop", L.gettop),
        _int_in("lua_insert", L.insert),
        _int_in_int_out("lua_isboolean", L.isboolean),
        _int_in_int_out("lua_isfunction", L.isfunction),
        _int_in_int_out("lua_isnil", L.isnil),
        _int_in_int_out("lua_isnone", L.isnone),
        _int_in_int_out("lua_isnoneornil", L.isnoneornil),
        _int_in_int_out("lua_isnumber", L.isnumber),
        _int_in_int_out("lua_isstring", L.isstring),
        _int_in_int_out("lua_istable", L.istable),
        _int_in_int_out("lua_isuserdata", L.isuserdata),
        _nothing_in("lua_newtable", L.newtable),
        _int_in_int_out("lua_next", L.next),
        _op("lua_pcall", (INT, INT, INT), ResultShape.INT, L.pcall),
        _int_in("lua_pop", L.pop),
        _int_in("lua_pushboolean", L.pushboolean),
        _int_in("lua_pushinteger", L.pushinteger),
        _string_int_in("lua_pushlstring", L.pushlstring),
        _nothing_in("lua_pushnil", L.pushnil),
        _number_in("lua_pushnumber", L.pushnumber),
        _string_in("lua_pushstring", L.pushstring),
        _int_in("lua_pushvalue", L.pushvalue),
        _int_int_in_int_out("lua_rawequal", L.rawequal),
        _int_in("lua_rawget", L.rawget),
        _int_int_in("lua_rawgeti", L.rawgeti),
        _int_in("lua_rawset", L.rawset),
        _int_int_in("lua_rawseti", L.rawseti),
        _int_in("lua_remove", L.remove),
        _int_in("lua_replace", L.replace),
        _int_string_in("lua_setfield", L.setfield),
        _string_in("lua_setglobal", L.setglobal),
        _int_in_int_out("lua_setmetatable", L.setmetatable),
        _int_in("lua_settable", L.settable),
        _int_in("lua_settop", L.settop),
        _int_in_int_out("lua_toboolean", L.toboolean),
        _int_in_int_out("lua_tointeger", L.tointeger),
        _op("lua_tolstring", (INT,), ResultShape.OPT_STRING, L.tolstring),
        _int_in_double_out("lua_tonumber", L.tonumber),
        _int_in_string_out("lua_tostring", L.tostring),
        _int_in_int_out("lua_type", L.type),
        _int_in_string_out("lua_typename", L.typename),
    ]

    if config.lua_version == LUA_51:
        operations += [
            _int_int_in_int_out("lua_equal", L.equal),
            _int_int_in_int_out("lua_lessthan", L.lessthan),
            _int_in_int_out("lua_objlen", L.objlen),
        ]
    else:
        operations += [
            _int_in_int_out("lua_rawlen", L.rawlen),
        ]

    operations += [
        _int_string_in_int_out("luaL_argerror", auxlib.argerror),
        _int_string_in_int_out("luaL_callmeta", auxlib.callmeta),
        _int_in("luaL_checkany", auxlib.checkany),
        _int_in_int_out("luaL_checkint", auxlib.checkint),
        _int_in_int_out("luaL_checkinteger", auxlib.checkinteger),
        _int_in_double_out("luaL_checknumber", auxlib.checknumber),
        _int_in_string_out("luaL_checkstring", auxlib.checkstring),
        _int_int_in("luaL_checktype", auxlib.checktype),
        _string_in_int_out("luaL_dofile", loader.dofile),
        _string_in_int_out("luaL_dostring", loader.dostring),
        _int_string_in_int_out("luaL_getmetafield", auxlib.getmetafield),
        _string_in_int_out("luaL_loadfile", loader.loadfile),
        _string_in_int_out("luaL_loadstring", loader.loadstring),
        _op("luaL_optint", (INT, INT), ResultShape.INT, auxlib.optint),
        _op("luaL_optinteger", (INT, INT), ResultShape.INT, auxlib.optinteger),
        _op("luaL_optnumber", (INT, NUMBER), ResultShape.NUMBER, auxlib.optnumber),
        _op("luaL_optstring", (INT, STRING), ResultShape.OPT_STRING, auxlib.optstring),
        _int_in_string_out("luaL_typename", auxlib.typename),
    ]
    return operations


__all__ = ["build_catalog"]
