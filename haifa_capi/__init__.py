from .baselib import create_default_environment, install_base_library
from .catalog import build_catalog
from .config import ApiDemoConfig
from .dispatcher import ArgShape, Dispatcher, OperationDescriptor, ResultShape
from .environment import BuiltinFunction, LuaEnvironment, LuaMultiReturn
from .errors import ArgumentTypeError, ContractViolation, LuaError
from .module import ApiDemo, open_apidemo
from .printer import StackPrinter
from .stack import LuaStack
from .state_store import StateStore
from .table import LuaTable
from .values import LuaThread, LuaType, LuaUserdata

__all__ = [
    "ApiDemo",
    "ApiDemoConfig",
    "open_apidemo",
    "ArgShape",
    "ResultShape",
    "OperationDescriptor",
    "Dispatcher",
    "build_catalog",
    "StateStore",
    "StackPrinter",
    "LuaStack",
    "LuaEnvironment",
    "BuiltinFunction",
    "LuaMultiReturn",
    "LuaTable",
    "LuaType",
    "LuaUserdata",
    "LuaThread",
    "LuaError",
    "ArgumentTypeError",
    "ContractViolation",
    "create_default_environment",
    "install_base_library",
]
