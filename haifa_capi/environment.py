from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .table import LuaTable
from .values import LuaType, type_of


@dataclass
class LuaMultiReturn:
    values: Sequence[Any]


class BuiltinFunction:
    __slots__ = ("name", "func", "doc", "__lua_builtin__")

    def __init__(
        self,
        name: str,
        func: Callable[[Sequence[Any], Any], Any],
        doc: str = "",
    ) -> None:
        self.name = name
        self.func = func
        self.doc = doc
        self.__lua_builtin__ = True  # marker for type_of

    def __call__(self, args: Sequence[Any], env: Any) -> Any:  # noqa: ANN401 - env is dynamic
        return self.func(args, env)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<BuiltinFunction {self.name}>"


def normalize_results(result: Any) -> List[Any]:
    """Turn a builtin's return value into the list of Lua results."""
    if isinstance(result, LuaMultiReturn):
        return list(result.values)
    if result is None:
        return []
    return [result]


class LuaEnvironment:
    """Host runtime state shared by every stack frame: globals and registry."""

    def __init__(self, initial: Optional[Mapping[str, Any]] = None) -> None:
        self._global_table = LuaTable()
        self._registry = LuaTable()
        self._type_metatables: Dict[LuaType, LuaTable] = {}
        self._stdlib_ready = False
        self._bind_environment_table()
        if initial:
            self.merge(initial)

    def register(self, name: str, value: Any) -> None:
        self._global_table.raw_set(name, value)

    def merge(self, other: Mapping[str, Any]) -> None:
        for key, value in other.items():
            self.register(key, value)

    def snapshot(self) -> Dict[str, Any]:
        return {key: value for key, value in self._global_table.iter_items() if isinstance(key, str)}

    def __getitem__(self, name: str) -> Any:
        value = self._global_table.raw_get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __contains__(self, name: str) -> bool:
        return self._global_table.raw_get(name) is not None

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"LuaEnvironment({sorted(self.snapshot())!r})"

    # ------------------------------------------------------------------ helpers
    def _bind_environment_table(self) -> None:
        self._global_table.raw_set("_G", self._global_table)

    def global_table(self) -> LuaTable:
        return self._global_table

    def registry(self) -> LuaTable:
        return self._registry

    def get_metatable(self, value: Any) -> Optional[LuaTable]:
        getter = getattr(value, "get_metatable", None)
        if getter is not None:
            return getter()
        return self._type_metatables.get(type_of(value))

    def set_metatable(self, value: Any, metatable: Optional[LuaTable]) -> None:
        setter = getattr(value, "set_metatable", None)
        if setter is not None:
            setter(metatable)
            return
        kind = type_of(value)
        if metatable is None:
            self._type_metatables.pop(kind, None)
        else:
            self._type_metatables[kind] = metatable

    def get_metamethod(self, value: Any, event: str) -> Any:
        metatable = self.get_metatable(value)
        if metatable is None:
            return None
        return metatable.raw_get(event)

    @property
    def stdlib_ready(self) -> bool:
        return self._stdlib_ready

    def mark_stdlib_ready(self) -> None:
        self._stdlib_ready = True


__all__ = [
    "BuiltinFunction",
    "LuaEnvironment",
    "LuaMultiReturn",
    "normalize_results",
]
