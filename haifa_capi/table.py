from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple


class LuaTable:
    """Hybrid table supporting Lua-style array and dictionary access."""

    __slots__ = ("array", "map", "metatable", "_map_keys", "_map_positions", "__lua_table__")

    def __init__(self, array: Iterable[Any] | None = None, mapping: Dict[Any, Any] | None = None) -> None:
        self.array: List[Any] = list(array) if array is not None else []
        self.map: Dict[Any, Any] = {}
        self.metatable: Optional[LuaTable] = None
        # Hash-part key order for ``next``; rebuilt after keys are added or removed.
        self._map_keys: Optional[List[Any]] = None
        self._map_positions: Optional[Dict[Any, int]] = None
        self.__lua_table__ = True
        self._trim_array()
        if mapping:
            for key, value in mapping.items():
                self.raw_set(key, value)

    # ---------------------------- array helpers ---------------------------- #
    def lua_len(self) -> int:
        count = len(self.array)
        while count > 0 and self.array[count - 1] is None:
            count -= 1
        return count

    # --------------------------- raw table access -------------------------- #
    def raw_get(self, key: Any) -> Any:
        if self._is_array_key(key):
            index = int(key)
            if 1 <= index <= len(self.array):
                return self.array[index - 1]
        return self.map.get(self._normalize_key(key), None)

    def raw_set(self, key: Any, value: Any) -> None:
        if key is None:
            raise RuntimeError("table index is nil")
        if isinstance(key, float) and key != key:
            raise RuntimeError("table index is NaN")
        key = self._normalize_key(key)
        if self._is_array_key(key):
            index = int(key)
            if 1 <= index <= len(self.array):
                self.array[index - 1] = value
                if value is None:
                    self._trim_array()
                return
            if index == len(self.array) + 1:
                self._forget_key_order()
                if value is None:
                    self.map.pop(key, None)
                    return
                self.array.append(value)
                self.map.pop(key, None)
                self._migrate_from_map()
                return
        if value is None:
            if self.map.pop(key, None) is not None:
                self._forget_key_order()
        else:
            if key not in self.map:
                self._forget_key_order()
            self.map[key] = value

    # ------------------------------ metatables ----------------------------- #
    def get_metatable(self) -> Optional["LuaTable"]:
        return self.metatable

    def set_metatable(self, metatable: Optional["LuaTable"]) -> None:
        self.metatable = metatable

    # ---------------------------- iteration helpers --------------------------- #
    def iter_items(self) -> Iterator[Tuple[Any, Any]]:
        for idx, value in enumerate(self.array, start=1):
            if value is not None:
                yield float(idx), value
        for key, value in self.map.items():
            yield key, value

    def next(self, key: Any) -> Optional[Tuple[Any, Any]]:
        """Return the pair following ``key`` in traversal order, or None at the end.

        Traversal visits the array part by position, then the hash part in
        insertion order. A key that is not present raises RuntimeError, the
        way Lua's ``next`` reports an invalid key.
        """
        start = 0
        if key is not None:
            if self._is_array_key(key) and 1 <= int(key) <= len(self.array):
                start = int(key)
            else:
                keys, positions = self._key_order()
                position = positions.get(self._normalize_key(key))
                if position is None:
                    raise RuntimeError("invalid key to 'next'")
                if position + 1 < len(keys):
                    candidate = keys[position + 1]
                    return candidate, self.map[candidate]
                return None
        for idx in range(start, len(self.array)):
            value = self.array[idx]
            if value is not None:
                return float(idx + 1), value
        for candidate, value in self.map.items():
            return candidate, value
        return None

    # ------------------------------- internals ----------------------------- #
    def _key_order(self) -> Tuple[List[Any], Dict[Any, int]]:
        if self._map_keys is None or self._map_positions is None:
            self._map_keys = list(self.map)
            self._map_positions = {key: position for position, key in enumerate(self._map_keys)}
        return self._map_keys, self._map_positions

    def _forget_key_order(self) -> None:
        self._map_keys = None
        self._map_positions = None

    def _trim_array(self) -> None:
        while self.array and self.array[-1] is None:
            self.array.pop()

    def _migrate_from_map(self) -> None:
        # Keys n+1, n+2, ... stored in the hash part move into the array part.
        while True:
            candidate = float(len(self.array) + 1)
            if candidate not in self.map:
                return
            self.array.append(self.map.pop(candidate))

    @staticmethod
    def _normalize_key(key: Any) -> Any:
        if isinstance(key, bool):
            return key
        if isinstance(key, int):
            return float(key)
        return key

    @staticmethod
    def _is_array_key(key: Any) -> bool:
        if isinstance(key, bool):
            return False
        if isinstance(key, int):
            return key >= 1
        if isinstance(key, float) and key.is_integer():
            return int(key) >= 1
        return False

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"LuaTable(array={self.array!r}, map={self.map!r})"


__all__ = ["LuaTable"]
