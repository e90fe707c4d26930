"""Persistence of simulated Lua states between stateless operations.

Every simulated state is a record in the registry table
``"ApiDemo.SavedStates"``: ``{num_items = n, [1] = v1, ..., [n] = vn}``, keyed
by an integer reference. A handle is a userdata carrying that reference and
the ``"ApiDemo.LuaState"`` metatable. An operation checks its handle out onto a
live :class:`LuaStack` and checks it back in when done; only one handle may be
checked out at a time.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional

from . import auxlib
from .config import DEMO_STATE_METATABLE, STATES_TABLE_KEY, ApiDemoConfig
from .environment import LuaEnvironment
from .errors import ContractViolation
from .stack import LuaStack
from .table import LuaTable
from .values import LuaUserdata, is_number

NUM_ITEMS_KEY = "num_items"


class StateStore:
    def __init__(self, env: LuaEnvironment, config: Optional[ApiDemoConfig] = None) -> None:
        self.env = env
        self.config = config or ApiDemoConfig()
        self._active: Optional[LuaUserdata] = None
        L = LuaStack(env, self.config)
        auxlib.newmetatable(L, DEMO_STATE_METATABLE)
        L.pop(1)

    @property
    def active(self) -> Optional[LuaUserdata]:
        return self._active

    def states_table(self) -> LuaTable:
        """Return the saved-states table, creating it in the registry on first use."""
        registry = self.env.registry()
        table = registry.raw_get(STATES_TABLE_KEY)
        if table is None:
            table = LuaTable()
            registry.raw_set(STATES_TABLE_KEY, table)
        return table

    def handle_metatable(self) -> LuaTable:
        return self.env.registry().raw_get(DEMO_STATE_METATABLE)

    def is_handle(self, value: Any) -> bool:
        return isinstance(value, LuaUserdata) and value.get_metatable() is self.handle_metatable()

    def create(self) -> LuaUserdata:
        L = LuaStack(self.env, self.config)
        L.push(self.states_table())
        L.newtable()
        L.pushnumber(0)
        L.setfield(-2, NUM_ITEMS_KEY)
        ref = auxlib.ref(L, 1)
        return LuaUserdata(ref, metatable=self.handle_metatable())

    def snapshot(self, handle: LuaUserdata) -> list:
        """Persisted values of ``handle``, bottom to top (read-only view)."""
        record = self._record(handle)
        return [record.raw_get(k) for k in range(1, self._item_count(record) + 1)]

    # ----------------------------------------------------------- checkout/in
    def checkout(self, handle: LuaUserdata, surface: LuaStack) -> None:
        if self._active is not None:
            raise ContractViolation("a simulated state is already checked out")
        record = self._record(handle)
        count = self._item_count(record)
        surface.settop(0)
        for k in range(1, count + 1):
            surface.push(record.raw_get(k))
        self._active = handle

    def checkin(self, surface: LuaStack, omit: int = 0) -> None:
        if self._active is None:
            raise ContractViolation("checkin without a checked-out state")
        if omit < 0:
            raise ContractViolation(f"omit count must be non-negative, got {omit}")
        record = self._record(self._active)
        count = max(surface.gettop() - omit, 0)
        record.raw_set(NUM_ITEMS_KEY, float(count))
        for k, value in enumerate(surface.values()[:count], start=1):
            record.raw_set(k, value)
        self._active = None

    @contextmanager
    def checked_out(self, handle: LuaUserdata, surface: LuaStack) -> Iterator[LuaStack]:
        """Check ``handle`` out for the duration of the block.

        If the block leaves the handle checked out (normal exit without an
        explicit checkin, or an exception), the whole surface is checked in.
        """
        self.checkout(handle, surface)
        try:
            yield surface
        finally:
            if self._active is handle:
                self.checkin(surface, 0)

    # ------------------------------------------------------------- internals
    def _record(self, handle: LuaUserdata) -> LuaTable:
        record = self.states_table().raw_get(handle.payload)
        if not isinstance(record, LuaTable):
            raise ContractViolation(f"no saved state for reference {handle.payload!r}")
        return record

    @staticmethod
    def _item_count(record: LuaTable) -> int:
        count = record.raw_get(NUM_ITEMS_KEY)
        if not is_number(count) or count < 0 or not float(count).is_integer():
            raise ContractViolation(f"saved state has an invalid item count {count!r}")
        return int(count)


__all__ = ["StateStore", "NUM_ITEMS_KEY"]
