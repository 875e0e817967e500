# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""History adapters: an ordered stack of ``(url, state)`` entries with a cursor.

Three adapters share the ``BaseHistory`` surface:

- ``MemoryHistory``: in-process list and cursor, seeded with ``("/", {})``
- ``AbstractHistory``: ``MemoryHistory`` that also records every operation in ``log``
- ``BrowserHistory``: proxies a ``HistorySubstrate`` (a real browser history
  bridge or a test double) and turns its pop signals into navigations

``push``/``replace`` are synchronous and return the state actually stored.
Every stored state carries a ``__pageId__`` integer: push allocates a new id,
replace keeps the id of the entry it overwrites.

``go(delta)`` is asynchronous and returns the entry the cursor landed on, or
None when the move is out of bounds (the cursor does not move).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .types import RouterMode

if TYPE_CHECKING:  # pragma: no cover
    from .route import Route

__all__ = [
    "PAGE_ID_KEY",
    "PageIdCounter",
    "HistoryEntry",
    "HistorySubstrate",
    "BaseHistory",
    "MemoryHistory",
    "AbstractHistory",
    "BrowserHistory",
]

logger = logging.getLogger("genro_navigator")

PAGE_ID_KEY = "__pageId__"

PopListener = Callable[["HistoryEntry"], Any]


class PageIdCounter:
    """Monotonic page-id source, one per adapter."""

    __slots__ = ("value",)

    def __init__(self) -> None:
        self.value = 0

    def generate(self) -> int:
        self.value += 1
        return self.value


@dataclass(frozen=True)
class HistoryEntry:
    url: str
    state: Mapping[str, Any] = field(default_factory=dict)


@runtime_checkable
class HistorySubstrate(Protocol):
    """Minimal surface of a browser-like history object."""

    @property
    def url(self) -> str: ...

    @property
    def state(self) -> Mapping[str, Any] | None: ...

    def push_state(self, state: Mapping[str, Any], url: str) -> None: ...

    def replace_state(self, state: Mapping[str, Any], url: str) -> None: ...

    def go(self, delta: int) -> None: ...

    def subscribe(self, callback: Callable[[str, Mapping[str, Any] | None], None]) -> Callable[[], None]: ...


class BaseHistory:
    """Shared page-id bookkeeping and the adapter contract."""

    mode: RouterMode = RouterMode.MEMORY

    def __init__(self) -> None:
        self.page_ids = PageIdCounter()
        self._listener: PopListener | None = None

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------
    @property
    def current(self) -> HistoryEntry:
        raise NotImplementedError

    def _push_entry(self, entry: HistoryEntry) -> None:
        raise NotImplementedError

    def _replace_entry(self, entry: HistoryEntry) -> None:
        raise NotImplementedError

    async def go(self, delta: int) -> HistoryEntry | None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def push(self, route: Route) -> dict[str, Any]:
        """Add an entry for ``route`` after the cursor, dropping forward entries."""
        state = {**route.state, PAGE_ID_KEY: self.page_ids.generate()}
        self._push_entry(HistoryEntry(route.full_path, state))
        return state

    def replace(self, route: Route) -> dict[str, Any]:
        """Overwrite the entry at the cursor, keeping its page id."""
        old_state = dict(self.current.state or {})
        page_id = old_state.get(PAGE_ID_KEY)
        if not isinstance(page_id, int):
            page_id = self.page_ids.generate()
        state = {**old_state, **route.state, PAGE_ID_KEY: page_id}
        self._replace_entry(HistoryEntry(route.full_path, state))
        return state

    async def back(self) -> HistoryEntry | None:
        return await self.go(-1)

    async def forward(self) -> HistoryEntry | None:
        return await self.go(1)

    def listen(self, listener: PopListener | None) -> None:
        """Register the callback for unsolicited pop signals."""
        self._listener = listener

    def destroy(self) -> None:
        self._listener = None


class MemoryHistory(BaseHistory):
    """In-process history: a list of entries and a cursor."""

    mode = RouterMode.MEMORY

    def __init__(self) -> None:
        super().__init__()
        self.entries: list[HistoryEntry] = [HistoryEntry("/", {})]
        self.index = 0

    @property
    def current(self) -> HistoryEntry:
        return self.entries[self.index]

    def __len__(self) -> int:
        return len(self.entries)

    def _push_entry(self, entry: HistoryEntry) -> None:
        del self.entries[self.index + 1 :]
        self.entries.append(entry)
        self.index = len(self.entries) - 1

    def _replace_entry(self, entry: HistoryEntry) -> None:
        self.entries[self.index] = entry

    async def go(self, delta: int) -> HistoryEntry | None:
        target = self.index + delta
        if not 0 <= target < len(self.entries):
            logger.debug("history go(%d) out of bounds at index %d", delta, self.index)
            return None
        self.index = target
        return self.entries[target]


class AbstractHistory(MemoryHistory):
    """``MemoryHistory`` that records each operation as ``(op, detail)`` in ``log``."""

    mode = RouterMode.ABSTRACT

    def __init__(self) -> None:
        self.log: list[tuple[str, Any]] = []
        super().__init__()

    def _push_entry(self, entry: HistoryEntry) -> None:
        self.log.append(("push", entry.url))
        super()._push_entry(entry)

    def _replace_entry(self, entry: HistoryEntry) -> None:
        self.log.append(("replace", entry.url))
        super()._replace_entry(entry)

    async def go(self, delta: int) -> HistoryEntry | None:
        self.log.append(("go", delta))
        return await super().go(delta)


class BrowserHistory(BaseHistory):
    """Adapter over a browser-like ``HistorySubstrate``.

    ``go`` asks the substrate to move and waits up to ``pop_timeout`` seconds
    for its pop signal. Pop signals that arrive while no ``go`` is waiting
    come from the user (browser back/forward) and are handed to the listener.
    """

    mode = RouterMode.HISTORY

    def __init__(self, substrate: HistorySubstrate, *, pop_timeout: float = 0.08) -> None:
        super().__init__()
        if not isinstance(substrate, HistorySubstrate):
            raise TypeError("BrowserHistory requires a HistorySubstrate")
        self.substrate = substrate
        self.pop_timeout = pop_timeout
        self._pending: asyncio.Future[HistoryEntry | None] | None = None
        self._unsubscribe = substrate.subscribe(self._on_pop)

    @property
    def current(self) -> HistoryEntry:
        return HistoryEntry(self.substrate.url, dict(self.substrate.state or {}))

    def _push_entry(self, entry: HistoryEntry) -> None:
        self.substrate.push_state(entry.state, entry.url)

    def _replace_entry(self, entry: HistoryEntry) -> None:
        self.substrate.replace_state(entry.state, entry.url)

    def _on_pop(self, url: str, state: Mapping[str, Any] | None) -> None:
        entry = HistoryEntry(url, dict(state or {}))
        pending = self._pending
        if pending is not None and not pending.done():
            pending.set_result(entry)
        elif self._listener is not None:
            self._listener(entry)
        else:
            logger.debug("pop signal for %s ignored: no listener", url)

    async def go(self, delta: int) -> HistoryEntry | None:
        if self._pending is not None:
            return None
        self._pending = asyncio.get_running_loop().create_future()
        try:
            self.substrate.go(delta)
            return await asyncio.wait_for(self._pending, self.pop_timeout)
        except asyncio.TimeoutError:
            logger.debug("history go(%d): no pop signal within %.3fs", delta, self.pop_timeout)
            return None
        finally:
            self._pending = None

    def destroy(self) -> None:
        super().destroy()
        if self._pending is not None and not self._pending.done():
            self._pending.set_result(None)
        self._pending = None
        self._unsubscribe()
