# Copyright 2025 Softwell S.r.l. - All Rights Reserved
# SPDX-License-Identifier: Apache-2.0
"""Router construction options.

``Router(**kwargs)`` builds a ``RouterOptions`` from its keywords; an explicit
instance can be passed as ``Router(options=...)``. Values are validated at
construction and invalid ones raise ``ValueError`` or ``TypeError``.

Options consumed by the engine:
    - ``routes``: route tree (``RouteConfig`` objects or mappings)
    - ``base``: absolute base URL (default ``http://localhost/``)
    - ``mode``: ``RouterMode`` or its value (default ``memory``)
    - ``fallback(to, from_)``: called for unmatched targets and window navigations
    - ``handle_back_boundary(router)``: called when ``back()`` hits the oldest entry
    - ``normalize_url(url, from_url)``: post-processes every resolved URL
    - ``max_redirects``: redirect chain limit (default 10)
    - ``history``: explicit adapter; otherwise built from ``mode``
    - ``substrate`` / ``pop_timeout``: browser substrate for ``history`` mode
    - ``renderer``: render collaborator; defaults to ``AppSwitcher``

Pass-throughs for the render collaborator: ``root``, ``root_style``, ``apps``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from .history import AbstractHistory, BaseHistory, BrowserHistory, HistorySubstrate, MemoryHistory
from .location import DEFAULT_BASE
from .route_config import RouteConfig
from .types import RouterMode

__all__ = ["RouterOptions", "default_fallback"]

logger = logging.getLogger("genro_navigator")


def default_fallback(to: Any, from_: Any) -> None:
    """Fallback used when none is configured: log the unhandled target."""
    logger.info("No handler for %s navigation to %s", to.type.value, to.url)


@dataclass
class RouterOptions:
    routes: Sequence[RouteConfig | Mapping[str, Any]] = ()
    base: str = DEFAULT_BASE
    mode: RouterMode | str = RouterMode.MEMORY
    fallback: Callable[[Any, Any], Any] | None = None
    handle_back_boundary: Callable[[Any], Any] | None = None
    normalize_url: Callable[[str, str | None], str] | None = None
    max_redirects: int = 10
    history: BaseHistory | None = None
    substrate: HistorySubstrate | None = None
    pop_timeout: float = 0.08
    renderer: Any = None
    root: Any = None
    root_style: Mapping[str, Any] | None = None
    apps: Mapping[str, Callable[[Any], Any]] | Callable[[Any], Any] | None = None

    def __post_init__(self) -> None:
        self.mode = RouterMode(self.mode)
        self.base = self._check_base(self.base)
        if self.fallback is None:
            self.fallback = default_fallback
        for name in ("fallback", "handle_back_boundary", "normalize_url"):
            value = getattr(self, name)
            if value is not None and not callable(value):
                raise TypeError(f"Router option '{name}' must be callable")
        if not isinstance(self.max_redirects, int) or self.max_redirects < 0:
            raise ValueError("Router option 'max_redirects' must be a non-negative integer")
        if self.history is not None and not isinstance(self.history, BaseHistory):
            raise TypeError("Router option 'history' must be a history adapter")
        if self.mode is RouterMode.HISTORY and self.history is None and self.substrate is None:
            raise ValueError("Router mode 'history' requires a 'substrate' or a 'history' adapter")
        if self.apps is not None and not (isinstance(self.apps, Mapping) or callable(self.apps)):
            raise TypeError("Router option 'apps' must be a mapping or a callable")

    @staticmethod
    def _check_base(base: str) -> str:
        parts = urlsplit(base)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"Router base must be an absolute URL, got {base!r}")
        return base if parts.path else base + "/"

    def build_history(self) -> BaseHistory:
        """Return the configured adapter, or build one for ``mode``."""
        if self.history is not None:
            return self.history
        if self.mode is RouterMode.HISTORY:
            assert self.substrate is not None
            return BrowserHistory(self.substrate, pop_timeout=self.pop_timeout)
        if self.mode is RouterMode.ABSTRACT:
            return AbstractHistory()
        return MemoryHistory()
