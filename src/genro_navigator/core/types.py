"""Enumerations and callable shapes shared across the navigation engine.

Enumerations
------------
- ``RouteType``: the navigation request kinds. ``is_push`` on a route is
  derived from the value prefix (``push`` / ``pushWindow``).
- ``RouteStatus``: ``pending`` until the controller settles the route as
  ``success``, ``aborted`` or ``error``.
- ``RouterMode``: which history adapter the router builds.
- ``RouteMatchType``: comparison modes for ``Router.is_route_matched``.

Hook shapes
-----------
``Guard`` callables receive ``(to, from_)`` and may be sync or async. Their
result is interpreted by ``guards.interpret_result``:

- ``None`` / ``True`` / anything unrecognised: continue
- ``False``: abort the whole navigation
- ``str`` / ``RouteLocation`` / mapping: redirect to that location
- a callable: handle the navigation with it, ``handler(to, from_)``
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:  # pragma: no cover
    from .location import RouteLocation
    from .route import Route

__all__ = [
    "RouteType",
    "RouteStatus",
    "RouterMode",
    "RouteMatchType",
    "Guard",
    "NotifyHook",
    "RawLocation",
    "REPLAY_TYPES",
    "WINDOW_TYPES",
]


class RouteType(str, Enum):
    """Kind of navigation request that produced a route."""

    PUSH = "push"
    REPLACE = "replace"
    BACK = "back"
    FORWARD = "forward"
    GO = "go"
    RELOAD = "reload"
    RESTART_APP = "restartApp"
    POPSTATE = "popstate"
    PUSH_WINDOW = "pushWindow"
    REPLACE_WINDOW = "replaceWindow"
    RESOLVE = "resolve"


class RouteStatus(str, Enum):
    """Lifecycle status of a route."""

    PENDING = "pending"
    SUCCESS = "success"
    ABORTED = "aborted"
    ERROR = "error"


class RouterMode(str, Enum):
    """History substrate used by a router."""

    HISTORY = "history"
    MEMORY = "memory"
    ABSTRACT = "abstract"


class RouteMatchType(str, Enum):
    """How ``Router.is_route_matched`` compares a route with the current one."""

    ROUTE = "route"
    EXACT = "exact"
    INCLUDE = "include"


# Navigation types that replay an existing history entry.
REPLAY_TYPES = frozenset({RouteType.BACK, RouteType.FORWARD, RouteType.GO, RouteType.POPSTATE})

# Navigation types that leave the application window to the fallback.
WINDOW_TYPES = frozenset({RouteType.PUSH_WINDOW, RouteType.REPLACE_WINDOW})

RawLocation = Union[str, "RouteLocation", Mapping[str, Any]]
Guard = Callable[["Route", "Route | None"], Any | Awaitable[Any]]
NotifyHook = Callable[["Route", "Route | None"], Any]
