"""Genro Navigator - Client-side navigation engine for Python.

Public API surface for declarative route trees, guarded transitions with
cooperative cancellation, and pluggable history and render collaborators.

Public exports:
    - ``Router``: Main router class (navigation API plus plugins)
    - ``Route``: Resolved navigation outcome
    - ``RouteConfig`` / ``RouteLocation``: route definitions and navigation targets
    - ``RouteType`` / ``RouteStatus`` / ``RouterMode`` / ``RouteMatchType``
    - history adapters and the exception taxonomy

Plugin registration happens lazily via ``import_module`` to avoid cycles.
Built-in plugins (logging) are auto-registered on first import.

Example::

    from genro_navigator import Router

    async def main():
        router = Router(routes=[{"path": "/"}, {"path": "/user/:id"}])
        await router.replace("/")
        route = await router.push("/user/42")
        assert route.params == {"id": "42"}
"""

from importlib import import_module

__version__ = "0.1.0"

from .core import (
    AbstractHistory,
    AppSwitcher,
    BaseRouter,
    BrowserHistory,
    HistoryEntry,
    MemoryHistory,
    Route,
    RouteConfig,
    RouteLocation,
    RouteMatchType,
    RouterMode,
    RouterOptions,
    RouteStatus,
    RouteType,
    Router,
)
from .exceptions import (
    GuardError,
    NavigationError,
    PayloadLoadError,
    RedirectLimitExceeded,
    RouteNotReady,
    SelfRedirectError,
)

# Import plugins to trigger auto-registration (lazy to avoid cycles)
for _plugin in ("logging",):
    import_module(f"{__name__}.plugins.{_plugin}")
del _plugin

__all__ = [
    "AbstractHistory",
    "AppSwitcher",
    "BaseRouter",
    "BrowserHistory",
    "GuardError",
    "HistoryEntry",
    "MemoryHistory",
    "NavigationError",
    "PayloadLoadError",
    "RedirectLimitExceeded",
    "Route",
    "RouteConfig",
    "RouteLocation",
    "RouteMatchType",
    "RouteNotReady",
    "RouteStatus",
    "RouteType",
    "Router",
    "RouterMode",
    "RouterOptions",
    "SelfRedirectError",
]
