"""Core runtime aggregator for Genro Navigator.

Exposes the runtime building blocks from a single module.

Public API:
    - ``BaseRouter``: Plugin-free navigation router
    - ``Router``: Plugin-enabled router with hook middleware
    - ``Route`` / ``RouteLocation`` / ``RouteConfig``: navigation data model
    - ``RouteMatcher``: compiled route tree
    - history adapters: ``MemoryHistory``, ``AbstractHistory``, ``BrowserHistory``

Importing this module performs only imports; it does not register plugins
or instantiate routers.
"""

from .apps import AppSwitcher, RenderAdapter
from .base_router import BaseRouter
from .history import (
    AbstractHistory,
    BaseHistory,
    BrowserHistory,
    HistoryEntry,
    HistorySubstrate,
    MemoryHistory,
)
from .location import RouteLocation
from .matcher import MatchResult, RouteMatcher
from .options import RouterOptions
from .route import Route
from .route_config import RouteConfig
from .router import Router
from .transition import STAGES, Stage
from .types import RouteMatchType, RouterMode, RouteStatus, RouteType

__all__ = [
    "AbstractHistory",
    "AppSwitcher",
    "BaseHistory",
    "BaseRouter",
    "BrowserHistory",
    "HistoryEntry",
    "HistorySubstrate",
    "MatchResult",
    "MemoryHistory",
    "RenderAdapter",
    "Route",
    "RouteConfig",
    "RouteLocation",
    "RouteMatchType",
    "RouteMatcher",
    "RouteStatus",
    "RouteType",
    "Router",
    "RouterMode",
    "RouterOptions",
    "STAGES",
    "Stage",
]
