# Copyright 2025 Softwell S.r.l. - All Rights Reserved
# SPDX-License-Identifier: Apache-2.0
"""Plugin-free navigation router.

``BaseRouter`` wires the engine together:

- ``RouteMatcher`` compiled from the ``routes`` option
- ``RouteResolver`` for URL normalisation and ``resolve()``
- a history adapter built from ``mode`` (or given as ``history``)
- the render collaborator (``renderer`` option, ``AppSwitcher`` by default)
- a ``TransitionController`` owning the epoch and the committed route

Public API
----------
Navigation (all coroutines):
    - ``push(loc)``, ``replace(loc)``, ``reload(loc=None)``, ``restart_app(loc=None)``
    - ``push_window(loc)``, ``replace_window(loc)``
    - ``back()``, ``forward()``, ``go(delta)`` -> ``Route | None``
    - ``popstate(loc)``: entry point for browser pop signals

Inspection:
    - ``route``: committed route (raises ``RouteNotReady`` before the first commit)
    - ``resolve(loc)``: pure resolution, never touches state
    - ``is_route_matched(route, mode)``
    - ``get_routes()``: every compiled route node

Layers:
    - ``create_layer(**options)`` / ``push_layer(loc, should_close=None)``
    - ``close_layer(descendants="clear")``, ``force_reload(loc=None)``

Global hooks:
    - ``before_each(guard)`` / ``after_each(guard)`` return an unregister callable
    - ``un_before_each(guard)`` / ``un_after_each(guard)``

Hooks are called as ``hook(to, from_)`` and may be sync or async.

Example::

    router = BaseRouter(routes=[{"path": "/"}, {"path": "/user/:id"}])
    await router.replace("/")
    route = await router.push("/user/1")
    route.params  # {"id": "1"}

Override points for subclasses:
    - ``call_hook(call, to, from_)``: invoke one scheduled hook
    - ``iter_plugins()``: commit observers (none here)
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Callable
from typing import Any

from genro_toolbox.typeutils import safe_is_instance

from genro_navigator.exceptions import RouteNotReady

from .apps import AppSwitcher, RenderAdapter
from .guards import GuardCall
from .history import HistoryEntry
from .invoke import invoke
from .location import RouteLocation
from .matcher import RouteMatcher
from .options import RouterOptions
from .route import Route, RouteResolver
from .route_config import CompiledRouteConfig
from .transition import TransitionController
from .types import Guard, NotifyHook, RawLocation, RouteMatchType, RouterMode, RouteType

__all__ = ["BaseRouter"]

logger = logging.getLogger("genro_navigator")


class BaseRouter:
    """Navigation router without plugin support."""

    __slots__ = (
        "options",
        "matcher",
        "resolver",
        "history",
        "renderer",
        "_before_each",
        "_after_each",
        "_transition",
        "_pop_tasks",
        "_layer_parent",
        "_layer_root",
        "_layer_children",
    )

    def __init__(
        self,
        routes: Any = None,
        *,
        options: RouterOptions | None = None,
        **kwargs: Any,
    ) -> None:
        if options is None:
            if routes is not None:
                kwargs["routes"] = routes
            options = RouterOptions(**kwargs)
        elif routes is not None or kwargs:
            raise TypeError("Pass either 'options' or keyword options, not both")

        self.options = options
        self.matcher = RouteMatcher(options.routes)
        self.resolver = RouteResolver(self.matcher, options.base, options.normalize_url)
        self.history = options.build_history()
        renderer = options.renderer if options.renderer is not None else AppSwitcher()
        if not isinstance(renderer, RenderAdapter):
            raise TypeError("Router renderer must provide update(router, force) and destroy()")
        self.renderer = renderer
        self._before_each: list[Guard] = []
        self._after_each: list[NotifyHook] = []
        self._transition = TransitionController(self)
        self._pop_tasks: set[asyncio.Task[Any]] = set()
        self._layer_parent: BaseRouter | None = None
        self._layer_root: BaseRouter = self
        self._layer_children: list[BaseRouter] = []
        self.history.listen(self._on_pop)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def route(self) -> Route:
        """The committed route.

        Raises:
            RouteNotReady: before the first committed navigation.
        """
        current = self._transition.current
        if current is None:
            raise RouteNotReady()
        return current

    @property
    def current_route(self) -> Route | None:
        return self._transition.current

    @property
    def epoch(self) -> int:
        return self._transition.epoch

    @property
    def before_each_hooks(self) -> tuple[Guard, ...]:
        return tuple(self._before_each)

    @property
    def after_each_hooks(self) -> tuple[NotifyHook, ...]:
        return tuple(self._after_each)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    async def push(self, location: RawLocation) -> Route:
        return await self._transition.transition_to(RouteType.PUSH, location)

    async def replace(self, location: RawLocation) -> Route:
        return await self._transition.transition_to(RouteType.REPLACE, location)

    async def push_window(self, location: RawLocation) -> Route:
        """Hand ``location`` to the fallback as a new window; never commits."""
        return await self._transition.transition_to(RouteType.PUSH_WINDOW, location)

    async def replace_window(self, location: RawLocation) -> Route:
        """Hand ``location`` to the fallback in place of the current window."""
        return await self._transition.transition_to(RouteType.REPLACE_WINDOW, location)

    async def reload(self, location: RawLocation | None = None) -> Route:
        """Navigate again to ``location`` (default: the current entry), remounting the app.

        Layers opened from this router are closed first.
        """
        await self._close_children()
        return await self._transition.transition_to(RouteType.RELOAD, self._current_location(location))

    async def restart_app(self, location: RawLocation | None = None) -> Route:
        """Run the full guard chain, then replace the entry and remount the app."""
        return await self._transition.transition_to(RouteType.RESTART_APP, self._current_location(location))

    async def force_reload(self, location: RawLocation | None = None) -> Route:
        """Reload from the top-level router, whichever layer it is called on."""
        return await self._layer_root.reload(location)

    def _current_location(self, location: RawLocation | None) -> RawLocation:
        if location is not None:
            return location
        current = self._transition.current
        return current.url if current is not None else self.history.current.url

    async def popstate(self, location: RawLocation) -> Route:
        return await self._transition.transition_to(RouteType.POPSTATE, location)

    async def back(self) -> Route | None:
        """Go one entry back; at the oldest entry call ``handle_back_boundary``."""
        entry = await self.history.back()
        if entry is None:
            logger.debug("back() at the oldest history entry")
            boundary = self.options.handle_back_boundary
            if boundary is not None:
                await invoke(boundary, self)
            return None
        return await self._transition.transition_to(RouteType.BACK, self._entry_location(entry))

    async def forward(self) -> Route | None:
        entry = await self.history.forward()
        if entry is None:
            return None
        return await self._transition.transition_to(RouteType.FORWARD, self._entry_location(entry))

    async def go(self, delta: int) -> Route | None:
        """Move ``delta`` entries through history; ``go(0)`` does nothing and returns None."""
        if delta == 0:
            return None
        entry = await self.history.go(delta)
        if entry is None:
            return None
        return await self._transition.transition_to(RouteType.GO, self._entry_location(entry))

    @staticmethod
    def _entry_location(entry: HistoryEntry) -> RouteLocation:
        return RouteLocation(url=entry.url, state=dict(entry.state))

    def _on_pop(self, entry: HistoryEntry) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Pop signal for %s received outside an event loop", entry.url)
            return
        task = loop.create_task(self.popstate(self._entry_location(entry)))
        self._pop_tasks.add(task)
        task.add_done_callback(self._pop_done)

    def _pop_done(self, task: asyncio.Task[Any]) -> None:
        self._pop_tasks.discard(task)
        if not task.cancelled():
            # Failures are already logged by the transition controller.
            task.exception()

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------
    def resolve(self, location: RawLocation) -> Route:
        """Resolve ``location`` against the current route without navigating."""
        current = self._transition.current
        return self.resolver.resolve(RouteType.RESOLVE, location, current.url if current else None)

    def get_routes(self) -> list[CompiledRouteConfig]:
        """Every compiled route node, depth-first in declaration order."""
        return self.matcher.routes

    def is_route_matched(self, route: Route | RawLocation, mode: RouteMatchType | str = RouteMatchType.ROUTE) -> bool:
        """Compare ``route`` with the committed route.

        Modes:
            - ``route``: same matched chain (node identity)
            - ``exact``: same ``full_path``
            - ``include``: the committed ``full_path`` starts with ``route.full_path``
        """
        mode = RouteMatchType(mode)
        current = self._transition.current
        if current is None:
            return False
        if not safe_is_instance(route, "genro_navigator.core.route.Route"):
            route = self.resolve(route)
        if mode is RouteMatchType.ROUTE:
            return bool(route.matched) and len(route.matched) == len(current.matched) and all(
                a is b for a, b in zip(route.matched, current.matched)
            )
        if mode is RouteMatchType.EXACT:
            return route.full_path == current.full_path
        return current.full_path.startswith(route.full_path)

    # ------------------------------------------------------------------
    # Global hooks
    # ------------------------------------------------------------------
    def before_each(self, guard: Guard) -> Callable[[], None]:
        self._before_each.append(guard)
        return lambda: self.un_before_each(guard)

    def un_before_each(self, guard: Guard) -> None:
        if guard in self._before_each:
            self._before_each.remove(guard)

    def after_each(self, hook: NotifyHook) -> Callable[[], None]:
        self._after_each.append(hook)
        return lambda: self.un_after_each(hook)

    def un_after_each(self, hook: NotifyHook) -> None:
        if hook in self._after_each:
            self._after_each.remove(hook)

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------
    @property
    def is_layer(self) -> bool:
        return self._layer_parent is not None

    @property
    def layer_parent(self) -> BaseRouter | None:
        return self._layer_parent

    @property
    def layer_root(self) -> BaseRouter:
        return self._layer_root

    @property
    def layer_children(self) -> tuple[BaseRouter, ...]:
        return tuple(self._layer_children)

    @property
    def layer_depth(self) -> int:
        depth, parent = 0, self._layer_parent
        while parent is not None:
            depth, parent = depth + 1, parent._layer_parent
        return depth

    def create_layer(self, **options: Any) -> BaseRouter:
        """Build a child router from this router's options.

        Layers keep their own in-memory history (``abstract`` mode) and their
        own render collaborator unless ``options`` say otherwise. Hooks and
        plugins are not inherited.
        """
        settings: dict[str, Any] = {
            "mode": RouterMode.ABSTRACT,
            "history": None,
            "substrate": None,
            "renderer": None,
        }
        settings.update(options)
        layer = type(self)(options=dataclasses.replace(self.options, **settings))
        layer._layer_parent = self
        layer._layer_root = self._layer_root
        self._layer_children.append(layer)
        return layer

    async def push_layer(
        self,
        location: RawLocation,
        *,
        should_close: Callable[[Route, Route | None, BaseRouter], Any] | None = None,
        **options: Any,
    ) -> BaseRouter:
        """Open a layer on ``location`` and return it.

        ``should_close(to, from_, layer)`` is consulted before every later
        navigation of the layer; a truthy answer closes the layer and aborts
        that navigation.
        """
        target = self.resolve(location)
        layer = self.create_layer(**options)
        if should_close is not None:

            async def close_when_asked(to: Route, from_: Route | None) -> Any:
                if not await invoke(should_close, to, from_, layer):
                    return None
                await layer.close_layer()
                return False

            layer.before_each(close_when_asked)
        await layer.replace(target.url)
        return layer

    async def close_layer(self, descendants: str = "clear") -> None:
        """Close this layer.

        ``descendants`` is ``"clear"`` (close every nested layer) or
        ``"hoisting"`` (hand direct children to the parent). On a top-level
        router ``"clear"`` closes its layers and the router itself stays open.
        """
        if descendants not in ("clear", "hoisting"):
            raise ValueError(f"descendants must be 'clear' or 'hoisting', got {descendants!r}")
        if descendants == "clear":
            await self._close_children()
        parent = self._layer_parent
        if parent is None:
            return
        if descendants == "hoisting":
            for child in self._layer_children:
                child._layer_parent = parent
                parent._layer_children.append(child)
            self._layer_children.clear()
        await self.destroy()

    async def _close_children(self) -> None:
        for child in list(self._layer_children):
            await child.close_layer()
        self._layer_children.clear()

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------
    async def call_hook(self, call: GuardCall, to: Route, from_: Route | None) -> Any:
        return await invoke(call.hook, to, from_)

    def iter_plugins(self) -> list[Any]:
        return []

    async def render_to_string(self, throw_error: bool = False) -> str:
        render = getattr(self.renderer, "render_to_string", None)
        if render is None:
            return ""
        return await invoke(render, throw_error=throw_error)

    async def destroy(self) -> None:
        """Stop in-flight transitions, detach history listeners, release the renderer.

        Nested layers are destroyed too, and a layer leaves its parent.
        """
        await self._close_children()
        parent, self._layer_parent = self._layer_parent, None
        if parent is not None and self in parent._layer_children:
            parent._layer_children.remove(self)
        self._transition.cancel()
        self.history.listen(None)
        self.history.destroy()
        for task in list(self._pop_tasks):
            task.cancel()
        self._before_each.clear()
        self._after_each.clear()
        await invoke(self.renderer.destroy)
