"""Render collaborator: mounts the app selected by the current route.

The engine only calls ``renderer.update(router, force=...)`` after each
commit and ``renderer.destroy()`` when the router is destroyed. Anything that
satisfies ``RenderAdapter`` can be passed as the ``renderer`` option.

``AppSwitcher`` is the default adapter. It picks an app factory from the root
node of the current matched chain:

- ``AppName``: looked up in the ``apps`` mapping option
- ``AppFactory``: called directly
- otherwise a callable ``apps`` option is used for every route

A factory is called with the router and returns an app object exposing
``mount(root)`` and ``unmount()`` (sync or async) and, optionally,
``render_to_string()``. When the factory changes, or ``force`` is set, the new
app is mounted on the ``root`` option and the previous one is unmounted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .invoke import invoke
from .route_config import AppFactory, AppName

if TYPE_CHECKING:  # pragma: no cover
    from .router import Router

__all__ = ["RenderAdapter", "AppSwitcher"]

logger = logging.getLogger("genro_navigator")


@runtime_checkable
class RenderAdapter(Protocol):
    def update(self, router: Router, force: bool = False) -> Any: ...

    def destroy(self) -> Any: ...


class AppSwitcher:
    """Default ``RenderAdapter``: one mounted app at a time."""

    def __init__(self) -> None:
        self.app: Any = None
        self.root: Any = None
        self._factory: Callable[[Any], Any] | None = None

    def select_factory(self, router: Router) -> Callable[[Any], Any] | None:
        route = router.current_route
        if route is None or not route.matched:
            return None
        selector = route.matched[0].app
        apps = router.options.apps
        if isinstance(selector, AppName) and isinstance(apps, Mapping):
            factory = apps.get(selector.name)
            if factory is None:
                logger.warning("App '%s' is not registered in router apps", selector.name)
            return factory
        if isinstance(selector, AppFactory):
            return selector.factory
        if callable(apps) and not isinstance(apps, Mapping):
            return apps
        return None

    async def update(self, router: Router, force: bool = False) -> None:
        factory = self.select_factory(router)
        if not force and factory is self._factory:
            return
        old_app = self.app
        app = factory(router) if factory is not None else None
        if app is not None and hasattr(app, "mount"):
            root = self.root if self.root is not None else router.options.root
            mounted = await invoke(app.mount, root)
            self.root = mounted if mounted is not None else root
        self.app = app
        self._factory = factory
        if old_app is not None and hasattr(old_app, "unmount"):
            await invoke(old_app.unmount)

    async def destroy(self) -> None:
        app, self.app, self._factory = self.app, None, None
        if app is not None and hasattr(app, "unmount"):
            await invoke(app.unmount)

    async def render_to_string(self, throw_error: bool = False) -> str:
        """Render the mounted app, or ``""`` when nothing is mounted.

        Args:
            throw_error: Re-raise render failures instead of logging them.
        """
        render = getattr(self.app, "render_to_string", None)
        if render is None:
            return ""
        try:
            return await invoke(render) or ""
        except Exception:
            if throw_error:
                raise
            logger.exception("render_to_string failed")
            return ""
