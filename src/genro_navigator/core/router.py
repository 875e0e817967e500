# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Navigation router with hook middleware.

``Router`` adds plugins to ``BaseRouter``. Plugin classes live in a process
wide registry keyed by ``plugin_code``; each router attaches its own
instances with ``plug`` and reaches them as attributes::

    from genro_navigator import Router

    router = Router(routes=[{"path": "/"}]).plug("logging", after=False)
    router.logging.configure(_target="before_each", before=False)
    router.set_plugin_enabled("after_each", "logging", False)

Every scheduled hook (route guards, ``before_each``, ``after_each`` and
callable redirects) is run through the attached plugins in attachment order,
the first plugin being the outermost wrapper. A plugin switched off for the
hook's phase is bypassed.
"""

from __future__ import annotations

from typing import Any

from genro_navigator.plugins._base_plugin import BasePlugin, HookCall, PhaseSettings

from .base_router import BaseRouter
from .guards import GuardCall
from .invoke import invoke
from .route import Route

__all__ = ["Router"]

_REGISTRY: dict[str, type[BasePlugin]] = {}


class Router(BaseRouter):
    """``BaseRouter`` with plugins."""

    __slots__ = BaseRouter.__slots__ + ("_plugins", "_plugins_by_name", "_plugin_info")

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._plugins: list[BasePlugin] = []
        self._plugins_by_name: dict[str, BasePlugin] = {}
        self._plugin_info: dict[str, dict[str, PhaseSettings]] = {}
        super().__init__(*args, **kwargs)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------
    @classmethod
    def register_plugin(cls, plugin_class: type[BasePlugin], name: str | None = None) -> None:
        """Make ``plugin_class`` available to ``plug``.

        Registering the same class twice is a no-op. An explicit ``name``
        replaces whatever was registered under it.

        Raises:
            TypeError: ``plugin_class`` is not a ``BasePlugin`` subclass.
            ValueError: no ``plugin_code``, or the code belongs to another class.
        """
        if not (isinstance(plugin_class, type) and issubclass(plugin_class, BasePlugin)):
            raise TypeError(f"Expected a BasePlugin subclass, got {plugin_class!r}")
        if not plugin_class.plugin_code:
            raise ValueError(f"{plugin_class.__name__} does not define plugin_code")
        key = name or plugin_class.plugin_code
        current = _REGISTRY.get(key)
        if name is None and current is not None and current is not plugin_class:
            raise ValueError(f"Plugin code '{key}' is taken by {current.__name__}")
        _REGISTRY[key] = plugin_class

    @classmethod
    def available_plugins(cls) -> dict[str, type[BasePlugin]]:
        return dict(_REGISTRY)

    # ------------------------------------------------------------------
    # Attachment
    # ------------------------------------------------------------------
    def plug(self, plugin: str, **config: Any) -> Router:
        """Attach the registered plugin ``plugin``, configured with ``config``.

        Returns the router so calls can be chained.
        """
        if not isinstance(plugin, str):
            raise TypeError(f"plug() takes a plugin name, got {type(plugin).__name__}")
        plugin_class = _REGISTRY.get(plugin)
        if plugin_class is None:
            known = ", ".join(sorted(_REGISTRY)) or "none"
            raise ValueError(f"Unknown plugin '{plugin}' (registered: {known})")
        if plugin in self._plugins_by_name:
            raise ValueError(f"Plugin '{plugin}' is already plugged; call configure() instead")
        instance = plugin_class(self, **config)
        self._plugins.append(instance)
        self._plugins_by_name[plugin] = instance
        return self

    def iter_plugins(self) -> list[BasePlugin]:
        return list(self._plugins)

    def get_config(self, plugin_name: str, phase: str | None = None) -> dict[str, Any]:
        """Settings of ``plugin_name``, with ``phase`` overrides applied."""
        return self._attached(plugin_name).configuration(phase)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._attached(name)

    # ------------------------------------------------------------------
    # Per-phase switches
    # ------------------------------------------------------------------
    def _attached(self, plugin_name: str) -> BasePlugin:
        plugin = self._plugins_by_name.get(plugin_name)
        if plugin is None:
            raise AttributeError(f"Plugin '{plugin_name}' is not plugged into this router")
        return plugin

    def set_plugin_enabled(self, phase: str, plugin_name: str, enabled: bool = True) -> None:
        """Switch a plugin on or off for one phase (``"_all_"`` for every phase)."""
        self._attached(plugin_name)._settings(phase).enabled = bool(enabled)

    def is_plugin_enabled(self, phase: str, plugin_name: str) -> bool:
        return self._attached(plugin_name).is_enabled(phase)

    # ------------------------------------------------------------------
    # Hook pipeline
    # ------------------------------------------------------------------
    async def call_hook(self, call: GuardCall, to: Route, from_: Route | None) -> Any:
        async def run_hook(to: Route, from_: Route | None) -> Any:
            return await invoke(call.hook, to, from_)

        chain: HookCall = run_hook
        for plugin in reversed(self._plugins):
            chain = self._gate(plugin, call, chain)
        return await chain(to, from_)

    def _gate(self, plugin: BasePlugin, call: GuardCall, inner: HookCall) -> HookCall:
        wrapped = plugin.wrap_guard(self, call, inner)
        phase = call.phase.value

        async def gated(to: Route, from_: Route | None) -> Any:
            handler = wrapped if plugin.is_enabled(phase) else inner
            return await handler(to, from_)

        return gated
