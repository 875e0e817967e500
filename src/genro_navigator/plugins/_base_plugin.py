"""Plugin contract for Genro Navigator.

A plugin is a ``BasePlugin`` subclass registered once with
``Router.register_plugin`` and attached per router with ``router.plug(name)``.
A plugin can:

- wrap every hook invocation (``wrap_guard``), outermost plugin first
- observe committed navigations (``on_commit``)
- declare its settings as the keyword signature of ``configure``

Settings
--------
Settings are kept on the router (``router._plugin_info``) as one
``PhaseSettings`` per plugin and phase. ``"_all_"`` holds router-wide values;
a guard phase (``before_enter``, ``after_each``...) overrides them for that
phase only. ``configure`` validates its arguments with pydantic before
storing them::

    router.plug("logging")
    router.logging.configure(_target="after_each", enabled=False)
    router.logging.configure(flags="before:off")
    router.logging.configure(_target="before_enter,before_leave", after=False)

Example::

    from genro_navigator.plugins._base_plugin import BasePlugin

    class TimingPlugin(BasePlugin):
        plugin_code = "timing"
        plugin_description = "Collects hook timings"

        def configure(self, enabled: bool = True, threshold_ms: float = 10.0):
            pass

        def wrap_guard(self, router, call, call_next):
            async def timed(to, from_):
                result = await call_next(to, from_)
                return result
            return timed
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from functools import wraps
from typing import TYPE_CHECKING, Any

from pydantic import validate_call

from genro_navigator.core.guards import Phase

if TYPE_CHECKING:  # pragma: no cover
    from genro_navigator.core.guards import GuardCall
    from genro_navigator.core.route import Route

__all__ = ["ALL_PHASES", "BasePlugin", "HookCall", "PhaseSettings", "parse_flags", "split_targets"]

ALL_PHASES = "_all_"

HookCall = Callable[["Route", "Route | None"], Awaitable[Any]]


@dataclass
class PhaseSettings:
    """Settings of one plugin for one phase.

    Attributes:
        config: Values stored by ``configure``.
        enabled: Runtime override set by ``Router.set_plugin_enabled``.
    """

    config: dict[str, Any] = field(default_factory=dict)
    enabled: bool | None = None


def parse_flags(flags: str) -> dict[str, bool]:
    """``"before:off,after"`` -> ``{"before": False, "after": True}``."""
    parsed: dict[str, bool] = {}
    for item in (part.strip() for part in flags.split(",")):
        if item:
            name, _, value = item.partition(":")
            parsed[name.strip()] = value.strip().lower() != "off"
    return parsed


def split_targets(target: str) -> list[str]:
    """Split a settings target into phase keys.

    Raises:
        ValueError: for an empty target or an unknown phase name.
    """
    targets = [part.strip() for part in target.split(",") if part.strip()]
    known = {ALL_PHASES, *(phase.value for phase in Phase)}
    unknown = [name for name in targets if name not in known]
    if not targets or unknown:
        phases = ", ".join(phase.value for phase in Phase)
        raise ValueError(f"Invalid plugin target {target!r}: use '{ALL_PHASES}' or one of {phases}")
    return targets


def _settings_writer(configure: Callable[..., Any]) -> Callable[..., None]:
    validated = validate_call(configure)

    @wraps(configure)
    def write(
        self: BasePlugin, *, _target: str = ALL_PHASES, flags: str | None = None, **settings: Any
    ) -> None:
        if flags:
            settings = {**parse_flags(flags), **settings}
        targets = split_targets(_target)
        validated(self, **settings)
        if settings:
            for target in targets:
                self._settings(target).config.update(settings)

    return write


class BasePlugin:
    """Base class for router plugins.

    Subclasses set ``plugin_code`` (and usually ``plugin_description``) and
    override only the hooks they need.
    """

    __slots__ = ("name", "_router")

    plugin_code: str = ""
    plugin_description: str = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        declared = cls.__dict__.get("configure")
        if declared is not None:
            cls.configure = _settings_writer(declared)  # type: ignore[method-assign]

    def __init__(self, router: Any, **config: Any):
        self.name = self.plugin_code
        self._router = router
        self._settings(ALL_PHASES).config.setdefault("enabled", True)
        self.configure(**config)

    def _settings(self, phase: str) -> PhaseSettings:
        store: dict[str, PhaseSettings] = self._router._plugin_info.setdefault(self.name, {})
        return store.setdefault(phase, PhaseSettings())

    def configuration(self, phase: str | None = None) -> dict[str, Any]:
        """Router-wide settings, overlaid with ``phase`` settings when given."""
        store = self._router._plugin_info.get(self.name, {})
        merged = dict(store[ALL_PHASES].config) if ALL_PHASES in store else {}
        if phase and phase in store:
            merged.update(store[phase].config)
        return merged

    def is_enabled(self, phase: str) -> bool:
        """Whether the plugin runs for ``phase``.

        The phase is consulted before ``"_all_"``; within each, a runtime
        override wins over a configured ``enabled`` value. Default: True.
        """
        store = self._router._plugin_info.get(self.name, {})
        for key in (phase, ALL_PHASES):
            settings = store.get(key)
            if settings is None:
                continue
            if settings.enabled is not None:
                return settings.enabled
            if "enabled" in settings.config:
                return bool(settings.config["enabled"])
        return True

    # ------------------------------------------------------------------
    # Hooks for subclasses
    # ------------------------------------------------------------------
    def configure(self, *, _target: str = ALL_PHASES, flags: str | None = None) -> None:
        """Declare accepted settings by overriding with keyword parameters.

        The override's body is not run for storage: the wrapper installed by
        ``__init_subclass__`` parses ``flags``, resolves ``_target``, validates
        the keywords against the override's signature and stores them.
        """
        if flags:
            for target in split_targets(_target):
                self._settings(target).config.update(parse_flags(flags))

    def wrap_guard(self, router: Any, call: GuardCall, call_next: HookCall) -> HookCall:
        """Return a coroutine function ``(to, from_)`` wrapping ``call_next``.

        ``call`` describes the scheduled hook (``phase``, ``hook``, ``node``,
        ``label``). The wrapper may replace the hook result.
        """
        return call_next

    def on_commit(self, router: Any, to: Route, from_: Route | None) -> Any:
        """Observe a committed navigation (sync or async).

        Called after the render collaborator and before ``after_each`` hooks.
        Exceptions are logged and never affect the navigation.
        """
        return None
