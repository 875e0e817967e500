# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Route definitions: authored ``RouteConfig`` and compiled nodes.

``RouteConfig`` is what applications write. It is read-only after
construction and can be given either as an instance or as a plain mapping
(``RouteConfig.from_mapping``), in which case ``meta_<key>`` entries are
folded into ``meta``::

    RouteConfig.from_mapping({"path": "/user/:id", "meta_title": "User"})
    # -> RouteConfig(path="/user/:id", meta={"title": "User"})

``CompiledRouteConfig`` is built once per router by the matcher. Its identity
is the identity used by the guard diff: two routes share a depth only when
the very same compiled node sits at that depth in both chains.

Selectors
---------
Fields that accept "a string, a function, or nothing" are normalised to closed
variants at compile time:

- ``app``: ``AppName`` / ``AppFactory`` / ``None``
- payload: ``ReadyPayload`` (``payload=`` given) / ``DeferredPayload``
  (``loader=`` given) / ``None``
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union
from urllib.parse import quote, unquote

from genro_toolbox import dictExtract

from .types import Guard, RawLocation

__all__ = [
    "RouteConfig",
    "CompiledRouteConfig",
    "AppName",
    "AppFactory",
    "AppSelector",
    "ReadyPayload",
    "DeferredPayload",
    "PayloadSource",
    "PathSegment",
    "app_selector",
    "payload_source",
]


@dataclass(frozen=True)
class AppName:
    """App selected by name from the router's ``apps`` mapping."""

    name: str


@dataclass(frozen=True)
class AppFactory:
    """App selected by a factory called with the router."""

    factory: Callable[[Any], Any]


AppSelector = Union[AppName, AppFactory, None]


@dataclass(frozen=True)
class ReadyPayload:
    """Payload supplied eagerly on the route definition."""

    value: Any


@dataclass(frozen=True)
class DeferredPayload:
    """Payload produced by a loader during the payload stage."""

    loader: Callable[[], Any]


PayloadSource = Union[ReadyPayload, DeferredPayload, None]


def app_selector(value: Any) -> AppSelector:
    """Normalise an ``app`` field into its closed variant."""
    if value is None or isinstance(value, (AppName, AppFactory)):
        return value
    if isinstance(value, str):
        return AppName(value)
    if callable(value):
        return AppFactory(value)
    raise TypeError(f"Route app must be a name or a factory, got {type(value).__name__}")


def payload_source(payload: Any, loader: Callable[[], Any] | None) -> PayloadSource:
    """Normalise ``payload``/``loader`` fields into their closed variant."""
    if payload is not None:
        return ReadyPayload(payload)
    if loader is None:
        return None
    if not callable(loader):
        raise TypeError(f"Route loader must be callable, got {type(loader).__name__}")
    return DeferredPayload(loader)


@dataclass(frozen=True)
class RouteConfig:
    """A user-declared node in the route tree.

    Attributes:
        path: Path template relative to the parent (``:name`` params, ``*name`` splat).
        children: Nested definitions (``RouteConfig`` or mappings).
        before_enter: Guard run when this node enters the matched chain.
        before_update: Guard run when the whole chain is retained but the URL changes.
        before_leave: Guard run when this node leaves the matched chain.
        redirect: Declarative redirect (location or ``(to, from_)`` callable).
        override: ``(to, from_)`` hook for non-initial active navigations; a
            callable result takes the navigation over as its handler.
        meta: Opaque user data.
        payload: Eagerly available content for the render collaborator.
        loader: Deferred content supplier (sync or async, no arguments).
        app: App selector (name in ``apps`` or factory).
    """

    path: str
    children: Sequence[RouteConfig | Mapping[str, Any]] = ()
    before_enter: Guard | None = None
    before_update: Guard | None = None
    before_leave: Guard | None = None
    redirect: RawLocation | Guard | None = None
    override: Guard | None = None
    meta: Mapping[str, Any] = field(default_factory=dict)
    payload: Any = None
    loader: Callable[[], Any] | None = None
    app: str | Callable[[Any], Any] | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RouteConfig:
        """Build a ``RouteConfig`` from a plain mapping.

        Raises:
            TypeError: on unknown keys or a missing ``path``.
        """
        options = dict(data)
        meta = dict(options.pop("meta", None) or {})
        meta.update(dictExtract(options, "meta_", slice_prefix=True, pop=False))
        core = {key: value for key, value in options.items() if not key.startswith("meta_")}
        return cls(meta=meta, **core)

    @classmethod
    def coerce(cls, value: RouteConfig | Mapping[str, Any]) -> RouteConfig:
        if isinstance(value, RouteConfig):
            return value
        if isinstance(value, Mapping):
            return cls.from_mapping(value)
        raise TypeError(f"Route definitions must be RouteConfig or mapping, got {type(value).__name__}")


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of an absolute route template.

    Static:  ``users``   (kind="static")
    Param:   ``:id``     (kind="param", name="id")
    Splat:   ``*rest``   (kind="splat", name="rest")
    """

    value: str
    kind: str = "static"
    name: str | None = None


class CompiledRouteConfig:
    """A ``RouteConfig`` augmented with its compiled matcher.

    Instances compare by identity. ``payload`` is the only mutable slot: it
    starts from the ready payload (if any) and is filled in by the payload
    stage the first time a deferred loader resolves.
    """

    __slots__ = (
        "config",
        "absolute_path",
        "segments",
        "param_names",
        "pattern",
        "parent",
        "children",
        "depth",
        "app",
        "payload_source",
        "payload",
        "meta",
    )

    def __init__(
        self,
        config: RouteConfig,
        *,
        absolute_path: str,
        segments: tuple[PathSegment, ...],
        pattern: re.Pattern[str],
        param_names: tuple[str, ...],
        parent: CompiledRouteConfig | None = None,
    ) -> None:
        self.config = config
        self.absolute_path = absolute_path
        self.segments = segments
        self.param_names = param_names
        self.pattern = pattern
        self.parent = parent
        self.children: list[CompiledRouteConfig] = []
        self.depth = 0 if parent is None else parent.depth + 1
        self.app = app_selector(config.app)
        self.payload_source = payload_source(config.payload, config.loader)
        self.payload = (
            self.payload_source.value if isinstance(self.payload_source, ReadyPayload) else None
        )
        self.meta = MappingProxyType(dict(config.meta))

    @property
    def path(self) -> str:
        return self.config.path

    @property
    def before_enter(self) -> Guard | None:
        return self.config.before_enter

    @property
    def before_update(self) -> Guard | None:
        return self.config.before_update

    @property
    def before_leave(self) -> Guard | None:
        return self.config.before_leave

    @property
    def redirect(self) -> RawLocation | Guard | None:
        return self.config.redirect

    @property
    def override(self) -> Guard | None:
        return self.config.override

    @property
    def needs_payload(self) -> bool:
        """True when a deferred loader is declared and has not resolved yet."""
        return isinstance(self.payload_source, DeferredPayload) and self.payload is None

    def match(self, path: str) -> dict[str, str] | None:
        """Match ``path`` against this node's absolute template.

        Returns:
            Extracted parameters (percent-decoded), or None when the path
            does not match. Repeated names keep the first (ancestor) value.
        """
        found = self.pattern.match(path)
        if found is None:
            return None

        params: dict[str, str] = {}
        for index, name in enumerate(self.param_names):
            value = found.group(f"p{index}")
            if value is not None and name not in params:
                params[name] = unquote(value)
        return params

    def compile_path(self, params: Mapping[str, Any]) -> str:
        """Build a concrete path from this node's template.

        Raises:
            KeyError: if a required parameter is missing.
        """
        parts: list[str] = []
        for segment in self.segments:
            if segment.kind == "static":
                parts.append(segment.value)
            elif segment.kind == "param":
                parts.append(quote(str(params[segment.name]), safe=""))
            else:
                value = params.get(segment.name, "") if segment.name else ""
                parts.append(quote(str(value), safe="/"))
        return "/" + "/".join(part for part in parts if part)

    def __repr__(self) -> str:
        return f"CompiledRouteConfig({self.absolute_path!r})"
