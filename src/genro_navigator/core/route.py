# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Route model: the resolved outcome of a navigation request.

A ``Route`` is built by ``RouteResolver.resolve`` from raw navigation input.
It starts ``pending`` and stays mutable while the transition runs (status,
handle, state); the controller freezes it once the transition settles.
After that, attribute assignment raises ``AttributeError`` and the mappings
it exposes are read-only.

URL parts follow the browser conventions:

- ``path``: pathname relative to the router base (``/user/1``)
- ``search``: ``?tab=info`` or ``""``
- ``hash``: ``#top`` or ``""``
- ``full_path``: ``path + search + hash``
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from .location import DEFAULT_BASE, RouteLocation, parse_location, to_location
from .matcher import MatchResult, RouteMatcher
from .route_config import CompiledRouteConfig
from .types import RawLocation, RouteStatus, RouteType

__all__ = ["Route", "RouteResolver"]

_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True)
class RouteResolver:
    """Everything needed to turn raw input into a ``Route``.

    Attributes:
        matcher: Compiled route tree.
        base: Absolute base URL; routes outside it resolve unmatched.
        normalize_url: Optional post-processor ``(url, from_url) -> url``.
    """

    matcher: RouteMatcher
    base: str = DEFAULT_BASE
    normalize_url: Callable[[str, str | None], str] | None = None

    @property
    def base_path(self) -> str:
        return urlsplit(self.base).path or "/"

    def resolve(
        self,
        route_type: RouteType | str,
        raw: RawLocation = "/",
        from_url: str | None = None,
    ) -> Route:
        """Build a pending ``Route``. Pure: no router or history state is touched."""
        return Route(
            route_type=RouteType(route_type),
            location=to_location(raw),
            resolver=self,
            from_url=from_url,
        )

    def _match(self, url: str) -> tuple[str, MatchResult | None]:
        parts = urlsplit(url)
        base = urlsplit(self.base)
        # "/app" is the base itself when the base is "/app/".
        root = self.base_path.rstrip("/")
        same_origin = (parts.scheme, parts.netloc) == (base.scheme, base.netloc)
        inside = parts.path == root or parts.path.startswith(root + "/")
        if not same_origin or not inside:
            return parts.path, None
        path = parts.path[len(root) :] or "/"
        return path, self.matcher.match(path)


class Route:
    """A resolved navigation outcome.

    Attributes:
        type: ``RouteType`` that produced the route.
        status: ``RouteStatus``; ``pending`` until the controller settles it.
        url: Absolute URL.
        matched: Root-first chain of compiled nodes (empty when unmatched).
        config: Leaf node of ``matched`` or None.
        meta: Leaf node meta (read-only).
        handle: Collaborator that produced ``handle_result`` (e.g. the fallback).
        handle_result: Result of the fallback or window collaborator.
    """

    __slots__ = (
        "type",
        "status",
        "url",
        "path",
        "full_path",
        "search",
        "hash",
        "params",
        "query",
        "query_array",
        "state",
        "matched",
        "config",
        "meta",
        "handle",
        "handle_result",
        "_resolver",
        "_frozen",
    )

    def __init__(
        self,
        *,
        route_type: RouteType,
        location: str | RouteLocation,
        resolver: RouteResolver,
        from_url: str | None = None,
    ) -> None:
        object.__setattr__(self, "_frozen", False)
        self._resolver = resolver
        self.type = route_type
        self.status = RouteStatus.PENDING
        self.handle: Any = None
        self.handle_result: Any = None

        url = parse_location(location, resolver.base, from_url)
        if resolver.normalize_url is not None:
            url = resolver.normalize_url(url, from_url)

        path, match = resolver._match(url)
        matched = match.matched if match else ()
        params = dict(match.params) if match else {}

        if matched and isinstance(location, RouteLocation) and location.params:
            user_params = {key: str(value) for key, value in location.params.items()}
            params.update(user_params)
            path = matched[-1].compile_path(params)
            parts = urlsplit(url)
            url = urlunsplit(parts._replace(path=resolver.base_path.rstrip("/") + path))

        parts = urlsplit(url)
        self.url = url
        self.path = path
        self.search = f"?{parts.query}" if parts.query else ""
        self.hash = f"#{parts.fragment}" if parts.fragment else ""
        self.full_path = f"{path}{self.search}{self.hash}"
        self.params = params
        self.matched: tuple[CompiledRouteConfig, ...] = matched
        self.config: CompiledRouteConfig | None = matched[-1] if matched else None
        self.meta = self.config.meta if self.config is not None else _EMPTY

        query: dict[str, str] = {}
        query_array: dict[str, list[str]] = {}
        for key, value in parse_qsl(parts.query, keep_blank_values=True):
            query.setdefault(key, value)
            query_array.setdefault(key, []).append(value)
        self.query = query
        self.query_array = query_array

        self.state: dict[str, Any] = dict(location.state) if isinstance(location, RouteLocation) else {}

    @property
    def is_push(self) -> bool:
        """True for navigation types that add a new entry (``push``, ``pushWindow``)."""
        return self.type.value.startswith("push")

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __setattr__(self, name: str, value: Any) -> None:
        if self._frozen:
            raise AttributeError(f"Route is frozen, cannot set '{name}'")
        object.__setattr__(self, name, value)

    def merge_state(self, new_state: Mapping[str, Any]) -> None:
        """Merge ``new_state`` into ``state`` without clearing existing keys."""
        self._check_mutable()
        self.state.update(new_state)

    def set_state(self, name: str, value: Any) -> None:
        self._check_mutable()
        self.state[name] = value

    def freeze(self) -> Route:
        """Make the route read-only. Idempotent."""
        if not self._frozen:
            self.state = MappingProxyType(self.state)
            self.params = MappingProxyType(self.params)
            self.query = MappingProxyType(self.query)
            self.query_array = MappingProxyType(
                {key: tuple(values) for key, values in self.query_array.items()}
            )
            object.__setattr__(self, "_frozen", True)
        return self

    def clone(self) -> Route:
        """Return a new pending route for the same URL, type and state."""
        location = RouteLocation(url=self.url, state=dict(self.state))
        return Route(route_type=self.type, location=location, resolver=self._resolver)

    def _check_mutable(self) -> None:
        if self._frozen:
            raise AttributeError("Route is frozen, its state is read-only")

    def __repr__(self) -> str:
        return f"Route(type={self.type.value!r}, full_path={self.full_path!r}, status={self.status.value!r})"
