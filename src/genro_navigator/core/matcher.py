"""Route matcher: compiles a route tree and matches paths against it.

``compile_routes(tree)`` turns the authored tree into ``CompiledRouteConfig``
nodes (one per declared node, parent/children links preserved) and returns
the flat depth-first list. ``RouteMatcher.match(path)`` walks the compiled
roots in declaration order.

Template syntax
---------------
- ``users``      static segment, matched literally
- ``:id``        one path segment, captured as ``params["id"]``
- ``*rest``      the remainder of the path (one or more segments)
- ``*``          anonymous splat, not captured

Absolute paths join the parent's absolute path and the node's own template;
a child declared with an empty path shares its parent's absolute path::

    [{"path": "/user", "children": [{"path": ""}, {"path": ":id"}]}]
    # "/user"     -> [user, user/""]
    # "/user/42"  -> [user, user/:id]  params={"id": "42"}

Matching
--------
Children are tried before their parent, so the deepest matching definition
wins, and the first match in declaration order is taken. A trailing slash on
the input is tolerated. No match yields an empty chain, never an error.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .route_config import CompiledRouteConfig, PathSegment, RouteConfig

__all__ = ["RouteMatcher", "MatchResult", "compile_routes", "join_pathname", "parse_template"]


@dataclass(frozen=True)
class MatchResult:
    """Result of ``RouteMatcher.match``.

    Attributes:
        matched: Root-first chain of compiled nodes (empty when nothing matched).
        params: Extracted path parameters.
    """

    matched: tuple[CompiledRouteConfig, ...] = ()
    params: dict[str, str] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.matched)


def join_pathname(pathname: str, base: str = "") -> str:
    """Join ``base`` and ``pathname`` into a normalised absolute path."""
    return "/" + "/".join(part for part in f"{base}/{pathname}".split("/") if part)


def parse_template(absolute_path: str) -> list[PathSegment]:
    """Parse an absolute template into segments.

    Examples::

        "/users"        -> [PathSegment("users")]
        "/users/:id"    -> [PathSegment("users"), PathSegment(":id", "param", "id")]
        "/files/*path"  -> [PathSegment("files"), PathSegment("*path", "splat", "path")]
    """
    segments: list[PathSegment] = []
    for part in absolute_path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith(":") and len(part) > 1:
            segments.append(PathSegment(part, kind="param", name=part[1:]))
        elif part.startswith("*"):
            segments.append(PathSegment(part, kind="splat", name=part[1:] or None))
        else:
            segments.append(PathSegment(part))
    return segments


def _compile_pattern(segments: list[PathSegment]) -> tuple[re.Pattern[str], tuple[str, ...]]:
    """Build the anchored regex for a template.

    Groups are named positionally (``p0``, ``p1``...) so a name may repeat
    across depths; ``param_names[i]`` gives the user-facing name of ``p<i>``.
    """
    chunks: list[str] = []
    names: list[str] = []
    for segment in segments:
        if segment.kind == "static":
            chunks.append("/" + re.escape(segment.value))
        elif segment.kind == "param":
            chunks.append(f"/(?P<p{len(names)}>[^/]+)")
            names.append(segment.name or "")
        elif segment.name:
            chunks.append(f"/(?P<p{len(names)}>.+)")
            names.append(segment.name)
        else:
            chunks.append("/.+")
    body = "".join(chunks)
    return re.compile(f"^{body}/?$" if body else "^/?$"), tuple(names)


def _compile_node(
    config: RouteConfig | Mapping[str, Any],
    parent: CompiledRouteConfig | None,
    flat: list[CompiledRouteConfig],
) -> CompiledRouteConfig:
    config = RouteConfig.coerce(config)
    absolute_path = join_pathname(config.path, parent.absolute_path if parent else "")
    segments = parse_template(absolute_path)
    pattern, names = _compile_pattern(segments)
    node = CompiledRouteConfig(
        config,
        absolute_path=absolute_path,
        segments=tuple(segments),
        pattern=pattern,
        param_names=names,
        parent=parent,
    )
    flat.append(node)
    node.children = [_compile_node(child, node, flat) for child in config.children]
    return node


def compile_routes(tree: Iterable[RouteConfig | Mapping[str, Any]]) -> list[CompiledRouteConfig]:
    """Compile a route tree, returning every node depth-first (parents first)."""
    flat: list[CompiledRouteConfig] = []
    for config in tree:
        _compile_node(config, None, flat)
    return flat


class RouteMatcher:
    """Compiled lookup structure for one router.

    Usage::

        matcher = RouteMatcher([{"path": "/"}, {"path": "/user/:id"}])
        result = matcher.match("/user/1")
        result.params  # {"id": "1"}
    """

    __slots__ = ("_flat", "_roots")

    def __init__(self, tree: Iterable[RouteConfig | Mapping[str, Any]] = ()) -> None:
        self._flat = compile_routes(tree)
        self._roots = [node for node in self._flat if node.parent is None]

    @property
    def routes(self) -> list[CompiledRouteConfig]:
        """All compiled nodes, depth-first in declaration order."""
        return list(self._flat)

    @property
    def roots(self) -> list[CompiledRouteConfig]:
        return list(self._roots)

    def match(self, path: str) -> MatchResult:
        """Match ``path`` (base-relative, starting with ``/``) against the tree."""
        found = self._collect(self._roots, path or "/")
        if found is None:
            return MatchResult()
        chain, params = found
        return MatchResult(matched=tuple(chain), params=params)

    def _collect(
        self, nodes: list[CompiledRouteConfig], path: str
    ) -> tuple[list[CompiledRouteConfig], dict[str, str]] | None:
        for node in nodes:
            if node.children:
                found = self._collect(node.children, path)
                if found is not None:
                    chain, params = found
                    return [node, *chain], params
            params = node.match(path)
            if params is not None:
                return [node], params
        return None
