# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Navigation input and URL normalisation.

A navigation target is either a bare string or a ``RouteLocation`` (a mapping
is validated into one)::

    "/user/1?tab=info#top"
    {"path": "/user/:id", "params": {"id": "1"}, "query": {"tab": "info"}}

Strings and ``path``/``url`` fields are normalised against the router base:

- ``//host/x``  inherits the base scheme
- ``/x``        resolves under the base directory (``http://h/app/`` -> ``http://h/app/x``)
- ``http://..`` absolute URLs are kept as they are
- anything else resolves against the current route URL, or the base
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict, Field

__all__ = ["RouteLocation", "DEFAULT_BASE", "normalize_url", "parse_location", "to_location"]

DEFAULT_BASE = "http://localhost/"


class RouteLocation(BaseModel):
    """Structured navigation target.

    Attributes:
        path: Target path or URL (normalised like a bare string).
        url: Alternative to ``path``; ``path`` wins when both are given.
        params: Values applied onto the matched leaf template.
        query: Single-valued query overrides (``None`` drops the key's values).
        query_array: Multi-valued query overrides; wins over ``query``.
        hash: Fragment, with or without the leading ``#``.
        state: Entry state stored in history with the route.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    path: str | None = None
    url: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    query: dict[str, Any] = Field(default_factory=dict)
    query_array: dict[str, list[Any] | None] = Field(default_factory=dict, alias="queryArray")
    hash: str | None = None
    state: dict[str, Any] = Field(default_factory=dict)


def to_location(raw: Any) -> str | RouteLocation:
    """Coerce raw navigation input into a string or a ``RouteLocation``.

    Raises:
        pydantic.ValidationError: if a mapping carries unknown keys or bad values.
        TypeError: for any other input type.
    """
    if isinstance(raw, (str, RouteLocation)):
        return raw
    if isinstance(raw, Mapping):
        return RouteLocation.model_validate(dict(raw))
    raise TypeError(f"Navigation target must be a string or a location, got {type(raw).__name__}")


def normalize_url(url: str, base: str) -> str:
    """Resolve ``url`` against ``base`` and return an absolute URL."""
    base_parts = urlsplit(base)
    if url.startswith("//"):
        return f"{base_parts.scheme}:{url}"

    if url.startswith("/"):
        base_dir = urljoin(base, ".")
        parsed = urlsplit(urljoin(base_dir, url))
        prefix = urlsplit(base_dir).path[:-1]
        return urlunsplit(parsed._replace(path=prefix + parsed.path))

    parts = urlsplit(url)
    if parts.scheme and parts.netloc:
        return url if parts.path else urlunsplit(parts._replace(path="/"))
    return urljoin(base, url)


def _merge_query(search: str, location: RouteLocation) -> str:
    overrides: dict[str, list[Any]] = {}
    for key, value in location.query.items():
        overrides[key] = value if isinstance(value, list) else [value]
    for key, values in location.query_array.items():
        overrides[key] = list(values or [])
    if not overrides:
        return search

    pairs = [(key, value) for key, value in parse_qsl(search, keep_blank_values=True) if key not in overrides]
    for key, values in overrides.items():
        pairs.extend((key, str(value)) for value in values if value is not None)
    return urlencode(pairs)


def parse_location(raw: str | RouteLocation, base: str, current_url: str | None = None) -> str:
    """Build the absolute URL for a navigation target.

    Args:
        raw: Bare string or ``RouteLocation``.
        base: Router base URL.
        current_url: URL of the committed route, used for relative targets.

    Query precedence is ``query_array`` > ``query`` > query already in the path.
    """
    relative_base = current_url or base

    if isinstance(raw, str):
        return normalize_url(raw, base if raw.startswith("/") else relative_base)

    target = raw.path if raw.path is not None else raw.url
    if target is None:
        url = relative_base
    else:
        url = normalize_url(target, base if target.startswith("/") else relative_base)

    parts = urlsplit(url)
    query = _merge_query(parts.query, raw)
    fragment = parts.fragment
    if raw.hash:
        fragment = raw.hash[1:] if raw.hash.startswith("#") else raw.hash
    return urlunsplit(parts._replace(query=query, fragment=fragment))
