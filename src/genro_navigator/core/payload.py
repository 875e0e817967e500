"""Payload stage: resolve deferred loaders for a matched chain."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from genro_navigator.exceptions import PayloadLoadError

from .invoke import invoke
from .route_config import CompiledRouteConfig, DeferredPayload

__all__ = ["pending_loaders", "load_payloads"]


def pending_loaders(matched: Sequence[CompiledRouteConfig]) -> list[CompiledRouteConfig]:
    """Nodes of ``matched`` whose deferred payload has not resolved yet."""
    return [node for node in matched if node.needs_payload]


async def _load(node: CompiledRouteConfig) -> None:
    source = node.payload_source
    assert isinstance(source, DeferredPayload)
    try:
        value = await invoke(source.loader)
    except Exception as exc:
        raise PayloadLoadError(node.absolute_path, f"{type(exc).__name__}: {exc}") from exc
    if value is None:
        raise PayloadLoadError(node.absolute_path, "loader returned None")
    node.payload = value


async def load_payloads(matched: Sequence[CompiledRouteConfig]) -> None:
    """Run every pending loader of ``matched`` concurrently and join them.

    Raises:
        PayloadLoadError: for the first loader (in chain order) that failed.
    """
    nodes = pending_loaders(matched)
    if not nodes:
        return
    results = await asyncio.gather(*(_load(node) for node in nodes), return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
