# Copyright 2025 Softwell S.r.l. - All Rights Reserved
# SPDX-License-Identifier: Apache-2.0
"""Exceptions for Genro Navigator.

This module defines the exceptions raised by the transition engine.

Aborted and redirected navigations are *not* exceptions: they settle the
navigation with ``status == RouteStatus.ABORTED`` or with the final route of
the redirect chain. Exceptions are reserved for failures.

A guard that raises propagates its own exception unchanged; the classes below
cover faults the engine itself detects.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .core.route import Route

__all__ = [
    "NavigationError",
    "RouteNotReady",
    "GuardError",
    "RedirectLimitExceeded",
    "SelfRedirectError",
    "PayloadLoadError",
]


class NavigationError(Exception):
    """Base class for errors raised by the navigation engine.

    Attributes:
        route: The route being navigated to when the error happened, if any.
    """

    def __init__(self, message: str, route: Route | None = None) -> None:
        self.route = route
        super().__init__(message)


class RouteNotReady(NavigationError):
    """Raised when ``router.route`` is read before the first committed navigation."""

    def __init__(self) -> None:
        super().__init__("Route is not ready.")


class GuardError(NavigationError):
    """Raised when the guard pipeline is misconfigured.

    Exceptions raised *by* a guard are re-raised as they are; this class is
    used when the engine refuses to continue a redirect chain.
    """


class RedirectLimitExceeded(GuardError):
    """Raised when a navigation follows more redirects than allowed.

    Attributes:
        limit: The configured maximum number of redirects.
    """

    def __init__(self, limit: int, route: Route | None = None) -> None:
        self.limit = limit
        target = route.full_path if route is not None else "?"
        super().__init__(
            f"Navigation to '{target}' exceeded the maximum of {limit} redirects", route
        )


class SelfRedirectError(GuardError):
    """Raised when a guard redirects to the URL being navigated to.

    Attributes:
        full_path: The path that redirected to itself.
    """

    def __init__(self, full_path: str, route: Route | None = None) -> None:
        self.full_path = full_path
        super().__init__(
            f"Detected a self-redirection to '{full_path}'. Aborting navigation.", route
        )


class PayloadLoadError(NavigationError):
    """Raised when a deferred payload loader fails or returns an invalid value.

    Attributes:
        path: Absolute path of the route node whose loader failed.
    """

    def __init__(self, path: str, reason: str, route: Route | None = None) -> None:
        self.path = path
        super().__init__(f"Payload for route '{path}' could not be loaded: {reason}", route)
