# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Transition controller: runs navigation requests and commits routes.

Every request goes through ``TransitionController.transition_to``:

1. resolve the target against the committed route
2. unmatched targets go to the ``fallback`` option and return directly
3. bump the epoch and capture it
4. run the stages registered for the navigation type (``STAGES``)
5. commit, unless a newer transition started meanwhile

Stage table
-----------
::

    push, replace                RESOLVE_LOCATION OVERRIDE BEFORE_LEAVE BEFORE_EACH BEFORE_ENTER PAYLOAD COMMIT
    reload, restartApp           RESOLVE_LOCATION BEFORE_LEAVE BEFORE_EACH BEFORE_ENTER PAYLOAD COMMIT
    back, forward, go, popstate  BEFORE_LEAVE BEFORE_EACH BEFORE_ENTER PAYLOAD COMMIT
    pushWindow                   RESOLVE_LOCATION OVERRIDE BEFORE_EACH WINDOW
    replaceWindow                RESOLVE_LOCATION OVERRIDE BEFORE_LEAVE BEFORE_EACH WINDOW

A hook (or the route ``override``) returning a callable hands the navigation
to it: ``handle_result = await handler(to, from_)``, the route settles
``success`` and nothing is committed.

Cancellation is cooperative: a superseded transition keeps running its
in-flight hook, but the epoch is checked after every hook and before every
stage, so it never runs further hooks and never commits. It settles
``aborted``.

Redirects restart the loop with the returned location and the same
navigation type, relative to the route that redirected. The chain is
bounded by the ``max_redirects`` option.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

from genro_navigator.exceptions import NavigationError, RedirectLimitExceeded, SelfRedirectError

from .guards import (
    PROCEED,
    STALE,
    GuardCall,
    GuardDiff,
    Handle,
    Phase,
    Proceed,
    Redirect,
    Verdict,
    diff_routes,
    enter_calls,
    global_calls,
    interpret_result,
    leave_calls,
    run_guards,
)
from .invoke import invoke
from .payload import load_payloads
from .route import Route
from .types import REPLAY_TYPES, RawLocation, RouteStatus, RouteType

if TYPE_CHECKING:  # pragma: no cover
    from .router import Router

__all__ = ["Stage", "STAGES", "TransitionController"]

logger = logging.getLogger("genro_navigator")


class Stage(str, Enum):
    RESOLVE_LOCATION = "resolve_location"
    OVERRIDE = "override"
    BEFORE_LEAVE = "before_leave"
    BEFORE_EACH = "before_each"
    BEFORE_ENTER = "before_enter"
    PAYLOAD = "payload"
    COMMIT = "commit"
    WINDOW = "window"


_NAVIGATE = (
    Stage.RESOLVE_LOCATION,
    Stage.BEFORE_LEAVE,
    Stage.BEFORE_EACH,
    Stage.BEFORE_ENTER,
    Stage.PAYLOAD,
    Stage.COMMIT,
)
_REPLAY = _NAVIGATE[1:]
_ACTIVE = (Stage.RESOLVE_LOCATION, Stage.OVERRIDE, *_REPLAY)

STAGES: Mapping[RouteType, tuple[Stage, ...]] = MappingProxyType(
    {
        RouteType.PUSH: _ACTIVE,
        RouteType.REPLACE: _ACTIVE,
        RouteType.RELOAD: _NAVIGATE,
        RouteType.RESTART_APP: _NAVIGATE,
        RouteType.BACK: _REPLAY,
        RouteType.FORWARD: _REPLAY,
        RouteType.GO: _REPLAY,
        RouteType.POPSTATE: _REPLAY,
        RouteType.PUSH_WINDOW: (
            Stage.RESOLVE_LOCATION,
            Stage.OVERRIDE,
            Stage.BEFORE_EACH,
            Stage.WINDOW,
        ),
        RouteType.REPLACE_WINDOW: (
            Stage.RESOLVE_LOCATION,
            Stage.OVERRIDE,
            Stage.BEFORE_LEAVE,
            Stage.BEFORE_EACH,
            Stage.WINDOW,
        ),
        RouteType.RESOLVE: (),
    }
)

_REMOUNT_TYPES = frozenset({RouteType.RELOAD, RouteType.RESTART_APP})

StageHandler = Callable[[Route, "Route | None", GuardDiff, int], Awaitable[Verdict]]


class TransitionController:
    """Owns the epoch and the committed route of one router.

    Attributes:
        epoch: Number of the most recently started transition.
        current: Committed route, None before the first commit.
    """

    def __init__(self, router: Router) -> None:
        self.router = router
        self.epoch = 0
        self.current: Route | None = None
        self._handlers: dict[Stage, StageHandler] = {
            Stage.RESOLVE_LOCATION: self._resolve_location,
            Stage.OVERRIDE: self._override,
            Stage.BEFORE_LEAVE: self._before_leave,
            Stage.BEFORE_EACH: self._before_each,
            Stage.BEFORE_ENTER: self._before_enter,
            Stage.PAYLOAD: self._payload,
            Stage.COMMIT: self._commit,
            Stage.WINDOW: self._window,
        }

    def is_current(self, epoch: int) -> bool:
        return epoch == self.epoch

    def cancel(self) -> None:
        """Make every in-flight transition stale."""
        self.epoch += 1

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    async def transition_to(self, route_type: RouteType | str, raw: RawLocation) -> Route:
        """Run a navigation request to completion.

        Returns:
            The settled route: the committed one, the last of a redirect
            chain, or an aborted one.

        Raises:
            Exception: whatever a hook, loader or collaborator raised.
            RedirectLimitExceeded: when redirects exceed ``max_redirects``.
            SelfRedirectError: when a hook redirects to the target itself.
        """
        route_type = RouteType(route_type)
        if route_type is RouteType.RESOLVE:
            raise ValueError("'resolve' routes are built by Router.resolve, not navigated to")

        relative_to = self.current.url if self.current is not None else None
        redirects = 0
        while True:
            from_ = self.current
            to = self.router.resolver.resolve(route_type, raw, relative_to)
            if not to.matched:
                return await self._fallback(to, from_)

            self.epoch += 1
            epoch = self.epoch
            verdict = await self._run(to, from_, epoch)

            if isinstance(verdict, Redirect):
                redirects += 1
                self._check_redirect(to, verdict, redirects)
                raw, relative_to = verdict.location, to.url
                self._settle(to, RouteStatus.ABORTED)
                continue
            if isinstance(verdict, Handle):
                return await self._hand_over(to, from_, verdict.handler)
            if not isinstance(verdict, Proceed):
                if not self.is_current(epoch):
                    logger.debug("Discarding stale navigation to %s", to.full_path)
                self._settle(to, RouteStatus.ABORTED)
            return to

    async def _run(self, to: Route, from_: Route | None, epoch: int) -> Verdict:
        diff = diff_routes(to, from_)
        try:
            for stage in STAGES[to.type]:
                if not self.is_current(epoch):
                    return STALE
                verdict = await self._handlers[stage](to, from_, diff, epoch)
                if not isinstance(verdict, Proceed):
                    return verdict
        except Exception as exc:
            if isinstance(exc, NavigationError) and exc.route is None:
                exc.route = to
            self._settle(to, RouteStatus.ERROR)
            logger.exception("Navigation to %s failed", to.full_path)
            raise
        return PROCEED

    def _check_redirect(self, to: Route, verdict: Redirect, redirects: int) -> None:
        limit = self.router.options.max_redirects
        try:
            if redirects > limit:
                raise RedirectLimitExceeded(limit, to)
            target = self.router.resolver.resolve(to.type, verdict.location, to.url)
            if target.url == to.url:
                raise SelfRedirectError(to.full_path, to)
        except Exception:
            self._settle(to, RouteStatus.ERROR)
            logger.exception("Redirect from %s rejected", to.full_path)
            raise
        logger.debug("Redirecting %s -> %s", to.full_path, target.full_path)

    @staticmethod
    def _settle(route: Route, status: RouteStatus) -> None:
        if not route.frozen:
            route.status = status
            route.freeze()

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    async def _guards(self, calls: list[GuardCall], to: Route, from_: Route | None, epoch: int) -> Verdict:
        return await run_guards(
            calls,
            to,
            from_,
            call_hook=self.router.call_hook,
            is_current=lambda: self.is_current(epoch),
        )

    async def _resolve_location(self, to: Route, from_: Route | None, diff: GuardDiff, epoch: int) -> Verdict:
        assert to.config is not None
        redirect = to.config.redirect
        if redirect is None:
            return PROCEED
        if not callable(redirect):
            return interpret_result(redirect)
        call = GuardCall(Phase.REDIRECT, redirect, node=to.config)
        result = await self.router.call_hook(call, to, from_)
        if not self.is_current(epoch):
            return STALE
        return interpret_result(result)

    async def _override(self, to: Route, from_: Route | None, diff: GuardDiff, epoch: int) -> Verdict:
        assert to.config is not None
        override = to.config.override
        if override is None or from_ is None:
            return PROCEED
        call = GuardCall(Phase.OVERRIDE, override, node=to.config)
        result = await self.router.call_hook(call, to, from_)
        if not self.is_current(epoch):
            return STALE
        return Handle(result) if callable(result) else PROCEED

    async def _before_leave(self, to: Route, from_: Route | None, diff: GuardDiff, epoch: int) -> Verdict:
        return await self._guards(leave_calls(diff), to, from_, epoch)

    async def _before_each(self, to: Route, from_: Route | None, diff: GuardDiff, epoch: int) -> Verdict:
        calls = global_calls(Phase.BEFORE_EACH, self.router.before_each_hooks)
        return await self._guards(calls, to, from_, epoch)

    async def _before_enter(self, to: Route, from_: Route | None, diff: GuardDiff, epoch: int) -> Verdict:
        return await self._guards(enter_calls(diff), to, from_, epoch)

    async def _payload(self, to: Route, from_: Route | None, diff: GuardDiff, epoch: int) -> Verdict:
        await load_payloads(to.matched)
        return PROCEED

    async def _commit(self, to: Route, from_: Route | None, diff: GuardDiff, epoch: int) -> Verdict:
        history = self.router.history
        url_changed = from_ is None or to.url != from_.url
        if to.type is RouteType.PUSH and url_changed:
            state = history.push(to)
        elif to.type in REPLAY_TYPES and not url_changed:
            # The adapter already sits on this entry.
            state = {}
        else:
            state = history.replace(to)
        to.merge_state(state)
        to.status = RouteStatus.SUCCESS
        to.freeze()
        self.current = to

        await invoke(self.router.renderer.update, self.router, force=to.type in _REMOUNT_TYPES)
        await self._notify(to, from_)
        return PROCEED

    async def _window(self, to: Route, from_: Route | None, diff: GuardDiff, epoch: int) -> Verdict:
        await self._run_handler(to, from_, self.router.options.fallback)
        await self._notify(to, from_, committed=False)
        return PROCEED

    # ------------------------------------------------------------------
    # Fallback and notifications
    # ------------------------------------------------------------------
    async def _run_handler(self, to: Route, from_: Route | None, handler: Callable[..., object]) -> Route:
        to.handle = handler
        to.handle_result = await invoke(handler, to, from_)
        to.status = RouteStatus.SUCCESS
        return to.freeze()

    async def _fallback(self, to: Route, from_: Route | None) -> Route:
        try:
            return await self._run_handler(to, from_, self.router.options.fallback)
        except Exception:
            self._settle(to, RouteStatus.ERROR)
            logger.exception("Fallback for %s failed", to.url)
            raise

    async def _hand_over(self, to: Route, from_: Route | None, handler: Callable[..., object]) -> Route:
        try:
            await self._run_handler(to, from_, handler)
        except Exception:
            self._settle(to, RouteStatus.ERROR)
            logger.exception("Handler for %s failed", to.full_path)
            raise
        await self._notify(to, from_, committed=False)
        return to

    async def _notify(self, to: Route, from_: Route | None, committed: bool = True) -> None:
        """Run commit observers; a failing observer never blocks the others."""
        for plugin in self.router.iter_plugins() if committed else ():
            try:
                await invoke(plugin.on_commit, self.router, to, from_)
            except Exception:
                logger.exception("Plugin %s failed on commit to %s", plugin.name, to.full_path)
        for call in global_calls(Phase.AFTER_EACH, self.router.after_each_hooks):
            try:
                await self.router.call_hook(call, to, from_)
            except Exception:
                logger.exception("after_each hook %s failed for %s", call.label, to.full_path)
