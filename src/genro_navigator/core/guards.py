# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Guard diff scheduler.

Decides which per-route hooks fire for a ``from -> to`` transition and runs
guard sequences, turning each hook result into a verdict.

Diff modes
----------
``diff_routes(to, from_)`` compares matched chains depth by depth, by node
identity:

- ``INITIAL``: no ``from_``; every depth of ``to`` enters (root -> leaf)
- ``UPDATE``: both chains are the very same nodes and ``full_path`` changed;
  every depth is updated (root -> leaf), nothing enters or leaves
- ``STRUCTURAL``: depths unique to ``from_`` leave (leaf -> root), depths
  unique to ``to`` enter (root -> leaf), shared ancestors run nothing

Verdicts
--------
``interpret_result`` maps a hook result to one of:

- ``Proceed``: ``None``, ``True`` or any unrecognised value
- ``Abort``: ``False``
- ``Redirect``: a string, ``RouteLocation`` or mapping
- ``Handle``: a callable; it takes the navigation over and nothing is committed
- ``Stale`` is produced by the runner when a newer transition has started
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from .location import RouteLocation
from .route_config import CompiledRouteConfig

if TYPE_CHECKING:  # pragma: no cover
    from .route import Route

__all__ = [
    "Phase",
    "DiffMode",
    "GuardDiff",
    "GuardCall",
    "Proceed",
    "Abort",
    "Redirect",
    "Handle",
    "Stale",
    "Verdict",
    "PROCEED",
    "ABORT",
    "STALE",
    "interpret_result",
    "diff_routes",
    "leave_calls",
    "enter_calls",
    "global_calls",
    "run_guards",
]


class Phase(str, Enum):
    """Hook kinds, as seen by plugins wrapping guard invocations."""

    REDIRECT = "redirect"
    OVERRIDE = "override"
    BEFORE_LEAVE = "before_leave"
    BEFORE_EACH = "before_each"
    BEFORE_ENTER = "before_enter"
    BEFORE_UPDATE = "before_update"
    AFTER_EACH = "after_each"


class DiffMode(str, Enum):
    INITIAL = "initial"
    UPDATE = "update"
    STRUCTURAL = "structural"


@dataclass(frozen=True)
class Proceed:
    pass


@dataclass(frozen=True)
class Abort:
    pass


@dataclass(frozen=True)
class Redirect:
    location: str | RouteLocation | Mapping[str, Any]


@dataclass(frozen=True)
class Handle:
    """Hand the navigation to ``handler(to, from_)`` instead of committing it."""

    handler: Callable[..., Any]


@dataclass(frozen=True)
class Stale:
    pass


Verdict = Union[Proceed, Abort, Redirect, Handle, Stale]

PROCEED = Proceed()
ABORT = Abort()
STALE = Stale()


def interpret_result(result: Any) -> Verdict:
    """Map a hook result to a verdict."""
    if result is False:
        return ABORT
    if isinstance(result, (str, RouteLocation, Mapping)):
        return Redirect(result)
    if callable(result):
        return Handle(result)
    return PROCEED


@dataclass(frozen=True)
class GuardDiff:
    """Per-route hook schedule for one transition.

    Attributes:
        mode: Diff mode that produced the schedule.
        leaving: Nodes to run ``before_leave`` on, leaf -> root.
        entering: Nodes to run ``before_enter`` on, root -> leaf.
        updating: Nodes to run ``before_update`` on, root -> leaf.
    """

    mode: DiffMode
    leaving: tuple[CompiledRouteConfig, ...] = ()
    entering: tuple[CompiledRouteConfig, ...] = ()
    updating: tuple[CompiledRouteConfig, ...] = ()


def diff_routes(to: Route, from_: Route | None) -> GuardDiff:
    """Compute which per-route hooks fire for ``from_ -> to``."""
    if from_ is None:
        return GuardDiff(DiffMode.INITIAL, entering=tuple(to.matched))

    old, new = from_.matched, to.matched
    same_chain = len(old) == len(new) and all(a is b for a, b in zip(old, new))
    if same_chain and to.full_path != from_.full_path:
        return GuardDiff(DiffMode.UPDATE, updating=tuple(new))

    def shared(depth: int) -> bool:
        return depth < len(old) and depth < len(new) and old[depth] is new[depth]

    leaving = tuple(node for depth, node in reversed(list(enumerate(old))) if not shared(depth))
    entering = tuple(node for depth, node in enumerate(new) if not shared(depth))
    return GuardDiff(DiffMode.STRUCTURAL, leaving=leaving, entering=entering)


@dataclass(frozen=True)
class GuardCall:
    """One scheduled hook invocation.

    Attributes:
        phase: Hook kind.
        hook: The user callable, invoked as ``hook(to, from_)``.
        node: Route node owning the hook, None for global hooks.
        index: Position in the global registry (global hooks only).
    """

    phase: Phase
    hook: Callable[..., Any]
    node: CompiledRouteConfig | None = None
    index: int | None = None

    @property
    def depth(self) -> int | None:
        return self.node.depth if self.node is not None else None

    @property
    def label(self) -> str:
        if self.node is not None:
            return self.node.absolute_path
        return f"#{self.index}" if self.index is not None else "*"


def _node_calls(phase: Phase, nodes: Iterable[CompiledRouteConfig]) -> list[GuardCall]:
    calls = []
    for node in nodes:
        hook = getattr(node, phase.value)
        if hook is not None:
            calls.append(GuardCall(phase, hook, node=node))
    return calls


def leave_calls(diff: GuardDiff) -> list[GuardCall]:
    return _node_calls(Phase.BEFORE_LEAVE, diff.leaving)


def enter_calls(diff: GuardDiff) -> list[GuardCall]:
    """``before_update`` calls in update mode, ``before_enter`` calls otherwise."""
    if diff.mode is DiffMode.UPDATE:
        return _node_calls(Phase.BEFORE_UPDATE, diff.updating)
    return _node_calls(Phase.BEFORE_ENTER, diff.entering)


def global_calls(phase: Phase, hooks: Sequence[Callable[..., Any]]) -> list[GuardCall]:
    """Snapshot a global registry, so unregistering mid-run does not skip hooks."""
    return [GuardCall(phase, hook, index=index) for index, hook in enumerate(list(hooks))]


async def run_guards(
    calls: Iterable[GuardCall],
    to: Route,
    from_: Route | None,
    *,
    call_hook: Callable[[GuardCall, Route, Route | None], Awaitable[Any]],
    is_current: Callable[[], bool],
) -> Verdict:
    """Run ``calls`` strictly in order, stopping at the first decisive verdict.

    Each hook is awaited before the next starts. After every hook the
    transition is checked for staleness. Exceptions propagate unchanged.
    """
    for call in calls:
        result = await call_hook(call, to, from_)
        if not is_current():
            return STALE
        verdict = interpret_result(result)
        if not isinstance(verdict, Proceed):
            return verdict
    return PROCEED
