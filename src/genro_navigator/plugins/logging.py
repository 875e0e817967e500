"""Hook tracing for Genro Navigator.

Plugged with ``router.plug("logging")``. Each wrapped hook produces::

    before_enter[/user/:id] start
    before_enter[/user/:id] end (0.12 ms)

and each committed navigation a line such as ``push / -> /user/1``.

Settings (router-wide or per phase via ``_target``):

    ``enabled``  run at all (True)
    ``before``   emit the start line (True)
    ``after``    emit the end line with elapsed time (True)
    ``log``      write through the ``genro_navigator`` logger (True)
    ``print``    write to stdout instead (False)

Without handlers on the logger, lines go to stdout.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from genro_navigator.core.guards import GuardCall
from genro_navigator.core.router import Router
from genro_navigator.plugins._base_plugin import BasePlugin, HookCall

_DEFAULTS = {"enabled": True, "before": True, "after": True, "log": True, "print": False}


class LoggingPlugin(BasePlugin):
    plugin_code = "logging"
    plugin_description = "Traces hooks and commits"

    __slots__ = ("_logger",)

    def __init__(self, router, *, logger: logging.Logger | None = None, **settings):
        self._logger = logger or logging.getLogger("genro_navigator")
        super().__init__(router, **settings)

    def configure(  # type: ignore[override]
        self,
        enabled: bool = True,
        before: bool = True,
        after: bool = True,
        log: bool = True,
        print: bool = False,  # noqa: A002
    ):
        pass

    def _settings_for(self, phase: str | None) -> dict[str, bool]:
        merged = {**_DEFAULTS, **self.configuration(phase)}
        return {
            key: bool(default if merged[key] is None else merged[key])
            for key, default in _DEFAULTS.items()
        }

    def _write(self, line: str, settings: dict[str, bool]) -> None:
        if settings["print"]:
            print(line)
        elif settings["log"]:
            logger = self._logger
            has_handlers = getattr(logger, "hasHandlers", None) or getattr(logger, "has_handlers", None)
            if has_handlers is not None and has_handlers():
                logger.info(line)
            else:
                print(line)

    def wrap_guard(self, router, call: GuardCall, call_next: HookCall):
        tag = f"{call.phase.value}[{call.label}]"
        phase = call.phase.value

        async def traced(to, from_):
            settings = self._settings_for(phase)
            if not settings["enabled"]:
                return await call_next(to, from_)
            if settings["before"]:
                self._write(f"{tag} start", settings)
            started = time.perf_counter()
            result = await call_next(to, from_)
            if settings["after"]:
                elapsed_ms = (time.perf_counter() - started) * 1000
                self._write(f"{tag} end ({elapsed_ms:.2f} ms)", settings)
            return result

        return traced

    def on_commit(self, router, to, from_) -> Any:
        settings = self._settings_for(None)
        if settings["enabled"]:
            origin = "-" if from_ is None else from_.full_path
            self._write(f"{to.type.value} {origin} -> {to.full_path}", settings)


Router.register_plugin(LoggingPlugin)
