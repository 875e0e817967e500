# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for the plugin registry, middleware pipeline and logging plugin."""

import logging

import pytest
from pydantic import ValidationError

# Import to trigger plugin registration
import genro_navigator.plugins.logging  # noqa: F401
from genro_navigator import BaseRouter, Router, RouteStatus
from genro_navigator.plugins._base_plugin import BasePlugin
from genro_navigator.plugins.logging import LoggingPlugin

ROUTES = [
    {"path": "/"},
    {"path": "/user/:id", "before_enter": lambda to, f: None},
]


class DummyLogger:
    def __init__(self):
        self.records = []

    def has_handlers(self):
        return True

    def info(self, message):
        self.records.append(message)


class DenyEachPlugin(BasePlugin):
    plugin_code = "deny_each"
    plugin_description = "Turns every before_each result into an abort"

    def wrap_guard(self, router, call, call_next):
        async def wrapper(to, from_):
            result = await call_next(to, from_)
            if call.phase.value == "before_each":
                return False
            return result

        return wrapper


class CommitRecorder(BasePlugin):
    plugin_code = "commit_recorder"
    plugin_description = "Records committed navigations"

    def configure(self, enabled: bool = True, fail: bool = False):
        pass

    def on_commit(self, router, to, from_):
        if self.configuration().get("fail"):
            raise RuntimeError("observer down")
        router.options.root.append((from_.full_path if from_ else None, to.full_path))


class OrderPlugin(BasePlugin):
    plugin_code = "order"

    def wrap_guard(self, router, call, call_next):
        async def wrapper(to, from_):
            router.options.root.append(f"order {call.label}")
            return await call_next(to, from_)

        return wrapper


Router.register_plugin(DenyEachPlugin)
Router.register_plugin(CommitRecorder)
Router.register_plugin(OrderPlugin)


def _logged_router(**config):
    router = Router(routes=ROUTES).plug("logging", **config)
    logger = DummyLogger()
    router.logging._logger = logger
    return router, logger


def test_registry_lists_builtin_plugins():
    available = Router.available_plugins()
    assert available["logging"] is LoggingPlugin
    assert "deny_each" in available


def test_register_plugin_validation():
    class NoCode(BasePlugin):
        pass

    class Other(BasePlugin):
        plugin_code = "logging"

    with pytest.raises(TypeError):
        Router.register_plugin(object)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        Router.register_plugin(NoCode)
    with pytest.raises(ValueError):
        Router.register_plugin(Other)
    # Same class twice is accepted.
    Router.register_plugin(LoggingPlugin)


def test_plug_validation_and_attribute_access():
    router = Router(routes=ROUTES)
    with pytest.raises(TypeError):
        router.plug(LoggingPlugin)  # type: ignore[arg-type]
    with pytest.raises(ValueError, match="Unknown plugin 'ghost'"):
        router.plug("ghost")
    assert router.plug("logging") is router
    with pytest.raises(ValueError):
        router.plug("logging")
    assert isinstance(router.logging, LoggingPlugin)
    with pytest.raises(AttributeError):
        router.ghost
    with pytest.raises(AttributeError):
        router._hidden
    assert router.iter_plugins() == [router.logging]


@pytest.mark.asyncio
async def test_logging_plugin_logs_hooks_and_commits():
    router, logger = _logged_router()
    await router.replace("/")
    await router.push("/user/1")
    assert "before_enter[/user/:id] start" in logger.records
    assert any(
        record.startswith("before_enter[/user/:id] end (") and record.endswith(" ms)")
        for record in logger.records
    )
    assert logger.records[-1] == "push / -> /user/1"
    assert "replace - -> /" in logger.records


@pytest.mark.asyncio
async def test_logging_plugin_flags_and_phase_targets():
    router, logger = _logged_router(flags="before:off")
    router.before_each(lambda to, f: None)
    router.logging.configure(_target="before_each", enabled=False)
    await router.replace("/")
    await router.push("/user/1")
    assert not any(record.endswith(" start") for record in logger.records)
    assert not any(record.startswith("before_each") for record in logger.records)
    assert any(record.startswith("before_enter[/user/:id] end") for record in logger.records)
    assert router.get_config("logging", "before_each") == {
        "enabled": False,
        "before": False,
    }


@pytest.mark.asyncio
async def test_logging_plugin_falls_back_to_print(capsys):
    router = Router(routes=ROUTES).plug("logging", print=True)
    await router.replace("/")
    assert "replace - -> /" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_logging_plugin_uses_std_logger(caplog):
    handler = logging.NullHandler()
    target = logging.getLogger("genro_navigator")
    target.addHandler(handler)
    try:
        router = Router(routes=ROUTES).plug("logging")
        with caplog.at_level(logging.INFO, logger="genro_navigator"):
            await router.replace("/")
    finally:
        target.removeHandler(handler)
    assert "replace - -> /" in caplog.text


def test_configure_validates_inputs():
    router = Router(routes=ROUTES).plug("logging")
    with pytest.raises(ValidationError):
        router.logging.configure(before="not-a-bool")
    with pytest.raises(ValidationError):
        router.logging.configure(unknown=True)
    router.logging.configure(_target="before_enter, before_leave", after=False)
    assert router.get_config("logging", "before_enter")["after"] is False
    assert router.get_config("logging", "before_leave")["after"] is False
    with pytest.raises(AttributeError):
        router.get_config("ghost")


@pytest.mark.asyncio
async def test_set_plugin_enabled_per_phase():
    router, logger = _logged_router()
    router.before_each(lambda to, f: None)
    router.set_plugin_enabled("before_enter", "logging", False)
    assert not router.is_plugin_enabled("before_enter", "logging")
    assert router.is_plugin_enabled("before_each", "logging")

    await router.replace("/")
    await router.push("/user/1")
    assert not any(record.startswith("before_enter") for record in logger.records)
    assert any(record.startswith("before_each[#0]") for record in logger.records)

    with pytest.raises(AttributeError):
        router.set_plugin_enabled("before_enter", "ghost", False)
    with pytest.raises(AttributeError):
        router.is_plugin_enabled("before_enter", "ghost")


@pytest.mark.asyncio
async def test_plugin_can_replace_hook_result():
    router = Router(routes=ROUTES).plug("deny_each")
    router.before_each(lambda to, f: None)
    route = await router.replace("/")
    assert route.status is RouteStatus.ABORTED

    router.set_plugin_enabled("_all_", "deny_each", False)
    route = await router.replace("/")
    assert route.status is RouteStatus.SUCCESS


@pytest.mark.asyncio
async def test_plugins_wrap_in_attachment_order():
    events = []
    router = Router(routes=ROUTES, root=events).plug("order").plug("logging", print=True)
    router.before_each(lambda to, f: events.append("hook"))
    await router.replace("/")
    assert events == ["order #0", "hook"]


@pytest.mark.asyncio
async def test_on_commit_observers_and_isolation(caplog):
    committed = []
    router = Router(routes=ROUTES, root=committed).plug("commit_recorder")
    await router.replace("/")
    await router.push("/user/1")
    assert committed == [(None, "/"), ("/", "/user/1")]

    router.commit_recorder.configure(fail=True)
    with caplog.at_level(logging.ERROR, logger="genro_navigator"):
        route = await router.push("/")
    assert route.status is RouteStatus.SUCCESS
    assert "Plugin commit_recorder failed on commit to /" in caplog.text


@pytest.mark.asyncio
async def test_base_router_has_no_plugins():
    router = BaseRouter(routes=ROUTES)
    assert router.iter_plugins() == []
    route = await router.replace("/")
    assert route.status is RouteStatus.SUCCESS
