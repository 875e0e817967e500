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

"""Tests for overlapping navigations and cooperative cancellation."""

import asyncio

import pytest

from genro_navigator import Router, RouteStatus


class RecordingRenderer:
    def __init__(self):
        self.updates = []

    def update(self, router, force=False):
        self.updates.append(router.route.full_path)

    def destroy(self):
        pass


@pytest.mark.asyncio
async def test_newer_navigation_supersedes_pending_one():
    gate = asyncio.Event()
    after = []

    async def slow(to, from_):
        await gate.wait()

    renderer = RecordingRenderer()
    routes = [{"path": "/"}, {"path": "/slow", "before_enter": slow}, {"path": "/fast"}]
    router = Router(routes=routes, renderer=renderer)
    await router.replace("/")
    router.after_each(lambda to, f: after.append(to.path))

    first = asyncio.create_task(router.push("/slow"))
    await asyncio.sleep(0)
    second = await router.push("/fast")
    gate.set()
    stale = await first

    assert stale.status is RouteStatus.ABORTED
    assert second.status is RouteStatus.SUCCESS
    assert router.route.path == "/fast"
    assert renderer.updates == ["/", "/fast"]
    assert after == ["/fast"]
    assert [entry.url for entry in router.history.entries] == ["/", "/fast"]


@pytest.mark.asyncio
async def test_latest_started_navigation_wins():
    async def delayed(to, from_):
        await asyncio.sleep(float(to.query["d"]))

    renderer = RecordingRenderer()
    router = Router(routes=[{"path": "/"}, {"path": "/p/:n", "before_enter": delayed}], renderer=renderer)
    await router.replace("/")

    tasks = [
        asyncio.create_task(router.push(f"/p/{n}?d={delay}"))
        for n, delay in (("1", 0.03), ("2", 0.01), ("3", 0.02))
    ]
    results = await asyncio.gather(*tasks)

    assert [route.status for route in results] == [
        RouteStatus.ABORTED,
        RouteStatus.ABORTED,
        RouteStatus.SUCCESS,
    ]
    assert router.route.params == {"n": "3"}
    assert renderer.updates == ["/", "/p/3?d=0.02"]


@pytest.mark.asyncio
async def test_stale_navigation_runs_no_further_hooks():
    gate = asyncio.Event()
    calls = []

    async def slow(to, from_):
        calls.append("parent")
        await gate.wait()

    routes = [
        {"path": "/"},
        {
            "path": "/slow",
            "before_enter": slow,
            "children": [{"path": "child", "before_enter": lambda to, f: calls.append("child")}],
        },
    ]
    router = Router(routes=routes)
    await router.replace("/")
    router.before_each(lambda to, f: calls.append(f"each {to.path}"))

    pending = asyncio.create_task(router.push("/slow/child"))
    await asyncio.sleep(0)
    await router.push("/")
    gate.set()
    stale = await pending

    assert stale.status is RouteStatus.ABORTED
    assert calls == ["each /slow/child", "parent", "each /"]
    assert router.route.path == "/"


@pytest.mark.asyncio
async def test_stale_redirect_is_not_followed():
    gate = asyncio.Event()
    entered = []

    async def slow(to, from_):
        await gate.wait()
        return "/elsewhere"

    routes = [
        {"path": "/"},
        {"path": "/slow", "before_enter": slow},
        {"path": "/fast"},
        {"path": "/elsewhere", "before_enter": lambda to, f: entered.append(to.path)},
    ]
    router = Router(routes=routes)
    await router.replace("/")

    pending = asyncio.create_task(router.push("/slow"))
    await asyncio.sleep(0)
    await router.push("/fast")
    gate.set()
    stale = await pending

    assert stale.status is RouteStatus.ABORTED
    assert entered == []
    assert router.route.path == "/fast"


@pytest.mark.asyncio
async def test_destroy_makes_in_flight_navigation_stale():
    gate = asyncio.Event()

    async def slow(to, from_):
        await gate.wait()

    router = Router(routes=[{"path": "/"}, {"path": "/slow", "before_enter": slow}])
    await router.replace("/")
    pending = asyncio.create_task(router.push("/slow"))
    await asyncio.sleep(0)

    await router.destroy()
    gate.set()
    stale = await pending
    assert stale.status is RouteStatus.ABORTED
    assert router.route.path == "/"


@pytest.mark.asyncio
async def test_epoch_increases_per_navigation():
    router = Router(routes=[{"path": "/"}, {"path": "/a"}])
    assert router.epoch == 0
    await router.replace("/")
    await router.push("/a")
    assert router.epoch == 2
