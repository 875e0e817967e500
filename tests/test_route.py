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

"""Tests for route resolution and the route model."""

import pytest

from genro_navigator import RouteStatus, RouteType
from genro_navigator.core.matcher import RouteMatcher
from genro_navigator.core.route import RouteResolver

ROUTES = [
    {"path": "/"},
    {"path": "/user", "children": [{"path": ":id", "meta_title": "User"}]},
]


def _resolver(base="http://localhost/app/", **kwargs):
    return RouteResolver(RouteMatcher(ROUTES), base, **kwargs)


def test_resolve_splits_url_parts():
    route = _resolver().resolve("push", "/user/1?tab=a&tab=b#top")
    assert route.url == "http://localhost/app/user/1?tab=a&tab=b#top"
    assert route.path == "/user/1"
    assert route.search == "?tab=a&tab=b"
    assert route.hash == "#top"
    assert route.full_path == "/user/1?tab=a&tab=b#top"
    assert route.query == {"tab": "a"}
    assert route.query_array == {"tab": ["a", "b"]}
    assert route.params == {"id": "1"}
    assert route.type is RouteType.PUSH
    assert route.status is RouteStatus.PENDING
    assert route.config is route.matched[-1]
    assert route.meta["title"] == "User"


def test_resolve_without_search_or_hash():
    route = _resolver().resolve("replace", "/")
    assert route.search == ""
    assert route.hash == ""
    assert route.full_path == "/"
    assert len(route.matched) == 1


def test_outside_base_is_unmatched():
    route = _resolver().resolve("push", "http://localhost/other")
    assert route.matched == ()
    assert route.config is None
    assert route.full_path == "/other"
    assert dict(route.meta) == {}


def test_other_origin_is_unmatched():
    route = _resolver().resolve("push", "http://example.com/app/user/1")
    assert route.matched == ()
    assert route.url == "http://example.com/app/user/1"


def test_base_without_trailing_slash_matches_root():
    route = _resolver().resolve("push", "http://localhost/app")
    assert route.path == "/"
    assert len(route.matched) == 1
    assert route.matched[0].absolute_path == "/"
    assert _resolver().resolve("push", "http://localhost/application").matched == ()


def test_params_are_applied_onto_template():
    route = _resolver().resolve("push", {"path": "/user/:id", "params": {"id": 7}})
    assert route.params == {"id": "7"}
    assert route.path == "/user/7"
    assert route.url == "http://localhost/app/user/7"


def test_relative_target_uses_from_url():
    route = _resolver().resolve("push", "x", "http://localhost/app/user/1")
    assert route.params == {"id": "x"}


def test_normalize_url_option_post_processes():
    def rewrite(url, from_url):
        return url.replace("/old/", "/user/")

    route = _resolver(base="http://localhost/", normalize_url=rewrite).resolve("push", "/old/3")
    assert route.params == {"id": "3"}


def test_state_is_copied_from_location():
    state = {"a": 1}
    route = _resolver().resolve("push", {"path": "/", "state": state})
    assert route.state == {"a": 1}
    route.set_state("b", 2)
    assert state == {"a": 1}


def test_is_push_derived_from_type():
    resolver = _resolver()
    assert resolver.resolve("push", "/").is_push
    assert resolver.resolve("pushWindow", "/").is_push
    assert not resolver.resolve("replace", "/").is_push
    assert not resolver.resolve("replaceWindow", "/").is_push


def test_unknown_route_type_rejected():
    with pytest.raises(ValueError):
        _resolver().resolve("teleport", "/")


def test_merge_state_keeps_existing_keys():
    route = _resolver().resolve("push", {"path": "/", "state": {"a": 1}})
    route.merge_state({"b": 2})
    assert route.state == {"a": 1, "b": 2}


def test_frozen_route_is_read_only():
    route = _resolver().resolve("push", "/user/1?x=1")
    route.status = RouteStatus.SUCCESS
    assert route.freeze() is route
    assert route.frozen

    with pytest.raises(AttributeError):
        route.status = RouteStatus.ERROR
    with pytest.raises(AttributeError):
        route.merge_state({"a": 1})
    with pytest.raises(AttributeError):
        route.set_state("a", 1)
    with pytest.raises(TypeError):
        route.state["a"] = 1  # type: ignore[index]
    with pytest.raises(TypeError):
        route.params["id"] = "2"  # type: ignore[index]
    assert route.query_array["x"] == ("1",)
    # Freezing twice is harmless.
    route.freeze()


def test_clone_is_fresh_and_pending():
    route = _resolver().resolve("push", {"path": "/user/1", "state": {"k": 1}})
    route.status = RouteStatus.SUCCESS
    route.freeze()

    copy = route.clone()
    assert copy is not route
    assert copy.status is RouteStatus.PENDING
    assert not copy.frozen
    assert copy.full_path == route.full_path
    assert copy.type is route.type
    assert copy.state == {"k": 1}
    assert copy.matched == route.matched


def test_clone_keeps_unmatched_origin():
    route = _resolver().resolve("push", "http://example.com/x")
    assert route.clone().url == "http://example.com/x"


def test_repr_mentions_path_and_status():
    route = _resolver().resolve("push", "/user/1")
    assert "'/user/1'" in repr(route)
    assert "'pending'" in repr(route)
