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

"""Tests for route tree compilation and path matching."""

import pytest

from genro_navigator.core.matcher import RouteMatcher, join_pathname, parse_template
from genro_navigator.core.route_config import (
    AppFactory,
    AppName,
    DeferredPayload,
    ReadyPayload,
    RouteConfig,
)

ROUTES = [
    {"path": "/"},
    {
        "path": "/user",
        "meta_section": "users",
        "children": [
            {"path": ""},
            {"path": ":id", "meta_title": "User"},
            {"path": ":id/posts/:post"},
        ],
    },
    {"path": "/files/*rest"},
    {"path": "/about"},
]


def _paths(result):
    return [node.absolute_path for node in result.matched]


def test_join_pathname_normalises_slashes():
    assert join_pathname("b", "/a/") == "/a/b"
    assert join_pathname("", "/a") == "/a"
    assert join_pathname("/") == "/"
    assert join_pathname("//x//y/") == "/x/y"


def test_parse_template_kinds():
    segments = parse_template("/users/:id/*rest")
    assert [(s.kind, s.name) for s in segments] == [
        ("static", None),
        ("param", "id"),
        ("splat", "rest"),
    ]
    assert parse_template("/") == []


def test_compile_flattens_depth_first():
    matcher = RouteMatcher(ROUTES)
    assert [node.absolute_path for node in matcher.routes] == [
        "/",
        "/user",
        "/user",
        "/user/:id",
        "/user/:id/posts/:post",
        "/files/*rest",
        "/about",
    ]
    assert len(matcher.roots) == 4
    index = matcher.routes[2]
    assert index.depth == 1
    assert index.parent is matcher.routes[1]


def test_match_root_and_static():
    matcher = RouteMatcher(ROUTES)
    assert _paths(matcher.match("/")) == ["/"]
    assert _paths(matcher.match("/about")) == ["/about"]


def test_match_prefers_children_and_empty_child():
    matcher = RouteMatcher(ROUTES)
    result = matcher.match("/user")
    assert _paths(result) == ["/user", "/user"]
    assert result.matched[1].path == ""
    assert result.params == {}


def test_match_extracts_params():
    matcher = RouteMatcher(ROUTES)
    result = matcher.match("/user/42")
    assert _paths(result) == ["/user", "/user/:id"]
    assert result.params == {"id": "42"}

    nested = matcher.match("/user/42/posts/7")
    assert nested.params == {"id": "42", "post": "7"}
    assert nested.matched[-1].absolute_path == "/user/:id/posts/:post"


def test_match_tolerates_trailing_slash():
    matcher = RouteMatcher(ROUTES)
    assert matcher.match("/user/42/").params == {"id": "42"}
    assert _paths(matcher.match("/about/")) == ["/about"]


def test_match_percent_decodes_params():
    matcher = RouteMatcher(ROUTES)
    assert matcher.match("/user/a%20b").params == {"id": "a b"}


def test_splat_captures_remainder():
    matcher = RouteMatcher(ROUTES)
    assert matcher.match("/files/a/b.txt").params == {"rest": "a/b.txt"}
    assert not matcher.match("/files")


def test_no_match_is_empty_not_error():
    matcher = RouteMatcher(ROUTES)
    result = matcher.match("/nope")
    assert not result
    assert result.matched == ()
    assert result.params == {}


def test_first_declared_match_wins():
    matcher = RouteMatcher([{"path": "/a/:x"}, {"path": "/a/b"}])
    result = matcher.match("/a/b")
    assert result.matched[0].absolute_path == "/a/:x"
    assert result.params == {"x": "b"}


def test_repeated_param_name_keeps_ancestor_value():
    matcher = RouteMatcher([{"path": "/org/:id", "children": [{"path": "team/:id"}]}])
    result = matcher.match("/org/1/team/2")
    assert result.params == {"id": "1"}


def test_parent_matches_when_no_child_does():
    matcher = RouteMatcher([{"path": "/p", "children": [{"path": ":x"}]}])
    result = matcher.match("/p")
    assert _paths(result) == ["/p"]


def test_compile_path_quotes_params():
    matcher = RouteMatcher(ROUTES)
    node = matcher.match("/user/1").matched[-1]
    assert node.compile_path({"id": "a b"}) == "/user/a%20b"
    splat = matcher.match("/files/x").matched[-1]
    assert splat.compile_path({"rest": "a/b"}) == "/files/a/b"
    with pytest.raises(KeyError):
        node.compile_path({})


def test_meta_prefix_is_folded():
    config = RouteConfig.from_mapping({"path": "/x", "meta_title": "X", "meta": {"a": 1}})
    assert config.meta == {"a": 1, "title": "X"}

    matcher = RouteMatcher(ROUTES)
    node = matcher.match("/user/1").matched[-1]
    assert node.meta["title"] == "User"
    with pytest.raises(TypeError):
        node.meta["title"] = "other"  # type: ignore[index]


def test_unknown_keys_and_bad_definitions_rejected():
    with pytest.raises(TypeError):
        RouteMatcher([{"path": "/", "bogus": 1}])
    with pytest.raises(TypeError):
        RouteMatcher([42])  # type: ignore[list-item]


def test_config_instances_are_accepted():
    matcher = RouteMatcher([RouteConfig(path="/a", children=[RouteConfig(path="b")])])
    assert _paths(matcher.match("/a/b")) == ["/a", "/a/b"]


def test_selectors_are_normalised():
    def factory(router):
        return None

    def loader():
        return "content"

    matcher = RouteMatcher(
        [
            {"path": "/named", "app": "home"},
            {"path": "/built", "app": factory},
            {"path": "/ready", "payload": {"a": 1}, "loader": loader},
            {"path": "/lazy", "loader": loader},
        ]
    )
    named, built, ready, lazy = matcher.routes
    assert named.app == AppName("home")
    assert built.app == AppFactory(factory)
    assert isinstance(ready.payload_source, ReadyPayload)
    assert ready.payload == {"a": 1}
    assert not ready.needs_payload
    assert isinstance(lazy.payload_source, DeferredPayload)
    assert lazy.needs_payload

    with pytest.raises(TypeError):
        RouteMatcher([{"path": "/x", "app": 3}])
    with pytest.raises(TypeError):
        RouteMatcher([{"path": "/x", "loader": "not callable"}])
