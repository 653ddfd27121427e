from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

pytestmark = pytest.mark.repo_local


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from signed_pipeline.core.errors import MalformedPluginReference
from signed_pipeline.core.plugins import (
    PluginReference,
    canonicalize_plugin_json,
    canonicalize_plugins,
    plugin_from_reference,
    resolve_plugin_name,
)


# ---------------------------------------------------------------------------
# Reference resolution
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "name,expected",
    [
        ("docker", "github.com/buildkite-plugins/docker-buildkite-plugin"),
        ("docker#v1.4.0", "github.com/buildkite-plugins/docker-buildkite-plugin#v1.4.0"),
        ("docker-compose#v3", "github.com/buildkite-plugins/docker-compose-buildkite-plugin#v3"),
        ("seek-oss/custom-plugin", "github.com/seek-oss/custom-plugin-buildkite-plugin"),
        ("seek-oss/custom-plugin#v2.0.1", "github.com/seek-oss/custom-plugin-buildkite-plugin#v2.0.1"),
        # already qualified / custom forms pass through
        (
            "github.com/buildkite-plugins/docker-buildkite-plugin#v1",
            "github.com/buildkite-plugins/docker-buildkite-plugin#v1",
        ),
        ("ssh://git@example.com/acme/thing.git#v1", "ssh://git@example.com/acme/thing.git#v1"),
        ("file:///plugins/local", "file:///plugins/local"),
        ("a/b/c", "a/b/c"),
        # trailing newline is kept
        ("docker#v1\n", "docker#v1\n"),
        ("seek-oss/thing\n", "seek-oss/thing\n"),
        ("", ""),
    ],
)
def test_resolve_plugin_name(name: str, expected: str) -> None:
    assert resolve_plugin_name(name) == expected


def test_resolve_is_idempotent_on_qualified_names() -> None:
    once = resolve_plugin_name("seek-oss/custom-plugin#v1")
    assert resolve_plugin_name(once) == once


class TestPluginFromReference:
    def test_bare_string(self) -> None:
        assert plugin_from_reference("docker#v1") == PluginReference("docker#v1", None)

    def test_mapping_with_params(self) -> None:
        ref = plugin_from_reference({"docker#v1": {"image": "node:7"}})
        assert ref.name == "docker#v1"
        assert ref.params == {"image": "node:7"}
        assert ref.repository == "github.com/buildkite-plugins/docker-buildkite-plugin#v1"

    def test_mapping_with_null_params(self) -> None:
        assert plugin_from_reference({"cache#v1": None}).params is None

    def test_non_mapping_params_are_dropped(self) -> None:
        assert plugin_from_reference({"cache#v1": "oops"}).params is None

    @pytest.mark.parametrize("item", [42, None, True, ["docker"], {}, {"a": {}, "b": {}}])
    def test_unresolvable_shapes_rejected(self, item: object) -> None:
        with pytest.raises(MalformedPluginReference):
            plugin_from_reference(item)


# ---------------------------------------------------------------------------
# Canonicalization
# ---------------------------------------------------------------------------

def test_single_plugin_canonical_form() -> None:
    out = canonicalize_plugins([{"docker#v0.0.4": {"image": "foo"}}])
    assert out == '[{"github.com/buildkite-plugins/docker-buildkite-plugin#v0.0.4":{"image":"foo"}}]'


def test_array_and_map_syntax_canonicalize_identically() -> None:
    as_array = [
        {"seek-oss/custom-plugin#v1": {"b": 2, "a": 1}},
        "cache#v2",
        {"docker#v1": {"image": "node", "always-pull": True}},
    ]
    as_map = {
        "docker#v1": {"always-pull": True, "image": "node"},
        "cache#v2": None,
        "seek-oss/custom-plugin#v1": {"a": 1, "b": 2},
    }
    assert canonicalize_plugins(as_array) == canonicalize_plugins(as_map)


def test_entries_sorted_by_qualified_reference() -> None:
    out = json.loads(canonicalize_plugins(["zeta", "seek-oss/alpha", "alpha"]))
    keys = [next(iter(e)) for e in out]
    assert keys == [
        "github.com/buildkite-plugins/alpha-buildkite-plugin",
        "github.com/buildkite-plugins/zeta-buildkite-plugin",
        "github.com/seek-oss/alpha-buildkite-plugin",
    ]


def test_duplicate_references_keep_authored_order() -> None:
    out = json.loads(canonicalize_plugins([{"docker": {"n": 2}}, {"docker": {"n": 1}}]))
    assert [e["github.com/buildkite-plugins/docker-buildkite-plugin"]["n"] for e in out] == [2, 1]


def test_nested_params_keys_are_sorted() -> None:
    out = canonicalize_plugins([{"docker": {"z": {"y": 1, "x": 2}, "a": [3, {"d": 4, "c": 5}]}}])
    assert out == (
        '[{"github.com/buildkite-plugins/docker-buildkite-plugin":'
        '{"a":[3,{"c":5,"d":4}],"z":{"x":2,"y":1}}}]'
    )


def test_non_ascii_is_kept_verbatim() -> None:
    assert "ü" in canonicalize_plugins([{"docker": {"label": "grüße"}}])


@pytest.mark.parametrize("plugins", [[], {}, None])
def test_empty_plugin_sets_canonicalize_to_empty_string(plugins: object) -> None:
    assert canonicalize_plugins(plugins) == ""


@pytest.mark.parametrize("plugins", ["docker", 3, True, [1], [["docker"]]])
def test_invalid_plugins_values_rejected(plugins: object) -> None:
    with pytest.raises(MalformedPluginReference):
        canonicalize_plugins(plugins)


class TestCanonicalizePluginJson:
    def test_transport_json_matches_sign_side(self) -> None:
        sign_side = canonicalize_plugins({"seek-oss/custom-plugin": {"a-setting": True}, "my-plugin": {"my-setting": True}})
        # agent re-emits qualified names, possibly in another order and with whitespace
        transport = json.dumps(
            [
                {"github.com/seek-oss/custom-plugin-buildkite-plugin": {"a-setting": True}},
                {"github.com/buildkite-plugins/my-plugin-buildkite-plugin": {"my-setting": True}},
            ],
            indent=2,
        )
        assert canonicalize_plugin_json(transport) == sign_side

    def test_is_a_fixed_point(self) -> None:
        canonical = canonicalize_plugins(["b", {"a": {"k": "v"}}])
        assert canonicalize_plugin_json(canonical) == canonical

    @pytest.mark.parametrize("text", ["", "   ", "[]", "null"])
    def test_empty_inputs(self, text: str) -> None:
        assert canonicalize_plugin_json(text) == ""

    def test_invalid_json_rejected(self) -> None:
        with pytest.raises(MalformedPluginReference, match="plugin JSON invalid"):
            canonicalize_plugin_json("[{not json")

    def test_invalid_shape_rejected(self) -> None:
        with pytest.raises(MalformedPluginReference):
            canonicalize_plugin_json("[42]")
