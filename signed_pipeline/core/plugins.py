"""Plugin references and their canonical signing form.

Buildkite accepts plugins as a list (``- docker#v1: {...}``, ``- cache``) or
as a map (``docker#v1: {...}``) and the agent re-emits them, fully
qualified, as a JSON list in BUILDKITE_PLUGINS. Both sides of the round
trip are reduced to the same text here: a list of single-key objects keyed
by the qualified repository, sorted by that key, serialized canonically.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from signed_pipeline.core.errors import MalformedPluginReference
from signed_pipeline.core.json_canon import canonical_json_text
from signed_pipeline.core.value import value_kind


OFFICIAL_PLUGIN_NAMESPACE = "github.com/buildkite-plugins"
PLUGIN_SOURCE_HOST = "github.com"
PLUGIN_REPO_SUFFIX = "-buildkite-plugin"

# 'docker' and 'docker#v2'
_OFFICIAL_PLUGIN_RE = re.compile(r"^([A-Za-z0-9-]+)(#.+)?$")
# 'some-org/some-plugin' and 'some-org/some-plugin#v2'
_ORG_PLUGIN_RE = re.compile(r"^([A-Za-z0-9-]+/[A-Za-z0-9-]+)(#.+)?$")


def resolve_plugin_name(name: str) -> str:
    m = _OFFICIAL_PLUGIN_RE.fullmatch(name)
    if m:
        return f"{OFFICIAL_PLUGIN_NAMESPACE}/{m.group(1)}{PLUGIN_REPO_SUFFIX}{m.group(2) or ''}"
    m = _ORG_PLUGIN_RE.fullmatch(name)
    if m:
        return f"{PLUGIN_SOURCE_HOST}/{m.group(1)}{PLUGIN_REPO_SUFFIX}{m.group(2) or ''}"
    return name


@dataclass(frozen=True)
class PluginReference:
    name: str
    params: dict[str, Any] | None = None

    @property
    def repository(self) -> str:
        return resolve_plugin_name(self.name)

    def to_entry(self) -> dict[str, Any]:
        return {self.repository: self.params}


def plugin_from_reference(item: Any) -> PluginReference:
    """Build a PluginReference from one entry of the array syntax.

    Parameters that are not a mapping (e.g. ``docker#v1:`` with nothing
    after it) are recorded as None.
    """

    kind = value_kind(item)
    if kind == "string":
        return PluginReference(item, None)
    if kind == "mapping":
        if len(item) != 1:
            raise MalformedPluginReference(
                f"plugin reference must have exactly one key, got {len(item)}: {sorted(item)}"
            )
        ((name, settings),) = item.items()
        params = settings if isinstance(settings, dict) else None
        return PluginReference(str(name), params)
    raise MalformedPluginReference(f"unknown plugin reference type {kind}")


def parse_plugins(plugins: Any) -> list[PluginReference]:
    try:
        kind = value_kind(plugins)
    except TypeError as e:
        raise MalformedPluginReference(str(e)) from e

    if kind == "sequence":
        out: list[PluginReference] = []
        for i, item in enumerate(plugins):
            try:
                out.append(plugin_from_reference(item))
            except TypeError as e:
                raise MalformedPluginReference(f"plugins[{i}]: {e}") from e
            except MalformedPluginReference as e:
                raise MalformedPluginReference(f"plugins[{i}]: {e}") from e
        return out
    if kind == "mapping":
        # map syntax is treated as a list of single-key entries
        return [plugin_from_reference({k: v}) for k, v in plugins.items()]
    if kind == "null":
        return []
    raise MalformedPluginReference(f"unknown plugins type {kind}")


def canonicalize_plugins(plugins: Any) -> str:
    """Return the canonical plugin JSON for a ``plugins`` value ("" when empty)."""

    refs = parse_plugins(plugins)
    if not refs:
        return ""
    # sorted() is stable, so duplicates keep their authored order
    entries = sorted((ref.to_entry() for ref in refs), key=lambda e: next(iter(e)))
    return canonical_json_text(entries)


def canonicalize_plugin_json(plugin_json: str) -> str:
    """Re-canonicalize plugin JSON as delivered to the agent (BUILDKITE_PLUGINS)."""

    if not plugin_json or not plugin_json.strip():
        return ""
    try:
        decoded = json.loads(plugin_json)
    except json.JSONDecodeError as e:
        raise MalformedPluginReference(f"plugin JSON invalid: {e}") from e
    return canonicalize_plugins(decoded)
