"""Pipeline walker, signer and verifier.

Signing works on the decoded output of ``buildkite-agent pipeline upload
--dry-run`` and returns a signed copy; the input is never mutated.
Verification runs on the agent, from the values Buildkite hands the job.
"""

from __future__ import annotations

import enum
from typing import Any, Callable

from signed_pipeline.core.commands import extract_command
from signed_pipeline.core.errors import (
    MissingSignature,
    SignatureMismatch,
    SignedPipelineError,
    UnsupportedEnvironmentType,
)
from signed_pipeline.core.hash import HmacDigest, signatures_equal
from signed_pipeline.core.plugins import canonicalize_plugin_json, canonicalize_plugins
from signed_pipeline.core.unsigned_commands import DEFAULT_TOOL_NAME, UnsignedCommandPolicy
from signed_pipeline.core.value import value_kind


STEP_SIGNATURE_ENV = "STEP_SIGNATURE"

DigestFunction = Callable[[str, str], str]
AllowListPredicate = Callable[[str], bool]


class VerifyState(enum.Enum):
    """Terminal states of a successful verify(); rejection is raised as TrustViolation."""

    NOTHING_TO_VERIFY = "nothing-to-verify"
    ALLOWED = "allowed"
    SIGNED_MATCH = "signed-match"


def add_signature(env: Any, signature: str) -> Any:
    """Return a copy of a step's env with the signature merged in."""

    kind = value_kind(env)
    if kind == "null":
        return {STEP_SIGNATURE_ENV: signature}
    if kind == "mapping":
        out = dict(env)
        out[STEP_SIGNATURE_ENV] = signature
        return out
    if kind == "sequence":
        # KEY=VALUE form
        return list(env) + [f"{STEP_SIGNATURE_ENV}={signature}"]
    raise UnsupportedEnvironmentType(f"unknown environment type {kind}")


class SharedSecretSigner:
    def __init__(
        self,
        secret: str,
        *,
        build_scope: str = "",
        digest: DigestFunction | None = None,
        allow_unsigned: AllowListPredicate | None = None,
        tool_name: str = DEFAULT_TOOL_NAME,
        platform: str = "posix",
    ) -> None:
        self.digest: DigestFunction = digest if digest is not None else HmacDigest(secret, build_scope)
        self.allow_unsigned: AllowListPredicate = (
            allow_unsigned if allow_unsigned is not None else UnsignedCommandPolicy(tool_name, platform)
        )

    # -- signing -----------------------------------------------------------

    def sign(self, pipeline: Any) -> Any:
        """Sign every command step of a pipeline (or single step) document.

        Only mapping-rooted documents are processed; anything else is
        returned as-is. A failure in any step aborts the whole pass.
        """

        if value_kind(pipeline) != "mapping":
            return pipeline

        out: dict[str, Any] = {}
        for key, item in pipeline.items():
            if key.lower() == "steps" and value_kind(item) == "sequence":
                item = self._sign_steps(item)
            out[key] = item
        return out

    def _sign_steps(self, steps: list[Any]) -> list[Any]:
        new_steps: list[Any] = []
        for i, step in enumerate(steps):
            if value_kind(step) != "mapping":
                # wait/block shorthands and the like
                new_steps.append(step)
                continue
            try:
                new_steps.append(self.sign_step(step))
            except SignedPipelineError as e:
                raise type(e)(f"signing step {i}: {e}") from e
        return new_steps

    def sign_step(self, step: dict[str, Any]) -> dict[str, Any]:
        out = dict(step)

        if "group" in out:
            if "steps" in out:
                out["steps"] = self.sign({"steps": out["steps"]})["steps"]
            return out

        raw_command = out.get("command")
        if raw_command is None:
            raw_command = out.get("commands")
        command = extract_command(raw_command)

        plugins = ""
        if "plugins" in out:
            plugins = canonicalize_plugins(out["plugins"])

        if command == "" and plugins == "":
            return out

        signature = self.digest(command, plugins)
        out["env"] = add_signature(out.get("env"), signature)
        return out

    # -- verification ------------------------------------------------------

    def verify(self, command: str, plugin_json: str, signature: str) -> VerifyState:
        """Decide whether a job may run. Raises TrustViolation when it may not."""

        command = command or ""
        plugin_json = plugin_json or ""
        signature = signature or ""

        if not command and not plugin_json and not signature:
            return VerifyState.NOTHING_TO_VERIFY

        if not signature and not plugin_json and command:
            try:
                allowed = self.allow_unsigned(command)
            except Exception as e:
                raise MissingSignature(f"Signature missing and allow-list check failed: {e}") from e
            if allowed:
                return VerifyState.ALLOWED
            raise MissingSignature("Signature missing. The provided command is not permitted to be unsigned")

        canonical = canonicalize_plugin_json(plugin_json)
        expected = self.digest(command, canonical)
        if not signatures_equal(expected, signature):
            raise SignatureMismatch(
                "Signature mismatch. Perhaps check the shared secret is the same across agents?"
            )
        return VerifyState.SIGNED_MATCH
