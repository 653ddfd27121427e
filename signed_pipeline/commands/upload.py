from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable

from signed_pipeline.agent import AGENT_BINARY, pipeline_dry_run, upload_pipeline
from signed_pipeline.core.json_canon import canonical_json_bytes
from signed_pipeline.signer import SharedSecretSigner


TAG = "[buildkite-signed-pipeline upload]"


def run_upload(
    signer: SharedSecretSigner,
    *,
    file: Path | None = None,
    dry_run: bool = False,
    replace: bool = False,
    agent: str = AGENT_BINARY,
    dry_run_fn: Callable[..., Any] | None = None,
    upload_fn: Callable[..., None] | None = None,
) -> int:
    """Evaluate the pipeline with the agent, sign it, and upload the signed copy.

    Signing and agent errors propagate; the caller owns the exit-code mapping.
    """

    dry_run_fn = dry_run_fn or pipeline_dry_run
    upload_fn = upload_fn or upload_pipeline

    shown = f" {file}" if file is not None else ""
    print(f"{TAG} $ {agent} pipeline upload --dry-run{shown}", file=sys.stderr)
    parsed = dry_run_fn(file, agent=agent)

    signed = signer.sign(parsed)
    data = canonical_json_bytes(signed)

    print(f"{TAG} uploading signed pipeline ({len(data)} bytes)", file=sys.stderr)
    upload_fn(data, dry_run=dry_run, replace=replace, agent=agent)
    return 0
