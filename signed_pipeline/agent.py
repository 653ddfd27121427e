"""buildkite-agent invocations used by the upload workflow.

The agent evaluates the pipeline once with --dry-run (so YAML parsing and
interpolation happen in the agent, not here), and a second time to upload
the signed JSON from stdin with interpolation disabled so variables are
not expanded twice.
"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Callable


AGENT_BINARY = "buildkite-agent"

Runner = Callable[..., "subprocess.CompletedProcess[bytes]"]


class AgentError(RuntimeError):
    def __init__(self, argv: list[str], returncode: int) -> None:
        super().__init__(f"$ {' '.join(argv)} exited with status {returncode}")
        self.argv = argv
        self.returncode = returncode


def dry_run_argv(file: Path | None = None, *, agent: str = AGENT_BINARY) -> list[str]:
    argv = [agent, "pipeline", "upload", "--dry-run"]
    # optional path to a pipeline.yml; otherwise the agent reads stdin or its default locations
    if file is not None:
        argv.append(str(file))
    return argv


def upload_argv(*, dry_run: bool = False, replace: bool = False, agent: str = AGENT_BINARY) -> list[str]:
    argv = [agent, "pipeline", "upload", "--no-interpolation"]
    if dry_run:
        argv.append("--dry-run")
    if replace:
        argv.append("--replace")
    return argv


def pipeline_dry_run(file: Path | None = None, *, agent: str = AGENT_BINARY, runner: Runner = subprocess.run) -> Any:
    """Run the agent's dry-run upload and return the decoded pipeline."""

    argv = dry_run_argv(file, agent=agent)
    # stderr is inherited so agent diagnostics reach the job log
    p = runner(argv, check=False, stdout=subprocess.PIPE, stderr=None)
    if p.returncode != 0:
        raise AgentError(argv, p.returncode)

    try:
        return json.loads((p.stdout or b"").decode("utf-8", errors="strict"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValueError(f"{agent} dry-run output is not valid JSON: {e}") from e


def upload_pipeline(
    data: bytes,
    *,
    dry_run: bool = False,
    replace: bool = False,
    agent: str = AGENT_BINARY,
    runner: Runner = subprocess.run,
) -> None:
    argv = upload_argv(dry_run=dry_run, replace=replace, agent=agent)
    p = runner(argv, check=False, input=data, stdout=None, stderr=None)
    if p.returncode != 0:
        raise AgentError(argv, p.returncode)
