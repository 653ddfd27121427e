#!/usr/bin/env python3
"""buildkite-signed-pipeline CLI: signed pipeline uploads for Buildkite.

This is the installable CLI entrypoint (console_scripts).

Subcommands:
- buildkite-signed-pipeline upload [file]  → Sign the agent's dry-run pipeline and upload it
- buildkite-signed-pipeline verify         → Verify the current job's STEP_SIGNATURE (agent hook)
- buildkite-signed-pipeline about          → Print package identity info

Configuration (flag, then environment variable):
- --shared-secret            SIGNED_PIPELINE_SECRET
- --aws-sm-shared-secret-id  SIGNED_PIPELINE_AWS_SM_SECRET_ID

Exit codes:
- 0: success
- 1: check failed (signature missing or mismatched)
- 3: usage/internal error
"""

from __future__ import annotations

import argparse
import os
import sys
from importlib.metadata import PackageNotFoundError, metadata, version
from pathlib import Path

from signed_pipeline.core.errors import SignedPipelineError
from signed_pipeline.core.unsigned_commands import DEFAULT_TOOL_NAME, platform_family
from signed_pipeline.signer import STEP_SIGNATURE_ENV, SharedSecretSigner


PROG = "buildkite-signed-pipeline"
DIST_NAME = "buildkite-signed-pipeline"

SECRET_ENV = "SIGNED_PIPELINE_SECRET"
AWS_SM_SECRET_ID_ENV = "SIGNED_PIPELINE_AWS_SM_SECRET_ID"
BUILD_ID_ENV = "BUILDKITE_BUILD_ID"
COMMAND_ENV = "BUILDKITE_COMMAND"
PLUGINS_ENV = "BUILDKITE_PLUGINS"


def _package_version() -> str:
    try:
        return version(DIST_NAME)
    except PackageNotFoundError:
        return "0.0.0"


def _tool_name() -> str:
    return Path(sys.argv[0]).name if sys.argv and sys.argv[0] else DEFAULT_TOOL_NAME


def _make_signer(args: argparse.Namespace, *, tag: str) -> SharedSecretSigner | None:
    from signed_pipeline.secrets import resolve_shared_secret

    if args.aws_sm_shared_secret_id:
        print(f"{tag} Using secret from AWS SM {args.aws_sm_shared_secret_id}", file=sys.stderr)
    try:
        secret = resolve_shared_secret(
            shared_secret=args.shared_secret,
            aws_sm_secret_id=args.aws_sm_shared_secret_id,
        )
    except Exception as e:
        print(f"{tag} ERROR: cannot obtain shared secret: {e}", file=sys.stderr)
        return None

    return SharedSecretSigner(
        secret,
        build_scope=os.environ.get(BUILD_ID_ENV, ""),
        tool_name=_tool_name(),
        platform=platform_family(sys.platform),
    )


# ---------------------------------------------------------------------------
# upload subcommand
# ---------------------------------------------------------------------------

def cmd_upload(args: argparse.Namespace) -> int:
    from signed_pipeline.agent import AgentError
    from signed_pipeline.commands.upload import run_upload

    tag = f"[{PROG} upload]"
    signer = _make_signer(args, tag=tag)
    if signer is None:
        return 3

    try:
        return run_upload(
            signer,
            file=Path(args.file) if args.file else None,
            dry_run=bool(args.dry_run),
            replace=bool(args.replace),
        )
    except SignedPipelineError as e:
        print(f"{tag} ERROR: {e.category}: {e}", file=sys.stderr)
        return 3
    except AgentError as e:
        print(f"{tag} ERROR: {e}", file=sys.stderr)
        print(f"{tag} Remediation: Do ensure buildkite-agent is on PATH and the pipeline is valid, then re-run upload.", file=sys.stderr)
        return 3
    except Exception as e:
        print(f"{tag} ERROR: {e}", file=sys.stderr)
        return 3


# ---------------------------------------------------------------------------
# verify subcommand
# ---------------------------------------------------------------------------

def cmd_verify(args: argparse.Namespace) -> int:
    from signed_pipeline.commands.verify import run_verify

    tag = f"[{PROG} verify]"
    signer = _make_signer(args, tag=tag)
    if signer is None:
        return 3

    try:
        return run_verify(
            signer,
            command=os.environ.get(COMMAND_ENV, ""),
            plugin_json=os.environ.get(PLUGINS_ENV, ""),
            signature=os.environ.get(STEP_SIGNATURE_ENV, ""),
        )
    except SignedPipelineError as e:
        # malformed BUILDKITE_PLUGINS is a trust failure too
        print(f"{tag} NO-GO: {e.category}: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"{tag} ERROR: {e}", file=sys.stderr)
        return 3


# ---------------------------------------------------------------------------
# about subcommand
# ---------------------------------------------------------------------------

def cmd_about(_: argparse.Namespace) -> int:
    """Print package identity info (human-readable)."""

    pkg_name = DIST_NAME
    pkg_summary = ""
    try:
        meta = metadata(DIST_NAME)
        pkg_name = str(meta.get("Name") or pkg_name)
        pkg_summary = str(meta.get("Summary") or "")
    except PackageNotFoundError:
        pass

    print(f"{pkg_name} {_package_version()}")
    if pkg_summary:
        print(pkg_summary)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog=PROG, description="Signed pipeline uploads for Buildkite")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")
    parser.add_argument(
        "--shared-secret",
        default=os.environ.get(SECRET_ENV) or None,
        help=f"A shared secret to use for signing (env: {SECRET_ENV})",
    )
    parser.add_argument(
        "--aws-sm-shared-secret-id",
        default=os.environ.get(AWS_SM_SECRET_ID_ENV) or None,
        help=f"An AWS Secrets Manager secret id or ARN holding the shared secret (env: {AWS_SM_SECRET_ID_ENV})",
    )
    subparsers = parser.add_subparsers(dest="command", help="Subcommand")

    # about
    subparsers.add_parser("about", help="Print package identity info")

    # upload
    p_upload = subparsers.add_parser("upload", help="Upload a pipeline.yml with signatures")
    p_upload.add_argument("file", nargs="?", help="The pipeline.yml to process")
    p_upload.add_argument("--dry-run", action="store_true", help="Just show the pipeline that will be uploaded")
    p_upload.add_argument(
        "--replace",
        action="store_true",
        help="Replace the rest of the existing pipeline with the steps uploaded",
    )
    p_upload.set_defaults(func=cmd_upload)

    # verify
    p_verify = subparsers.add_parser("verify", help="Verify a job contains a valid signature")
    p_verify.set_defaults(func=cmd_verify)

    args = parser.parse_args(argv)

    if args.command == "about":
        return cmd_about(args)
    elif args.command in ("upload", "verify"):
        return int(args.func(args))
    else:
        parser.print_help()
        return 3


if __name__ == "__main__":
    sys.exit(main())
