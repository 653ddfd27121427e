from __future__ import annotations

import sys

from signed_pipeline.core.errors import TrustViolation
from signed_pipeline.core.hash import is_tagged_sha256
from signed_pipeline.signer import SharedSecretSigner, VerifyState


TAG = "[buildkite-signed-pipeline verify]"


def run_verify(signer: SharedSecretSigner, *, command: str, plugin_json: str, signature: str) -> int:
    """Verify the current job. Returns 0 when it may run, 1 when it must not."""

    if signature and not is_tagged_sha256(signature):
        print(f"{TAG} WARNING: signature is not in sha256:<hex> form", file=sys.stderr)

    try:
        state = signer.verify(command, plugin_json, signature)
    except TrustViolation as e:
        print(f"{TAG} NO-GO: {e.category}: {e}", file=sys.stderr)
        return 1

    if state is VerifyState.NOTHING_TO_VERIFY:
        print(f"{TAG} No command or plugins set", file=sys.stderr)
    elif state is VerifyState.ALLOWED:
        print(f"{TAG} WARNING: command is unsigned; allowing allow-listed upload command", file=sys.stderr)
    else:
        print(f"{TAG} Signature matched", file=sys.stderr)
    return 0
