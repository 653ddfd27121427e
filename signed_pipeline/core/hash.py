from __future__ import annotations

SIGNATURE_ALG = "sha256"
SIGNATURE_PREFIX = SIGNATURE_ALG + ":"


def compute_signature(secret: str, command: str, plugin_json: str, build_scope: str = "") -> str:
    """HMAC-SHA256 over stripped command, build scope and canonical plugin JSON.

    The three parts are fed back to back; an empty part contributes no bytes.
    """

    try:
        from cryptography.hazmat.primitives import hashes, hmac
    except Exception as e:  # pragma: no cover
        raise RuntimeError("Missing crypto dependency for HMAC-SHA256 (install 'cryptography').") from e

    h = hmac.HMAC(secret.encode("utf-8"), hashes.SHA256())
    h.update(command.strip().encode("utf-8"))
    h.update(build_scope.encode("utf-8"))
    h.update(plugin_json.encode("utf-8"))
    return SIGNATURE_PREFIX + h.finalize().hex()


def signatures_equal(a: str, b: str) -> bool:
    try:
        from cryptography.hazmat.primitives import constant_time
    except Exception as e:  # pragma: no cover
        raise RuntimeError("Missing crypto dependency for HMAC-SHA256 (install 'cryptography').") from e

    return constant_time.bytes_eq(a.encode("utf-8"), b.encode("utf-8"))


def is_tagged_sha256(s: str) -> bool:
    if not isinstance(s, str) or not s.startswith(SIGNATURE_PREFIX):
        return False
    hex_part = s[len(SIGNATURE_PREFIX):]
    if len(hex_part) != 64:
        return False
    for c in hex_part:
        if c not in "0123456789abcdef":
            return False
    return True


class HmacDigest:
    """Production digest function: binds the shared secret and build scope."""

    def __init__(self, secret: str, build_scope: str = "") -> None:
        self._secret = secret
        self.build_scope = build_scope

    def __call__(self, command: str, plugin_json: str) -> str:
        return compute_signature(self._secret, command, plugin_json, self.build_scope)

    def __repr__(self) -> str:
        return f"HmacDigest(secret=<redacted>, build_scope={self.build_scope!r})"
