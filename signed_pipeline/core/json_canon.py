from __future__ import annotations

import json
from typing import Any


def canonical_json_text(obj: Any) -> str:
    """Return canonical JSON text (sorted keys, compact separators, non-ASCII kept, no trailing LF)."""

    return json.dumps(obj, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def canonical_json_bytes(obj: Any) -> bytes:
    return canonical_json_text(obj).encode("utf-8", errors="strict")
