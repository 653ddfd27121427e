from __future__ import annotations

from typing import Any

from signed_pipeline.core.errors import UnsupportedCommandType
from signed_pipeline.core.value import value_kind


def extract_command(command: Any) -> str:
    """Normalize a step's command/commands value to one newline-joined string."""

    try:
        kind = value_kind(command)
    except TypeError as e:
        raise UnsupportedCommandType(f"unexpected type for command: {e}") from e

    if kind == "null":
        return ""
    if kind == "string":
        return command
    if kind == "sequence":
        lines: list[str] = []
        for i, line in enumerate(command):
            if not isinstance(line, str):
                raise UnsupportedCommandType(f"unexpected type for command[{i}]: {type(line).__name__}")
            lines.append(line)
        return "\n".join(lines)
    raise UnsupportedCommandType(f"unexpected type for command: {kind}")
