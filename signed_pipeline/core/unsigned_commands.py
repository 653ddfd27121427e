"""Allow list for the one kind of step that is legitimately unsigned.

The first step of a signed pipeline is the upload itself, which the
orchestrator runs from the un-signed pipeline.yml stored in its settings.
Only plain upload invocations are let through: anything carrying shell
syntax could run a second command disguised as an upload, e.g.
``buildkite-agent pipeline upload `rm -rf /` ``.
"""

from __future__ import annotations

POSIX_SPECIAL_CHARS = "!\"#$&'()*,;<=>?[]\\^`{}|~\n\r"
BATCH_SPECIAL_CHARS = "^&;,=%\n\r"

AGENT_UPLOAD_COMMAND = "buildkite-agent pipeline upload"
DEFAULT_TOOL_NAME = "buildkite-signed-pipeline"


def platform_family(sys_platform: str) -> str:
    """Map sys.platform to the shell family used on that platform."""

    if sys_platform.startswith("win"):
        return "windows"
    return "posix"


def special_chars_for(platform: str) -> str:
    if platform == "windows":
        return BATCH_SPECIAL_CHARS
    if platform == "posix":
        return POSIX_SPECIAL_CHARS
    raise ValueError(f"unknown platform family: {platform!r}")


def tool_names(tool_name: str, platform: str) -> list[str]:
    names = [tool_name]
    # both tool and tool.exe work on windows
    if platform == "windows" and tool_name.lower().endswith(".exe"):
        names.append(tool_name[: -len(".exe")])
    return names


def upload_prefixes(tool_name: str, platform: str) -> list[str]:
    return [f"{name} upload" for name in tool_names(tool_name, platform)] + [AGENT_UPLOAD_COMMAND]


def _has_prefix(command: str, prefix: str) -> bool:
    return command == prefix or command.startswith(prefix + " ")


def is_upload_command(command: str, *, tool_name: str, platform: str) -> bool:
    return any(_has_prefix(command, p) for p in upload_prefixes(tool_name, platform))


def has_special_shell_chars(command: str, *, platform: str) -> bool:
    chars = special_chars_for(platform)
    return any(c in chars for c in command)


def is_unsigned_command_ok(command: str, *, tool_name: str = DEFAULT_TOOL_NAME, platform: str = "posix") -> bool:
    if not is_upload_command(command, tool_name=tool_name, platform=platform):
        return False
    return not has_special_shell_chars(command, platform=platform)


class UnsignedCommandPolicy:
    """Production allow-list predicate with the tool name and platform bound."""

    def __init__(self, tool_name: str = DEFAULT_TOOL_NAME, platform: str = "posix") -> None:
        special_chars_for(platform)
        self.tool_name = tool_name
        self.platform = platform

    def __call__(self, command: str) -> bool:
        return is_unsigned_command_ok(command, tool_name=self.tool_name, platform=self.platform)

    def __repr__(self) -> str:
        return f"UnsignedCommandPolicy(tool_name={self.tool_name!r}, platform={self.platform!r})"
