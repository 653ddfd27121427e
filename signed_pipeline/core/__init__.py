"""Lowest-level signing engine utilities.

Dependency direction rules:
- signed_pipeline.core must not import signed_pipeline.commands, .cli, .agent or .secrets
- signed_pipeline.core must not read os.environ or sys.argv
"""

from signed_pipeline.core.commands import extract_command
from signed_pipeline.core.errors import (
	MalformedPluginReference,
	MissingSignature,
	SignatureMismatch,
	SignedPipelineError,
	TrustViolation,
	UnsupportedCommandType,
	UnsupportedEnvironmentType,
)
from signed_pipeline.core.hash import HmacDigest, compute_signature, is_tagged_sha256, signatures_equal
from signed_pipeline.core.json_canon import canonical_json_bytes, canonical_json_text
from signed_pipeline.core.plugins import (
	PluginReference,
	canonicalize_plugin_json,
	canonicalize_plugins,
	resolve_plugin_name,
)
from signed_pipeline.core.unsigned_commands import UnsignedCommandPolicy, is_unsigned_command_ok, platform_family

__all__ = [
	"HmacDigest",
	"MalformedPluginReference",
	"MissingSignature",
	"PluginReference",
	"SignatureMismatch",
	"SignedPipelineError",
	"TrustViolation",
	"UnsignedCommandPolicy",
	"UnsupportedCommandType",
	"UnsupportedEnvironmentType",
	"canonical_json_bytes",
	"canonical_json_text",
	"canonicalize_plugin_json",
	"canonicalize_plugins",
	"compute_signature",
	"extract_command",
	"is_tagged_sha256",
	"is_unsigned_command_ok",
	"platform_family",
	"resolve_plugin_name",
	"signatures_equal",
]
