from __future__ import annotations


class SignedPipelineError(ValueError):
    """Base class for every failure raised by the signing engine."""

    category = "SIGNED-PIPELINE-ERROR"


class MalformedPluginReference(SignedPipelineError):
    category = "PLUGIN-REFERENCE-MALFORMED"


class UnsupportedCommandType(SignedPipelineError):
    category = "COMMAND-TYPE-UNSUPPORTED"


class UnsupportedEnvironmentType(SignedPipelineError):
    category = "ENV-TYPE-UNSUPPORTED"


class TrustViolation(SignedPipelineError):
    """The step must not be trusted. Callers treat both subclasses the same."""

    category = "TRUST-VIOLATION"


class MissingSignature(TrustViolation):
    category = "SIGNATURE-MISSING"


class SignatureMismatch(TrustViolation):
    category = "SIGNATURE-MISMATCH"
