"""Signed pipeline uploads for Buildkite.

The signing engine lives in signed_pipeline.core and signed_pipeline.signer;
everything that touches processes, environment or AWS sits at the edges.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version


def __getattr__(name: str):
    if name == "__version__":
        try:
            return version("buildkite-signed-pipeline")
        except PackageNotFoundError:
            return "0.0.0"
    raise AttributeError(name)
