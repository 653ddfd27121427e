"""Workflows behind the CLI subcommands.

These modules wire the signing engine to the outside world (the agent
process, the job environment); signed_pipeline.core stays pure.
"""

from __future__ import annotations
