"""Shared secret acquisition: a literal value or an AWS Secrets Manager lookup."""

from __future__ import annotations

import re
from typing import Any, Callable

import boto3


_SM_ARN_REGION_RE = re.compile(r"^arn:aws:secretsmanager:([^:]+):")


def aws_sm_secret_region(secret_id: str) -> str | None:
    """Return the region encoded in a Secrets Manager ARN, or None for plain ids."""

    m = _SM_ARN_REGION_RE.match(secret_id)
    if m is None:
        return None
    return m.group(1)


def _default_client_factory(region: str | None) -> Any:
    if region is None:
        return boto3.client("secretsmanager")
    return boto3.client("secretsmanager", region_name=region)


def get_aws_sm_secret(secret_id: str, *, client_factory: Callable[[str | None], Any] | None = None) -> str:
    # The ARN region is only a hint; Secrets Manager itself ignores it, so
    # the client has to be created in that region.
    factory = client_factory or _default_client_factory
    client = factory(aws_sm_secret_region(secret_id))
    result = client.get_secret_value(SecretId=secret_id)
    secret = result.get("SecretString")
    if not isinstance(secret, str):
        raise ValueError(f"secret {secret_id} has no SecretString")
    return secret


def resolve_shared_secret(
    *,
    shared_secret: str | None,
    aws_sm_secret_id: str | None,
    fetch: Callable[[str], str] = get_aws_sm_secret,
) -> str:
    if aws_sm_secret_id:
        return fetch(aws_sm_secret_id)
    if shared_secret:
        return shared_secret
    raise ValueError("One of --shared-secret or --aws-sm-shared-secret-id must be provided")
