"""
AWS client construction.

All clients of one invocation share a region. Clients are cached per
(service, region) so repeated commands in one process reuse connections.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import boto3

from batchi.core.config import settings

# Cache AWS clients to avoid reinitializing
_clients_cache: Dict[str, Any] = {}


def get_aws_region(region: Optional[str] = None) -> str:
    """
    Resolve the region for this invocation.

    Args:
        region: Explicit region (e.g. from --region); wins over the environment

    Returns:
        AWS region string
    """
    return region or settings.AWS_REGION


def get_client(service: str, region: Optional[str] = None) -> Any:
    """Get or create a cached boto3 client for a service."""
    resolved = get_aws_region(region)
    cache_key = f"{service}_{resolved}"
    if cache_key not in _clients_cache:
        _clients_cache[cache_key] = boto3.client(service, region_name=resolved)
    return _clients_cache[cache_key]


@dataclass
class AwsClients:
    """The read-only service clients one resolution works with."""
    region: str
    batch: Any
    ecs: Any
    ec2: Any
    logs: Any
    s3: Optional[Any] = None
    sts: Optional[Any] = None


def make_aws_clients(region: Optional[str] = None) -> AwsClients:
    """Build the client bundle for a region."""
    resolved = get_aws_region(region)
    return AwsClients(
        region=resolved,
        batch=get_client("batch", resolved),
        ecs=get_client("ecs", resolved),
        ec2=get_client("ec2", resolved),
        logs=get_client("logs", resolved),
        s3=get_client("s3", resolved),
        sts=get_client("sts", resolved),
    )
