"""
ECS identifier parsing.

ECS ARNs look like ``arn:<partition>:ecs:<region>:<account>:<kind>/<cluster>/<id>``.
Older task and container-instance ARNs omit the cluster segment
(``<kind>/<id>``); in that case no cluster can be derived.
"""

from typing import NamedTuple, Optional


class EcsArn(NamedTuple):
    partition: str
    region: str
    account: str
    kind: str
    cluster: Optional[str]
    resource_id: str


def parse_ecs_arn(arn: Optional[str]) -> Optional[EcsArn]:
    """
    Split an ECS ARN into its structural parts.

    Returns None for anything that is not an ECS ARN (bare ids included).
    """
    if not arn or not arn.startswith("arn:"):
        return None
    parts = arn.split(":", 5)
    if len(parts) < 6 or parts[2] != "ecs":
        return None
    partition, region, account, resource = parts[1], parts[3], parts[4], parts[5]
    kind, sep, rest = resource.partition("/")
    if not sep or not rest:
        return None
    cluster, sep, resource_id = rest.partition("/")
    if not sep:
        # Old format: <kind>/<id>
        return EcsArn(partition, region, account, kind, None, cluster)
    return EcsArn(partition, region, account, kind, cluster or None, resource_id)


def cluster_name_from_arn(arn: Optional[str], kind: str = "task") -> Optional[str]:
    """Cluster name embedded in a task or container-instance ARN."""
    parsed = parse_ecs_arn(arn)
    if not parsed or parsed.kind != kind:
        return None
    return parsed.cluster


def cluster_arn_from_arn(arn: Optional[str], kind: str = "task") -> Optional[str]:
    """Rebuild the owning cluster ARN from a task or container-instance ARN."""
    parsed = parse_ecs_arn(arn)
    if not parsed or parsed.kind != kind or not parsed.cluster:
        return None
    if not parsed.region or not parsed.account:
        return None
    return f"arn:{parsed.partition}:ecs:{parsed.region}:{parsed.account}:cluster/{parsed.cluster}"


def cluster_name_from_task_arn(task_arn: Optional[str]) -> Optional[str]:
    return cluster_name_from_arn(task_arn, "task")


def cluster_arn_from_task_arn(task_arn: Optional[str]) -> Optional[str]:
    return cluster_arn_from_arn(task_arn, "task")


def cluster_arn_from_container_instance_arn(container_instance_arn: Optional[str]) -> Optional[str]:
    return cluster_arn_from_arn(container_instance_arn, "container-instance")


def cluster_name_from_cluster_arn(cluster_arn: Optional[str]) -> Optional[str]:
    """``arn:...:cluster/<name>`` -> ``<name>``; bare names are returned unchanged."""
    if not cluster_arn:
        return None
    if cluster_arn.startswith("arn:"):
        _, _, name = cluster_arn.rpartition("/")
        return name or None
    return cluster_arn


def resource_id_from_arn(arn: Optional[str]) -> Optional[str]:
    """Trailing id of an ARN (task id, container-instance id); bare ids pass through."""
    if not arn:
        return None
    return arn.rsplit("/", 1)[-1] or None
