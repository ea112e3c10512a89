"""
Host Resolution Engine

Finds the EC2 instance behind an EC2-launched job. Two paths, first success wins:

1. container instance: describe it against the task's cluster and read ec2InstanceId
2. network interface: describe the task's first ENI and read Attachment.InstanceId

Fargate jobs have no host to find and are skipped before any lookup.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from batchi.core.diagnostics import Diagnostics
from batchi.services.network_service import describe_network_interface
from batchi.types import ContainerInstance, Ec2Instance, NetworkInterface
from batchi.utils.arn_utils import cluster_arn_from_container_instance_arn

logger = logging.getLogger(__name__)

STAGE = "HostResolver"

PATH_CONTAINER_INSTANCE = "container-instance"
PATH_NETWORK_INTERFACE = "network-interface"


@dataclass
class HostResolution:
    instance_id: Optional[str] = None
    instance: Optional[Ec2Instance] = None
    container_instance_arn: Optional[str] = None
    container_instance: Optional[ContainerInstance] = None
    network_interface: Optional[NetworkInterface] = None
    path: Optional[str] = None


class HostResolutionEngine:
    """Derives the EC2 host of a resolved task. Best effort on every path."""

    def __init__(self, ecs_client: Any, ec2_client: Any, diagnostics: Optional[Diagnostics] = None):
        self.ecs = ecs_client
        self.ec2 = ec2_client
        self.diagnostics = diagnostics or Diagnostics()

    def resolve(
        self,
        task: Optional[Dict[str, Any]],
        container: Optional[Dict[str, Any]],
        cluster_arn: Optional[str],
        fargate: bool = False,
    ) -> HostResolution:
        """
        Resolve the host for a task.

        Args:
            task: Resolved ECS task record, if any
            container: Runtime container record of the latest attempt
            cluster_arn: Cluster that owns the task, if resolved
            fargate: True when the job ran on Fargate; nothing is looked up then

        Returns:
            HostResolution with whatever could be found
        """
        result = HostResolution()
        if fargate:
            self.diagnostics.trace(STAGE, "Fargate launch type; no EC2 host to resolve")
            return result

        result.container_instance_arn = (
            (task or {}).get("containerInstanceArn")
            or (container or {}).get("containerInstanceArn")
        )

        if result.container_instance_arn:
            result.container_instance = self._describe_container_instance(
                result.container_instance_arn, cluster_arn
            )
            result.instance_id = (result.container_instance or {}).get("ec2InstanceId")
            if result.instance_id:
                result.path = PATH_CONTAINER_INSTANCE

        if not result.instance_id:
            try:
                result.network_interface = describe_network_interface(self.ec2, task, container)
            except Exception as e:
                self.diagnostics.soft_failure(STAGE, e, operation="describe_network_interfaces")
            attachment = (result.network_interface or {}).get("Attachment") or {}
            result.instance_id = attachment.get("InstanceId")
            if result.instance_id:
                result.path = PATH_NETWORK_INTERFACE

        if not result.instance_id:
            if task:
                self.diagnostics.trace(STAGE, "ECS task resolved, but EC2 instance not found")
            return result

        result.instance = self._describe_instance(result.instance_id)
        return result

    def _describe_container_instance(
        self,
        container_instance_arn: str,
        cluster_arn: Optional[str],
    ) -> Optional[Dict[str, Any]]:
        cluster = cluster_arn or cluster_arn_from_container_instance_arn(container_instance_arn)
        kwargs: Dict[str, Any] = {"containerInstances": [container_instance_arn]}
        if cluster:
            kwargs["cluster"] = cluster
        try:
            response = self.ecs.describe_container_instances(**kwargs)
        except Exception as e:
            self.diagnostics.soft_failure(STAGE, e, operation="describe_container_instances")
            return None
        instances = response.get("containerInstances") or []
        return instances[0] if instances else None

    def _describe_instance(self, instance_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.ec2.describe_instances(InstanceIds=[instance_id])
        except Exception as e:
            self.diagnostics.soft_failure(STAGE, e, operation="describe_instances")
            return None
        for reservation in response.get("Reservations") or []:
            for instance in reservation.get("Instances") or []:
                return instance
        return None
