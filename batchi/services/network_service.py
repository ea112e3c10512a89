"""
Network Derivation

Finds the VPC a job ran in and enriches it from describe_vpcs. The VPC id
comes from the first source that has one:

1. the resolved EC2 instance
2. the task's network interface
3. the first subnet of the compute environment

Network details are enrichment only: every failure here is absorbed and
the VPC is simply left unresolved.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from batchi.core.diagnostics import Diagnostics
from batchi.types import VpcDetails

logger = logging.getLogger(__name__)

STAGE = "NetworkDerivation"

SOURCE_INSTANCE = "instance"
SOURCE_NETWORK_INTERFACE = "network-interface"
SOURCE_COMPUTE_ENVIRONMENT = "compute-environment-subnet"


def task_network_interface_id(task: Optional[Dict[str, Any]]) -> Optional[str]:
    """ENI id from an ECS task's ElasticNetworkInterface attachment (awsvpc mode)."""
    for attachment in (task or {}).get("attachments") or []:
        if attachment.get("type") != "ElasticNetworkInterface":
            continue
        for detail in attachment.get("details") or []:
            if detail.get("name") == "networkInterfaceId" and detail.get("value"):
                return detail["value"]
    return None


def network_interface_query(
    task: Optional[Dict[str, Any]],
    container: Optional[Dict[str, Any]],
) -> Optional[Dict[str, Any]]:
    """
    Build describe_network_interfaces arguments for the job's first interface.

    Prefers the ENI id on the ECS task; otherwise filters on what the Batch
    attempt recorded for its first network interface.
    """
    eni_id = task_network_interface_id(task)
    if eni_id:
        return {"NetworkInterfaceIds": [eni_id]}

    interfaces = (container or {}).get("networkInterfaces") or []
    if not interfaces:
        return None
    first = interfaces[0]
    attachment_id = first.get("attachmentId") or ""
    if attachment_id.startswith("eni-attach-"):
        return {"Filters": [{"Name": "attachment.attachment-id", "Values": [attachment_id]}]}
    if first.get("privateIpv4Address"):
        return {"Filters": [{"Name": "addresses.private-ip-address", "Values": [first["privateIpv4Address"]]}]}
    if first.get("ipv6Address"):
        return {"Filters": [{"Name": "ipv6-addresses.ipv6-address", "Values": [first["ipv6Address"]]}]}
    return None


def describe_network_interface(
    ec2_client: Any,
    task: Optional[Dict[str, Any]],
    container: Optional[Dict[str, Any]],
) -> Optional[Dict[str, Any]]:
    """Describe the job's first network interface, or None if there is no reference."""
    query = network_interface_query(task, container)
    if not query:
        return None
    response = ec2_client.describe_network_interfaces(**query)
    interfaces = response.get("NetworkInterfaces") or []
    return interfaces[0] if interfaces else None


def tags_to_dict(tags: Optional[List[Dict[str, str]]]) -> Dict[str, str]:
    return {t["Key"]: t.get("Value", "") for t in tags or [] if t.get("Key")}


class NetworkService:
    """Derives and enriches the job's VPC."""

    def __init__(self, ec2_client: Any, diagnostics: Optional[Diagnostics] = None):
        self.ec2 = ec2_client
        self.diagnostics = diagnostics or Diagnostics()

    def derive_vpc(
        self,
        instance: Optional[Dict[str, Any]] = None,
        network_interface: Optional[Dict[str, Any]] = None,
        compute_environment: Optional[Dict[str, Any]] = None,
    ) -> Optional[VpcDetails]:
        try:
            vpc_id, source = self._vpc_id(instance, network_interface, compute_environment)
            if not vpc_id:
                self.diagnostics.trace(STAGE, "No VPC id from instance, interface or compute environment")
                return None
            return self.describe_vpc(vpc_id, source)
        except Exception as e:
            self.diagnostics.soft_failure(STAGE, e)
            return None

    def _vpc_id(
        self,
        instance: Optional[Dict[str, Any]],
        network_interface: Optional[Dict[str, Any]],
        compute_environment: Optional[Dict[str, Any]],
    ) -> Tuple[Optional[str], Optional[str]]:
        if instance and instance.get("VpcId"):
            return instance["VpcId"], SOURCE_INSTANCE
        if network_interface and network_interface.get("VpcId"):
            return network_interface["VpcId"], SOURCE_NETWORK_INTERFACE
        subnets = ((compute_environment or {}).get("computeResources") or {}).get("subnets") or []
        if subnets:
            response = self.ec2.describe_subnets(SubnetIds=[subnets[0]])
            found = response.get("Subnets") or []
            if found and found[0].get("VpcId"):
                return found[0]["VpcId"], SOURCE_COMPUTE_ENVIRONMENT
        return None, None

    def describe_vpc(self, vpc_id: str, source: Optional[str] = None) -> Optional[VpcDetails]:
        response = self.ec2.describe_vpcs(VpcIds=[vpc_id])
        vpcs = response.get("Vpcs") or []
        if not vpcs:
            return None
        vpc = vpcs[0]
        tags = tags_to_dict(vpc.get("Tags"))
        ipv6 = next(
            (
                assoc["Ipv6CidrBlock"]
                for assoc in vpc.get("Ipv6CidrBlockAssociationSet") or []
                if assoc.get("Ipv6CidrBlock")
            ),
            None,
        )
        details: VpcDetails = {
            "vpc_id": vpc.get("VpcId", vpc_id),
            "name": tags.get("Name"),
            "cidr_block": vpc.get("CidrBlock"),
            "ipv6_cidr_block": ipv6,
            "state": vpc.get("State"),
            "dhcp_options_id": vpc.get("DhcpOptionsId"),
            "tags": tags,
        }
        if source:
            details["source"] = source
        return details

    def find_network_interface(
        self,
        task: Optional[Dict[str, Any]],
        container: Optional[Dict[str, Any]],
    ) -> Optional[Dict[str, Any]]:
        """Describe the job's first network interface; None on any failure."""
        try:
            return describe_network_interface(self.ec2, task, container)
        except Exception as e:
            self.diagnostics.soft_failure(STAGE, e, operation="describe_network_interfaces")
            return None
