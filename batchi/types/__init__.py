"""
Type definitions for the AWS records the resolver consumes.

These mirror the boto3 response shapes (camelCase for Batch/ECS,
PascalCase for EC2) and only list the keys the resolver reads.
"""

from typing import TypedDict, List, Optional, Dict, Any

__all__ = [
    'KeyValuePair',
    'NetworkInterfaceRef',
    'ContainerDetail',
    'Attempt',
    'Job',
    'EcsTask',
    'ContainerInstance',
    'Ec2Instance',
    'NetworkInterface',
    'ComputeEnvironment',
    'VpcDetails',
]


class KeyValuePair(TypedDict, total=False):
    name: str
    value: str


class NetworkInterfaceRef(TypedDict, total=False):
    """Network interface as recorded on a Batch attempt container."""
    attachmentId: str
    ipv6Address: str
    privateIpv4Address: str


class ContainerDetail(TypedDict, total=False):
    """Batch container record; declared spec on the job, runtime record on an attempt."""
    image: str
    command: List[str]
    environment: List[KeyValuePair]
    resourceRequirements: List[Dict[str, str]]
    exitCode: Optional[int]
    reason: Optional[str]
    taskArn: Optional[str]
    containerInstanceArn: Optional[str]
    logStreamName: Optional[str]
    networkInterfaces: List[NetworkInterfaceRef]


class Attempt(TypedDict, total=False):
    """One execution try of a Batch job."""
    container: ContainerDetail
    taskProperties: List[Dict[str, Any]]
    startedAt: int
    stoppedAt: int
    statusReason: str


class Job(TypedDict, total=False):
    """Batch job record as returned by describe_jobs."""
    jobId: str
    jobName: str
    jobArn: str
    status: str
    statusReason: Optional[str]
    jobQueue: str
    computeEnvironment: Optional[str]
    attempts: List[Attempt]
    container: ContainerDetail
    ecsProperties: Dict[str, Any]
    eksProperties: Dict[str, Any]
    eksAttempts: List[Dict[str, Any]]
    platformCapabilities: List[str]
    createdAt: int
    startedAt: int
    stoppedAt: int


class EcsTask(TypedDict, total=False):
    taskArn: str
    clusterArn: str
    containerInstanceArn: Optional[str]
    launchType: str
    lastStatus: str
    attachments: List[Dict[str, Any]]


class ContainerInstance(TypedDict, total=False):
    containerInstanceArn: str
    ec2InstanceId: str


class Ec2Instance(TypedDict, total=False):
    InstanceId: str
    InstanceType: str
    PrivateIpAddress: str
    PublicIpAddress: str
    SubnetId: str
    VpcId: str
    SecurityGroups: List[Dict[str, str]]


class NetworkInterface(TypedDict, total=False):
    NetworkInterfaceId: str
    VpcId: str
    SubnetId: str
    PrivateIpAddress: str
    Attachment: Dict[str, Any]


class ComputeEnvironment(TypedDict, total=False):
    computeEnvironmentName: str
    computeEnvironmentArn: str
    type: str
    state: str
    status: str
    ecsClusterArn: str
    computeResources: Dict[str, Any]


class VpcDetails(TypedDict, total=False):
    """Enriched VPC summary built from describe_vpcs."""
    vpc_id: str
    name: Optional[str]
    cidr_block: Optional[str]
    ipv6_cidr_block: Optional[str]
    state: Optional[str]
    dhcp_options_id: Optional[str]
    tags: Dict[str, str]
    source: str
