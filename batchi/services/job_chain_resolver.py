"""
Job Chain Resolver

Composes the resolution stages into one JobChain:

    job -> compute environment hint -> ECS task -> compute environment
        -> EC2 host -> VPC -> log tail

Only a missing job stops the pipeline (JobNotFound). Every other stage
absorbs its own failures and leaves its fields empty, so the chain always
carries as much as could be found.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from batchi.core.aws_clients import AwsClients
from batchi.core.config import settings
from batchi.core.diagnostics import Diagnostics
from batchi.core.log_context import log_context
from batchi.services.batch_service import BatchService
from batchi.services.compute_environment_resolver import ComputeEnvironmentResolver
from batchi.services.host_resolver import HostResolutionEngine
from batchi.services.log_tail_service import DEFAULT_LOG_GROUP, LogTailService
from batchi.services.network_service import NetworkService
from batchi.services.task_resolver import TaskResolutionEngine
from batchi.types import (
    ComputeEnvironment,
    ContainerDetail,
    ContainerInstance,
    Ec2Instance,
    EcsTask,
    Job,
    NetworkInterface,
    VpcDetails,
)
from batchi.utils import job_utils

logger = logging.getLogger(__name__)

STAGE = "JobChainResolver"


@dataclass(frozen=True)
class ResolveOptions:
    log_group_name: str = DEFAULT_LOG_GROUP
    log_line_count: int = 50
    fetch_logs: bool = True

    @classmethod
    def from_settings(cls, **overrides: Any) -> "ResolveOptions":
        values: Dict[str, Any] = {
            "log_group_name": settings.BATCHI_LOG_GROUP,
            "log_line_count": settings.BATCHI_LOG_LINES,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class JobChain:
    """Everything resolved about one job. Only `job` is guaranteed."""
    job: Job
    container: Optional[ContainerDetail] = None
    image: Optional[str] = None
    command: Optional[List[str]] = None
    environment: Dict[str, Optional[str]] = field(default_factory=dict)
    launch_type: Optional[str] = None
    task_arn: Optional[str] = None
    task: Optional[EcsTask] = None
    cluster_arn: Optional[str] = None
    task_candidate: Optional[str] = None
    container_instance_arn: Optional[str] = None
    container_instance: Optional[ContainerInstance] = None
    ec2_instance_id: Optional[str] = None
    ec2_instance: Optional[Ec2Instance] = None
    network_interface: Optional[NetworkInterface] = None
    compute_environment: Optional[ComputeEnvironment] = None
    vpc: Optional[VpcDetails] = None
    log_group_name: str = DEFAULT_LOG_GROUP
    log_stream_name: Optional[str] = None
    log_lines: Optional[List[str]] = None
    eks_pod_name: Optional[str] = None
    eks_node_name: Optional[str] = None

    @property
    def job_id(self) -> Optional[str]:
        return self.job.get("jobId")

    @property
    def status(self) -> Optional[str]:
        return self.job.get("status")

    @property
    def exit_code(self) -> Optional[int]:
        return (self.container or {}).get("exitCode")

    @property
    def reason(self) -> Optional[str]:
        return (self.container or {}).get("reason") or self.job.get("statusReason")

    @property
    def failed(self) -> bool:
        return self.status == "FAILED" or (self.exit_code is not None and self.exit_code != 0)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class JobChainResolver:
    """Resolves a Batch job id into a JobChain."""

    def __init__(
        self,
        clients: AwsClients,
        options: Optional[ResolveOptions] = None,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self.clients = clients
        self.options = options or ResolveOptions()
        self.diagnostics = diagnostics or Diagnostics(debug=settings.BATCHI_DEBUG)

        self.batch_service = BatchService(clients.batch)
        self.task_engine = TaskResolutionEngine(clients.ecs, self.diagnostics)
        self.host_engine = HostResolutionEngine(clients.ecs, clients.ec2, self.diagnostics)
        self.compute_environments = ComputeEnvironmentResolver(self.batch_service, self.diagnostics)
        self.network = NetworkService(clients.ec2, self.diagnostics)
        self.log_tail = LogTailService(clients.logs, self.options.log_group_name)

    def resolve(self, job_id: str) -> JobChain:
        """
        Resolve a job into its execution context.

        Raises:
            JobNotFound: If the job id does not exist. Nothing else is raised.
        """
        with log_context(job_id=job_id):
            job = self.batch_service.describe_job(job_id)
            chain = self._start_chain(job)
            eks = job_utils.is_eks_job(job)

            # Described once: the first candidate seeds the task lookup and
            # the same list is matched against the task's cluster afterwards.
            environments = self.compute_environments.candidates(job)
            cluster_hint = self.compute_environments.cluster_hint(environments)

            if eks:
                pod = job_utils.eks_pod(job)
                chain.eks_pod_name = pod["pod_name"]
                chain.eks_node_name = pod["node_name"]
            else:
                with log_context(stage="task"):
                    resolution = self.task_engine.resolve(chain.task_arn, cluster_hint, job_id)
                chain.task = resolution.task
                chain.cluster_arn = resolution.cluster_arn
                chain.task_candidate = resolution.candidate

            chain.compute_environment = self.compute_environments.select(environments, chain.cluster_arn)
            chain.launch_type = job_utils.job_launch_type(job, chain.task)

            if not eks:
                self._resolve_host(job, chain)

            chain.vpc = self.network.derive_vpc(
                instance=chain.ec2_instance,
                network_interface=chain.network_interface,
                compute_environment=chain.compute_environment,
            )
            chain.log_lines = self._fetch_logs(chain)

            logger.debug(f"[{STAGE}] Job chain resolved", extra={
                "cluster_arn": chain.cluster_arn,
                "ec2_instance_id": chain.ec2_instance_id,
                "log_stream_name": chain.log_stream_name,
            })
            return chain

    def _start_chain(self, job: Dict[str, Any]) -> JobChain:
        declared = job_utils.declared_container(job)
        runtime = job_utils.runtime_container(job)
        return JobChain(
            job=job,
            container=runtime or declared or None,
            image=declared.get("image"),
            command=declared.get("command"),
            environment=job_utils.environment_map(declared),
            task_arn=job_utils.runtime_value(job, "taskArn"),
            log_group_name=self.options.log_group_name,
            log_stream_name=job_utils.runtime_value(job, "logStreamName"),
        )

    def _resolve_host(self, job: Dict[str, Any], chain: JobChain) -> None:
        fargate = job_utils.is_fargate(job, chain.task)
        with log_context(stage="host", cluster_arn=chain.cluster_arn):
            host = self.host_engine.resolve(chain.task, chain.container, chain.cluster_arn, fargate=fargate)
        chain.container_instance_arn = host.container_instance_arn
        chain.container_instance = host.container_instance
        chain.ec2_instance_id = host.instance_id
        chain.ec2_instance = host.instance
        chain.network_interface = host.network_interface
        if fargate:
            chain.network_interface = self.network.find_network_interface(chain.task, chain.container)

    def _fetch_logs(self, chain: JobChain) -> Optional[List[str]]:
        if not self.options.fetch_logs:
            return None
        if not chain.log_stream_name:
            self.diagnostics.trace(STAGE, "No log stream on the job; no logs available")
            return None
        try:
            return self.log_tail.fetch_tail(chain.log_stream_name, self.options.log_line_count)
        except Exception as e:
            self.diagnostics.soft_failure(STAGE, e, log_stream_name=chain.log_stream_name)
            return None
