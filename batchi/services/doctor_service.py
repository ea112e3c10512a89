"""
Doctor Service
Checks credentials and the read-only permissions each command relies on.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from batchi.core.aws_clients import AwsClients
from batchi.utils.error_utils import normalize_error_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckResult:
    name: str
    passed: bool
    message: Optional[str] = None


@dataclass
class DoctorReport:
    region: str
    identity: CheckResult
    identity_arn: Optional[str] = None
    commands: Dict[str, List[CheckResult]] = field(default_factory=dict)

    def command_passed(self, command: str) -> bool:
        return all(r.passed for r in self.commands.get(command, []))

    @property
    def passed(self) -> bool:
        return self.identity.passed and all(self.command_passed(c) for c in self.commands)


def run_check(name: str, call: Callable[[], Any]) -> CheckResult:
    try:
        call()
        return CheckResult(name, True)
    except Exception as e:
        _, message = normalize_error_message(e)
        return CheckResult(name, False, message)


class DoctorService:
    """Runs one cheap read per service a command touches."""

    def __init__(self, clients: AwsClients):
        self.clients = clients

    def _checks(self) -> Dict[str, Callable[[], Any]]:
        c = self.clients
        return {
            "batch:DescribeJobQueues": lambda: c.batch.describe_job_queues(maxResults=1),
            "ecs:ListClusters": lambda: c.ecs.list_clusters(maxResults=1),
            "ec2:DescribeVpcs": lambda: c.ec2.describe_vpcs(MaxResults=5),
            "logs:DescribeLogGroups": lambda: c.logs.describe_log_groups(limit=1),
            "s3:ListBuckets": lambda: c.s3.list_buckets(),
        }

    def run(self) -> DoctorReport:
        identity_arn: Dict[str, Optional[str]] = {"arn": None}

        def caller_identity() -> None:
            identity_arn["arn"] = self.clients.sts.get_caller_identity().get("Arn")

        report = DoctorReport(
            region=self.clients.region,
            identity=run_check("sts:GetCallerIdentity", caller_identity),
        )
        report.identity_arn = identity_arn["arn"]

        checks = self._checks()
        results = {name: run_check(name, call) for name, call in checks.items()}
        command_needs = {
            "inspect": ["batch:DescribeJobQueues", "ecs:ListClusters", "ec2:DescribeVpcs", "logs:DescribeLogGroups"],
            "logs": ["logs:DescribeLogGroups", "batch:DescribeJobQueues"],
            "artifacts": ["s3:ListBuckets", "batch:DescribeJobQueues", "logs:DescribeLogGroups"],
        }
        for command, needs in command_needs.items():
            report.commands[command] = [results[n] for n in needs]

        logger.info("[DoctorService] Checks complete", extra={"passed": report.passed, "region": report.region})
        return report
