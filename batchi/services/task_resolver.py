"""
Task Resolution Engine

Finds the ECS task that ran a Batch job attempt, and the cluster that owns it.

The task ARN alone does not say which cluster accepted the task, so the
engine walks an ordered list of candidate lookups and stops at the first
one that returns a live task record:

1. the cluster hinted by the compute environment
2. the cluster ARN rebuilt from the task ARN
3. the cluster name parsed from the task ARN
4. no cluster at all (ECS searches the default cluster)
5. every cluster visible to the caller
6. every cluster, searching tasks started by the job id

A match is only claimed after describe_tasks returns the task, so a
task/cluster pair is never reported from a guess alone.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from batchi.core.diagnostics import Diagnostics
from batchi.types import EcsTask
from batchi.utils.arn_utils import (
    cluster_arn_from_task_arn,
    cluster_name_from_cluster_arn,
    cluster_name_from_task_arn,
)
from batchi.utils.error_utils import is_cluster_mismatch

logger = logging.getLogger(__name__)

STAGE = "TaskResolver"


class LookupOutcome(Enum):
    FOUND = "found"
    NO_MATCH = "no_match"
    EXPECTED_NEGATIVE = "expected_negative"
    ERROR = "error"


@dataclass(frozen=True)
class LookupResult:
    outcome: LookupOutcome
    task: Optional[Dict[str, Any]] = None
    cluster_arn: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def found(self) -> bool:
        return self.outcome is LookupOutcome.FOUND


NO_MATCH = LookupResult(LookupOutcome.NO_MATCH)


@dataclass(frozen=True)
class TaskLookupCandidate:
    """One entry of the fallback chain: a label, whether it applies, and the lookup."""
    name: str
    applies: bool
    lookup: Callable[[], LookupResult]


@dataclass(frozen=True)
class TaskResolution:
    task: Optional[EcsTask] = None
    cluster_arn: Optional[str] = None
    candidate: Optional[str] = None


class _ClusterDirectory:
    """Lists the caller's clusters once per resolution."""

    def __init__(self, ecs_client: Any, diagnostics: Diagnostics):
        self._ecs = ecs_client
        self._diagnostics = diagnostics
        self._cluster_arns: Optional[List[str]] = None

    def all(self) -> List[str]:
        if self._cluster_arns is None:
            self._cluster_arns = self._list()
        return self._cluster_arns

    def _list(self) -> List[str]:
        arns: List[str] = []
        kwargs: Dict[str, Any] = {}
        try:
            while True:
                response = self._ecs.list_clusters(**kwargs)
                arns.extend(response.get("clusterArns") or [])
                token = response.get("nextToken")
                if not token:
                    break
                kwargs["nextToken"] = token
        except Exception as e:
            self._diagnostics.soft_failure(STAGE, e, operation="list_clusters")
        return arns


class TaskResolutionEngine:
    """Resolves {task, cluster_arn} from a task reference and optional hints."""

    def __init__(self, ecs_client: Any, diagnostics: Optional[Diagnostics] = None):
        self.ecs = ecs_client
        self.diagnostics = diagnostics or Diagnostics()

    def resolve(
        self,
        task_ref: Optional[str],
        cluster_hint: Optional[str] = None,
        job_id: Optional[str] = None,
    ) -> TaskResolution:
        """
        Run the fallback chain.

        Args:
            task_ref: Task ARN (or bare task id) from the job attempt
            cluster_hint: Cluster ARN from the compute environment, if known
            job_id: Batch job id, used by the started-by search

        Returns:
            TaskResolution; both fields are None when nothing matched
        """
        if not task_ref:
            self.diagnostics.trace(STAGE, "No task reference on the job; skipping task lookup")
            return TaskResolution()

        for candidate in self.candidates(task_ref, cluster_hint, job_id):
            if not candidate.applies:
                continue
            result = candidate.lookup()
            self._report(candidate.name, result)
            if result.found:
                return TaskResolution(result.task, result.cluster_arn, candidate.name)

        self.diagnostics.trace(STAGE, "No ECS task resolved", task_ref=task_ref)
        return TaskResolution()

    def candidates(
        self,
        task_ref: str,
        cluster_hint: Optional[str] = None,
        job_id: Optional[str] = None,
    ) -> List[TaskLookupCandidate]:
        """Build the ordered candidate list. Identifiers already listed are not retried."""
        directory = _ClusterDirectory(self.ecs, self.diagnostics)
        tried: List[str] = []

        def fresh(cluster: Optional[str]) -> bool:
            if not cluster or cluster in tried:
                return False
            tried.append(cluster)
            return True

        hint_arn = cluster_hint
        parsed_arn = cluster_arn_from_task_arn(task_ref)
        parsed_name = cluster_name_from_task_arn(task_ref)

        return [
            TaskLookupCandidate(
                "hinted-cluster",
                fresh(hint_arn),
                lambda: self._describe(task_ref, hint_arn),
            ),
            TaskLookupCandidate(
                "task-arn-cluster",
                fresh(parsed_arn),
                lambda: self._describe(task_ref, parsed_arn),
            ),
            TaskLookupCandidate(
                "task-arn-cluster-name",
                fresh(parsed_name),
                lambda: self._describe(task_ref, parsed_name),
            ),
            TaskLookupCandidate(
                "no-cluster",
                True,
                lambda: self._describe(task_ref, None),
            ),
            TaskLookupCandidate(
                "cluster-scan",
                True,
                lambda: self._scan_clusters(task_ref, directory, tried),
            ),
            TaskLookupCandidate(
                "started-by-scan",
                bool(job_id),
                lambda: self._scan_started_by(job_id, directory),
            ),
        ]

    def _describe(self, task_ref: str, cluster: Optional[str]) -> LookupResult:
        kwargs: Dict[str, Any] = {"tasks": [task_ref]}
        if cluster:
            kwargs["cluster"] = cluster
        try:
            response = self.ecs.describe_tasks(**kwargs)
        except Exception as e:
            if is_cluster_mismatch(e):
                return LookupResult(LookupOutcome.EXPECTED_NEGATIVE, error=e)
            return LookupResult(LookupOutcome.ERROR, error=e)

        tasks = response.get("tasks") or []
        if not tasks:
            return NO_MATCH
        task = tasks[0]
        cluster_arn = (
            task.get("clusterArn")
            or (cluster if cluster and cluster.startswith("arn:") else None)
            or cluster_arn_from_task_arn(task.get("taskArn"))
        )
        return LookupResult(LookupOutcome.FOUND, task=task, cluster_arn=cluster_arn)

    def _scan_clusters(self, task_ref: str, directory: _ClusterDirectory, tried: List[str]) -> LookupResult:
        for cluster_arn in directory.all():
            if cluster_arn in tried or cluster_name_from_cluster_arn(cluster_arn) in tried:
                continue
            result = self._describe(task_ref, cluster_arn)
            if result.found:
                return result
            self._report(f"cluster-scan:{cluster_arn}", result)
        return NO_MATCH

    def _scan_started_by(self, job_id: Optional[str], directory: _ClusterDirectory) -> LookupResult:
        for cluster_arn in directory.all():
            try:
                response = self.ecs.list_tasks(cluster=cluster_arn, startedBy=job_id)
            except Exception as e:
                self._report(
                    f"started-by-scan:{cluster_arn}",
                    LookupResult(LookupOutcome.ERROR, error=e),
                )
                continue
            task_arns = response.get("taskArns") or []
            if not task_arns:
                continue
            result = self._describe(task_arns[0], cluster_arn)
            if result.found:
                return result
            self._report(f"started-by-scan:{cluster_arn}", result)
        return NO_MATCH

    def _report(self, candidate: str, result: LookupResult) -> None:
        if result.outcome is LookupOutcome.FOUND:
            self.diagnostics.trace(STAGE, f"Task resolved via {candidate}", cluster_arn=result.cluster_arn)
        elif result.outcome is LookupOutcome.NO_MATCH:
            self.diagnostics.trace(STAGE, f"No task via {candidate}")
        elif result.outcome is LookupOutcome.EXPECTED_NEGATIVE:
            self.diagnostics.suppressed(STAGE, result.error)
        else:
            self.diagnostics.soft_failure(STAGE, result.error, candidate=candidate)
