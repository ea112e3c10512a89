"""
Compute Environment Resolver

A job queue can fan out over several compute environments. The one that
actually ran the job is the one whose ECS cluster matches the cluster the
task was found in; without a match, the first environment in queue order
is reported.
"""

import logging
from typing import Any, Dict, List, Optional

from batchi.core.diagnostics import Diagnostics
from batchi.services.batch_service import BatchService

logger = logging.getLogger(__name__)

STAGE = "ComputeEnvironmentResolver"


def queue_compute_environments(job_queue: Dict[str, Any]) -> List[str]:
    """Compute environment ARNs of a queue in priority order."""
    order = sorted(
        job_queue.get("computeEnvironmentOrder") or [],
        key=lambda entry: entry.get("order", 0),
    )
    return [entry["computeEnvironment"] for entry in order if entry.get("computeEnvironment")]


class ComputeEnvironmentResolver:
    """Resolves the compute environment that executed a job."""

    def __init__(self, batch_service: BatchService, diagnostics: Optional[Diagnostics] = None):
        self.batch_service = batch_service
        self.diagnostics = diagnostics or Diagnostics()

    def resolve(self, job: Dict[str, Any], cluster_arn: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Resolve the job's compute environment.

        Args:
            job: Batch job record
            cluster_arn: ECS cluster the task was resolved in, if any

        Returns:
            Compute environment record, or None
        """
        return self.select(self.candidates(job), cluster_arn)

    def candidates(self, job: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Describe the environments that could have run the job, in queue order.

        A direct reference yields just that environment. Otherwise every
        environment attached to the job queue is described in one call.
        Lookup failures are reported and yield an empty list.
        """
        try:
            direct = job.get("computeEnvironment")
            if direct:
                return self.batch_service.describe_compute_environments([direct])[:1]
            return self._queue_candidates(job)
        except Exception as e:
            self.diagnostics.soft_failure(STAGE, e, job_queue=job.get("jobQueue"))
            return []

    def _queue_candidates(self, job: Dict[str, Any]) -> List[Dict[str, Any]]:
        job_queue = job.get("jobQueue")
        if not job_queue:
            return []
        queue = self.batch_service.describe_job_queue(job_queue)
        ordered = queue_compute_environments(queue)
        if not ordered:
            self.diagnostics.trace(STAGE, "Queue has no compute environments", job_queue=job_queue)
            return []

        described = self.batch_service.describe_compute_environments(ordered)
        by_ref: Dict[str, Dict[str, Any]] = {}
        for env in described:
            for key in ("computeEnvironmentArn", "computeEnvironmentName"):
                if env.get(key):
                    by_ref[env[key]] = env
        return [by_ref[ref] for ref in ordered if ref in by_ref]

    def select(
        self, candidates: List[Dict[str, Any]], cluster_arn: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """Exact cluster match among the candidates, else the first in queue order."""
        if not candidates:
            return None
        if cluster_arn:
            for env in candidates:
                if env.get("ecsClusterArn") == cluster_arn:
                    self.diagnostics.trace(
                        STAGE,
                        "Compute environment matched by cluster",
                        compute_environment=env.get("computeEnvironmentName"),
                    )
                    return env

        if len(candidates) > 1:
            self.diagnostics.trace(STAGE, "No cluster match; using first compute environment in queue order")
        return candidates[0]

    def cluster_hint(self, candidates: List[Dict[str, Any]]) -> Optional[str]:
        """ECS cluster of the first candidate, used to seed the task lookup."""
        if not candidates:
            return None
        return candidates[0].get("ecsClusterArn") or None
