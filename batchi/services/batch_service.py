"""
Batch Service
Read-only lookups against AWS Batch: jobs, job queues, compute environments.
"""

import logging
from typing import Any, Dict, List

from batchi.core.errors import JobNotFound
from batchi.types import ComputeEnvironment, Job

logger = logging.getLogger(__name__)


class BatchService:
    """Fetches scheduler records. No retries: a point-in-time read is definitive."""

    def __init__(self, batch_client: Any):
        self.batch = batch_client

    def describe_job(self, job_id: str) -> Job:
        """
        Fetch one job record with its attempt history.

        Raises:
            JobNotFound: If the scheduler returns no matching record
        """
        response = self.batch.describe_jobs(jobs=[job_id])
        jobs = response.get("jobs") or []
        if not jobs:
            raise JobNotFound(job_id)
        logger.debug("[BatchService] Job fetched", extra={
            "job_id": job_id,
            "status": jobs[0].get("status"),
            "attempts": len(jobs[0].get("attempts") or []),
        })
        return jobs[0]

    def describe_job_queue(self, job_queue: str) -> Dict[str, Any]:
        response = self.batch.describe_job_queues(jobQueues=[job_queue])
        queues = response.get("jobQueues") or []
        return queues[0] if queues else {}

    def describe_compute_environments(self, compute_environments: List[str]) -> List[ComputeEnvironment]:
        """Describe several compute environments in one batched call."""
        if not compute_environments:
            return []
        response = self.batch.describe_compute_environments(computeEnvironments=compute_environments)
        return response.get("computeEnvironments") or []
