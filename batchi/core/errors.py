"""Exceptions raised by the resolution core."""


class BatchiError(Exception):
    """Base class for errors surfaced to the caller."""


class JobNotFound(BatchiError):
    """The scheduler has no record of the requested job id."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")
