"""
Correlation fields for log records.

A resolution binds the job id once; every engine it calls then logs with
that job id (and the current stage) without passing it around.
"""

import contextvars
import logging
from contextlib import contextmanager
from typing import Any, Iterator

# Fields attached to log records. Only these names are bound.
CONTEXT_FIELDS = ("job_id", "stage", "cluster_arn")

_fields: contextvars.ContextVar = contextvars.ContextVar("batchi_log_fields", default={})


def bind(**fields: Any) -> None:
    """Add correlation fields to the current context. Unknown names are ignored."""
    current = dict(_fields.get())
    current.update({k: v for k, v in fields.items() if k in CONTEXT_FIELDS and v is not None})
    _fields.set(current)


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """
    Bind fields for the duration of a block.

    Nested blocks add to the outer fields; leaving a block restores them.

        with log_context(job_id="job-123"):
            with log_context(stage="task"):
                ...
    """
    token = _fields.set(dict(_fields.get()))
    bind(**fields)
    try:
        yield
    finally:
        _fields.reset(token)


class ContextFilter(logging.Filter):
    """Copies bound fields onto each record, leaving explicit extra= values alone."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name, value in _fields.get().items():
            if not hasattr(record, name):
                setattr(record, name, value)
        return True
