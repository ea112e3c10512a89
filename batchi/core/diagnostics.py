"""
Diagnostics sink.

Every resolution stage receives a Diagnostics instance and reports skipped
candidates and absorbed failures through it. Nothing here changes a
resolution outcome; the sink only decides what gets recorded and logged.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from batchi.utils.error_utils import normalize_error_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiagnosticEvent:
    stage: str
    message: str
    error_type: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)


class Diagnostics:
    """Collects diagnostic events for one resolution."""

    def __init__(self, debug: bool = False, log: Optional[logging.Logger] = None):
        self.debug = debug
        self.events: List[DiagnosticEvent] = []
        self.suppressed_count = 0
        self.suppressed_by_stage: Dict[str, Dict[str, int]] = {}
        self._logger = log or logger

    def trace(self, stage: str, message: str, **fields: Any) -> None:
        """Record a progress note. Only kept in debug mode."""
        if not self.debug:
            return
        self.events.append(DiagnosticEvent(stage=stage, message=message, fields=fields))
        self._logger.info(f"[{stage}] {message}", extra={"stage": stage, **fields})

    def soft_failure(self, stage: str, error: Exception, **fields: Any) -> None:
        """
        Record an absorbed failure of a non-essential step.

        The failing field is left unresolved by the caller; in non-debug mode
        the error is dropped without a trace.
        """
        if not self.debug:
            return
        error_type, error_message = normalize_error_message(error)
        self.events.append(DiagnosticEvent(
            stage=stage,
            message=error_message,
            error_type=error_type,
            fields=fields,
        ))
        self._logger.warning(f"[{stage}] {error_type}: {error_message}", extra={"stage": stage, **fields})

    def suppressed(self, stage: str, error: Exception) -> None:
        """Count an expected-negative lookup per stage and error type. Never logged."""
        error_type, _ = normalize_error_message(error)
        counts = self.suppressed_by_stage.setdefault(stage, {})
        counts[error_type] = counts.get(error_type, 0) + 1
        self.suppressed_count += 1

    def for_stage(self, stage: str) -> List[DiagnosticEvent]:
        return [e for e in self.events if e.stage == stage]
