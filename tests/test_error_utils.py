"""
Unit tests for error classification and the diagnostics sink.
"""

import logging
from unittest.mock import MagicMock

import pytest

from batchi.core.diagnostics import Diagnostics
from batchi.core.errors import BatchiError, JobNotFound
from batchi.utils.error_utils import (
    aws_error_code,
    is_cluster_mismatch,
    is_not_found,
    normalize_error_message,
)


# ============================================================================
# Error classification
# ============================================================================

def test_normalize_error_message():
    assert normalize_error_message(ValueError("Invalid input")) == ("ValueError", "Invalid input")
    assert normalize_error_message(RuntimeError()) == ("RuntimeError", "RuntimeError")


def test_normalize_uses_aws_code(client_error):
    error_type, message = normalize_error_message(client_error("AccessDeniedException", "nope"))
    assert error_type == "AccessDeniedException"
    assert "nope" in message
    assert aws_error_code(ValueError("x")) is None


@pytest.mark.parametrize("code,message,expected", [
    ("ClusterNotFoundException", "Cluster not found.", True),
    ("InvalidParameterException", "Cluster identifier in task ARN does not match the cluster", True),
    ("InvalidParameterException", "Tasks cannot be empty.", False),
    ("AccessDeniedException", "not authorized for cluster identifier", False),
    ("ThrottlingException", "Rate exceeded", False),
])
def test_is_cluster_mismatch(client_error, code, message, expected):
    assert is_cluster_mismatch(client_error(code, message)) is expected


def test_is_cluster_mismatch_without_code():
    assert is_cluster_mismatch(Exception("The cluster identifier does not match"))
    assert not is_cluster_mismatch(Exception("connection reset"))


def test_is_not_found(client_error):
    assert is_not_found(client_error("NoSuchKey", "", "GetObject"))
    assert is_not_found(client_error("404", "", "HeadObject"))
    assert not is_not_found(client_error("AccessDenied", "", "HeadObject"))


def test_job_not_found_is_a_batchi_error():
    error = JobNotFound("job-123")
    assert isinstance(error, BatchiError)
    assert error.job_id == "job-123"
    assert str(error) == "Job not found: job-123"


# ============================================================================
# Diagnostics
# ============================================================================

def test_quiet_diagnostics_record_nothing():
    log = MagicMock(spec=logging.Logger)
    diagnostics = Diagnostics(debug=False, log=log)

    diagnostics.trace("Stage", "note")
    diagnostics.soft_failure("Stage", ValueError("boom"))
    diagnostics.suppressed("Stage", ValueError("expected"))

    assert diagnostics.events == []
    assert diagnostics.suppressed_count == 1
    log.info.assert_not_called()
    log.warning.assert_not_called()


def test_suppressed_lookups_counted_per_stage_and_error_type(client_error):
    diagnostics = Diagnostics()

    diagnostics.suppressed("TaskResolver", client_error("InvalidParameterException", "Cluster identifier does not match"))
    diagnostics.suppressed("TaskResolver", client_error("InvalidParameterException", "Cluster identifier does not match"))
    diagnostics.suppressed("HostResolver", ValueError("expected"))

    assert diagnostics.suppressed_count == 3
    assert diagnostics.suppressed_by_stage == {
        "TaskResolver": {"InvalidParameterException": 2},
        "HostResolver": {"ValueError": 1},
    }
    assert diagnostics.events == []


def test_debug_diagnostics_record_and_log():
    log = MagicMock(spec=logging.Logger)
    diagnostics = Diagnostics(debug=True, log=log)

    diagnostics.trace("TaskResolver", "trying cluster", cluster="c1")
    diagnostics.soft_failure("NetworkDerivation", ValueError("boom"), operation="describe_vpcs")
    diagnostics.suppressed("TaskResolver", ValueError("expected"))

    assert len(diagnostics.events) == 2
    assert [e.stage for e in diagnostics.for_stage("NetworkDerivation")] == ["NetworkDerivation"]
    failure = diagnostics.for_stage("NetworkDerivation")[0]
    assert failure.error_type == "ValueError"
    assert failure.fields == {"operation": "describe_vpcs"}
    log.info.assert_called_once()
    # Suppressed errors never reach the log
    log.warning.assert_called_once()
    assert log.warning.call_args.args[0] == "[NetworkDerivation] ValueError: boom"
