"""
Error handling utilities for consistent error processing and messaging.

Provides helpers for normalizing error messages and for telling routine
wrong-cluster guesses apart from real failures during task resolution.
"""

from typing import Optional, Tuple

from botocore.exceptions import ClientError

# ECS error codes returned when a lookup targets the wrong cluster
CLUSTER_MISMATCH_CODES = ("ClusterNotFoundException",)
# Codes that are only a mismatch when the message talks about the cluster
CLUSTER_PARAMETER_CODES = ("InvalidParameterException",)
CLUSTER_MISMATCH_MARKERS = (
    "cluster identifier",
    "cluster not found",
    "does not match",
)


def normalize_error_message(error: Exception) -> Tuple[str, str]:
    """
    Normalize error message and type for consistent error handling.

    Extracts the error type name and message, ensuring a meaningful message
    is always returned even if the exception has no message.

    Args:
        error: Exception object to normalize

    Returns:
        Tuple of (error_type, error_message) where:
        - error_type: Name of the exception class, or the AWS error code for ClientError
        - error_message: String representation of the error, or error_type if empty

    Example:
        >>> try:
        ...     raise ValueError("Invalid input")
        ... except Exception as e:
        ...     error_type, error_msg = normalize_error_message(e)
        ...     print(f"{error_type}: {error_msg}")
        ValueError: Invalid input
    """
    error_type = aws_error_code(error) or type(error).__name__
    error_message = str(error)

    if not error_message or error_message == error_type:
        error_message = f"{error_type}: {error_message}" if error_message else error_type

    return error_type, error_message


def aws_error_code(error: Exception) -> Optional[str]:
    """Return the service error code of a botocore ClientError, if any."""
    if not isinstance(error, ClientError):
        return None
    return (error.response or {}).get("Error", {}).get("Code") or None


def aws_error_message(error: Exception) -> str:
    if isinstance(error, ClientError):
        return (error.response or {}).get("Error", {}).get("Message") or str(error)
    return str(error)


def is_cluster_mismatch(error: Exception) -> bool:
    """
    Whether a failed task lookup only means the guessed cluster was wrong.

    The structured error code decides first. The message is consulted for
    codes that are shared with other parameter problems, and as a last
    resort for errors that carry no code at all.
    """
    code = aws_error_code(error)
    message = aws_error_message(error).lower()

    if code in CLUSTER_MISMATCH_CODES:
        return True
    if code in CLUSTER_PARAMETER_CODES:
        return "cluster" in message and any(m in message for m in CLUSTER_MISMATCH_MARKERS)
    if code is None:
        return "cluster identifier" in message
    return False


def is_not_found(error: Exception) -> bool:
    code = aws_error_code(error) or ""
    return code in ("NoSuchKey", "NotFound", "404", "ResourceNotFoundException")
