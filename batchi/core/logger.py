import datetime
import json
import logging
import sys
from typing import Any, Dict, Optional, TextIO

from batchi.core.log_context import CONTEXT_FIELDS, ContextFilter

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

# LogRecord attributes that are never copied as extra fields
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def default_json_serializer(obj: Any) -> Any:
    """json.dumps fallback: ISO dates, str() for everything else."""
    if isinstance(obj, (datetime.date, datetime.datetime)):
        return obj.isoformat()
    try:
        return str(obj)
    except Exception:
        return "<not_serializable>"


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    Base fields first, then the bound correlation fields, then anything
    passed through extra={...}. Exceptions become structured fields.
    """

    def __init__(self, datefmt: str = "%Y-%m-%dT%H:%M:%SZ"):
        super().__init__(datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            if getattr(record, name, None) is not None:
                payload[name] = getattr(record, name)
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and key not in payload and not key.startswith("_"):
                payload[key] = value

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            payload["exception_type"] = exc_type.__name__ if exc_type else "Unknown"
            payload["exception_message"] = str(exc_value)
            payload["exception_stack"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=default_json_serializer)


def setup_logging(level: str = "WARNING", log_format: str = "text", stream: Optional[TextIO] = None) -> None:
    """
    Configure the root logger for a CLI run.

    Records go to stderr by default so command output on stdout stays
    pipeable.

    Args:
        level: Logging level name (case-insensitive)
        log_format: 'text' or 'json'
        stream: Override the output stream
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    if (log_format or "text").lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    handler.addFilter(ContextFilter())

    root = logging.getLogger()
    root.setLevel(level.upper() if isinstance(level, str) else level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)

    # SDK wire logging is noise even with --debug
    for noisy in ("boto3", "botocore", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
