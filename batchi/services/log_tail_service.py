"""
Log Tail Service
Reads a job's CloudWatch log stream: a bounded tail, or a polling follow.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Iterator, List, Optional

from batchi.core.config import settings

logger = logging.getLogger(__name__)

DEFAULT_LOG_GROUP = "/aws/batch/job"
# Upper bound on pages read by one bounded fetch
MAX_PAGES = 20


@dataclass(frozen=True)
class LogBatch:
    """New lines from one follow poll, plus the token to resume after them."""
    lines: List[str]
    next_token: Optional[str]


def event_lines(events: Optional[List[Dict[str, Any]]]) -> List[str]:
    """Trimmed, non-empty messages in the order CloudWatch returned them."""
    lines = []
    for event in events or []:
        message = (event.get("message") or "").strip()
        if message:
            lines.append(message)
    return lines


def since_to_start_time(since: Optional[timedelta], now: Optional[float] = None) -> Optional[int]:
    """Epoch milliseconds for 'now minus since', or None."""
    if not since or since.total_seconds() <= 0:
        return None
    current = time.time() if now is None else now
    return int((current - since.total_seconds()) * 1000)


class LogTailService:
    """CloudWatch Logs reader for one log group."""

    def __init__(self, logs_client: Any, log_group_name: str = DEFAULT_LOG_GROUP):
        self.logs = logs_client
        self.log_group_name = log_group_name or DEFAULT_LOG_GROUP

    def _base_params(self, log_stream_name: str) -> Dict[str, Any]:
        return {
            "logGroupName": self.log_group_name,
            "logStreamName": log_stream_name,
        }

    def fetch_tail(
        self,
        log_stream_name: str,
        line_count: int = 50,
        since: Optional[timedelta] = None,
    ) -> List[str]:
        """
        Fetch the last N non-empty lines of a stream, oldest first.

        Args:
            log_stream_name: Stream to read
            line_count: Number of lines to keep (at least 1)
            since: Only consider events newer than now minus this duration

        Returns:
            Up to line_count lines in chronological order
        """
        line_count = max(1, int(line_count))
        start_time = since_to_start_time(since)
        if start_time is not None:
            return self._fetch_forward(log_stream_name, line_count, start_time)
        return self._fetch_backward(log_stream_name, line_count)

    def _fetch_backward(self, log_stream_name: str, line_count: int) -> List[str]:
        params = self._base_params(log_stream_name)
        params["startFromHead"] = False
        lines: List[str] = []
        token: Optional[str] = None
        for _ in range(MAX_PAGES):
            response = self.logs.get_log_events(**params)
            events = response.get("events") or []
            backward = response.get("nextBackwardToken")
            # A repeated token means the same page came back
            if token is not None and backward == token:
                break
            lines = event_lines(events) + lines
            if len(lines) >= line_count or not events or not backward:
                break
            token = backward
            params["nextToken"] = backward
        return lines[-line_count:]

    def _fetch_forward(self, log_stream_name: str, line_count: int, start_time: int) -> List[str]:
        params = self._base_params(log_stream_name)
        params["startFromHead"] = True
        params["startTime"] = start_time
        window: deque = deque(maxlen=line_count)
        token: Optional[str] = None
        for _ in range(MAX_PAGES):
            response = self.logs.get_log_events(**params)
            events = response.get("events") or []
            forward = response.get("nextForwardToken")
            if token is not None and forward == token:
                break
            window.extend(event_lines(events))
            if not events or not forward:
                break
            token = forward
            params["nextToken"] = forward
        return list(window)

    def follow(
        self,
        log_stream_name: str,
        from_start: bool = False,
        since: Optional[timedelta] = None,
        stop_event: Optional[threading.Event] = None,
        poll_interval: Optional[float] = None,
        next_token: Optional[str] = None,
    ) -> Iterator[LogBatch]:
        """
        Poll a stream and yield batches of new lines until stopped.

        Lines already yielded are never repeated: each poll resumes from the
        previous page's forward token. Passing next_token resumes a previous
        follow.

        Args:
            log_stream_name: Stream to follow
            from_start: Start the first page at the head of the stream instead of the tail
            since: Only the first page is limited to events newer than now minus this
            stop_event: Set it to end the loop; checked between polls
            poll_interval: Seconds between polls
            next_token: Forward token to resume from
        """
        stop = stop_event or threading.Event()
        interval = poll_interval if poll_interval is not None else settings.BATCHI_FOLLOW_INTERVAL_SECONDS
        start_time = since_to_start_time(since)
        token = next_token

        while not stop.is_set():
            params = self._base_params(log_stream_name)
            params["startFromHead"] = from_start
            if token:
                params["nextToken"] = token
            elif start_time is not None:
                params["startTime"] = start_time

            response = self.logs.get_log_events(**params)
            forward = response.get("nextForwardToken")
            if forward:
                token = forward
            lines = event_lines(response.get("events"))
            if lines:
                yield LogBatch(lines=lines, next_token=token)

            if stop.wait(interval):
                break
