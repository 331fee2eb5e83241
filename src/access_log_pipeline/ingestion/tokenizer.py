"""
Line tokenizer for nginx-style access-log formats.

A LineTokenizer turns one raw line into at most one Event. Sessions run
the tokenizer on worker threads between a bounded line queue and an
unbounded event queue, so callers submit lines and collect events
asynchronously:

    tokenizer = NginxTokenizer(ELB_SCHEMA)
    with tokenizer.open_session(num_workers=2) as session:
        session.submit(line, timeout=1.0)
        event = session.next_event(timeout=1.0)

Lines that do not match the schema are dropped without an event.
"""

import logging
import queue
import re
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional

from .base import Event
from .schemas import LogSchema

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"-?\d+")
_FLOAT_RE = re.compile(r"-?\d+\.\d+")

# How often idle workers check whether their session was closed
_WORKER_POLL_SECONDS = 0.05


def convert_value(value: str) -> Any:
    """
    Type a raw field value: integer, then float, otherwise the string.

    Examples:
        >>> convert_value("200")
        200
        >>> convert_value("0.000021")
        2.1e-05
        >>> convert_value("-")
        '-'
    """
    if _INT_RE.fullmatch(value):
        return int(value)
    if _FLOAT_RE.fullmatch(value):
        return float(value)
    return value


class LineTokenizer(ABC):
    """
    Stateless per-line parser bound to one log schema.

    Subclasses implement tokenize(); sessions provide the asynchronous
    line-in/event-out channel used by the conversion loop.
    """

    @abstractmethod
    def tokenize(self, line: str) -> Optional[Event]:
        """
        Parse one line.

        Returns:
            Event for the line, or None if the line cannot be parsed
        """
        pass

    def open_session(self, num_workers: int = 1) -> "TokenizerSession":
        """Start worker threads for a new stream of lines."""
        return TokenizerSession(self, num_workers=num_workers)


class TokenizerSession:
    """
    Worker threads feeding lines through a tokenizer.

    The line queue holds at most num_workers lines, so submission blocks
    once every worker is busy. Events are queued in the order workers
    finish; with a single worker that is submission order.
    """

    def __init__(self, tokenizer: LineTokenizer, num_workers: int = 1):
        if num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {num_workers}")

        self._tokenizer = tokenizer
        self._lines: queue.Queue = queue.Queue(maxsize=num_workers)
        self._events: queue.Queue = queue.Queue()
        self._closed = threading.Event()
        self._workers = [
            threading.Thread(
                target=self._run,
                name=f"tokenizer-{idx}",
                daemon=True,
            )
            for idx in range(num_workers)
        ]
        for worker in self._workers:
            worker.start()

    def submit(self, line: str, timeout: Optional[float] = None) -> None:
        """
        Hand a line to the workers.

        Raises:
            queue.Full: If no worker accepted the line within timeout
            RuntimeError: If the session is closed
        """
        if self._closed.is_set():
            raise RuntimeError("Tokenizer session is closed")
        self._lines.put(line, timeout=timeout)

    def next_event(self, timeout: Optional[float] = None) -> Event:
        """
        Wait for the next emitted event.

        Raises:
            queue.Empty: If no event arrived within timeout
        """
        return self._events.get(timeout=timeout)

    def close(self) -> None:
        """Stop the workers once they finish their current line."""
        self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def __enter__(self) -> "TokenizerSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _run(self) -> None:
        while not self._closed.is_set():
            try:
                line = self._lines.get(timeout=_WORKER_POLL_SECONDS)
            except queue.Empty:
                continue

            try:
                event = self._tokenizer.tokenize(line)
            except Exception as e:
                logger.warning(f"Tokenizer failed on line {line[:100]!r}: {e}")
                continue

            if event is None:
                continue
            if not self._closed.is_set():
                self._events.put(event)


class NginxTokenizer(LineTokenizer):
    """
    Tokenizer for log formats declared as nginx log_format templates.

    Values are typed with convert_value(). The time field is removed from
    the fields and becomes the event timestamp; it is parsed with the
    schema's time format, then as ISO 8601, and falls back to the current
    time when neither works.
    """

    def __init__(self, schema: LogSchema):
        self.schema = schema

    def tokenize(self, line: str) -> Optional[Event]:
        match = self.schema.pattern.match(line)
        if match is None:
            logger.debug(f"Line does not match {self.schema.name} format: {line[:100]!r}")
            return None

        groups = match.groupdict()
        raw_time = groups.get(self.schema.time_field, "")
        fields = {
            name: convert_value(groups[name])
            for name in self.schema.field_names
            if name != self.schema.time_field
        }

        return Event(timestamp=self.parse_timestamp(raw_time), fields=fields)

    def parse_timestamp(self, value: str) -> datetime:
        """
        Parse the time field into a UTC-aware datetime.

        Args:
            value: Raw time field value

        Returns:
            Parsed timestamp, or the current time if unparseable
        """
        try:
            parsed = datetime.strptime(value, self.schema.time_format)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                logger.warning(
                    f"Couldn't parse time {value!r} with format "
                    f"{self.schema.time_format!r}, using current time"
                )
                return datetime.now(timezone.utc)

        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
