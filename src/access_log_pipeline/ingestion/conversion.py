"""
Synchronous line/event matching with a per-line deadline.

Lines are handed to a tokenizer session one at a time. After each
submission the converter waits for the matching event; if it does not
arrive before the deadline the whole object is abandoned with a
TokenizerStallError. The tokenizer may silently drop lines it cannot
parse, and the deadline is the only way to tell a dropped line from a
slow one.
"""

import logging
import queue
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from ..config.constants import COMMENT_PREFIX, DEFAULT_LINE_TIMEOUT_SECONDS
from .exceptions import TokenizerStallError

if TYPE_CHECKING:
    from .base import Event
    from .tokenizer import TokenizerSession

logger = logging.getLogger(__name__)


class Deadline:
    """
    A wall-clock deadline that is re-armed for every line.

    Uses a monotonic clock so system clock changes cannot shorten or
    extend the wait.
    """

    def __init__(
        self,
        seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.seconds = seconds
        self._clock = clock
        self._expires_at = clock() + seconds

    def reset(self) -> None:
        """Re-arm the deadline starting now."""
        self._expires_at = self._clock() + self.seconds

    def remaining(self) -> float:
        """Seconds left before expiry, never negative."""
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self._clock() >= self._expires_at


@dataclass
class ConversionStats:
    """Counters for one object's conversion."""

    lines_read: int = 0
    skipped: int = 0
    submitted: int = 0
    confirmed: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            "lines_read": self.lines_read,
            "skipped": self.skipped,
            "submitted": self.submitted,
            "confirmed": self.confirmed,
        }


def is_skippable_line(line: str) -> bool:
    """Blank lines and comment lines (#Version, #Fields) are never submitted."""
    return not line.strip() or line.startswith(COMMENT_PREFIX)


class LineConverter:
    """
    Drives one tokenizer session through the lines of one object.

    Usage:
        with tokenizer.open_session() as session:
            converter = LineConverter(session, line_timeout=1.0)
            stats = converter.convert(lines, out=forward)
    """

    def __init__(
        self,
        session: "TokenizerSession",
        line_timeout: float = DEFAULT_LINE_TIMEOUT_SECONDS,
        prepare: Optional[Callable[[str], str]] = None,
        object_id: Optional[str] = None,
    ):
        """
        Initialize the converter.

        Args:
            session: Open tokenizer session
            line_timeout: Seconds allowed per line, measured from submission
            prepare: Normalization applied to each line before submission
            object_id: Object identifier used in error reports
        """
        self.session = session
        self.line_timeout = line_timeout
        self.prepare = prepare or (lambda line: line)
        self.object_id = object_id
        self.stats = ConversionStats()

    def convert(
        self,
        lines: Iterable[str],
        out: Callable[["Event"], None],
    ) -> ConversionStats:
        """
        Submit every line and forward each confirmed event to out.

        Events are forwarded as soon as they are confirmed; nothing already
        forwarded is withdrawn when a later line stalls.

        Args:
            lines: Raw lines of the object, in file order
            out: Callback receiving each confirmed event

        Returns:
            Conversion counters

        Raises:
            TokenizerStallError: If a line's event misses its deadline
        """
        stats = self.stats
        deadline = Deadline(self.line_timeout)

        for line in lines:
            stats.lines_read += 1
            if is_skippable_line(line):
                stats.skipped += 1
                continue

            prepared = self.prepare(line)
            deadline.reset()
            stats.submitted += 1

            try:
                self.session.submit(prepared, timeout=deadline.remaining())
                event = self.session.next_event(timeout=deadline.remaining())
            except (queue.Full, queue.Empty):
                logger.debug(
                    f"No event for line {stats.lines_read} within "
                    f"{self.line_timeout}s: {prepared[:100]!r}"
                )
                raise TokenizerStallError(
                    confirmed=stats.confirmed,
                    submitted=stats.submitted,
                    timeout_seconds=self.line_timeout,
                    object_id=self.object_id,
                )

            stats.confirmed += 1
            out(event)

        return stats
