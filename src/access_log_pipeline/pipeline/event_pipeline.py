"""
Event pipeline for one downloaded log object.

Stages:
1. Tokenize: feed the object's lines to the format's tokenizer and
   confirm one event per line under the per-line deadline
2. Sample: derive the event's key, query the estimator, keep or drop
3. Forward: shape the request field and hand kept events to the sender

Per object: Init -> Tokenizing -> Draining (success) or Aborted (stall or
read error). Events forwarded before an abort stay forwarded; the
pipeline never retries.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..ingestion.base import Event, EventParser, RawObject
from ..ingestion.conversion import ConversionStats
from ..telemetry.sender import EventSender
from ..utils.url_utils import shape_request
from .sampling import DynamicSampler

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Result of running the pipeline over one object."""

    object_id: str
    started_at: datetime = field(default_factory=lambda: datetime.now().astimezone())
    completed_at: Optional[datetime] = None
    # Stats
    lines_read: int = 0
    lines_skipped: int = 0
    events_confirmed: int = 0
    events_sent: int = 0
    events_dropped: int = 0

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get pipeline duration in seconds."""
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            "object_id": self.object_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
            "duration_seconds": self.duration_seconds,
            "lines_read": self.lines_read,
            "lines_skipped": self.lines_skipped,
            "events_confirmed": self.events_confirmed,
            "events_sent": self.events_sent,
            "events_dropped": self.events_dropped,
        }


class EventPipeline:
    """
    Converts, samples and forwards the events of one object at a time.

    One pipeline instance may serve many objects sequentially; concurrent
    objects need their own result tracking but may share the parser,
    sampler and sender.

    Example:
        pipeline = EventPipeline(parser, DynamicSampler(estimator), sender)
        result = pipeline.run(RawObject(id=key, local_path=path))
    """

    def __init__(
        self,
        parser: EventParser,
        sampler: DynamicSampler,
        sender: EventSender,
        shape_field: Optional[str] = "request",
    ):
        """
        Initialize the pipeline.

        Args:
            parser: Event parser for the objects' log format
            sampler: Accept/reject rule applied to each confirmed event
            sender: Destination of kept events
            shape_field: Request field to shape on kept events (None disables)
        """
        self.parser = parser
        self.sampler = sampler
        self.sender = sender
        self.shape_field = shape_field

    def run(self, obj: RawObject) -> PipelineResult:
        """
        Run every line of an object through the pipeline.

        Args:
            obj: Downloaded object

        Returns:
            PipelineResult with line and event counters

        Raises:
            TokenizerStallError: If the tokenizer misses a line's deadline
            ObjectReadError: If the object cannot be read
        """
        result = PipelineResult(object_id=obj.id)
        logger.info(f"Processing {self.parser.format_name} object {obj.id}")

        def forward(event: Event) -> None:
            key = self.parser.derive_sample_key(event)
            sampled = self.sampler.sample(event, key)
            if sampled is None:
                result.events_dropped += 1
                return

            if self.shape_field:
                shape_request(sampled.fields, self.shape_field)
            self.sender.send(sampled)
            result.events_sent += 1

        stats: ConversionStats = self.parser.parse_events(obj, out=forward)

        result.lines_read = stats.lines_read
        result.lines_skipped = stats.skipped
        result.events_confirmed = stats.confirmed
        result.completed_at = datetime.now().astimezone()

        logger.info(
            f"Finished {obj.id}: {result.events_confirmed} events, "
            f"{result.events_sent} sent, {result.events_dropped} sampled out "
            f"in {result.duration_seconds:.2f}s"
        )
        return result
