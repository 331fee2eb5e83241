"""
Ingestor: publishes downloaded objects and records them as processed.

For each object the ingestor runs the event pipeline, deletes the local
copy and only then marks the object processed in the dedup store. Any
failure leaves the object unmarked so the object source presents it
again later.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..config.constants import FORMAT_SERVICES
from ..config.settings import Settings
from ..ingestion.base import RawObject
from ..ingestion.exceptions import CleanupError, IngestError
from ..ingestion.factory import create_event_parser
from ..state.base import Stater, StorageError
from ..state.file_stater import FileStater
from ..telemetry.sender import EventSender, HoneycombSender
from .event_pipeline import EventPipeline, PipelineResult
from .sampling import AvgSampleRate, DynamicSampler, SampleRateEstimator

logger = logging.getLogger(__name__)


class Ingestor:
    """
    Publishes downloaded objects through an event pipeline.

    Side effects happen in a fixed order: all lines converted and
    forwarded, local file deleted, object marked processed.
    """

    def __init__(self, pipeline: EventPipeline, stater: Stater):
        self.pipeline = pipeline
        self.stater = stater

    def publish(self, obj: RawObject) -> PipelineResult:
        """
        Ingest one downloaded object.

        Args:
            obj: Object handed over by the object source

        Returns:
            PipelineResult of the object's run

        Raises:
            IngestError: If the pipeline fails (file kept, object unmarked),
                the local file cannot be deleted (object unmarked), or the
                processed state cannot be updated
        """
        result = self.pipeline.run(obj)

        # Clean up the downloaded object.
        try:
            os.remove(obj.local_path)
        except OSError as e:
            raise CleanupError(obj.local_path, str(e), object_id=obj.id) from e

        try:
            self.stater.set_processed(obj.id)
        except StorageError as e:
            raise IngestError(
                f"Error setting state of object as processed: {e}",
                object_id=obj.id,
            ) from e

        return result


@dataclass
class IngestSummary:
    """Outcome of ingesting a stream of objects."""

    published: int = 0
    failed: int = 0
    events_sent: int = 0
    failed_objects: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            "published": self.published,
            "failed": self.failed,
            "events_sent": self.events_sent,
            "failed_objects": list(self.failed_objects),
        }


def ingest_objects(objects: Iterable[RawObject], ingestor: Ingestor) -> IngestSummary:
    """
    Publish every object, continuing past failed ones.

    Failed objects are logged and left for a future retry.

    Args:
        objects: Objects from the object source
        ingestor: Ingestor to publish with

    Returns:
        IngestSummary with per-run counters
    """
    summary = IngestSummary()

    for obj in objects:
        try:
            result = ingestor.publish(obj)
        except IngestError as e:
            logger.error(f"Cannot properly publish downloaded object {obj.id}: {e}")
            summary.failed += 1
            summary.failed_objects.append(obj.id)
            continue

        summary.published += 1
        summary.events_sent += result.events_sent

    logger.info(
        f"Ingestion finished: {summary.published} objects published, "
        f"{summary.failed} failed, {summary.events_sent} events sent"
    )
    return summary


def create_ingestor(
    format_name: str,
    settings: Settings,
    sender: Optional[EventSender] = None,
    estimator: Optional[SampleRateEstimator] = None,
    stater: Optional[Stater] = None,
) -> Ingestor:
    """
    Wire an ingestor for one log format from settings.

    The estimator is started here; a start failure means the system
    cannot sample correctly and is meant to end the process.

    Args:
        format_name: Log format identifier ('aws_elb' or 'aws_cf_web')
        settings: Settings built at process start
        sender: Event destination (default: HoneycombSender for the service dataset)
        estimator: Sample-rate estimator (default: AvgSampleRate from settings)
        stater: Dedup store (default: FileStater in settings.state_dir)

    Returns:
        Ingestor ready to publish objects

    Raises:
        UnknownFormatError: If the format is not supported
        EstimatorStartError: If the estimator cannot be started
    """
    parser = create_event_parser(format_name, settings)
    service = FORMAT_SERVICES[parser.format_name]

    if estimator is None:
        estimator = AvgSampleRate(
            goal_sample_rate=settings.sampling.goal_sample_rate,
            clear_frequency_sec=settings.sampling.clear_frequency_sec,
        )
    estimator.start()

    if sender is None:
        sender = HoneycombSender(settings.honeycomb, dataset=settings.dataset_for(service))

    if stater is None:
        stater = FileStater(
            settings.state_dir,
            service,
            max_processed_objects=settings.max_processed_objects,
        )

    pipeline = EventPipeline(parser, DynamicSampler(estimator), sender)
    return Ingestor(pipeline, stater)
