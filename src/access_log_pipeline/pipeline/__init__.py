"""Event pipeline, sampling and ingestion orchestration."""

from .event_pipeline import EventPipeline, PipelineResult
from .ingestor import IngestSummary, Ingestor, create_ingestor, ingest_objects
from .logging_setup import setup_logging
from .sampling import AvgSampleRate, DynamicSampler, SampleRateEstimator

__all__ = [
    # Pipeline
    "EventPipeline",
    "PipelineResult",
    # Sampling
    "SampleRateEstimator",
    "AvgSampleRate",
    "DynamicSampler",
    # Ingestion
    "Ingestor",
    "IngestSummary",
    "create_ingestor",
    "ingest_objects",
    "setup_logging",
]
