"""
Access-log ingestion layer.

Turns downloaded ELB and CloudFront log objects into structured events:
per-format line normalization, tokenization against the declared log
format, and the synchronous line/event matching with a per-line deadline.

Usage:
    from access_log_pipeline.ingestion import RawObject, create_event_parser

    parser = create_event_parser('aws_elb', settings)
    stats = parser.parse_events(
        RawObject(id='AWSLogs/123/elb.log', local_path='/tmp/elb.log'),
        out=print,
    )
"""

from .base import Event, EventParser, RawObject
from .conversion import ConversionStats, Deadline, LineConverter
from .exceptions import (
    CleanupError,
    EstimatorFaultError,
    EstimatorStartError,
    IngestError,
    ObjectReadError,
    SchemaError,
    TokenizerStallError,
    UnknownFormatError,
)
from .factory import create_event_parser, list_formats
from .file_utils import open_log_object
from .object_source import LocalObjectSource
from .providers import CloudFrontEventParser, ELBEventParser
from .schemas import CLOUDFRONT_WEB_SCHEMA, ELB_SCHEMA, LogSchema
from .tokenizer import LineTokenizer, NginxTokenizer, TokenizerSession

__all__ = [
    # Data models and interfaces
    "RawObject",
    "Event",
    "EventParser",
    "LineTokenizer",
    "TokenizerSession",
    "NginxTokenizer",
    "LogSchema",
    "ELB_SCHEMA",
    "CLOUDFRONT_WEB_SCHEMA",
    # Conversion
    "Deadline",
    "LineConverter",
    "ConversionStats",
    # Parsers
    "ELBEventParser",
    "CloudFrontEventParser",
    "create_event_parser",
    "list_formats",
    # Sources
    "LocalObjectSource",
    "open_log_object",
    # Exceptions
    "IngestError",
    "ObjectReadError",
    "TokenizerStallError",
    "CleanupError",
    "SchemaError",
    "EstimatorFaultError",
    "EstimatorStartError",
    "UnknownFormatError",
]
