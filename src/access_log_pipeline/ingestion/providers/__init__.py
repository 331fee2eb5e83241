"""
Format-specific event parsers.

Each subdirectory contains the event parser for one access-log format
(aws_elb/, aws_cloudfront/). Parsers are selected by format name through
ingestion.factory.create_event_parser().
"""

from .aws_cloudfront import CloudFrontEventParser
from .aws_elb import ELBEventParser

__all__: list[str] = [
    "CloudFrontEventParser",
    "ELBEventParser",
]
