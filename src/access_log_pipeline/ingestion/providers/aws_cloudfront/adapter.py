"""
AWS CloudFront web distribution event parser.

CloudFront access logs are gzip-compressed, tab-separated W3C extended
logs with #Version and #Fields header lines. Date and time are two
separate fields; they are rejoined into one ISO 8601 token before
tokenization.

Line Normalization:
    2024-01-01<TAB>12:00:00<TAB>LAX1<TAB>2390<TAB>...
    -> 2024-01-01T12:00:00 LAX1 2390 ...

Sample Key:
    sc_status + "_" + cs_host

    cs_host is the domain name of the CloudFront distribution, so rates
    are tracked per distribution.
"""

import logging

from ....config.constants import AWS_CLOUDFRONT_WEB_FORMAT
from ...base import Event, EventParser, status_key_component, str_field
from ...exceptions import SchemaError
from ...schemas import CLOUDFRONT_WEB_SCHEMA, LogSchema

logger = logging.getLogger(__name__)


def join_date_and_time(line: str) -> str:
    """
    Rejoin a split date/time line into single-space separated fields.

    The first two whitespace-delimited fields are joined with a literal
    'T'; the tokenizer expects exactly one space between fields, so all
    other fields are re-joined with single spaces whatever the raw
    separators were.

    Examples:
        >>> join_date_and_time("2024-01-01   12:00:00.000Z  a\\tb")
        '2024-01-01T12:00:00.000Z a b'
    """
    parts = line.split()
    if len(parts) >= 2:
        parts = [f"{parts[0]}T{parts[1]}"] + parts[2:]
    return " ".join(parts)


class CloudFrontEventParser(EventParser):
    """
    Event parser for AWS CloudFront web distribution access logs.

    Example:
        parser = CloudFrontEventParser()
        stats = parser.parse_events(
            RawObject(id="E2ABC.2024-01-01-12.abcd.gz", local_path="/tmp/cf.gz"),
            out=events.append,
        )
    """

    @property
    def format_name(self) -> str:
        """Return the log format identifier."""
        return AWS_CLOUDFRONT_WEB_FORMAT

    @property
    def schema(self) -> LogSchema:
        """Return the declared schema of the format."""
        return CLOUDFRONT_WEB_SCHEMA

    def prepare_line(self, line: str) -> str:
        return join_date_and_time(line)

    def derive_sample_key(self, event: Event) -> str:
        """Key on the edge status code, per distribution."""
        fields = event.fields
        key = status_key_component(fields, "sc_status")

        # Make sure sample rate is per-distribution
        try:
            distribution_domain = str_field(fields, "cs_host")
        except SchemaError as e:
            logger.debug(f"Leaving cs_host out of sample key: {e}")
            distribution_domain = None
        if distribution_domain is not None:
            key = f"{key}_{distribution_domain}"

        return key
