"""
AWS Elastic Load Balancer event parser.

ELB access logs are space-separated with the request line and user agent
quoted. Lines are submitted to the tokenizer unchanged apart from
surrounding whitespace, since quoted fields may contain runs of spaces.

Sample Key:
    backend_status_code + "_" + elb_status_code + "_" + elb

    e.g. "200_200_spline_reticulation_lb", or "0_504_spline_reticulation_lb"
    when the backend never answered. Rates are therefore tracked per
    load balancer.
"""

import logging

from ....config.constants import AWS_ELB_FORMAT
from ...base import Event, EventParser, int_field, status_key_component, str_field
from ...exceptions import SchemaError
from ...schemas import ELB_SCHEMA, LogSchema

logger = logging.getLogger(__name__)


class ELBEventParser(EventParser):
    """
    Event parser for AWS Classic/Application Load Balancer access logs.

    Example:
        parser = ELBEventParser(num_parsers=4)
        stats = parser.parse_events(
            RawObject(id="AWSLogs/.../elb.log", local_path="/tmp/elb.log"),
            out=events.append,
        )
    """

    @property
    def format_name(self) -> str:
        """Return the log format identifier."""
        return AWS_ELB_FORMAT

    @property
    def schema(self) -> LogSchema:
        """Return the declared schema of the format."""
        return ELB_SCHEMA

    def derive_sample_key(self, event: Event) -> str:
        """Key on backend and ELB status codes, per load balancer."""
        fields = event.fields
        key = status_key_component(fields, "backend_status_code")

        try:
            elb_status_code = int_field(fields, "elb_status_code")
        except SchemaError as e:
            logger.debug(f"Leaving elb_status_code out of sample key: {e}")
            elb_status_code = None
        if elb_status_code is not None:
            key = f"{key}_{elb_status_code}"

        # Make sure sample rate is per-ELB
        try:
            elb_name = str_field(fields, "elb")
        except SchemaError as e:
            logger.debug(f"Leaving elb out of sample key: {e}")
            elb_name = None
        if elb_name is not None:
            key = f"{key}_{elb_name}"

        return key
