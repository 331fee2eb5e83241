"""
Event parser factory.

Selects the event parser for a log format by name. The mapping is fixed
at import time; there is no runtime registration.
"""

import logging
from typing import Optional

from ..config.constants import AWS_CLOUDFRONT_WEB_FORMAT, AWS_ELB_FORMAT
from ..config.settings import Settings
from .base import EventParser
from .exceptions import UnknownFormatError
from .providers import CloudFrontEventParser, ELBEventParser
from .tokenizer import LineTokenizer

logger = logging.getLogger(__name__)

_PARSER_CLASSES: dict[str, type[EventParser]] = {
    AWS_ELB_FORMAT: ELBEventParser,
    AWS_CLOUDFRONT_WEB_FORMAT: CloudFrontEventParser,
}


def create_event_parser(
    format_name: str,
    settings: Optional[Settings] = None,
    tokenizer: Optional[LineTokenizer] = None,
) -> EventParser:
    """
    Create the event parser for a log format.

    Args:
        format_name: Log format identifier ('aws_elb' or 'aws_cf_web')
        settings: Settings providing num_parsers and line_timeout_seconds
                  (defaults when None)
        tokenizer: Optional tokenizer overriding the format's default

    Returns:
        EventParser instance

    Raises:
        UnknownFormatError: If the format is not supported

    Examples:
        parser = create_event_parser('aws_elb', settings)
    """
    parser_class = _PARSER_CLASSES.get(format_name.lower())
    if parser_class is None:
        raise UnknownFormatError(format_name, available_formats=list_formats())

    settings = settings or Settings()
    parser = parser_class(
        tokenizer=tokenizer,
        num_parsers=settings.num_parsers,
        line_timeout=settings.line_timeout_seconds,
    )
    logger.debug(
        f"Created {parser_class.__name__} for {format_name} "
        f"(num_parsers={settings.num_parsers}, "
        f"line_timeout={settings.line_timeout_seconds}s)"
    )
    return parser


def list_formats() -> list[str]:
    """
    List supported log format names.

    Returns:
        Sorted list of format identifiers
    """
    return sorted(_PARSER_CLASSES.keys())
