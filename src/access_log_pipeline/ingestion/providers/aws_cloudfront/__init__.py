"""
AWS CloudFront event parser.

Parses gzip-compressed CloudFront web distribution access logs
(W3C extended format with split date and time fields).
"""

from .adapter import CloudFrontEventParser, join_date_and_time

__all__ = ["CloudFrontEventParser", "join_date_and_time"]
