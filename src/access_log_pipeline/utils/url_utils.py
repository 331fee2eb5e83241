"""
URL utility functions.

Helpers for splitting the request line of access logs into method,
protocol, path and query, and for deriving query shapes so requests can
be grouped regardless of parameter values.
"""

import logging
from typing import Any, Optional
from urllib.parse import parse_qsl, urlsplit

logger = logging.getLogger(__name__)


def query_shape(query: str) -> str:
    """
    Replace every query parameter value with '?' and sort by name.

    Examples:
        >>> query_shape("b=2&a=1&a=3")
        'a=?&a=?&b=?'
        >>> query_shape("")
        ''
    """
    names = sorted(name for name, _ in parse_qsl(query, keep_blank_values=True))
    return "&".join(f"{name}=?" for name in names)


def split_request_line(request: str) -> tuple[Optional[str], str, Optional[str]]:
    """
    Split an HTTP request line into method, target and protocol version.

    Anything other than three space-separated parts is treated as a bare
    target.

    Examples:
        >>> split_request_line("GET /index.html HTTP/1.1")
        ('GET', '/index.html', 'HTTP/1.1')
        >>> split_request_line("/index.html")
        (None, '/index.html', None)
    """
    parts = request.split(" ")
    if len(parts) == 3:
        return parts[0], parts[1], parts[2]
    return None, parts[0], None


def shape_request(fields: dict[str, Any], field: str = "request") -> None:
    """
    Add shaped components of a request field to an event's fields in place.

    Adds <field>_method and <field>_protocol_version when the value is a
    full request line, then <field>_uri, <field>_path, <field>_shape and,
    when a query is present, <field>_query and <field>_queryshape.
    Values that cannot be parsed are logged and left alone.

    Args:
        fields: Event fields to enrich
        field: Name of the request field

    Examples:
        >>> fields = {"request": "GET https://example.com:443/a/b?x=1 HTTP/1.1"}
        >>> shape_request(fields)
        >>> fields["request_path"], fields["request_shape"]
        ('/a/b', '/a/b?x=?')
    """
    value = fields.get(field)
    if not isinstance(value, str):
        return

    method, target, protocol_version = split_request_line(value)
    if method is not None:
        fields[f"{field}_method"] = method
        fields[f"{field}_protocol_version"] = protocol_version

    try:
        parts = urlsplit(target)
    except ValueError as e:
        logger.error(f"Couldn't parse request {value!r}: {e}")
        return

    path = parts.path or "/"
    shape = path
    fields[f"{field}_uri"] = target
    fields[f"{field}_path"] = path

    if parts.query:
        shaped_query = query_shape(parts.query)
        fields[f"{field}_query"] = parts.query
        fields[f"{field}_queryshape"] = shaped_query
        shape = f"{path}?{shaped_query}"

    fields[f"{field}_shape"] = shape
