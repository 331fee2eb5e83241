"""Utility functions for the access-log pipeline."""

from .url_utils import query_shape, shape_request, split_request_line

__all__ = [
    # URL utilities
    "query_shape",
    "shape_request",
    "split_request_line",
]
