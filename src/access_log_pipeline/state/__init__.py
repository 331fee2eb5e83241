"""
Processing state for downloaded log objects.

Usage:
    from access_log_pipeline.state import FileStater

    stater = FileStater(settings.state_dir, "elb")
    stater.set_processed("AWSLogs/123/elb/2024/01/01/object.log")
    processed = stater.processed_objects()
"""

from .base import Stater, StorageError
from .file_stater import FileStater

__all__ = [
    "Stater",
    "StorageError",
    "FileStater",
]
