"""
File helpers for reading downloaded log objects.

ELB objects arrive as plain text and CloudFront objects as gzip, but the
object source does not always keep the .gz suffix, so compression is
detected from the file's magic bytes.
"""

import gzip
from pathlib import Path
from typing import IO, Iterator, Union

GZIP_MAGIC = b"\x1f\x8b"


def is_gzip_file(file_path: Union[str, Path]) -> bool:
    """Return True if the file starts with the gzip magic bytes."""
    with open(file_path, "rb") as f:
        return f.read(2) == GZIP_MAGIC


def open_log_object(
    file_path: Union[str, Path],
    encoding: str = "utf-8",
) -> IO[str]:
    """
    Open a downloaded log object for text reading.

    Args:
        file_path: Local path of the object
        encoding: Text encoding (default: utf-8)

    Returns:
        Open file handle (text mode), transparently decompressed

    Raises:
        FileNotFoundError: If file doesn't exist
        PermissionError: If file cannot be read
    """
    path = Path(file_path)

    if not path.is_file():
        raise FileNotFoundError(f"File not found: {file_path}")

    if path.suffix.lower() == ".gz" or is_gzip_file(path):
        return gzip.open(path, "rt", encoding=encoding)

    return open(path, "r", encoding=encoding)


def iter_log_lines(handle: IO[str]) -> Iterator[str]:
    """Yield the lines of an open log object without line terminators."""
    for line in handle:
        yield line.rstrip("\r\n")
