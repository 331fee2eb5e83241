"""Logging configuration for scripts."""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int = logging.INFO, fmt: Optional[str] = None) -> None:
    """
    Configure root logging once for a script run.

    Args:
        level: Root log level (DEBUG under --verbose)
        fmt: Optional log format string
    """
    logging.basicConfig(level=level, format=fmt or LOG_FORMAT, force=True)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
