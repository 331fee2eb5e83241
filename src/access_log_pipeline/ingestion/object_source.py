"""
Local object source.

Enumerates log objects that have already been downloaded into a local
directory and hands them out as RawObject values, skipping any whose id
the dedup store already records. Listing and downloading from remote
storage happen elsewhere.
"""

import logging
from pathlib import Path
from typing import Iterator, Union

from ..state.base import Stater
from .base import RawObject

logger = logging.getLogger(__name__)


class LocalObjectSource:
    """
    Downloaded objects under a directory, in sorted path order.

    Object ids are paths relative to the directory, using forward slashes,
    so they stay stable across runs.

    Example:
        source = LocalObjectSource("/var/spool/elb", stater)
        for obj in source:
            ingestor.publish(obj)
    """

    def __init__(self, directory: Union[str, Path], stater: Stater):
        self.directory = Path(directory)
        self.stater = stater

    def __iter__(self) -> Iterator[RawObject]:
        return self.pending_objects()

    def pending_objects(self) -> Iterator[RawObject]:
        """
        Yield objects not yet recorded as processed.

        Raises:
            FileNotFoundError: If the directory does not exist
            StorageError: If the processed set cannot be read
        """
        if not self.directory.is_dir():
            raise FileNotFoundError(f"Object directory not found: {self.directory}")

        processed = set(self.stater.processed_objects())
        skipped = 0

        for path in sorted(p for p in self.directory.rglob("*") if p.is_file()):
            object_id = path.relative_to(self.directory).as_posix()
            if object_id in processed:
                skipped += 1
                continue
            yield RawObject(id=object_id, local_path=str(path))

        if skipped:
            logger.info(f"Skipped {skipped} already processed objects in {self.directory}")
