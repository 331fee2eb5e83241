"""
File-backed dedup store for processed log objects.

Keeps one JSON array of object identifiers per service namespace in
<state_dir>/<service>-state.json. The array is capped; once full, the
oldest identifier is evicted for each new one. Old objects need no dedup
protection because they fall out of the bucket listing long before they
would be evicted.

Every update is a full read-evict-append-persist sequence held under the
store's lock, and the file is replaced atomically so a crash mid-write
leaves the previous state intact.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Union

from ..config.constants import MAX_PROCESSED_OBJECTS, STATE_FILE_FORMAT
from .base import Stater, StorageError

logger = logging.getLogger(__name__)


class FileStater(Stater):
    """
    Processing state stored as JSON on the local filesystem.

    One instance per backing file; instances for different services never
    share a lock or a file.

    Example:
        stater = FileStater("/var/lib/access-log-pipeline", "elb")
        if not stater.is_processed(key):
            ...
            stater.set_processed(key)
    """

    def __init__(
        self,
        state_dir: Union[str, Path],
        service: str,
        max_processed_objects: int = MAX_PROCESSED_OBJECTS,
    ):
        """
        Initialize the store.

        Args:
            state_dir: Directory holding the state file (must exist)
            service: Namespace of the state file (e.g., 'elb', 'cloudfront')
            max_processed_objects: Cap on remembered identifiers
        """
        if max_processed_objects < 1:
            raise ValueError(
                f"max_processed_objects must be >= 1, got {max_processed_objects}"
            )

        self.state_dir = Path(state_dir)
        self.service = service
        self.max_processed_objects = max_processed_objects
        self._lock = threading.Lock()

    @property
    def state_file(self) -> Path:
        """Path of the backing JSON file."""
        return self.state_dir / STATE_FILE_FORMAT.format(service=self.service)

    def processed_objects(self) -> list[str]:
        with self._lock:
            return self._read()

    def set_processed(self, object_id: str) -> None:
        with self._lock:
            objects = self._read()
            objects.append(object_id)

            if len(objects) > self.max_processed_objects:
                # rotate oldest remembered objects out so the state file
                # does not grow indefinitely
                evicted = len(objects) - self.max_processed_objects
                logger.debug(f"Evicting {evicted} oldest processed objects")
                objects = objects[evicted:]

            self._write(objects)

    def _read(self) -> list[str]:
        """Load the processed list, creating an empty state file on first run."""
        path = self.state_file

        if not path.exists():
            logger.info(f"Creating state file {path}")
            self._write([])
            return []

        try:
            data = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Error reading state file {path}: {e}") from e

        try:
            objects = json.loads(data)
        except json.JSONDecodeError as e:
            raise StorageError(f"Unmarshalling state file {path} failed: {e}") from e

        if not isinstance(objects, list) or not all(
            isinstance(obj, str) for obj in objects
        ):
            raise StorageError(
                f"State file {path} must hold a JSON array of strings"
            )

        return objects

    def _write(self, objects: list[str]) -> None:
        """Atomically replace the state file with the given list."""
        path = self.state_file
        tmp_name = None

        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self.state_dir,
                prefix=f".{path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(objects, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise StorageError(f"Writing state file {path} failed: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug(f"Could not remove temporary state file {tmp_name}")
