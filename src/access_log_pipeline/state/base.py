"""
Abstract base class for object processing state.

A Stater records which log objects have been fully downloaded, parsed
and sent. It could be backed by the local filesystem, DynamoDB, etcd or
similar; FileStater is the local-filesystem implementation.
"""

from abc import ABC, abstractmethod


class StorageError(Exception):
    """Raised when processing state cannot be read or written."""

    pass


class Stater(ABC):
    """
    Abstract base class for processing-state stores.

    Implementations must serialize their own operations so concurrent
    callers never observe or produce a torn record.
    """

    @abstractmethod
    def processed_objects(self) -> list[str]:
        """
        Return the identifiers of processed objects, oldest first.

        Raises:
            StorageError: If the backing state is unreadable or corrupt
        """
        pass

    @abstractmethod
    def set_processed(self, object_id: str) -> None:
        """
        Record that an object was downloaded, processed and sent.

        Raises:
            StorageError: If the updated state cannot be persisted
        """
        pass

    def is_processed(self, object_id: str) -> bool:
        """Check whether an object is recorded as processed."""
        return object_id in self.processed_objects()
