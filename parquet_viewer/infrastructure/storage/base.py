"""
Base storage interface.

The catalog and staging cache only need two capabilities from a remote
store: list objects under a prefix and copy one object's bytes into a
local writable stream. Every backend implements exactly that.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Iterator


@dataclass(frozen=True)
class StoredObject:
    """Object metadata as returned by a listing."""

    key: str
    size: int
    last_modified: datetime

    @property
    def name(self) -> str:
        return self.key.rsplit("/", 1)[-1]


class ObjectStore(ABC):
    """
    Abstract base class for read-only object stores.

    Implementations raise StorageBackendError for transport, auth and IO
    failures and ObjectMissingError when a key does not exist.
    """

    @abstractmethod
    def list_objects(self, prefix: str = "") -> Iterator[StoredObject]:
        """
        Yield every object whose key starts with ``prefix``, in store order.

        Args:
            prefix: Key prefix to filter by
        """
        pass

    @abstractmethod
    def download(self, key: str, sink: BinaryIO, chunk_size: int = 1024 * 1024) -> int:
        """
        Copy the full object into ``sink``.

        Args:
            key: Object key
            sink: Writable binary stream
            chunk_size: Bytes per read from the store

        Returns:
            Number of bytes written
        """
        pass

    @abstractmethod
    def uri_for(self, key: str) -> str:
        """Return the user-facing location of ``key``."""
        pass
