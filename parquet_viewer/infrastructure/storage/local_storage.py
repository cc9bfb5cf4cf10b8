"""
Local directory object store.

Serves files under a base directory as if they were objects in a bucket,
keyed by their POSIX path relative to the base. Used for development and
tests.
"""

import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Iterator, Union

from ...core.exceptions import ObjectMissingError, StorageBackendError
from .base import ObjectStore, StoredObject

logger = logging.getLogger(__name__)


class LocalObjectStore(ObjectStore):
    """Read-only object store backed by a local directory."""

    def __init__(self, base_path: Union[str, Path]):
        self.base_path = Path(base_path).resolve()

        if not self.base_path.exists():
            raise StorageBackendError(f"Storage directory does not exist: {self.base_path}")

        if not self.base_path.is_dir():
            raise StorageBackendError(f"Storage path is not a directory: {self.base_path}")

        logger.info(f"Local object store initialized at {self.base_path}")

    def list_objects(self, prefix: str = "") -> Iterator[StoredObject]:
        try:
            paths = sorted(p for p in self.base_path.rglob("*") if p.is_file())
        except OSError as e:
            raise StorageBackendError(f"Directory listing failed: {e}") from e

        for path in paths:
            key = path.relative_to(self.base_path).as_posix()
            if not key.startswith(prefix):
                continue
            stat = path.stat()
            yield StoredObject(
                key=key,
                size=stat.st_size,
                last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            )

    def download(self, key: str, sink: BinaryIO, chunk_size: int = 1024 * 1024) -> int:
        path = self._resolve(key)
        if not path.is_file():
            raise ObjectMissingError(f"Object not found: {key}")

        try:
            with open(path, "rb") as source:
                shutil.copyfileobj(source, sink, chunk_size)
                return source.tell()
        except OSError as e:
            logger.error(f"Failed to read {key}: {e}")
            raise StorageBackendError(f"File read failed: {e}") from e

    def uri_for(self, key: str) -> str:
        return self._resolve(key).as_uri()

    def _resolve(self, key: str) -> Path:
        path = (self.base_path / key).resolve()
        # Keys must not escape the base directory
        if self.base_path != path and self.base_path not in path.parents:
            raise ObjectMissingError(f"Object not found: {key}")
        return path
