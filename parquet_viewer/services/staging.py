"""
Local staging of remote objects.

Parquet keeps its schema in a trailing footer, so a file must be seekable
before it can be opened. A StagedFile is an exclusive local copy owned by
the request that created it and deleted when that request's scope ends.
"""

import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Optional

from ..core.exceptions import ObjectMissingError, StagingFailure, StorageBackendError
from ..core.logging import get_logger
from ..infrastructure.storage.base import ObjectStore
from ..models.parquet import FileEntry

logger = get_logger(__name__)


class StagedFile:
    """
    A fully downloaded local copy of one remote object.

    Use as a context manager; the backing file is removed on exit whether
    the block succeeded or raised. ``release`` is idempotent.
    """

    def __init__(self, path: Path, remote_path: str, size: int):
        self.path = path
        self.remote_path = remote_path
        self.size = size
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def open(self) -> BinaryIO:
        """Open the local copy for random-access reads."""
        if self._released:
            raise ValueError(f"Staged copy of {self.remote_path} was already released")
        return open(self.path, "rb")

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            self.path.unlink()
            logger.debug(f"Removed staged copy {self.path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove staged copy {self.path}: {e}")

    def __enter__(self) -> "StagedFile":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"StagedFile(path='{self.path}', remote_path='{self.remote_path}', size={self.size})"


class StagingCache:
    """Downloads remote objects into private temporary files."""

    def __init__(
        self,
        store: ObjectStore,
        directory: Optional[str] = None,
        chunk_size: int = 1024 * 1024,
        file_prefix: str = "parquet-",
        file_suffix: str = ".tmp",
    ):
        self.store = store
        self.directory = directory
        self.chunk_size = chunk_size
        self.file_prefix = file_prefix
        self.file_suffix = file_suffix

    def stage(self, entry: FileEntry) -> StagedFile:
        """
        Copy ``entry`` to local storage.

        The handle is returned only after the whole object has been written;
        on any failure the partial copy is deleted.

        Raises:
            StagingFailure: If the fetch or the local write fails
        """
        try:
            fd, name = tempfile.mkstemp(prefix=self.file_prefix, suffix=self.file_suffix, dir=self.directory)
        except OSError as e:
            raise StagingFailure(f"Cannot create staging file: {e}", remote_path=entry.remote_path) from e

        path = Path(name)
        logger.info(f"Staging {entry.remote_path} to {path}")

        try:
            with os.fdopen(fd, "wb") as sink:
                written = self.store.download(entry.key, sink, chunk_size=self.chunk_size)
            if written != entry.size_bytes:
                raise StagingFailure(
                    f"Incomplete copy of {entry.remote_path}: {written} of {entry.size_bytes} bytes",
                    remote_path=entry.remote_path,
                )
        except StagingFailure:
            self._discard(path)
            raise
        except ObjectMissingError as e:
            self._discard(path)
            raise StagingFailure(f"Remote object disappeared: {e}", remote_path=entry.remote_path) from e
        except (StorageBackendError, OSError) as e:
            self._discard(path)
            logger.error(f"Staging {entry.remote_path} failed: {e}")
            raise StagingFailure(f"Failed to download file: {e}", remote_path=entry.remote_path) from e
        except BaseException:
            self._discard(path)
            raise

        logger.info(f"Staged {written} bytes from {entry.remote_path}")
        return StagedFile(path=path, remote_path=entry.remote_path, size=written)

    def _discard(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove partial staging file {path}: {e}")
