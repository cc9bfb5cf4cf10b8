from typing import List, Optional

from ..core.constants import PARQUET_SUFFIX
from ..core.exceptions import CatalogUnavailable, FileNotFound, StorageBackendError
from ..core.logging import get_logger
from ..infrastructure.storage.base import ObjectStore
from ..models.parquet import FileEntry

logger = get_logger(__name__)


class ObjectCatalog:
    """
    Lists recognized files in the remote store.

    Ids are assigned by enumeration order ("1", "2", ...) on every listing and
    are not persisted, so an id must be resolved against a fresh listing.
    """

    def __init__(self, store: ObjectStore, prefix: str = "", suffix: str = PARQUET_SUFFIX):
        self.store = store
        self.prefix = prefix
        self.suffix = suffix

    def list(self, prefix: Optional[str] = None) -> List[FileEntry]:
        prefix = self.prefix if prefix is None else prefix

        try:
            objects = list(self.store.list_objects(prefix))
        except StorageBackendError as e:
            logger.error(f"Listing under prefix '{prefix}' failed: {e}")
            raise CatalogUnavailable(f"Failed to list files: {e}", prefix=prefix) from e

        entries = []
        for obj in objects:
            if not obj.key.endswith(self.suffix):
                continue
            entries.append(FileEntry(
                id=str(len(entries) + 1),
                name=obj.name,
                remote_path=self.store.uri_for(obj.key),
                key=obj.key,
                size_bytes=obj.size,
                last_modified=obj.last_modified,
            ))

        logger.info(f"Listed {len(entries)} of {len(objects)} objects under '{prefix}'")
        return entries

    def resolve(self, file_id: str, prefix: Optional[str] = None) -> FileEntry:
        """Find ``file_id`` in a fresh listing."""
        for entry in self.list(prefix):
            if entry.id == file_id:
                return entry
        raise FileNotFound(file_id)
