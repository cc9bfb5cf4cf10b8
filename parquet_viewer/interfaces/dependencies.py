from functools import lru_cache

from ..core.config import get_settings
from ..infrastructure.storage import ObjectStore, create_object_store
from ..services.file_service import ParquetFileService


@lru_cache
def get_object_store() -> ObjectStore:
    """One store (and one S3 client) for the whole process."""
    return create_object_store(get_settings())


@lru_cache
def get_file_service() -> ParquetFileService:
    return ParquetFileService.from_settings(get_object_store(), get_settings())
