"""
Storage factory for creating the configured object store.
"""

import logging
from typing import Optional

from ...core.config import Settings, get_settings
from ...core.enums import StorageType
from ...core.exceptions import StorageBackendError
from .base import ObjectStore
from .local_storage import LocalObjectStore
from .s3_storage import S3ObjectStore

logger = logging.getLogger(__name__)


def create_object_store(settings: Optional[Settings] = None) -> ObjectStore:
    """
    Create the object store named by ``STORAGE_BACKEND``.

    Args:
        settings: Application settings (defaults to the cached settings)

    Raises:
        StorageBackendError: If the backend is unknown or misconfigured
    """
    settings = settings or get_settings()

    try:
        storage_type = StorageType(settings.storage.backend.lower())
    except ValueError as e:
        raise StorageBackendError(f"Unsupported storage backend: {settings.storage.backend}") from e

    logger.info(f"Creating {storage_type.value} object store")

    if storage_type is StorageType.S3:
        return S3ObjectStore.from_settings(settings.s3)
    return LocalObjectStore(settings.storage.local_storage_path)
