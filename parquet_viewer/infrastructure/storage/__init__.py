"""
Object storage backends.

Provides the read-only ObjectStore abstraction with S3 and local
directory implementations.
"""

from .base import ObjectStore, StoredObject
from .factory import create_object_store
from .local_storage import LocalObjectStore
from .s3_storage import S3ObjectStore, create_s3_client

__all__ = [
    "ObjectStore",
    "StoredObject",
    "LocalObjectStore",
    "S3ObjectStore",
    "create_s3_client",
    "create_object_store",
]
