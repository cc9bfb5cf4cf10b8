"""
Amazon S3 object store.

Lists and downloads objects from one bucket through a single boto3 client
that is built once and shared for the life of the process.
"""

import logging
from typing import BinaryIO, Iterator, Optional

import boto3
from botocore.client import BaseClient
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from ...core.config import S3Settings
from ...core.constants import S3_URI_SCHEME
from ...core.exceptions import ObjectMissingError, StorageBackendError
from .base import ObjectStore, StoredObject

logger = logging.getLogger(__name__)

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


def create_s3_client(settings: S3Settings) -> BaseClient:
    """Build the boto3 S3 client from settings."""
    config = Config(
        region_name=settings.region,
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
        retries={"max_attempts": settings.max_attempts, "mode": "standard"},
        max_pool_connections=settings.max_pool_connections,
    )

    session_kwargs = {}
    if settings.access_key_id and settings.secret_access_key:
        session_kwargs.update({
            "aws_access_key_id": settings.access_key_id,
            "aws_secret_access_key": settings.secret_access_key,
        })
        if settings.session_token:
            session_kwargs["aws_session_token"] = settings.session_token

    return boto3.client(
        "s3",
        config=config,
        endpoint_url=settings.endpoint_url,
        **session_kwargs
    )


class S3ObjectStore(ObjectStore):
    """S3 bucket exposed as an ObjectStore."""

    def __init__(self, client: BaseClient, bucket_name: Optional[str]):
        if not bucket_name:
            raise StorageBackendError("S3 bucket name is required")

        self.s3_client = client
        self.bucket_name = bucket_name
        logger.info(f"S3 object store initialized for bucket {self.bucket_name}")

    @classmethod
    def from_settings(cls, settings: S3Settings) -> "S3ObjectStore":
        return cls(create_s3_client(settings), settings.bucket)

    def list_objects(self, prefix: str = "") -> Iterator[StoredObject]:
        list_args = {"Bucket": self.bucket_name}
        if prefix:
            list_args["Prefix"] = prefix

        try:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            for page in paginator.paginate(**list_args):
                for obj in page.get("Contents", []):
                    yield StoredObject(
                        key=obj["Key"],
                        size=obj["Size"],
                        last_modified=obj["LastModified"],
                    )
        except NoCredentialsError as e:
            raise StorageBackendError("AWS credentials not found") from e
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            logger.error(f"Failed to list objects in s3://{self.bucket_name}/{prefix}: {code}")
            raise StorageBackendError(f"S3 listing failed: {e}") from e
        except BotoCoreError as e:
            logger.error(f"S3 transport error while listing: {e}")
            raise StorageBackendError(f"S3 listing failed: {e}") from e

    def download(self, key: str, sink: BinaryIO, chunk_size: int = 1024 * 1024) -> int:
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=key)
            body = response["Body"]
            written = 0
            try:
                for chunk in body.iter_chunks(chunk_size=chunk_size):
                    sink.write(chunk)
                    written += len(chunk)
            finally:
                body.close()

            expected = response.get("ContentLength")
            if expected is not None and written != expected:
                raise StorageBackendError(
                    f"Incomplete download of {key}: got {written} of {expected} bytes"
                )

            logger.debug(f"File downloaded from S3: {key} ({written} bytes)")
            return written

        except NoCredentialsError as e:
            raise StorageBackendError("AWS credentials not found") from e
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in _MISSING_CODES:
                raise ObjectMissingError(f"Object not found: {key}") from e
            logger.error(f"Failed to download {key} from S3: {code}")
            raise StorageBackendError(f"S3 download failed: {e}") from e
        except BotoCoreError as e:
            logger.error(f"S3 transport error while downloading {key}: {e}")
            raise StorageBackendError(f"S3 download failed: {e}") from e

    def uri_for(self, key: str) -> str:
        return f"{S3_URI_SCHEME}{self.bucket_name}/{key}"
