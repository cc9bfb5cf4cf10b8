"""Tests for the S3 object store, using botocore's Stubber."""

import io
from datetime import datetime, timezone

import boto3
import pyarrow.parquet as pq
import pytest
from botocore.response import StreamingBody
from botocore.stub import Stubber

from parquet_viewer.core.config import S3Settings
from parquet_viewer.core.exceptions import CatalogUnavailable, ObjectMissingError, StagingFailure, StorageBackendError
from parquet_viewer.infrastructure.storage import S3ObjectStore, create_s3_client
from parquet_viewer.services.catalog import ObjectCatalog
from parquet_viewer.services.file_service import ParquetFileService
from parquet_viewer.services.staging import StagingCache

BUCKET = "analytics"
MODIFIED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def stubber(s3_client):
    with Stubber(s3_client) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def s3_store(s3_client) -> S3ObjectStore:
    return S3ObjectStore(s3_client, BUCKET)


def streaming_body(data: bytes) -> StreamingBody:
    return StreamingBody(io.BytesIO(data), len(data))


def listing(keys, truncated=False, token=None):
    response = {
        "IsTruncated": truncated,
        "Contents": [{"Key": key, "Size": size, "LastModified": MODIFIED} for key, size in keys],
    }
    if token:
        response["NextContinuationToken"] = token
    return response


class TestListObjects:

    def test_follows_every_page(self, stubber, s3_store: S3ObjectStore):
        stubber.add_response(
            "list_objects_v2",
            listing([("data/a.parquet", 10), ("data/notes.txt", 3)], truncated=True, token="next"),
            {"Bucket": BUCKET, "Prefix": "data/"},
        )
        stubber.add_response(
            "list_objects_v2",
            listing([("data/b.parquet", 20)]),
            {"Bucket": BUCKET, "Prefix": "data/", "ContinuationToken": "next"},
        )

        objects = list(s3_store.list_objects("data/"))

        assert [obj.key for obj in objects] == ["data/a.parquet", "data/notes.txt", "data/b.parquet"]
        assert objects[2].size == 20
        assert objects[0].name == "a.parquet"
        assert objects[0].last_modified == MODIFIED

    def test_catalog_over_s3(self, stubber, s3_store: S3ObjectStore):
        stubber.add_response(
            "list_objects_v2",
            listing([("x.parquet", 1), ("y.csv", 1), ("z.parquet", 1)]),
            {"Bucket": BUCKET},
        )

        entries = ObjectCatalog(s3_store).list()

        assert [(e.id, e.remote_path) for e in entries] == [
            ("1", "s3://analytics/x.parquet"),
            ("2", "s3://analytics/z.parquet"),
        ]

    def test_access_denied(self, stubber, s3_store: S3ObjectStore):
        stubber.add_client_error("list_objects_v2", service_error_code="AccessDenied", http_status_code=403)

        with pytest.raises(CatalogUnavailable):
            ObjectCatalog(s3_store).list()


class TestDownload:

    def test_copies_body(self, stubber, s3_store: S3ObjectStore):
        data = b"0123456789" * 100
        stubber.add_response(
            "get_object",
            {"Body": streaming_body(data), "ContentLength": len(data)},
            {"Bucket": BUCKET, "Key": "data/a.parquet"},
        )

        sink = io.BytesIO()
        written = s3_store.download("data/a.parquet", sink, chunk_size=64)

        assert written == len(data)
        assert sink.getvalue() == data

    def test_missing_key(self, stubber, s3_store: S3ObjectStore):
        stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)

        with pytest.raises(ObjectMissingError):
            s3_store.download("gone.parquet", io.BytesIO())

    def test_other_errors(self, stubber, s3_store: S3ObjectStore):
        stubber.add_client_error("get_object", service_error_code="InternalError", http_status_code=500)

        with pytest.raises(StorageBackendError) as exc_info:
            s3_store.download("a.parquet", io.BytesIO())
        assert not isinstance(exc_info.value, ObjectMissingError)


class TestEndToEnd:

    def test_page_from_s3(self, stubber, s3_store: S3ObjectStore, store_dir, staging_dir, staged_files):
        """List, stage and read a page entirely through the S3 client."""
        data = (store_dir / "b_numbers.parquet").read_bytes()
        stubber.add_response("list_objects_v2", listing([("b_numbers.parquet", len(data))]), {"Bucket": BUCKET})
        stubber.add_response(
            "get_object",
            {"Body": streaming_body(data), "ContentLength": len(data)},
            {"Bucket": BUCKET, "Key": "b_numbers.parquet"},
        )
        service = ParquetFileService(ObjectCatalog(s3_store), StagingCache(s3_store, directory=str(staging_dir)))

        window = service.get_page("1", 1, 10)

        assert [row["id"] for row in window.rows] == list(range(10, 20))
        assert window.total_rows == pq.ParquetFile(store_dir / "b_numbers.parquet").metadata.num_rows
        assert staged_files() == []

    def test_download_failure_leaves_nothing(self, stubber, s3_store: S3ObjectStore, staging_dir, staged_files):
        stubber.add_response("list_objects_v2", listing([("a.parquet", 10)]), {"Bucket": BUCKET})
        stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)
        service = ParquetFileService(ObjectCatalog(s3_store), StagingCache(s3_store, directory=str(staging_dir)))

        with pytest.raises(StagingFailure):
            service.get_metadata("1")
        assert staged_files() == []


class TestConfiguration:

    def test_bucket_required(self, s3_client):
        with pytest.raises(StorageBackendError):
            S3ObjectStore(s3_client, None)

    def test_client_from_settings(self):
        settings = S3Settings(
            region="eu-west-1",
            bucket=BUCKET,
            access_key_id="key",
            secret_access_key="secret",
            endpoint_url="http://localhost:9000",
            max_attempts=5,
        )
        client = create_s3_client(settings)

        assert client.meta.region_name == "eu-west-1"
        assert client.meta.endpoint_url == "http://localhost:9000"
        assert S3ObjectStore.from_settings(settings).uri_for("k.parquet") == "s3://analytics/k.parquet"
