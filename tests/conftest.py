"""Shared pytest fixtures for all tests."""

from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq
import pytest
from fastapi.testclient import TestClient

from parquet_viewer.infrastructure.storage import LocalObjectStore
from parquet_viewer.interfaces.dependencies import get_file_service
from parquet_viewer.main import create_application
from parquet_viewer.services.catalog import ObjectCatalog
from parquet_viewer.services.file_service import ParquetFileService
from parquet_viewer.services.staging import StagingCache

PEOPLE_ROWS = 5
NUMBERS_ROWS = 95
NUMBERS_ROW_GROUP_SIZE = 10


def people_table() -> pa.Table:
    return pa.table({
        "id": pa.array([1, 2, 3, 4, 5], pa.int64()),
        "name": ["ann", "bob", "cy", "dee", "eve"],
        "active": [True, False, True, True, False],
    })


def numbers_table() -> pa.Table:
    schema = pa.schema([
        pa.field("id", pa.int64(), nullable=False),
        pa.field("label", pa.string()),
        pa.field("score", pa.float64()),
        pa.field("small", pa.int32()),
        pa.field("ratio", pa.float32()),
    ])
    return pa.table(
        {
            "id": list(range(NUMBERS_ROWS)),
            "label": [f"row-{i}" if i % 7 else None for i in range(NUMBERS_ROWS)],
            "score": [i * 0.5 for i in range(NUMBERS_ROWS)],
            "small": [i % 3 for i in range(NUMBERS_ROWS)],
            "ratio": [i / 4 for i in range(NUMBERS_ROWS)],
        },
        schema=schema,
    )


def write_parquet(path: Path, table: pa.Table, row_group_size=None, compression="snappy") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    pq.write_table(table, path, row_group_size=row_group_size, compression=compression)
    return path


@pytest.fixture
def store_dir(tmp_path: Path) -> Path:
    """Bucket directory: a_people.parquet (id 1), b_numbers.parquet (id 2) and a text file."""
    directory = tmp_path / "bucket"
    write_parquet(directory / "a_people.parquet", people_table())
    write_parquet(directory / "b_numbers.parquet", numbers_table(), row_group_size=NUMBERS_ROW_GROUP_SIZE)
    (directory / "readme.txt").write_text("not a parquet file")
    return directory


@pytest.fixture
def broken_file(store_dir: Path) -> Path:
    """c_broken.parquet (id 3) has the right suffix but no Parquet footer."""
    path = store_dir / "c_broken.parquet"
    path.write_bytes(b"this is not parquet at all")
    return path


@pytest.fixture
def corrupt_pages_file(store_dir: Path) -> Path:
    """c_corrupt.parquet (id 3) has an intact footer but garbage where its first data pages were."""
    path = write_parquet(
        store_dir / "c_corrupt.parquet",
        pa.table({
            "id": pa.array(range(5000), pa.int64()),
            "text": [f"value-{i}" for i in range(5000)],
        }),
    )
    data = bytearray(path.read_bytes())
    data[8:2000] = b"\xff" * 1992
    path.write_bytes(bytes(data))
    return path


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "staging"
    directory.mkdir()
    return directory


@pytest.fixture
def store(store_dir: Path) -> LocalObjectStore:
    return LocalObjectStore(store_dir)


@pytest.fixture
def catalog(store: LocalObjectStore) -> ObjectCatalog:
    return ObjectCatalog(store)


@pytest.fixture
def staging(store: LocalObjectStore, staging_dir: Path) -> StagingCache:
    return StagingCache(store, directory=str(staging_dir))


@pytest.fixture
def service(catalog: ObjectCatalog, staging: StagingCache) -> ParquetFileService:
    return ParquetFileService(catalog, staging, max_page_size=1000)


@pytest.fixture
def test_client(service: ParquetFileService) -> TestClient:
    """TestClient whose routes use the local-directory service."""
    app = create_application()
    app.dependency_overrides[get_file_service] = lambda: service
    return TestClient(app)


def staged_leftovers(staging_dir: Path) -> list:
    return sorted(p.name for p in staging_dir.iterdir())


@pytest.fixture
def staged_files(staging_dir: Path):
    """Names of whatever is currently left in the staging directory."""
    return lambda: staged_leftovers(staging_dir)
