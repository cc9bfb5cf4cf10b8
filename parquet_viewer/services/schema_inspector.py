"""
Schema and file-level metadata of a staged Parquet file.

Column order always follows the physical schema's top-level field order.
Leaf primitive fields are typed through PHYSICAL_TYPE_MAP; nested fields
(groups, lists, maps) and physical types without a mapping are OTHER.
"""

from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

import pyarrow as pa
import pyarrow.parquet as pq

from ..core.constants import FILE_FORMAT, UNKNOWN_COMPRESSION
from ..core.enums import PHYSICAL_TYPE_MAP, LogicalType, ReaderStrategy
from ..core.exceptions import SchemaReadFailure
from ..core.logging import get_logger
from ..models.parquet import ColumnSchema, ColumnStats, FileEntry, ReadStats, TableMetadata
from .staging import StagedFile

logger = get_logger(__name__)

_NESTED_CHECKS = (
    pa.types.is_struct,
    pa.types.is_list,
    pa.types.is_large_list,
    pa.types.is_fixed_size_list,
    pa.types.is_map,
)


@contextmanager
def open_parquet(staged: StagedFile) -> Iterator[pq.ParquetFile]:
    """
    Open a staged file's footer for reading.

    Raises:
        SchemaReadFailure: If the file is empty, truncated or not Parquet
    """
    with staged.open() as handle:
        try:
            parquet_file = pq.ParquetFile(handle)
        except (pa.ArrowException, OSError) as e:
            logger.warning(f"Unreadable footer in {staged.remote_path}: {e}")
            raise SchemaReadFailure(
                f"Cannot read Parquet footer: {e}",
                details={"remote_path": staged.remote_path},
            ) from e
        yield parquet_file


def resolve_strategy(parquet_file: pq.ParquetFile, configured: ReaderStrategy = ReaderStrategy.AUTO) -> ReaderStrategy:
    """Pick the row-group strategy whenever the footer indexes row groups."""
    if configured is not ReaderStrategy.AUTO:
        return configured
    if parquet_file.metadata is not None and parquet_file.metadata.num_row_groups > 0:
        return ReaderStrategy.ROW_GROUP
    return ReaderStrategy.LINEAR


def count_records(parquet_file: pq.ParquetFile, batch_size: int = 1024, stats: Optional[ReadStats] = None) -> int:
    """
    Count records with one full linear pass.

    Only the first column is decoded. This is the O(n) price of a record
    stream that does not expose per-group row counts.
    """
    first_column = parquet_file.schema_arrow.names[:1]
    total = 0
    for batch in parquet_file.iter_batches(batch_size=batch_size, columns=first_column, use_threads=False):
        total += batch.num_rows
    if stats is not None:
        stats.records_counted += total
    return total


class SchemaInspector:
    """Derives the canonical schema and TableMetadata of a staged file."""

    def __init__(self, strategy: ReaderStrategy = ReaderStrategy.AUTO, batch_size: int = 1024):
        self.strategy = strategy
        self.batch_size = batch_size

    def inspect(self, staged: StagedFile, entry: FileEntry) -> TableMetadata:
        with open_parquet(staged) as parquet_file:
            columns = self.columns(parquet_file)
            metadata = parquet_file.metadata
            row_group_count = metadata.num_row_groups

            if resolve_strategy(parquet_file, self.strategy) is ReaderStrategy.ROW_GROUP:
                row_count = metadata.num_rows
            else:
                row_count = self._scan_count(parquet_file)

            table = TableMetadata(
                file=entry,
                columns=columns,
                row_count=row_count,
                row_group_count=row_group_count,
                format=FILE_FORMAT,
                compression_codec=self.compression_codec(metadata),
                created_at=entry.last_modified,
                total_size=entry.size_bytes,
                created_by=metadata.created_by,
                format_version=str(metadata.format_version),
            )

        logger.info(
            f"Inspected {entry.remote_path}: {len(columns)} columns, "
            f"{row_count} rows in {row_group_count} row groups"
        )
        return table

    def columns(self, parquet_file: pq.ParquetFile) -> List[ColumnSchema]:
        """
        Canonical columns in physical field order.

        Raises:
            SchemaReadFailure: If the schema has no fields or repeats a field name
        """
        try:
            arrow_schema = parquet_file.schema_arrow
            leaf_types = self._leaf_physical_types(parquet_file.schema)
        except (pa.ArrowException, OSError) as e:
            raise SchemaReadFailure(f"Cannot decode Parquet schema: {e}") from e

        if len(arrow_schema) == 0:
            raise SchemaReadFailure("Parquet schema has no fields")

        # Rows are keyed by field name
        duplicates = sorted({name for name in arrow_schema.names if arrow_schema.names.count(name) > 1})
        if duplicates:
            raise SchemaReadFailure(
                f"Parquet schema repeats field names: {', '.join(duplicates)}",
                details={"fields": duplicates},
            )

        columns = []
        for field in arrow_schema:
            if any(check(field.type) for check in _NESTED_CHECKS):
                logical_type = LogicalType.OTHER
            else:
                physical = leaf_types.get(field.name)
                logical_type = PHYSICAL_TYPE_MAP.get(physical, LogicalType.OTHER)

            columns.append(ColumnSchema(
                name=field.name,
                logical_type=logical_type,
                nullable=field.nullable,
                stats=ColumnStats(),
            ))
        return columns

    @staticmethod
    def compression_codec(metadata: pq.FileMetaData) -> str:
        """Codec of the first column chunk of the first row group."""
        if metadata.num_row_groups == 0 or metadata.num_columns == 0:
            return UNKNOWN_COMPRESSION
        return str(metadata.row_group(0).column(0).compression).upper()

    @staticmethod
    def _leaf_physical_types(schema: pq.ParquetSchema) -> Dict[str, str]:
        return {schema.column(i).path: schema.column(i).physical_type for i in range(len(schema))}

    def _scan_count(self, parquet_file: pq.ParquetFile) -> int:
        try:
            return count_records(parquet_file, self.batch_size)
        except (pa.ArrowException, OSError) as e:
            raise SchemaReadFailure(f"Cannot count records: {e}") from e
