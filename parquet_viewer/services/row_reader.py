"""
Paginated row access to staged Parquet files.

A page is the window ``[page * page_size, page * page_size + page_size)``
in file order. Reads are pure functions of the arguments and the file
content: nothing is cached or carried between calls.

Two strategies:

* row group: footer row counts let whole row groups before the window be
  skipped without decoding. Only the row group that straddles the window
  start has records discarded, and only whole row groups after it are
  decoded until the page is full.
* linear: the file is treated as a flat record stream. Records before the
  window are discarded and the page is collected. The exact total then
  comes from a pass that decodes only the first column.
"""

from typing import Callable, Iterator, List, Optional, Sequence, Tuple

import pyarrow as pa
import pyarrow.parquet as pq

from ..core.enums import ReaderStrategy
from ..core.exceptions import InvalidPage, SchemaReadFailure
from ..core.logging import get_logger, log_fields
from ..models.parquet import ColumnSchema, ReadStats, Row, RowWindow, Scalar
from .normalizer import ValueNormalizer
from .schema_inspector import SchemaInspector, count_records, open_parquet, resolve_strategy
from .staging import StagedFile

logger = get_logger(__name__)

Converter = Callable[[object], Scalar]


class PaginatedRowReader:
    """Serves row windows and full scans of a staged file."""

    def __init__(
        self,
        normalizer: Optional[ValueNormalizer] = None,
        strategy: ReaderStrategy = ReaderStrategy.AUTO,
        batch_size: int = 1024,
    ):
        self.normalizer = normalizer or ValueNormalizer()
        self.strategy = strategy
        self.batch_size = batch_size

    def read(
        self,
        staged: StagedFile,
        columns: Optional[List[ColumnSchema]],
        page: int,
        page_size: int,
        stats: Optional[ReadStats] = None,
    ) -> RowWindow:
        """
        Read one page of rows.

        Args:
            staged: Local copy of the file
            columns: Canonical schema; derived from the file when None
            page: Zero-based page number
            page_size: Rows per page, at least 1
            stats: Optional counters filled in by the read

        Raises:
            InvalidPage: If page is negative or page_size is not positive
            SchemaReadFailure: If the footer or the row data cannot be decoded
        """
        if page_size <= 0 or page < 0:
            raise InvalidPage(page=page, page_size=page_size)

        stats = stats if stats is not None else ReadStats()
        offset = page * page_size

        with open_parquet(staged) as parquet_file:
            if columns is None:
                columns = SchemaInspector().columns(parquet_file)
            strategy = resolve_strategy(parquet_file, self.strategy)

            try:
                if strategy is ReaderStrategy.ROW_GROUP:
                    rows, total_rows = self._read_row_groups(parquet_file, offset, page_size, stats)
                else:
                    rows, total_rows = self._read_linear(parquet_file, offset, page_size, stats)
            except (pa.ArrowException, OSError) as e:
                raise self._decode_failure(staged.remote_path, e) from e

        logger.info(
            f"Read page {page} (size {page_size}) of {staged.remote_path}: "
            f"{len(rows)} of {total_rows} rows via {strategy.value}",
            extra=log_fields(
                strategy=strategy.value,
                row_groups_skipped=stats.row_groups_skipped,
                row_groups_opened=stats.row_groups_opened,
                records_discarded=stats.records_discarded,
                records_materialized=stats.records_materialized,
            ),
        )
        return RowWindow(columns=columns, rows=rows, total_rows=total_rows, page=page, page_size=page_size)

    def scan(
        self,
        parquet_file: pq.ParquetFile,
        stats: Optional[ReadStats] = None,
        source: str = "",
    ) -> Iterator[Row]:
        """
        Yield every record in file order, one decoded batch in memory at a time.

        Raises:
            SchemaReadFailure: If the row data cannot be decoded
        """
        names, converters = self._converters(parquet_file)
        try:
            batches = iter(parquet_file.iter_batches(batch_size=self.batch_size, use_threads=False))
        except (pa.ArrowException, OSError) as e:
            raise self._decode_failure(source, e) from e

        while True:
            try:
                batch = next(batches, None)
                if batch is None:
                    return
                rows = self._materialize(batch, names, converters)
            except (pa.ArrowException, OSError) as e:
                raise self._decode_failure(source, e) from e

            if stats is not None:
                stats.records_materialized += len(rows)
            yield from rows

    def _read_row_groups(
        self,
        parquet_file: pq.ParquetFile,
        offset: int,
        page_size: int,
        stats: ReadStats,
    ) -> Tuple[List[Row], int]:
        metadata = parquet_file.metadata
        names, converters = self._converters(parquet_file)
        rows: List[Row] = []
        passed = 0  # rows lying before the current row group

        for index in range(metadata.num_row_groups):
            if len(rows) >= page_size:
                break

            group_rows = metadata.row_group(index).num_rows
            if passed + group_rows <= offset:
                passed += group_rows
                stats.row_groups_skipped += 1
                continue

            stats.row_groups_opened += 1
            to_discard = max(offset - passed, 0)
            passed += group_rows

            batches = parquet_file.iter_batches(batch_size=self.batch_size, row_groups=[index], use_threads=False)
            self._fill(batches, to_discard, rows, page_size, names, converters, stats)

        return rows, metadata.num_rows

    def _read_linear(
        self,
        parquet_file: pq.ParquetFile,
        offset: int,
        page_size: int,
        stats: ReadStats,
    ) -> Tuple[List[Row], int]:
        names, converters = self._converters(parquet_file)
        rows: List[Row] = []
        to_discard = offset
        total = 0

        for batch in parquet_file.iter_batches(batch_size=self.batch_size, use_threads=False):
            total += batch.num_rows
            to_discard = self._fill([batch], to_discard, rows, page_size, names, converters, stats)
            if len(rows) >= page_size:
                break
        else:
            return rows, total

        # The rest of the stream is only counted, on the first column alone.
        tail = count_records(parquet_file, self.batch_size) - total
        stats.records_counted += tail
        return rows, total + tail

    def _fill(
        self,
        batches,
        to_discard: int,
        rows: List[Row],
        page_size: int,
        names: Sequence[str],
        converters: Sequence[Converter],
        stats: ReadStats,
    ) -> int:
        """Discard, then collect records from ``batches`` until the page is full; return what is left to discard."""
        for batch in batches:
            if to_discard >= batch.num_rows:
                to_discard -= batch.num_rows
                stats.records_discarded += batch.num_rows
                continue
            if to_discard:
                batch = batch.slice(to_discard)
                stats.records_discarded += to_discard
                to_discard = 0

            needed = page_size - len(rows)
            if batch.num_rows > needed:
                batch = batch.slice(0, needed)

            materialized = self._materialize(batch, names, converters)
            stats.records_materialized += len(materialized)
            rows.extend(materialized)
            if len(rows) >= page_size:
                break
        return to_discard

    def _converters(self, parquet_file: pq.ParquetFile) -> Tuple[List[str], List[Converter]]:
        arrow_schema = parquet_file.schema_arrow
        return arrow_schema.names, [self.normalizer.converter(field.type) for field in arrow_schema]

    @staticmethod
    def _materialize(batch: pa.RecordBatch, names: Sequence[str], converters: Sequence[Converter]) -> List[Row]:
        columns = [
            [convert(value) for value in batch.column(i).to_pylist()]
            for i, convert in enumerate(converters)
        ]
        return [dict(zip(names, values)) for values in zip(*columns)]

    @staticmethod
    def _decode_failure(source: str, error: Exception) -> SchemaReadFailure:
        logger.warning(f"Undecodable row data in {source}: {error}")
        return SchemaReadFailure(
            f"Cannot decode rows of {source}: {error}",
            details={"remote_path": source},
        )
