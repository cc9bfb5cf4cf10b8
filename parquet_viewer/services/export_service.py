"""
Streaming export of a staged Parquet file to CSV or XLSX.

Opening an export reads the footer and derives the column names, so a
broken schema fails before a single output byte exists. Rows are then
scanned once in file order, one decoded batch at a time.

Once rows have reached the sink a later failure cannot be rolled back;
the error still propagates to the caller.
"""

import csv
import io
import tempfile
from contextlib import ExitStack
from typing import BinaryIO, Iterator, List, Optional, Union

from openpyxl import Workbook
from openpyxl.cell import WriteOnlyCell
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from ..core.config import ExportSettings
from ..core.constants import CSV_CONTENT_TYPE, XLSX_CONTENT_TYPE
from ..core.enums import EXPORT_FORMAT_ALIASES, ExportFormat
from ..core.exceptions import UnsupportedExportFormat
from ..core.logging import get_logger
from ..models.parquet import ReadStats, Scalar
from .row_reader import PaginatedRowReader
from .schema_inspector import SchemaInspector, open_parquet
from .staging import StagedFile

logger = get_logger(__name__)

# Excel limits
MAX_SHEET_ROWS = 1_048_576
MAX_CELL_CHARS = 32_767

CONTENT_TYPES = {
    ExportFormat.CSV: CSV_CONTENT_TYPE,
    ExportFormat.SPREADSHEET: XLSX_CONTENT_TYPE,
}


def parse_export_format(value: Union[str, ExportFormat, None]) -> ExportFormat:
    """
    Resolve an export target name.

    Raises:
        UnsupportedExportFormat: If the name is not recognized
    """
    if isinstance(value, ExportFormat):
        return value
    export_format = EXPORT_FORMAT_ALIASES.get((value or "").strip().lower())
    if export_format is None:
        raise UnsupportedExportFormat(value, supported=sorted(EXPORT_FORMAT_ALIASES))
    return export_format


def _csv_value(value: Scalar) -> Union[str, int, float]:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def _clean_text(value: str) -> str:
    return ILLEGAL_CHARACTERS_RE.sub("", value)[:MAX_CELL_CHARS]


def _text_cell(sheet, text: str):
    cell = WriteOnlyCell(sheet, value=text)
    # openpyxl binds a leading "=" as a formula; keep the cell a string
    cell.data_type = "s"
    return cell


def _cell_value(sheet, value: Scalar):
    if not isinstance(value, str):
        return value
    text = _clean_text(value)
    if text.startswith("="):
        return _text_cell(sheet, text)
    return text


class ExportJob:
    """One opened export; iterate or write it exactly once, then close."""

    def __init__(
        self,
        reader: PaginatedRowReader,
        settings: ExportSettings,
        export_format: ExportFormat,
        parquet_file,
        column_names: List[str],
        resources: ExitStack,
        source: str,
    ):
        self.reader = reader
        self.settings = settings
        self.export_format = export_format
        self.parquet_file = parquet_file
        self.column_names = column_names
        self.stats = ReadStats()
        self._resources = resources
        self._source = source

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES[self.export_format]

    def write_to(self, sink: BinaryIO) -> int:
        """Write the whole export into ``sink``; return the number of data rows."""
        if self.export_format is ExportFormat.CSV:
            for chunk in self._csv_chunks():
                sink.write(chunk)
        else:
            self._write_workbook(sink)
        logger.info(f"Exported {self.stats.records_materialized} rows of {self._source} as {self.export_format.value}")
        return self.stats.records_materialized

    def iter_bytes(self) -> Iterator[bytes]:
        """
        Yield the encoded export in chunks and close the job at the end.

        CSV is produced incrementally. XLSX is a zip container, so it is
        built in a temporary file first and then streamed from there.
        """
        try:
            if self.export_format is ExportFormat.CSV:
                yield from self._csv_chunks()
            else:
                with tempfile.TemporaryFile() as spool:
                    self._write_workbook(spool)
                    spool.seek(0)
                    while True:
                        chunk = spool.read(self.settings.stream_chunk_size)
                        if not chunk:
                            break
                        yield chunk
            logger.info(f"Streamed {self.stats.records_materialized} rows of {self._source} as {self.export_format.value}")
        finally:
            self.close()

    def close(self) -> None:
        self._resources.close()

    def __enter__(self) -> "ExportJob":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _csv_chunks(self) -> Iterator[bytes]:
        buffer = io.StringIO()
        writer = csv.writer(buffer, delimiter=self.settings.csv_delimiter)
        writer.writerow(self.column_names)

        pending = 0
        for row in self.reader.scan(self.parquet_file, self.stats, self._source):
            writer.writerow([_csv_value(row[name]) for name in self.column_names])
            pending += 1
            if pending >= self.settings.csv_chunk_rows:
                yield buffer.getvalue().encode("utf-8")
                buffer.seek(0)
                buffer.truncate(0)
                pending = 0

        tail = buffer.getvalue()
        if tail:
            yield tail.encode("utf-8")

    def _write_workbook(self, sink: BinaryIO) -> None:
        # Write-only sheets stream appended rows to openpyxl's own temp
        # storage, so memory stays flat whatever the row count.
        workbook = Workbook(write_only=True)
        rows = self.reader.scan(self.parquet_file, self.stats, self._source)

        # Column widths must be set before the first row is written, so they
        # come from a bounded sample rather than the full file.
        sample = []
        for row in rows:
            sample.append(row)
            if len(sample) >= self.settings.autosize_sample_rows:
                break
        widths = self._column_widths(sample)

        sheet_number = 0
        sheet = None
        sheet_rows = MAX_SHEET_ROWS

        def chained():
            yield from sample
            yield from rows

        for row in chained():
            if sheet_rows >= MAX_SHEET_ROWS:
                sheet_number += 1
                sheet = self._new_sheet(workbook, sheet_number, widths)
                sheet_rows = 1
            sheet.append([_cell_value(sheet, row[name]) for name in self.column_names])
            sheet_rows += 1

        if sheet is None:
            self._new_sheet(workbook, 1, widths)

        workbook.save(sink)

    def _new_sheet(self, workbook: Workbook, number: int, widths: List[float]):
        title = self.settings.sheet_title if number == 1 else f"{self.settings.sheet_title} ({number})"
        sheet = workbook.create_sheet(title=title[:31])
        for index, width in enumerate(widths, start=1):
            sheet.column_dimensions[get_column_letter(index)].width = width

        header = []
        for name in self.column_names:
            cell = _text_cell(sheet, _clean_text(name))
            cell.font = Font(bold=True)
            header.append(cell)
        sheet.append(header)
        return sheet

    def _column_widths(self, sample) -> List[float]:
        widths = []
        for name in self.column_names:
            longest = max(
                [len(str(name))] + [len(str(row[name])) for row in sample if row[name] is not None]
            )
            widths.append(min(longest + 2, self.settings.max_column_width))
        return widths


class ExportPipeline:
    """Drives a full scan of a staged file into an export encoding."""

    def __init__(self, reader: Optional[PaginatedRowReader] = None, settings: Optional[ExportSettings] = None):
        self.reader = reader or PaginatedRowReader()
        self.settings = settings or ExportSettings()

    def open(self, staged: StagedFile, export_format: Union[str, ExportFormat]) -> ExportJob:
        """
        Validate the target and open the file's schema; no output is produced yet.

        Raises:
            UnsupportedExportFormat: If the target is not recognized
            SchemaReadFailure: If the footer cannot be read
        """
        export_format = parse_export_format(export_format)

        resources = ExitStack()
        try:
            parquet_file = resources.enter_context(open_parquet(staged))
            column_names = [column.name for column in SchemaInspector().columns(parquet_file)]
        except BaseException:
            resources.close()
            raise

        return ExportJob(
            reader=self.reader,
            settings=self.settings,
            export_format=export_format,
            parquet_file=parquet_file,
            column_names=column_names,
            resources=resources,
            source=staged.remote_path,
        )

    def export(self, staged: StagedFile, export_format: Union[str, ExportFormat], sink: BinaryIO) -> int:
        """Write every row of ``staged`` into ``sink``; return the number of data rows."""
        with self.open(staged, export_format) as job:
            return job.write_to(sink)
