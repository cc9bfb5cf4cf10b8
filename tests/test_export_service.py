"""Tests for CSV and XLSX export."""

import io

import pyarrow as pa
import pyarrow.parquet as pq
import pytest
from openpyxl import load_workbook

from parquet_viewer.core.config import ExportSettings
from parquet_viewer.core.enums import ExportFormat
from parquet_viewer.core.exceptions import SchemaReadFailure, UnsupportedExportFormat
from parquet_viewer.services import export_service
from parquet_viewer.services.catalog import ObjectCatalog
from parquet_viewer.services.export_service import ExportPipeline, parse_export_format
from parquet_viewer.services.row_reader import PaginatedRowReader
from parquet_viewer.services.staging import StagingCache


@pytest.fixture
def people(catalog: ObjectCatalog, staging: StagingCache):
    with staging.stage(catalog.resolve("1")) as staged:
        yield staged


@pytest.fixture
def numbers(catalog: ObjectCatalog, staging: StagingCache):
    with staging.stage(catalog.resolve("2")) as staged:
        yield staged


class TestParseExportFormat:

    @pytest.mark.parametrize("value, expected", [
        ("csv", ExportFormat.CSV),
        ("CSV", ExportFormat.CSV),
        ("delimited", ExportFormat.CSV),
        ("excel", ExportFormat.SPREADSHEET),
        ("xlsx", ExportFormat.SPREADSHEET),
        (" Spreadsheet ", ExportFormat.SPREADSHEET),
        (ExportFormat.CSV, ExportFormat.CSV),
    ])
    def test_aliases(self, value, expected):
        assert parse_export_format(value) is expected

    @pytest.mark.parametrize("value", ["pdf", "", None, "json"])
    def test_unsupported(self, value):
        with pytest.raises(UnsupportedExportFormat) as exc_info:
            parse_export_format(value)

        assert exc_info.value.status_code == 400
        assert "csv" in exc_info.value.details["supported"]


class TestCsvExport:

    def test_header_and_rows(self, people):
        sink = io.BytesIO()
        rows = ExportPipeline().export(people, "csv", sink)

        lines = sink.getvalue().decode("utf-8").splitlines()
        assert rows == 5
        assert lines == [
            "id,name,active",
            "1,ann,true",
            "2,bob,false",
            "3,cy,true",
            "4,dee,true",
            "5,eve,false",
        ]

    def test_nulls_are_empty_fields(self, numbers):
        sink = io.BytesIO()
        ExportPipeline().export(numbers, ExportFormat.CSV, sink)

        lines = sink.getvalue().decode("utf-8").splitlines()
        assert len(lines) == 96
        assert lines[1] == "0,,0.0,0,0.0"
        assert lines[2] == "1,row-1,0.5,1,0.25"

    def test_quoting(self, store_dir, catalog: ObjectCatalog, staging: StagingCache):
        pq.write_table(pa.table({"text": ['a,b', 'say "hi"']}), store_dir / "c_quotes.parquet")
        sink = io.BytesIO()
        with staging.stage(catalog.resolve("3")) as staged:
            ExportPipeline().export(staged, "csv", sink)

        assert sink.getvalue().decode("utf-8").splitlines() == ["text", '"a,b"', '"say ""hi"""']

    def test_streams_in_chunks(self, numbers):
        pipeline = ExportPipeline(settings=ExportSettings(csv_chunk_rows=10))
        job = pipeline.open(numbers, "csv")
        chunks = list(job.iter_bytes())

        # header + 95 rows in chunks of 10 rows
        assert len(chunks) == 10
        assert b"".join(chunks).decode("utf-8").splitlines()[-1].startswith("94,row-94")


class TestSpreadsheetExport:

    def test_workbook_contents(self, people):
        sink = io.BytesIO()
        rows = ExportPipeline().export(people, "excel", sink)

        workbook = load_workbook(io.BytesIO(sink.getvalue()))
        sheet = workbook["Data"]
        values = [list(row) for row in sheet.iter_rows(values_only=True)]

        assert rows == 5
        assert values[0] == ["id", "name", "active"]
        assert values[1] == [1, "ann", True]
        assert len(values) == 6
        assert sheet["A1"].font.bold

    def test_streamed_workbook_is_valid(self, numbers):
        job = ExportPipeline().open(numbers, ExportFormat.SPREADSHEET)
        data = b"".join(job.iter_bytes())

        sheet = load_workbook(io.BytesIO(data))["Data"]
        assert sheet.max_row == 96

    def test_rolls_over_to_new_sheet(self, numbers, monkeypatch):
        monkeypatch.setattr(export_service, "MAX_SHEET_ROWS", 41)
        sink = io.BytesIO()
        ExportPipeline().export(numbers, "xlsx", sink)

        workbook = load_workbook(io.BytesIO(sink.getvalue()))
        assert workbook.sheetnames == ["Data", "Data (2)", "Data (3)"]
        assert [workbook[name].max_row for name in workbook.sheetnames] == [41, 41, 16]
        assert workbook["Data (2)"]["A2"].value == 40

    def test_empty_file_still_has_a_sheet(self, store_dir, catalog: ObjectCatalog, staging: StagingCache):
        pq.write_table(pa.table({"id": pa.array([], pa.int64())}), store_dir / "c_empty.parquet")
        sink = io.BytesIO()
        with staging.stage(catalog.resolve("3")) as staged:
            rows = ExportPipeline().export(staged, "xlsx", sink)

        workbook = load_workbook(io.BytesIO(sink.getvalue()))
        assert rows == 0
        assert workbook.sheetnames == ["Data"]
        assert workbook["Data"]["A1"].value == "id"

    def test_formula_like_text_stays_text(self, store_dir, catalog: ObjectCatalog, staging: StagingCache):
        pq.write_table(pa.table({"=note": ["=1+1", '=HYPERLINK("x")', "plain"]}), store_dir / "c_formulas.parquet")
        sink = io.BytesIO()
        with staging.stage(catalog.resolve("3")) as staged:
            ExportPipeline().export(staged, "xlsx", sink)

        sheet = load_workbook(io.BytesIO(sink.getvalue()))["Data"]
        cells = [sheet.cell(row=r, column=1) for r in range(1, 5)]

        assert [c.value for c in cells] == ["=note", "=1+1", '=HYPERLINK("x")', "plain"]
        assert [c.data_type for c in cells] == ["s", "s", "s", "s"]


class TestOpen:

    def test_format_checked_before_schema(self, broken_file, catalog: ObjectCatalog, staging: StagingCache):
        with staging.stage(catalog.resolve("3")) as staged:
            with pytest.raises(UnsupportedExportFormat):
                ExportPipeline().open(staged, "pdf")

    def test_schema_failure_before_output(self, broken_file, catalog: ObjectCatalog, staging: StagingCache):
        sink = io.BytesIO()
        with staging.stage(catalog.resolve("3")) as staged:
            with pytest.raises(SchemaReadFailure):
                ExportPipeline().export(staged, "csv", sink)

        assert sink.getvalue() == b""

    def test_rows_are_normalized(self, store_dir, catalog: ObjectCatalog, staging: StagingCache):
        table = pa.table({"raw": pa.array([b"\xde\xad"], pa.binary(2)), "tags": pa.array([["x"]])})
        pq.write_table(table, store_dir / "c_bytes.parquet")
        sink = io.BytesIO()
        with staging.stage(catalog.resolve("3")) as staged:
            ExportPipeline(PaginatedRowReader()).export(staged, "csv", sink)

        assert sink.getvalue().decode("utf-8").splitlines()[1] == 'dead,"[""x""]"'

    @pytest.mark.parametrize("export_format", ["csv", "xlsx"])
    def test_undecodable_rows(self, corrupt_pages_file, catalog: ObjectCatalog, staging: StagingCache, export_format):
        """The footer opens, then the row data fails to decode."""
        with staging.stage(catalog.resolve("3")) as staged:
            with ExportPipeline().open(staged, export_format) as job:
                with pytest.raises(SchemaReadFailure) as exc_info:
                    job.write_to(io.BytesIO())

        assert exc_info.value.details["remote_path"].endswith("c_corrupt.parquet")
