from dataclasses import dataclass
from typing import BinaryIO, Iterator, List, Optional, Union

from ..core.config import Settings, get_settings
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import ExportFormat, ReaderStrategy
from ..core.exceptions import InvalidPage
from ..core.logging import StructuredLogger
from ..infrastructure.storage.base import ObjectStore
from ..models.parquet import FileEntry, RowWindow, TableMetadata
from .catalog import ObjectCatalog
from .export_service import CONTENT_TYPES, ExportJob, ExportPipeline, parse_export_format
from .normalizer import ValueNormalizer
from .row_reader import PaginatedRowReader
from .schema_inspector import SchemaInspector
from .staging import StagedFile, StagingCache

events = StructuredLogger(__name__)


def export_filename(entry: FileEntry, export_format: ExportFormat) -> str:
    stem = entry.name.rsplit(".", 1)[0] if "." in entry.name else entry.name
    return f"{stem or 'export'}.{export_format.extension}"


@dataclass
class ExportDownload:
    """An export ready to stream; owns the staged copy until the stream ends."""

    filename: str
    content_type: str
    job: ExportJob
    staged: StagedFile

    def iter_bytes(self) -> Iterator[bytes]:
        try:
            yield from self.job.iter_bytes()
        finally:
            self.release()

    def release(self) -> None:
        self.job.close()
        self.staged.release()


class ParquetFileService:
    """
    The four browsing operations: list, metadata, page and export.

    Each call resolves the file id against a fresh listing and works on its
    own staged copy, which is removed before the call returns (or, for a
    streamed export, when the stream ends).
    """

    def __init__(
        self,
        catalog: ObjectCatalog,
        staging: StagingCache,
        inspector: Optional[SchemaInspector] = None,
        reader: Optional[PaginatedRowReader] = None,
        exporter: Optional[ExportPipeline] = None,
        max_page_size: Optional[int] = None,
        default_page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.catalog = catalog
        self.staging = staging
        self.inspector = inspector or SchemaInspector()
        self.reader = reader or PaginatedRowReader()
        self.exporter = exporter or ExportPipeline(self.reader)
        self.max_page_size = max_page_size
        self.default_page_size = default_page_size

    @classmethod
    def from_settings(cls, store: ObjectStore, settings: Optional[Settings] = None) -> "ParquetFileService":
        settings = settings or get_settings()
        strategy = ReaderStrategy(settings.reader.strategy.lower())
        reader = PaginatedRowReader(ValueNormalizer(), strategy=strategy, batch_size=settings.reader.batch_size)
        return cls(
            catalog=ObjectCatalog(store, prefix=settings.s3.prefix, suffix=settings.storage.file_suffix),
            staging=StagingCache(
                store,
                directory=settings.staging.directory,
                chunk_size=settings.staging.chunk_size,
                file_prefix=settings.staging.file_prefix,
                file_suffix=settings.staging.file_suffix,
            ),
            inspector=SchemaInspector(strategy=strategy, batch_size=settings.reader.batch_size),
            reader=reader,
            exporter=ExportPipeline(reader, settings.export),
            max_page_size=settings.max_page_size,
            default_page_size=settings.default_page_size,
        )

    def list_files(self) -> List[FileEntry]:
        return self.catalog.list()

    def get_metadata(self, file_id: str) -> TableMetadata:
        entry = self.catalog.resolve(file_id)
        with self.staging.stage(entry) as staged:
            metadata = self.inspector.inspect(staged, entry)

        events.info("metadata", file_id=file_id, remote_path=entry.remote_path, row_count=metadata.row_count)
        return metadata

    def get_page(self, file_id: str, page: int = 0, page_size: Optional[int] = None) -> RowWindow:
        if page_size is None:
            page_size = self.default_page_size
        self.validate_page(page, page_size)

        entry = self.catalog.resolve(file_id)
        with self.staging.stage(entry) as staged:
            window = self.reader.read(staged, None, page, page_size)

        events.info(
            "page",
            file_id=file_id,
            remote_path=entry.remote_path,
            page=page,
            page_size=page_size,
            rows=len(window.rows),
            total_rows=window.total_rows,
        )
        return window

    def open_export(self, file_id: str, export_format: Union[str, ExportFormat]) -> ExportDownload:
        """
        Stage the file and open its export without producing output.

        The caller must consume ``iter_bytes`` or call ``release``.
        """
        export_format = parse_export_format(export_format)
        entry = self.catalog.resolve(file_id)

        staged = self.staging.stage(entry)
        try:
            job = self.exporter.open(staged, export_format)
        except BaseException:
            staged.release()
            raise

        events.info("export", file_id=file_id, remote_path=entry.remote_path, format=export_format.value)
        return ExportDownload(
            filename=export_filename(entry, export_format),
            content_type=CONTENT_TYPES[export_format],
            job=job,
            staged=staged,
        )

    def export(self, file_id: str, export_format: Union[str, ExportFormat], sink: BinaryIO) -> str:
        """Write the export into ``sink``; return the suggested filename."""
        export_format = parse_export_format(export_format)
        entry = self.catalog.resolve(file_id)

        with self.staging.stage(entry) as staged:
            rows = self.exporter.export(staged, export_format, sink)

        events.info("export", file_id=file_id, remote_path=entry.remote_path, format=export_format.value, rows=rows)
        return export_filename(entry, export_format)

    def validate_page(self, page: int, page_size: int) -> None:
        if page < 0 or page_size <= 0:
            raise InvalidPage(page=page, page_size=page_size)
        if self.max_page_size is not None and page_size > self.max_page_size:
            raise InvalidPage(
                page=page,
                page_size=page_size,
                message=f"pageSize must not exceed {self.max_page_size}",
            )
