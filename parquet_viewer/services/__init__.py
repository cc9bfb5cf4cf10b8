"""
Services for browsing remote Parquet files.
Listing, staging, schema inspection, paginated reads and export.
"""

from .catalog import ObjectCatalog
from .export_service import ExportJob, ExportPipeline, parse_export_format
from .file_service import ExportDownload, ParquetFileService
from .normalizer import ValueNormalizer
from .row_reader import PaginatedRowReader
from .schema_inspector import SchemaInspector, open_parquet
from .staging import StagedFile, StagingCache

__all__ = [
    "ObjectCatalog",
    "ExportJob",
    "ExportPipeline",
    "parse_export_format",
    "ExportDownload",
    "ParquetFileService",
    "ValueNormalizer",
    "PaginatedRowReader",
    "SchemaInspector",
    "open_parquet",
    "StagedFile",
    "StagingCache",
]
