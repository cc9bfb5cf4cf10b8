from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.enums import LogicalType
from ..models.parquet import ColumnSchema, FileEntry, Row, RowWindow, TableMetadata


class CamelModel(BaseModel):
    """Response models are serialized with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileResponse(CamelModel):
    """Schema for one listed file."""
    id: str
    name: str
    path: str = Field(description="Remote location, s3://<bucket>/<key>")
    size: int = Field(description="Object size in bytes")
    last_modified: datetime

    @classmethod
    def from_domain(cls, entry: FileEntry) -> "FileResponse":
        return cls(
            id=entry.id,
            name=entry.name,
            path=entry.remote_path,
            size=entry.size_bytes,
            last_modified=entry.last_modified,
        )


class ColumnStatisticsResponse(CamelModel):
    null_count: int = 0
    distinct_count: int = 0
    exact: bool = False


class ColumnResponse(CamelModel):
    """Schema for one column of a file."""
    name: str
    type: LogicalType
    nullable: bool
    statistics: ColumnStatisticsResponse

    @classmethod
    def from_domain(cls, column: ColumnSchema) -> "ColumnResponse":
        return cls(
            name=column.name,
            type=column.logical_type,
            nullable=column.nullable,
            statistics=ColumnStatisticsResponse(
                null_count=column.stats.null_count,
                distinct_count=column.stats.distinct_count,
                exact=column.stats.exact,
            ),
        )


class FileStatisticsResponse(CamelModel):
    total_size: int
    row_groups: int
    average_row_group_size: float


class MetadataResponse(CamelModel):
    """Schema for file-level metadata."""
    id: str
    name: str
    path: str
    size: int
    last_modified: datetime
    created_at: datetime
    created_by: Optional[str] = None
    format: str
    format_version: Optional[str] = None
    compression: str
    columns: List[ColumnResponse] = Field(alias="schema")
    row_count: int
    statistics: FileStatisticsResponse

    @classmethod
    def from_domain(cls, metadata: TableMetadata) -> "MetadataResponse":
        entry = metadata.file
        return cls(
            id=entry.id,
            name=entry.name,
            path=entry.remote_path,
            size=entry.size_bytes,
            last_modified=entry.last_modified,
            created_at=metadata.created_at,
            created_by=metadata.created_by,
            format=metadata.format,
            format_version=metadata.format_version,
            compression=metadata.compression_codec,
            columns=[ColumnResponse.from_domain(column) for column in metadata.columns],
            row_count=metadata.row_count,
            statistics=FileStatisticsResponse(
                total_size=metadata.total_size,
                row_groups=metadata.row_group_count,
                average_row_group_size=metadata.average_row_group_size,
            ),
        )


class RowWindowResponse(CamelModel):
    """Schema for one page of rows."""
    columns: List[ColumnResponse]
    rows: List[Row]
    total_rows: int
    current_page: int
    page_size: int
    total_pages: int

    @classmethod
    def from_domain(cls, window: RowWindow) -> "RowWindowResponse":
        return cls(
            columns=[ColumnResponse.from_domain(column) for column in window.columns],
            rows=window.rows,
            total_rows=window.total_rows,
            current_page=window.page,
            page_size=window.page_size,
            total_pages=window.total_pages,
        )


class ErrorDetail(BaseModel):
    type: str
    message: str
    details: dict = {}


class ErrorResponse(BaseModel):
    """Body of every error response."""
    error: ErrorDetail
