"""
Domain objects for browsing remote Parquet files.

Rows are ordered mappings from column name to a canonical scalar:
``None``, ``bool``, ``int``, ``float`` or ``str``. Nothing else ever
appears in a row.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Union

from ..core.enums import LogicalType

Scalar = Union[None, bool, int, float, str]
Row = Dict[str, Scalar]


@dataclass(frozen=True)
class FileEntry:
    """
    One recognized remote object.

    The id is only meaningful inside the listing that produced it.
    """

    id: str
    name: str
    remote_path: str
    key: str
    size_bytes: int
    last_modified: datetime


@dataclass(frozen=True)
class ColumnStats:
    """
    Per-column statistics.

    Parquet cannot provide exact distinct counts cheaply, so these are
    zero-valued placeholders and ``exact`` stays False.
    """

    null_count: int = 0
    distinct_count: int = 0
    exact: bool = False


@dataclass(frozen=True)
class ColumnSchema:
    name: str
    logical_type: LogicalType
    nullable: bool
    stats: ColumnStats = field(default_factory=ColumnStats)


@dataclass
class TableMetadata:
    file: FileEntry
    columns: List[ColumnSchema]
    row_count: int
    row_group_count: int
    format: str
    compression_codec: str
    created_at: datetime
    total_size: int
    created_by: Optional[str] = None
    format_version: Optional[str] = None

    @property
    def average_row_group_size(self) -> float:
        # A file without row groups is treated as one group
        return self.total_size / max(self.row_group_count, 1)


@dataclass
class RowWindow:
    columns: List[ColumnSchema]
    rows: List[Row]
    total_rows: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return -(-self.total_rows // self.page_size)


@dataclass
class ReadStats:
    """Counters a reader fills in; used to verify that skipped row groups stay undecoded."""

    row_groups_skipped: int = 0
    row_groups_opened: int = 0
    records_discarded: int = 0
    records_materialized: int = 0
    records_counted: int = 0
