from .parquet import (
    ColumnResponse,
    ErrorResponse,
    FileResponse,
    MetadataResponse,
    RowWindowResponse,
)

__all__ = [
    "ColumnResponse",
    "ErrorResponse",
    "FileResponse",
    "MetadataResponse",
    "RowWindowResponse",
]
