from enum import Enum


class LogicalType(str, Enum):
    """Canonical column types exposed to callers"""
    BOOL = "BOOL"
    INT32 = "INT32"
    INT64 = "INT64"
    FLOAT32 = "FLOAT32"
    FLOAT64 = "FLOAT64"
    BINARY = "BINARY"  # UTF-8 text or opaque byte sequence
    OTHER = "OTHER"


# Parquet physical type name -> logical type
PHYSICAL_TYPE_MAP = {
    "BOOLEAN": LogicalType.BOOL,
    "INT32": LogicalType.INT32,
    "INT64": LogicalType.INT64,
    "FLOAT": LogicalType.FLOAT32,
    "DOUBLE": LogicalType.FLOAT64,
    "BYTE_ARRAY": LogicalType.BINARY,
}


class PhysicalKind(str, Enum):
    """Tags for the physical shape of a field value, one normalization rule each"""
    RECORD = "RECORD"
    ARRAY = "ARRAY"
    FIXED_BYTES = "FIXED_BYTES"
    ENUM_SYMBOL = "ENUM_SYMBOL"
    BYTE_BUFFER = "BYTE_BUFFER"
    RAW_BYTES = "RAW_BYTES"
    TEXT = "TEXT"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    BOOLEAN = "BOOLEAN"
    NULL = "NULL"


class ExportFormat(str, Enum):
    CSV = "csv"
    SPREADSHEET = "spreadsheet"

    @property
    def extension(self) -> str:
        return "csv" if self is ExportFormat.CSV else "xlsx"


# Accepted spellings of an export target
EXPORT_FORMAT_ALIASES = {
    "csv": ExportFormat.CSV,
    "delimited": ExportFormat.CSV,
    "spreadsheet": ExportFormat.SPREADSHEET,
    "excel": ExportFormat.SPREADSHEET,
    "xlsx": ExportFormat.SPREADSHEET,
}


class ReaderStrategy(str, Enum):
    """How rows are located inside a staged file"""
    AUTO = "auto"
    ROW_GROUP = "row_group"  # skip whole row groups using footer row counts
    LINEAR = "linear"        # flat record stream, skip record by record


class StorageType(str, Enum):
    """Supported storage types."""
    LOCAL = "local"
    S3 = "s3"
