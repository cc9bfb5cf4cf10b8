# App info
APP_NAME = "Parquet Viewer"
VERSION = "1.0.0"

API_PREFIX = "/api"

# Recognized remote objects
PARQUET_SUFFIX = ".parquet"
FILE_FORMAT = "PARQUET"
UNKNOWN_COMPRESSION = "UNKNOWN"
S3_URI_SCHEME = "s3://"

# Default pagination
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 1000

CSV_CONTENT_TYPE = "text/csv; charset=utf-8"
XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

LOG_EXCLUDE_PATHS = [
    "/health",
    "/docs",
    "/openapi.json",
]
