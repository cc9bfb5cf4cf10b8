import tempfile
from typing import List, Optional
from pydantic import Field
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import APP_NAME, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PARQUET_SUFFIX
from .constants import VERSION as APP_VERSION


class EnvSettings(BaseSettings):
    """Base for every settings group: reads `.env` and accepts field names in code."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class CORSSettings(EnvSettings):
    """CORS configuration settings."""

    allowed_origins: List[str] = Field(default=["*"], validation_alias="CORS_ALLOWED_ORIGINS")
    allowed_methods: List[str] = Field(default=["GET"], validation_alias="CORS_ALLOWED_METHODS")
    allowed_headers: List[str] = Field(default=["*"], validation_alias="CORS_ALLOWED_HEADERS")
    allow_credentials: bool = Field(default=False, validation_alias="CORS_ALLOW_CREDENTIALS")


class S3Settings(EnvSettings):
    """Remote object store (S3 or S3-compatible) settings."""

    region: str = Field(default="us-east-1", validation_alias="AWS_REGION")
    access_key_id: Optional[str] = Field(default=None, validation_alias="AWS_ACCESS_KEY_ID")
    secret_access_key: Optional[str] = Field(default=None, validation_alias="AWS_SECRET_ACCESS_KEY")
    session_token: Optional[str] = Field(default=None, validation_alias="AWS_SESSION_TOKEN")
    bucket: Optional[str] = Field(default=None, validation_alias="AWS_S3_BUCKET")
    prefix: str = Field(default="", validation_alias="AWS_S3_PREFIX")
    endpoint_url: Optional[str] = Field(default=None, validation_alias="AWS_S3_ENDPOINT_URL")

    # Transport behaviour; the core itself never retries
    connect_timeout: int = Field(default=10, validation_alias="AWS_S3_CONNECT_TIMEOUT")  # seconds
    read_timeout: int = Field(default=60, validation_alias="AWS_S3_READ_TIMEOUT")  # seconds
    max_attempts: int = Field(default=3, validation_alias="AWS_S3_MAX_ATTEMPTS")
    max_pool_connections: int = Field(default=50, validation_alias="AWS_S3_MAX_POOL_CONNECTIONS")


class StorageSettings(EnvSettings):
    """Which object store backs the catalog."""

    backend: str = Field(default="s3", validation_alias="STORAGE_BACKEND")  # s3, local
    local_storage_path: str = Field(default="./data", validation_alias="LOCAL_STORAGE_PATH")
    file_suffix: str = Field(default=PARQUET_SUFFIX, validation_alias="FILE_SUFFIX")


class StagingSettings(EnvSettings):
    """Local staging of remote objects."""

    directory: str = Field(default_factory=tempfile.gettempdir, validation_alias="STAGING_DIR")
    chunk_size: int = Field(default=1024 * 1024, validation_alias="STAGING_CHUNK_SIZE")  # bytes
    file_prefix: str = "parquet-"
    file_suffix: str = ".tmp"


class ReaderSettings(EnvSettings):
    """Row decoding settings."""

    strategy: str = Field(default="auto", validation_alias="READER_STRATEGY")  # auto, row_group, linear
    batch_size: int = Field(default=1024, validation_alias="READER_BATCH_SIZE")  # records per decoded batch


class ExportSettings(EnvSettings):
    """Export encodings."""

    csv_delimiter: str = Field(default=",", validation_alias="EXPORT_CSV_DELIMITER")
    csv_chunk_rows: int = Field(default=500, validation_alias="EXPORT_CSV_CHUNK_ROWS")
    sheet_title: str = Field(default="Data", validation_alias="EXPORT_SHEET_TITLE")
    autosize_sample_rows: int = Field(default=100, validation_alias="EXPORT_AUTOSIZE_SAMPLE_ROWS")
    max_column_width: int = Field(default=60, validation_alias="EXPORT_MAX_COLUMN_WIDTH")
    stream_chunk_size: int = Field(default=64 * 1024, validation_alias="EXPORT_STREAM_CHUNK_SIZE")  # bytes


class LoggingSettings(EnvSettings):
    level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    json_format: bool = Field(default=False, validation_alias="LOG_JSON_FORMAT")
    format: str = Field(default="%(asctime)s - %(levelname)s - %(name)s - %(message)s", validation_alias="LOG_FORMAT")
    file_path: Optional[str] = Field(default=None, validation_alias="LOG_FILE")
    max_bytes: int = Field(default=10 * 1024 * 1024, validation_alias="LOG_MAX_BYTES")
    backup_count: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")


class Settings(EnvSettings):
    PROJECT_NAME: str = Field(default=APP_NAME, validation_alias="PROJECT_NAME")
    VERSION: str = Field(default=APP_VERSION, validation_alias="VERSION")
    DEBUG: bool = Field(default=False, validation_alias="DEBUG")
    ENVIRONMENT: str = Field(default="development", validation_alias="ENVIRONMENT")
    HOST: str = Field(default="0.0.0.0", validation_alias="HOST")
    PORT: int = Field(default=8080, validation_alias="PORT")

    s3: S3Settings = Field(default_factory=S3Settings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    staging: StagingSettings = Field(default_factory=StagingSettings)
    reader: ReaderSettings = Field(default_factory=ReaderSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    cors_settings: CORSSettings = Field(default_factory=CORSSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # Pagination
    default_page_size: int = Field(default=DEFAULT_PAGE_SIZE, validation_alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=MAX_PAGE_SIZE, validation_alias="MAX_PAGE_SIZE")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
