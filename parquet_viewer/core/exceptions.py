from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_502_BAD_GATEWAY,
    HTTP_503_SERVICE_UNAVAILABLE,
)
from typing import Any, Dict, Optional


class AppException(Exception):
    def __init__(self, message: str,
                 error_code: Optional[str] = None,
                 status_code: int = HTTP_400_BAD_REQUEST,
                 details: Optional[Dict[str, Any]] = None,):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.status_code}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', status_code={self.status_code})"


class CatalogUnavailable(AppException):
    """Raised when the remote listing cannot be reached or is not authorized."""

    def __init__(
        self,
        message: str = "Remote file catalog is unavailable",
        prefix: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.prefix = prefix

        exception_details = details or {}
        if prefix is not None:
            exception_details["prefix"] = prefix

        super().__init__(
            message=message,
            error_code="CATALOG_UNAVAILABLE",
            details=exception_details,
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
        )


class FileNotFound(AppException):
    """Raised when a file id does not resolve within the current listing."""

    def __init__(
        self,
        file_id: Optional[str] = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.file_id = file_id

        if not message:
            if file_id:
                message = f"File with ID '{file_id}' not found"
            else:
                message = "File not found"

        exception_details = details or {}
        exception_details["file_id"] = file_id

        super().__init__(
            message=message,
            error_code="FILE_NOT_FOUND",
            details=exception_details,
            status_code=HTTP_404_NOT_FOUND,
        )


class StagingFailure(AppException):
    """Raised when a remote object cannot be copied to local storage."""

    def __init__(
        self,
        message: str = "Failed to stage remote file",
        remote_path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.remote_path = remote_path

        exception_details = details or {}
        if remote_path:
            exception_details["remote_path"] = remote_path

        super().__init__(
            message=message,
            error_code="STAGING_FAILURE",
            details=exception_details,
            status_code=HTTP_502_BAD_GATEWAY,
        )


class SchemaReadFailure(AppException):
    """Raised when a staged file has a corrupt, empty or field-less footer."""

    def __init__(
        self,
        message: str = "Failed to read file schema",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_code="SCHEMA_READ_FAILURE",
            details=details,
            status_code=422,
        )


class InvalidPage(AppException):
    """Raised for a negative page or a non-positive (or oversized) page size."""

    def __init__(
        self,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.page = page
        self.page_size = page_size

        if not message:
            message = f"Invalid page request: page={page}, pageSize={page_size}"

        exception_details = details or {}
        exception_details.update({"page": page, "page_size": page_size})

        super().__init__(
            message=message,
            error_code="INVALID_PAGE",
            details=exception_details,
            status_code=HTTP_400_BAD_REQUEST,
        )


class UnsupportedExportFormat(AppException):
    """Raised for an export target that is not recognized."""

    def __init__(
        self,
        export_format: Optional[str] = None,
        supported: Optional[list] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.export_format = export_format

        exception_details = details or {}
        exception_details["format"] = export_format
        if supported:
            exception_details["supported"] = supported

        super().__init__(
            message=f"Unsupported export format: '{export_format}'",
            error_code="UNSUPPORTED_EXPORT_FORMAT",
            details=exception_details,
            status_code=HTTP_400_BAD_REQUEST,
        )


class StorageBackendError(Exception):
    """Transport, authorization or local IO failure inside a storage backend."""
    pass


class ObjectMissingError(StorageBackendError):
    """The requested object key does not exist in the store."""
    pass
