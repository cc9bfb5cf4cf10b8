from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from fastapi.concurrency import run_in_threadpool
from starlette.background import BackgroundTask

from ...dependencies import get_file_service
from ....schemas.parquet import ErrorResponse, FileResponse, MetadataResponse, RowWindowResponse
from ....services.file_service import ParquetFileService

router = APIRouter(
    responses={
        404: {"model": ErrorResponse, "description": "File id not in the current listing"},
        502: {"model": ErrorResponse, "description": "Remote object could not be staged"},
        503: {"model": ErrorResponse, "description": "Remote listing unavailable"},
    },
)


@router.get("", response_model=List[FileResponse])
def list_files(service: ParquetFileService = Depends(get_file_service)) -> List[FileResponse]:
    """List Parquet files in the configured bucket and prefix"""
    return [FileResponse.from_domain(entry) for entry in service.list_files()]


@router.get("/{file_id}/metadata", response_model=MetadataResponse)
def get_file_metadata(
    file_id: str,
    service: ParquetFileService = Depends(get_file_service),
) -> MetadataResponse:
    """Get the schema and file-level metadata of a file"""
    return MetadataResponse.from_domain(service.get_metadata(file_id))


@router.get("/{file_id}/data", response_model=RowWindowResponse)
def get_file_data(
    file_id: str,
    page: int = Query(0, description="Zero-based page number"),
    page_size: Optional[int] = Query(None, alias="pageSize", description="Rows per page (DEFAULT_PAGE_SIZE when omitted)"),
    service: ParquetFileService = Depends(get_file_service),
) -> RowWindowResponse:
    """Get one page of rows"""
    return RowWindowResponse.from_domain(service.get_page(file_id, page, page_size))


@router.get("/{file_id}/download")
async def download_file(
    file_id: str,
    format: str = Query("csv", description="csv, excel, xlsx or spreadsheet"),
    service: ParquetFileService = Depends(get_file_service),
) -> StreamingResponse:
    """
    Download the whole file as CSV or XLSX.

    Format and schema are checked before the response starts, so those
    failures still produce a JSON error body.
    """
    download = await run_in_threadpool(service.open_export, file_id, format)

    return StreamingResponse(
        download.iter_bytes(),
        media_type=download.content_type,
        headers={"Content-Disposition": f"attachment; filename={download.filename}"},
        background=BackgroundTask(download.release),
    )
