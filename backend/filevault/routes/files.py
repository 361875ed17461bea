"""Files API routes."""
from urllib.parse import quote

from fastapi import APIRouter, Depends, Response, UploadFile, File as FastAPIFile
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from filevault.dependencies import get_file_service
from filevault.schemas.file import FileResponse as FileResponseSchema
from filevault.services.file_storage import FileStorageService

router = APIRouter(prefix="/api/files", tags=["files"])


def content_disposition(filename: str) -> str:
    """Attachment header; non-ASCII or unsafe names use the RFC 5987 form."""
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


@router.post("", response_model=FileResponseSchema, status_code=201)
async def upload_file(
    file: UploadFile = FastAPIFile(...),
    service: FileStorageService = Depends(get_file_service),
):
    """Upload a file and create a file record."""
    return await service.store(file)


@router.get("", response_model=list[FileResponseSchema])
async def list_files(service: FileStorageService = Depends(get_file_service)):
    """List all file records."""
    return await service.list_all()


@router.get("/{file_id}", response_model=FileResponseSchema)
async def get_file_metadata(
    file_id: int,
    service: FileStorageService = Depends(get_file_service),
):
    """Get file metadata by ID."""
    return await service.get_by_id(file_id)


@router.get("/{file_id}/download")
async def download_file(
    file_id: int,
    service: FileStorageService = Depends(get_file_service),
):
    """Download a file by ID."""
    download = await service.load_for_download(file_id)
    return StreamingResponse(
        download.stream,
        media_type=download.content_type,
        headers={
            "Content-Length": str(download.size),
            "Content-Disposition": content_disposition(download.filename),
        },
        background=BackgroundTask(download.aclose),
    )


@router.delete("/{file_id}", status_code=204)
async def delete_file(
    file_id: int,
    service: FileStorageService = Depends(get_file_service),
):
    """Delete a file and its record."""
    await service.delete(file_id)
    return Response(status_code=204)
