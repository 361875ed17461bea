"""FastAPI dependency providers. Override these in tests."""
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from filevault.config import settings
from filevault.database import get_db
from filevault.repositories.file_record import FileRecordRepository
from filevault.services.blob_store import LocalBlobStore
from filevault.services.file_storage import FileStorageService


@lru_cache
def get_blob_store() -> LocalBlobStore:
    """Process-wide blob store. Creating it creates the base directory."""
    return LocalBlobStore(settings.storage_path, chunk_size=settings.DOWNLOAD_CHUNK_SIZE)


def get_file_service(
    db: AsyncSession = Depends(get_db),
    blob_store: LocalBlobStore = Depends(get_blob_store),
) -> FileStorageService:
    return FileStorageService(
        FileRecordRepository(db),
        blob_store,
        upload_chunk_size=settings.UPLOAD_CHUNK_SIZE,
    )
