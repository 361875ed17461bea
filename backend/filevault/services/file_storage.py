"""File storage service: keeps metadata rows and blobs in step.

Ordering is what holds the two stores together:
- store writes the blob (fully, fsynced) before the record is inserted;
- delete removes the blob before the record.
The only state a crash can leave behind is a record whose blob is gone, and
that is reported as StoredFileMissingError at the next download.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import AsyncIterator

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError

from filevault.config import settings
from filevault.errors import EmptyFileError, NotFoundError, StorageError, StoredFileMissingError
from filevault.models.file_record import DEFAULT_CONTENT_TYPE, FileRecord
from filevault.repositories.file_record import FileRecordRepository
from filevault.services.blob_store import BlobNotFoundError, BlobStream, LocalBlobStore
from filevault.services.checksum import ChecksumComputer

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "file"


def sanitize_filename(name: str | None) -> str:
    """Strip empty, '.' and '..' segments from a client-supplied name."""
    if not name:
        return DEFAULT_FILENAME
    parts = [p for p in name.replace("\\", "/").split("/") if p not in ("", ".", "..")]
    return "/".join(parts) or DEFAULT_FILENAME


def new_storage_identifier() -> str:
    return str(uuid.uuid4())


@dataclass
class Download:
    """What a download hands back to the transport layer."""
    stream: BlobStream
    filename: str
    content_type: str
    size: int

    async def aclose(self) -> None:
        await self.stream.aclose()


class FileStorageService:
    """Store, list, fetch, download and delete files."""

    def __init__(
        self,
        repository: FileRecordRepository,
        blob_store: LocalBlobStore,
        upload_chunk_size: int | None = None,
    ):
        self.repository = repository
        self.blob_store = blob_store
        self.upload_chunk_size = upload_chunk_size or settings.UPLOAD_CHUNK_SIZE

    async def store(self, upload: UploadFile | None) -> FileRecord:
        """Persist an upload and return its new record."""
        if upload is None:
            raise EmptyFileError()
        # Read ahead one chunk so an empty payload is refused before any write.
        try:
            first = await upload.read(self.upload_chunk_size)
        except OSError as e:
            logger.error("Failed to read upload %s", upload.filename, exc_info=True)
            raise StorageError("Failed to store file") from e
        if not first:
            raise EmptyFileError()

        original = sanitize_filename(upload.filename)
        content_type = upload.content_type or DEFAULT_CONTENT_TYPE
        storage_identifier = new_storage_identifier()

        checksum = ChecksumComputer()
        size = await self.blob_store.put(
            storage_identifier,
            checksum.digesting(self._read_chunks(upload, first)),
        )

        record = FileRecord(
            original_filename=original,
            content_type=content_type,
            size=size,
            checksum=checksum.hexdigest(),
            storage_identifier=storage_identifier,
            download_count=0,
        )
        try:
            record = await self.repository.create(record)
        except SQLAlchemyError as e:
            logger.error("Failed to record metadata for blob %s", storage_identifier, exc_info=True)
            await self.repository.db.rollback()
            await self._discard_blob(storage_identifier)
            raise StorageError("Failed to store file metadata") from e

        logger.info(
            "Stored file %s (%s, %d bytes) as %s",
            record.id, record.original_filename, record.size, record.storage_identifier,
        )
        return record

    async def list_all(self) -> list[FileRecord]:
        return await self.repository.list_all()

    async def get_by_id(self, file_id: int) -> FileRecord:
        return await self.repository.get(file_id)

    async def load_for_download(self, file_id: int) -> Download:
        """Open the blob for a record and count the download.

        The caller owns the returned stream and must exhaust or close it.
        """
        record = await self.repository.get(file_id)
        try:
            stream = await self.blob_store.open(record.storage_identifier)
        except BlobNotFoundError:
            logger.error(
                "Consistency fault: file %s has no blob %s on disk",
                record.id, record.storage_identifier,
            )
            raise StoredFileMissingError()

        try:
            updated = await self.repository.increment_download_count(record.id)
        except SQLAlchemyError as e:
            logger.error("Failed to count download of file %s", record.id, exc_info=True)
            await stream.aclose()
            await self.repository.db.rollback()
            raise StorageError("Failed to record download") from e
        except BaseException:
            await stream.aclose()
            raise
        if updated is None:
            # Deleted between lookup and count.
            await stream.aclose()
            raise NotFoundError(f"File not found: {file_id}")

        logger.debug("Serving file %s (download #%d)", updated.id, updated.download_count)
        return Download(
            stream=stream,
            filename=updated.original_filename,
            content_type=updated.content_type,
            size=updated.size,
        )

    async def delete(self, file_id: int) -> None:
        """Remove blob, then record."""
        record = await self.repository.get(file_id)
        await self.blob_store.delete(record.storage_identifier)
        await self.repository.delete(record.id)
        logger.info("Deleted file %s (%s)", record.id, record.storage_identifier)

    async def _read_chunks(self, upload: UploadFile, first: bytes) -> AsyncIterator[bytes]:
        yield first
        while True:
            chunk = await upload.read(self.upload_chunk_size)
            if not chunk:
                break
            yield chunk

    async def _discard_blob(self, storage_identifier: str) -> None:
        try:
            await self.blob_store.delete(storage_identifier)
        except StorageError:
            logger.warning("Could not remove orphaned blob %s", storage_identifier, exc_info=True)
