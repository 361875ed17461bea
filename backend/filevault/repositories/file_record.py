"""Metadata repository for FileRecord rows.

Pure bookkeeping: nothing here touches the blob store or the filesystem.
"""
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from filevault.errors import NotFoundError
from filevault.models.file_record import FileRecord


class FileRecordRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, record: FileRecord) -> FileRecord:
        """Insert a new record and return it with its id assigned.

        Everything that can fail runs before the commit, so a raised error
        means no row was written.
        """
        self.db.add(record)
        await self.db.flush()
        await self.db.refresh(record)
        await self.db.commit()
        return record

    async def find(self, record_id: int) -> FileRecord | None:
        result = await self.db.execute(
            select(FileRecord)
            .where(FileRecord.id == record_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get(self, record_id: int) -> FileRecord:
        record = await self.find(record_id)
        if not record:
            raise NotFoundError(f"File not found: {record_id}")
        return record

    async def get_by_storage_identifier(self, storage_identifier: str) -> FileRecord | None:
        result = await self.db.execute(
            select(FileRecord).where(FileRecord.storage_identifier == storage_identifier)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[FileRecord]:
        """All records, oldest id first."""
        result = await self.db.execute(select(FileRecord).order_by(FileRecord.id))
        return list(result.scalars().all())

    async def update(self, record: FileRecord) -> FileRecord:
        await self.db.merge(record)
        await self.db.commit()
        return await self.get(record.id)

    async def increment_download_count(self, record_id: int) -> FileRecord | None:
        """Bump the counter in one UPDATE so concurrent downloads never lose a count.

        Returns the refreshed record, or None if the row no longer exists.
        """
        result = await self.db.execute(
            update(FileRecord)
            .where(FileRecord.id == record_id)
            .values(download_count=FileRecord.download_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        if result.rowcount == 0:
            return None
        return await self.find(record_id)

    async def delete(self, record_id: int) -> bool:
        """Remove the row. Returns False if it was already gone."""
        result = await self.db.execute(
            delete(FileRecord)
            .where(FileRecord.id == record_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount > 0
