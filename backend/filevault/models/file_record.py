"""FileRecord model - file metadata (actual bytes live in the blob store)."""
from datetime import datetime, timezone
from sqlalchemy import String, BigInteger
from sqlalchemy.orm import Mapped, mapped_column
from filevault.models.base import Base, UTCDateTime

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FileRecord(Base):
    __tablename__ = "files"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    original_filename: Mapped[str] = mapped_column(String(500), nullable=False)
    content_type: Mapped[str] = mapped_column(String(255), nullable=False, default=DEFAULT_CONTENT_TYPE)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # hex SHA-256 of the blob as written
    checksum: Mapped[str] = mapped_column(String(128), nullable=False)
    storage_identifier: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    upload_time: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=_utcnow)
    download_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
