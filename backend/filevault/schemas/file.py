"""File response schemas."""
from datetime import datetime

from filevault.schemas.base import CamelORMModel


class FileResponse(CamelORMModel):
    id: int
    original_filename: str
    content_type: str
    size: int
    checksum: str
    storage_identifier: str
    upload_time: datetime
    download_count: int
