"""Shared pytest fixtures: temporary database, blob directory and API client."""
import io
import os
import shutil
import tempfile

# Point the app at throwaway locations before any filevault module reads settings.
_TMP_ROOT = tempfile.mkdtemp(prefix="filevault_tests_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_ROOT, 'api.db')}"
os.environ["FILE_STORAGE_PATH"] = os.path.join(_TMP_ROOT, "uploads")
os.environ["LOG_LEVEL"] = "DEBUG"

import pytest
from fastapi import UploadFile
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from starlette.datastructures import Headers

from filevault.models import Base
from filevault.repositories.file_record import FileRecordRepository
from filevault.services.blob_store import LocalBlobStore
from filevault.services.file_storage import FileStorageService


@pytest.fixture(scope="session", autouse=True)
def cleanup_tmp_root():
    yield
    shutil.rmtree(_TMP_ROOT, ignore_errors=True)


@pytest.fixture()
async def session_factory(tmp_path):
    """Fresh SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'meta.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture()
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def blob_store(tmp_path):
    return LocalBlobStore(tmp_path / "blobs")


@pytest.fixture()
def service(db, blob_store):
    # Tiny chunks so every multi-byte upload goes through the streaming path.
    return FileStorageService(FileRecordRepository(db), blob_store, upload_chunk_size=4)


@pytest.fixture()
def make_upload():
    """Build an UploadFile the way FastAPI hands one to a route."""
    def _make(data: bytes, filename: str | None = "a.txt", content_type: str | None = "text/plain"):
        headers = Headers({"content-type": content_type}) if content_type else None
        return UploadFile(file=io.BytesIO(data), filename=filename, headers=headers)
    return _make


@pytest.fixture()
def client():
    from filevault.main import app

    with TestClient(app) as test_client:
        yield test_client
