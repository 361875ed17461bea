"""Local filesystem blob store: opaque key -> bytes under one base directory."""
import asyncio
import logging
import os
import re
from pathlib import Path
from typing import AsyncIterator

import aiofiles
import aiofiles.os

from filevault.errors import StorageError

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".part"
DEFAULT_CHUNK_SIZE = 64 * 1024

# Keys are system-generated (uuid4 strings); anything else is refused.
_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


class BlobNotFoundError(FileNotFoundError):
    """No object stored under the requested key."""
    pass


class BlobStream:
    """Async byte stream over an open blob. Closes itself once exhausted."""

    def __init__(self, handle, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._handle = handle
        self._chunk_size = chunk_size
        self.closed = False

    async def __aiter__(self):
        try:
            while True:
                chunk = await self._handle.read(self._chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            await self.aclose()

    async def read_all(self) -> bytes:
        return b"".join([chunk async for chunk in self])

    async def aclose(self) -> None:
        if not self.closed:
            self.closed = True
            await self._handle.close()


class LocalBlobStore:
    """Handles blob read/write on local disk.

    Writes go to ``<key>.part`` first and are renamed into place after an
    fsync, so a key is either absent or fully readable.
    """

    def __init__(self, base_path: str | Path, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.base_path = Path(base_path).expanduser().resolve()
        self.chunk_size = chunk_size
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Could not create storage directory: {self.base_path}") from e
        logger.info("Blob storage ready at %s", self.base_path)

    def path_for(self, key: str) -> Path:
        """Resolve a key to its file, refusing anything outside the base directory."""
        if not key or not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        path = (self.base_path / key).resolve()
        if path.parent != self.base_path:
            raise ValueError(f"Invalid storage key: {key!r}")
        return path

    async def put(self, key: str, chunks: AsyncIterator[bytes]) -> int:
        """Write all chunks under ``key`` and return the number of bytes written.

        An existing object at ``key`` is replaced. On any failure the partial
        file is removed before the error propagates.
        """
        target = self.path_for(key)
        partial = target.with_name(target.name + PARTIAL_SUFFIX)
        written = 0
        try:
            async with aiofiles.open(partial, "wb") as f:
                async for chunk in chunks:
                    await f.write(chunk)
                    written += len(chunk)
                await f.flush()
                await asyncio.to_thread(os.fsync, f.fileno())
            await aiofiles.os.replace(partial, target)
        except OSError as e:
            logger.error("Failed to write blob %s after %d bytes", key, written, exc_info=True)
            self._discard(partial)
            raise StorageError("Failed to store file") from e
        except BaseException:
            self._discard(partial)
            raise
        return written

    async def open(self, key: str) -> BlobStream:
        """Open the object for streaming. Raises BlobNotFoundError if absent."""
        path = self.path_for(key)
        try:
            handle = await aiofiles.open(path, "rb")
        except FileNotFoundError as e:
            raise BlobNotFoundError(f"No blob stored under {key}") from e
        except OSError as e:
            logger.error("Failed to open blob %s", key, exc_info=True)
            raise StorageError("Failed to read file") from e
        return BlobStream(handle, self.chunk_size)

    async def get(self, key: str) -> bytes:
        stream = await self.open(key)
        try:
            return await stream.read_all()
        except OSError as e:
            raise StorageError("Failed to read file") from e

    async def delete(self, key: str) -> None:
        """Remove the object. Missing objects are not an error."""
        path = self.path_for(key)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return
        except OSError as e:
            logger.error("Failed to delete blob %s", key, exc_info=True)
            raise StorageError("Failed to delete file from disk") from e

    async def exists(self, key: str) -> bool:
        return await aiofiles.os.path.isfile(self.path_for(key))

    def _discard(self, path: Path) -> None:
        """Best-effort removal of a partial write; failures are only logged."""
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove partial blob %s", path, exc_info=True)
