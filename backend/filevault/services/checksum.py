"""Content checksums. SHA-256, hex-encoded."""
import hashlib
from typing import AsyncIterator

DIGEST_ALGORITHM = "sha256"


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class ChecksumComputer:
    """Incremental digest fed by the write path, so the source is read once."""

    def __init__(self):
        self._hasher = hashlib.new(DIGEST_ALGORITHM)
        self.bytes_seen = 0

    def update(self, chunk: bytes) -> None:
        self._hasher.update(chunk)
        self.bytes_seen += len(chunk)

    def hexdigest(self) -> str:
        return self._hasher.hexdigest()

    async def digesting(self, chunks: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
        """Pass chunks through unchanged, digesting each on the way."""
        async for chunk in chunks:
            self.update(chunk)
            yield chunk
