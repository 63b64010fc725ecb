"""
In-memory blob storage (for tests and local demos without MongoDB).
"""
import time
from datetime import datetime, UTC
from typing import Dict, Iterator, Optional

from bson import ObjectId

from .blob_store_base import BlobInfo, BlobStoreBase
from .errors import BlobNotFoundError, BlobStoreTimeoutError

CHUNK_SIZE = 255 * 1024  # Same default chunk size as GridFS


def _expired(deadline: Optional[float]) -> bool:
    return deadline is not None and time.monotonic() > deadline


class InMemoryBlobStore(BlobStoreBase):
    def __init__(self, chunk_size: int = CHUNK_SIZE):
        self.chunk_size = chunk_size
        self._blobs: Dict[str, tuple[BlobInfo, bytes]] = {}

    def store(self, data: bytes, filename: str, content_type: str, deadline: Optional[float] = None) -> str:
        file_id = str(ObjectId())
        buffer = bytearray()
        for offset in range(0, len(data), self.chunk_size):
            if _expired(deadline):
                raise BlobStoreTimeoutError("Upload timeout")
            buffer.extend(data[offset:offset + self.chunk_size])
        if _expired(deadline):
            raise BlobStoreTimeoutError("Upload timeout")

        info = BlobInfo(
            id=file_id,
            filename=filename,
            content_type=content_type,
            size=len(data),
            upload_date=datetime.now(UTC),
        )
        self._blobs[file_id] = (info, bytes(buffer))
        return file_id

    def _get(self, file_id: str) -> tuple[BlobInfo, bytes]:
        self.parse_id(file_id)
        if file_id not in self._blobs:
            raise BlobNotFoundError("The requested file does not exist")
        return self._blobs[file_id]

    def info(self, file_id: str) -> BlobInfo:
        return self._get(file_id)[0]

    def iter_chunks(self, file_id: str) -> Iterator[bytes]:
        _, data = self._get(file_id)
        return (data[i:i + self.chunk_size] for i in range(0, len(data), self.chunk_size))

    def delete(self, file_id: str) -> None:
        self._get(file_id)
        del self._blobs[file_id]

    def ping(self) -> bool:
        return True
