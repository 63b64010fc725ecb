"""
Abstract base class for PDF blob storage.

Blobs are addressed by an opaque identifier (an ObjectId hex string) and are
independent of invoice records: deleting one never touches the other.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Optional

from bson import ObjectId

from .errors import InvalidFileIdError


@dataclass
class BlobInfo:
    id: str
    filename: str
    content_type: Optional[str]
    size: int
    upload_date: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "filename": self.filename,
            "contentType": self.content_type,
            "size": self.size,
            "uploadDate": self.upload_date.isoformat(),
        }


class BlobStoreBase(ABC):
    """
    Abstract base class for blob storage.

    Implementations:
    - In-memory storage (for testing/demo)
    - GridFS (MongoDB, production)
    """

    @staticmethod
    def parse_id(file_id: str) -> ObjectId:
        """Validate an identifier's format, raising InvalidFileIdError if malformed"""
        if not ObjectId.is_valid(file_id):
            raise InvalidFileIdError("File ID format is invalid")
        return ObjectId(file_id)

    @abstractmethod
    def store(self, data: bytes, filename: str, content_type: str, deadline: Optional[float] = None) -> str:
        """
        Write bytes plus metadata and return the new blob ID.

        Args:
            data: Raw file content
            filename: Original file name as declared by the client
            content_type: Declared MIME type
            deadline: Absolute time.monotonic() value; once it has passed the
                partial write is discarded and BlobStoreTimeoutError is raised.
                Checked between chunks and once more before the commit.

        Returns:
            Blob ID
        """
        pass

    @abstractmethod
    def info(self, file_id: str) -> BlobInfo:
        """
        Return blob metadata.

        Raises:
            InvalidFileIdError: Malformed ID
            BlobNotFoundError: No blob with that ID
        """
        pass

    @abstractmethod
    def iter_chunks(self, file_id: str) -> Iterator[bytes]:
        """
        Return an iterator over the blob's content in storage-sized chunks.

        Raises:
            InvalidFileIdError: Malformed ID
            BlobNotFoundError: No blob with that ID
        """
        pass

    @abstractmethod
    def delete(self, file_id: str) -> None:
        """
        Delete a blob.

        Raises:
            InvalidFileIdError: Malformed ID
            BlobNotFoundError: No blob with that ID
        """
        pass

    @abstractmethod
    def ping(self) -> bool:
        """Return True if the store answers a trivial query"""
        pass

    def read(self, file_id: str) -> bytes:
        """Read a whole blob into memory"""
        return b"".join(self.iter_chunks(file_id))
