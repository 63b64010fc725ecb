"""
GridFS-backed blob storage for uploaded PDFs.

Files live in the `pdfs` bucket (pdfs.files / pdfs.chunks) next to the
invoice records, but no reference between the two is enforced.
"""

import time
from datetime import datetime, UTC
from typing import Iterator, Optional

from gridfs import GridFSBucket, NoFile
from loguru import logger
from pymongo.database import Database
from pymongo.errors import PyMongoError

from .blob_store_base import BlobInfo, BlobStoreBase
from .errors import BlobNotFoundError, BlobStoreTimeoutError, StoreUnavailableError

CHUNK_SIZE = 255 * 1024


class GridFSBlobStore(BlobStoreBase):
    def __init__(self, db: Database, bucket_name: str = "pdfs", chunk_size: int = CHUNK_SIZE):
        self.bucket_name = bucket_name
        self.chunk_size = chunk_size
        self._bucket = GridFSBucket(db, bucket_name=bucket_name, chunk_size_bytes=chunk_size)

    def store(self, data: bytes, filename: str, content_type: str, deadline: Optional[float] = None) -> str:
        upload_date = datetime.now(UTC)

        try:
            grid_in = self._bucket.open_upload_stream(
                filename,
                metadata={
                    "contentType": content_type,
                    "uploadDate": upload_date,
                    "originalName": filename,
                    "size": len(data),
                },
            )
            for offset in range(0, len(data), self.chunk_size):
                self._check_deadline(grid_in, deadline, filename, offset, len(data))
                grid_in.write(data[offset:offset + self.chunk_size])
            # close() writes the files document, after which the blob is visible
            self._check_deadline(grid_in, deadline, filename, len(data), len(data))
            grid_in.close()
        except PyMongoError as e:
            logger.error(f"GridFS upload error: {e}")
            raise StoreUnavailableError(f"Failed to upload file: {e}")

        file_id = str(grid_in._id)
        logger.info("File uploaded to GridFS", file_id=file_id, filename=filename, size=len(data))
        return file_id

    @staticmethod
    def _check_deadline(grid_in, deadline: Optional[float], filename: str, written: int, size: int) -> None:
        if deadline is None or time.monotonic() <= deadline:
            return
        # Drops the chunks written so far
        grid_in.abort()
        logger.error("GridFS upload timed out", filename=filename, written=written, size=size)
        raise BlobStoreTimeoutError("Upload timeout")

    def info(self, file_id: str) -> BlobInfo:
        oid = self.parse_id(file_id)
        try:
            files = list(self._bucket.find({"_id": oid}).limit(1))
        except PyMongoError as e:
            raise StoreUnavailableError(f"Failed to lookup file: {e}")

        if not files:
            raise BlobNotFoundError("The requested file does not exist")

        grid_out = files[0]
        metadata = dict(grid_out.metadata or {})
        return BlobInfo(
            id=str(grid_out._id),
            filename=grid_out.filename,
            content_type=metadata.get("contentType"),
            size=grid_out.length,
            upload_date=grid_out.upload_date,
        )

    def iter_chunks(self, file_id: str) -> Iterator[bytes]:
        oid = self.parse_id(file_id)
        try:
            grid_out = self._bucket.open_download_stream(oid)
        except NoFile:
            raise BlobNotFoundError("The requested file does not exist")
        except PyMongoError as e:
            raise StoreUnavailableError(f"Failed to download file: {e}")
        return self._read_chunks(grid_out)

    @staticmethod
    def _read_chunks(grid_out) -> Iterator[bytes]:
        try:
            while True:
                try:
                    chunk = grid_out.readchunk()
                except PyMongoError as e:
                    raise StoreUnavailableError(f"Failed to download file: {e}")
                if not chunk:
                    break
                yield chunk
        finally:
            grid_out.close()

    def delete(self, file_id: str) -> None:
        oid = self.parse_id(file_id)
        try:
            self._bucket.delete(oid)
        except NoFile:
            raise BlobNotFoundError("The requested file does not exist")
        except PyMongoError as e:
            raise StoreUnavailableError(f"Failed to delete file: {e}")
        logger.info("File deleted from GridFS", file_id=file_id)

    def ping(self) -> bool:
        try:
            list(self._bucket.find({}).limit(1))
            return True
        except PyMongoError as e:
            logger.error(f"GridFS check failed: {e}")
            return False
