from dataclasses import dataclass
from typing import Optional

from .blob_store_base import BlobStoreBase
from .blobs_memory import InMemoryBlobStore
from .invoice_store_base import InvoiceStoreBase
from .invoices_memory import InMemoryInvoiceStore


@dataclass
class Stores:
    """Record and blob stores sharing one lifecycle"""
    invoices: InvoiceStoreBase
    blobs: BlobStoreBase
    connection: Optional[object] = None

    def close(self) -> None:
        if self.connection is not None:
            self.connection.close()


def create_memory_stores() -> Stores:
    return Stores(invoices=InMemoryInvoiceStore(), blobs=InMemoryBlobStore())


def create_mongo_stores(settings) -> Stores:
    """Connect to MongoDB (with retries) and build the GridFS and record stores on it"""
    from .blobs_gridfs import GridFSBlobStore
    from .invoices_mongo import MongoInvoiceStore
    from .mongo import MongoConnection

    connection = MongoConnection(settings)
    db = connection.connect()
    return Stores(
        invoices=MongoInvoiceStore(db),
        blobs=GridFSBlobStore(db, bucket_name=settings.gridfs_bucket),
        connection=connection,
    )
