from fastapi import Depends, Request
from pydantic import BaseModel

from ..core.config import settings
from ..services.extraction.service import ExtractionService
from ..services.storage import Stores
from ..services.storage.blob_store_base import BlobStoreBase
from ..services.storage.invoice_store_base import InvoiceStoreBase


def get_stores(request: Request) -> Stores:
    """Stores created by the application lifespan (see main.create_app)"""
    return request.app.state.stores


def get_invoice_store(stores: Stores = Depends(get_stores)) -> InvoiceStoreBase:
    return stores.invoices


def get_blob_store(stores: Stores = Depends(get_stores)) -> BlobStoreBase:
    return stores.blobs


def get_extraction_service(blob_store: BlobStoreBase = Depends(get_blob_store)) -> ExtractionService:
    return ExtractionService(blob_store=blob_store, settings=settings)


class ExtractRequest(BaseModel):
    fileId: str | None = None
    model: str | None = None
