"""
Integration tests against a real MongoDB.

Run with: pytest --run-integration
Requires MONGODB_URI (default mongodb://localhost:27017/pdf-dashboard).
A throwaway database is created per test module and dropped afterwards.
"""

import time
from uuid import uuid4

import pytest

from invoice_dashboard.core.config import Settings
from invoice_dashboard.services.storage.blobs_gridfs import GridFSBlobStore
from invoice_dashboard.services.storage.errors import BlobNotFoundError, InvalidFileIdError
from invoice_dashboard.services.storage.invoices_mongo import MongoInvoiceStore
from invoice_dashboard.services.storage.mongo import MongoConnection

pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def db():
    settings = Settings(MONGODB_DB=f"invoice-dashboard-test-{uuid4().hex[:8]}", MONGO_CONNECT_RETRIES=0)
    connection = MongoConnection(settings)
    database = connection.connect()
    yield database
    database.client.drop_database(database.name)
    connection.close()


def _record(vendor, number):
    return {
        "fileId": "665f1c2e8b3e4a0012345678",
        "fileName": "a.pdf",
        "vendor": {"name": vendor, "address": "", "taxId": ""},
        "invoice": {"number": number, "date": "2024-01-01", "currency": "USD", "lineItems": []},
    }


def test_gridfs_round_trip(db, make_pdf):
    store = GridFSBlobStore(db, chunk_size=1024)
    pdf = make_pdf(["Integration"] * 200)

    file_id = store.store(pdf, "big.pdf", "application/pdf", deadline=time.monotonic() + 60)

    assert store.read(file_id) == pdf
    info = store.info(file_id)
    assert info.filename == "big.pdf"
    assert info.size == len(pdf)
    assert info.content_type == "application/pdf"
    assert store.ping()

    store.delete(file_id)
    with pytest.raises(BlobNotFoundError):
        store.info(file_id)
    with pytest.raises(InvalidFileIdError):
        store.info("bad")


def test_invoice_store_crud_and_search(db):
    store = MongoInvoiceStore(db, collection_name=f"invoices_{uuid4().hex[:6]}")

    first = store.create(_record("ACME (US)", "INV-1"))
    second = store.create(_record("Globex", "ACM-2"))
    store.create(_record("Initech", "X-3"))

    assert [r["id"] for r in store.list("acm")] == [second["id"], first["id"]]
    assert [r["id"] for r in store.list("(us)")] == [first["id"]]
    assert len(store.list()) == 3
    assert len(store.list(limit=2)) == 2

    updated = store.update(first["id"], {"fileName": "b.pdf"})
    assert updated["fileName"] == "b.pdf"
    assert updated["updatedAt"] is not None
    assert updated["createdAt"] == first["createdAt"]

    assert store.get("not-an-id") is None
    assert store.delete(first["id"]) is True
    assert store.get(first["id"]) is None
    assert store.delete(first["id"]) is False
    assert store.ping()
