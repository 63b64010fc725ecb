"""
Tests for POST /api/extract.

Backends are replaced with fakes through a dependency override; the real
blob store (in memory) supplies the PDF bytes.
"""

import io

import pytest
from fastapi.testclient import TestClient

from invoice_dashboard.api.deps import get_extraction_service
from invoice_dashboard.api.main import app
from invoice_dashboard.core.config import settings
from invoice_dashboard.services.extraction.errors import UnsupportedModelError
from invoice_dashboard.services.extraction.service import ExtractionService

client = TestClient(app)


class FakeBackend:
    def __init__(self, name, result=None, error=None):
        self.name = name
        self.result = result
        self.error = error
        self.received = None

    def extract(self, pdf_bytes):
        self.received = pdf_bytes
        if self.error is not None:
            raise self.error
        return self.result


class UpstreamError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


@pytest.fixture
def backends(stores):
    """Install fake gemini/groq backends; tests set .result or .error"""
    fakes = {"gemini": FakeBackend("gemini"), "groq": FakeBackend("groq")}
    app.dependency_overrides[get_extraction_service] = lambda: ExtractionService(
        blob_store=stores.blobs, settings=settings, backends=fakes
    )
    yield fakes
    app.dependency_overrides.pop(get_extraction_service, None)


def _upload(stores, content=b"%PDF-1.4 test"):
    return stores.blobs.store(content, "invoice.pdf", "application/pdf")


def test_extract_returns_normalized_invoice(stores, backends):
    file_id = _upload(stores)
    backends["gemini"].result = {
        "vendor": {"name": " ACME Corp "},
        "invoice": {
            "number": "INV-9",
            "total": "$1,250.50",
            "lineItems": [{"description": "Bolts", "unitPrice": "2.5", "quantity": "4"}, "junk"],
        },
    }

    r = client.post("/api/extract", json={"fileId": file_id, "model": "gemini"})

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["model"] == "gemini"
    assert "extractedAt" in body
    assert body["data"]["vendor"] == {"name": "ACME Corp", "address": "", "taxId": ""}
    invoice = body["data"]["invoice"]
    assert invoice["number"] == "INV-9"
    assert invoice["currency"] == "USD"
    assert invoice["total"] == 1250.5
    assert invoice["subtotal"] == 0
    assert invoice["lineItems"] == [
        {"description": "Bolts", "unitPrice": 2.5, "quantity": 4.0, "total": 0.0}
    ]
    assert backends["gemini"].received == b"%PDF-1.4 test"


def test_extract_missing_fields_returns_400(stores, backends):
    r = client.post("/api/extract", json={"model": "gemini"})
    assert r.status_code == 400
    assert r.json()["error"] == "Missing required fields"


def test_extract_invalid_model_returns_400(stores, backends):
    r = client.post("/api/extract", json={"fileId": _upload(stores), "model": "gpt"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid model"


def test_extract_unknown_file_returns_404(stores, backends):
    r = client.post("/api/extract", json={"fileId": "665f1c2e8b3e4a0012345678", "model": "groq"})
    assert r.status_code == 404
    assert r.json()["error"] == "File error"


def test_extract_malformed_file_id_returns_404(stores, backends):
    r = client.post("/api/extract", json={"fileId": "nope", "model": "groq"})
    assert r.status_code == 404


@pytest.mark.parametrize(
    "error, status, retryable",
    [
        (UpstreamError("The model is overloaded", status_code=503), 503, True),
        (UpstreamError("Resource has been exhausted (quota)", status_code=429), 429, True),
        (UpstreamError("Rate limit reached", status_code=429), 429, True),
        (UpstreamError("connection reset"), 500, True),
        (UnsupportedModelError("All Groq models are currently unavailable."), 400, False),
    ],
)
def test_extract_upstream_failures_map_to_statuses(stores, backends, error, status, retryable):
    backends["groq"].error = error

    r = client.post("/api/extract", json={"fileId": _upload(stores), "model": "groq"})

    assert r.status_code == status
    body = r.json()
    assert body["success"] is False
    assert body["retryable"] is retryable


def test_missing_api_key_returns_400(stores):
    """Without an injected backend and no key, the request fails before any AI call"""
    original = settings.gemini_api_key
    settings.gemini_api_key = None
    try:
        r = client.post("/api/extract", json={"fileId": _upload(stores), "model": "gemini"})
        assert r.status_code == 400
        assert r.json()["details"] == "Gemini API key not configured"
    finally:
        settings.gemini_api_key = original
