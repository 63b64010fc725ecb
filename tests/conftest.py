"""
Pytest configuration and shared fixtures.

Registers the integration marker/option and provides in-memory stores wired
into the app, plus a builder for small text PDFs.
"""

import pytest

from invoice_dashboard.api.main import app
from invoice_dashboard.services.storage import create_memory_stores


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against a real MongoDB (MONGODB_URI)"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring a real MongoDB"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture
def stores():
    """Fresh in-memory stores installed on the app for one test"""
    previous = app.state.stores
    app.state.stores = create_memory_stores()
    yield app.state.stores
    app.state.stores = previous


def build_pdf(lines) -> bytes:
    """A one-page PDF with each string in `lines` drawn in Helvetica"""
    def escape(text):
        return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")

    ops = ["BT", "/F1 12 Tf", "14 TL", "72 720 Td"]
    for line in lines:
        ops.append(f"({escape(line)}) Tj T*")
    ops.append("ET")
    stream = "\n".join(ops).encode("latin-1") if lines else b""

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n".encode()
    return bytes(out)


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def sample_invoice_payload():
    return {
        "fileId": "665f1c2e8b3e4a0012345678",
        "fileName": "acme-001.pdf",
        "vendor": {"name": "ACME Corp", "address": "1 Road Runner Way", "taxId": "US-123"},
        "invoice": {
            "number": "INV-001",
            "date": "2024-03-15",
            "currency": "USD",
            "subtotal": 100.0,
            "taxPercent": 10.0,
            "total": 110.0,
            "poNumber": "PO-9",
            "poDate": "2024-03-01",
            "lineItems": [
                {"description": "Anvil", "unitPrice": 50.0, "quantity": 2, "total": 100.0}
            ],
        },
    }
