"""
Tests for the UI edit-session state machine.
"""

import pytest

from invoice_dashboard.ui.session import (
    EditSession,
    SessionClosedError,
    SessionState,
    SessionValidationError,
)


class FakeClient:
    def __init__(self):
        self.created = []
        self.updated = []
        self.deleted = []

    def create_invoice(self, payload):
        self.created.append(payload)
        return {"id": "inv-1", **payload}

    def update_invoice(self, invoice_id, payload):
        self.updated.append((invoice_id, payload))
        return {"id": invoice_id, **payload}

    def delete_invoice(self, invoice_id):
        self.deleted.append(invoice_id)
        return {"success": True}


EXTRACTED = {
    "vendor": {"name": "ACME", "address": "1 Way", "taxId": ""},
    "invoice": {
        "number": "INV-1",
        "date": "2024-02-01",
        "currency": "USD",
        "subtotal": 20.0,
        "taxPercent": 0.0,
        "total": 20.0,
        "poNumber": "",
        "poDate": "",
        "lineItems": [{"description": "Nails", "unitPrice": 2.0, "quantity": 10.0, "total": 20.0}],
    },
}


def _extracted_session():
    session = EditSession("file-1", "acme.pdf")
    session.apply_extraction(EXTRACTED)
    return session


def test_new_session_is_empty():
    session = EditSession("file-1", "acme.pdf")
    assert session.state is SessionState.EMPTY
    assert not session.has_identity
    assert session.invoice["lineItems"] == []


def test_full_lifecycle():
    client = FakeClient()
    session = _extracted_session()
    assert session.state is SessionState.EXTRACTED

    session.set_vendor_field("name", "ACME Corp")
    assert session.state is SessionState.EDITED

    session.save(client)
    assert session.state is SessionState.SAVED
    assert session.invoice_id == "inv-1"
    assert client.created[0]["vendor"]["name"] == "ACME Corp"

    # Edits after a save keep the identity, and the next save is an update
    session.set_invoice_field("number", "INV-1-B")
    assert session.state is SessionState.EDITED
    assert session.has_identity
    session.save(client)
    assert client.updated[0][0] == "inv-1"
    assert client.updated[0][1]["invoice"]["number"] == "INV-1-B"
    assert len(client.created) == 1

    session.delete(client)
    assert session.state is SessionState.DELETED
    assert client.deleted == ["inv-1"]


def test_deleted_is_terminal():
    client = FakeClient()
    session = _extracted_session()
    session.save(client)
    session.delete(client)

    with pytest.raises(SessionClosedError):
        session.set_vendor_field("name", "x")
    with pytest.raises(SessionClosedError):
        session.apply_extraction(EXTRACTED)
    with pytest.raises(SessionClosedError):
        session.save(client)


def test_last_extraction_wins():
    session = _extracted_session()
    session.set_vendor_field("address", "edited by hand")
    session.add_line_item()

    session.apply_extraction({"vendor": {"name": "Globex"}, "invoice": {"number": "G-1"}})

    assert session.state is SessionState.EXTRACTED
    assert session.vendor == {"name": "Globex", "address": "", "taxId": ""}
    assert session.invoice["number"] == "G-1"
    assert session.invoice["lineItems"] == []


def test_extraction_after_save_keeps_identity():
    client = FakeClient()
    session = _extracted_session()
    session.save(client)

    session.apply_extraction(EXTRACTED)
    session.save(client)

    assert len(client.created) == 1
    assert len(client.updated) == 1


def test_add_line_item_defaults():
    session = EditSession("file-1", "a.pdf")
    index = session.add_line_item()
    assert session.invoice["lineItems"][index] == {
        "description": "", "unitPrice": 0.0, "quantity": 1.0, "total": 0.0
    }


def test_price_and_quantity_changes_recompute_total():
    session = _extracted_session()

    session.update_line_item(0, "unitPrice", "2.5")
    assert session.invoice["lineItems"][0]["total"] == 25.0

    session.update_line_item(0, "quantity", 4)
    assert session.invoice["lineItems"][0]["total"] == 10.0


def test_unreadable_quantity_falls_back_to_one():
    session = _extracted_session()

    session.update_line_item(0, "quantity", "abc")

    item = session.invoice["lineItems"][0]
    assert item["quantity"] == 1.0
    assert item["total"] == 2.0


def test_unreadable_price_falls_back_to_zero():
    session = _extracted_session()

    session.update_line_item(0, "unitPrice", "n/a")

    assert session.invoice["lineItems"][0]["unitPrice"] == 0.0
    assert session.invoice["lineItems"][0]["total"] == 0.0


def test_editing_total_leaves_operands_alone():
    session = _extracted_session()

    session.update_line_item(0, "total", 99)

    item = session.invoice["lineItems"][0]
    assert item == {"description": "Nails", "unitPrice": 2.0, "quantity": 10.0, "total": 99.0}


def test_remove_line_item():
    session = _extracted_session()
    session.add_line_item()

    session.remove_line_item(0)

    assert len(session.invoice["lineItems"]) == 1
    assert session.invoice["lineItems"][0]["description"] == ""
    with pytest.raises(IndexError):
        session.remove_line_item(5)


def test_save_requires_vendor_number_and_date():
    client = FakeClient()
    session = EditSession("file-1", "a.pdf")

    with pytest.raises(SessionValidationError) as exc_info:
        session.save(client)

    assert exc_info.value.problems == [
        "Vendor name is required",
        "Invoice number is required",
        "Invoice date is required",
    ]
    assert client.created == []


def test_delete_requires_identity():
    with pytest.raises(SessionValidationError):
        _extracted_session().delete(FakeClient())


def test_from_record_opens_saved_session():
    record = {"id": "inv-9", "fileId": "file-9", "fileName": "x.pdf", **EXTRACTED}

    session = EditSession.from_record(record)

    assert session.state is SessionState.SAVED
    assert session.invoice_id == "inv-9"
    assert session.to_payload()["invoice"]["lineItems"][0]["total"] == 20.0
