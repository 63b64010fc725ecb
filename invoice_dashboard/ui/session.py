"""Edit-session state for one invoice in the dashboard UI.

EMPTY -> EXTRACTED -> EDITED -> SAVED
- Any edit moves to EDITED; edits after a save keep the record id
- Extraction can run at any time and replaces vendor and invoice wholesale
- SAVED (or EDITED with an id) -> DELETED, which is terminal
"""

import copy
from enum import Enum

from loguru import logger

from ..services.extraction.normalizer import as_number
from .api_client import DashboardApiClient

NUMERIC_INVOICE_FIELDS = ("subtotal", "taxPercent", "total")
LINE_ITEM_FIELDS = ("description", "unitPrice", "quantity", "total")


class SessionState(str, Enum):
    EMPTY = "empty"
    EXTRACTED = "extracted"
    EDITED = "edited"
    SAVED = "saved"
    DELETED = "deleted"


class SessionClosedError(RuntimeError):
    """The session's record was deleted; it accepts no further changes"""


class SessionValidationError(ValueError):
    def __init__(self, problems: list[str]):
        super().__init__("; ".join(problems))
        self.problems = problems


def empty_vendor() -> dict:
    return {"name": "", "address": "", "taxId": ""}


def empty_invoice() -> dict:
    return {
        "number": "",
        "date": "",
        "currency": "USD",
        "subtotal": 0.0,
        "taxPercent": 0.0,
        "total": 0.0,
        "poNumber": "",
        "poDate": "",
        "lineItems": [],
    }


def empty_line_item() -> dict:
    return {"description": "", "unitPrice": 0.0, "quantity": 1.0, "total": 0.0}


class EditSession:
    def __init__(self, file_id: str, file_name: str):
        self.file_id = file_id
        self.file_name = file_name
        self.invoice_id: str | None = None
        self.vendor = empty_vendor()
        self.invoice = empty_invoice()
        self.state = SessionState.EMPTY

    @classmethod
    def from_record(cls, record: dict) -> "EditSession":
        """Open an existing invoice record for editing"""
        session = cls(record["fileId"], record["fileName"])
        session.invoice_id = record.get("id") or record.get("_id")
        session.vendor = {**empty_vendor(), **copy.deepcopy(record.get("vendor") or {})}
        session.invoice = {**empty_invoice(), **copy.deepcopy(record.get("invoice") or {})}
        session.state = SessionState.SAVED
        return session

    @property
    def has_identity(self) -> bool:
        return self.invoice_id is not None

    def _ensure_open(self):
        if self.state is SessionState.DELETED:
            raise SessionClosedError("Invoice was deleted")

    def _touch(self):
        self.state = SessionState.EDITED

    def apply_extraction(self, data: dict):
        """Last extraction wins: unsaved edits to vendor and invoice are discarded"""
        self._ensure_open()
        vendor = data.get("vendor") or {}
        invoice = data.get("invoice") or {}
        self.vendor = {**empty_vendor(), **copy.deepcopy(vendor)}
        self.invoice = {**empty_invoice(), **copy.deepcopy(invoice)}
        if not isinstance(self.invoice["lineItems"], list):
            self.invoice["lineItems"] = []
        self.state = SessionState.EXTRACTED

    def set_vendor_field(self, field: str, value: str):
        self._ensure_open()
        if field not in self.vendor:
            raise KeyError(field)
        self.vendor[field] = value
        self._touch()

    def set_invoice_field(self, field: str, value):
        self._ensure_open()
        if field == "lineItems" or field not in self.invoice:
            raise KeyError(field)
        if field in NUMERIC_INVOICE_FIELDS:
            value = as_number(value)
        self.invoice[field] = value
        self._touch()

    # Line items

    def add_line_item(self) -> int:
        self._ensure_open()
        self.invoice["lineItems"].append(empty_line_item())
        self._touch()
        return len(self.invoice["lineItems"]) - 1

    def remove_line_item(self, index: int):
        self._ensure_open()
        items = self.invoice["lineItems"]
        if not 0 <= index < len(items):
            raise IndexError(index)
        del items[index]
        self._touch()

    def update_line_item(self, index: int, field: str, value):
        """
        Set one line-item field.

        Changing unitPrice or quantity recomputes the item's total; editing
        total directly leaves unitPrice and quantity as they are.
        """
        self._ensure_open()
        items = self.invoice["lineItems"]
        if not 0 <= index < len(items):
            raise IndexError(index)
        if field not in LINE_ITEM_FIELDS:
            raise KeyError(field)

        item = items[index]
        if field == "description":
            item[field] = value
        elif field == "quantity":
            item[field] = as_number(value, default=1.0)
        else:
            item[field] = as_number(value)
        if field in ("unitPrice", "quantity"):
            item["total"] = as_number(item.get("unitPrice")) * as_number(item.get("quantity"), default=1.0)
        self._touch()

    # Persistence

    def validate(self) -> list[str]:
        problems = []
        if not str(self.vendor.get("name") or "").strip():
            problems.append("Vendor name is required")
        if not str(self.invoice.get("number") or "").strip():
            problems.append("Invoice number is required")
        if not str(self.invoice.get("date") or "").strip():
            problems.append("Invoice date is required")
        return problems

    def to_payload(self) -> dict:
        invoice = {
            **self.invoice,
            **{field: as_number(self.invoice.get(field)) for field in NUMERIC_INVOICE_FIELDS},
            "currency": self.invoice.get("currency") or "USD",
            "lineItems": [
                {
                    "description": str(item.get("description") or ""),
                    "unitPrice": as_number(item.get("unitPrice")),
                    "quantity": as_number(item.get("quantity"), default=1.0),
                    "total": as_number(item.get("total")),
                }
                for item in self.invoice.get("lineItems") or []
            ],
        }
        return {
            "fileId": self.file_id,
            "fileName": self.file_name,
            "vendor": copy.deepcopy(self.vendor),
            "invoice": invoice,
        }

    def save(self, client: DashboardApiClient) -> dict:
        """Create the record, or update it when the session already has an id"""
        self._ensure_open()
        problems = self.validate()
        if problems:
            raise SessionValidationError(problems)

        payload = self.to_payload()
        if self.has_identity:
            record = client.update_invoice(self.invoice_id, payload)
        else:
            record = client.create_invoice(payload)
            self.invoice_id = record["id"]
        self.state = SessionState.SAVED
        logger.info("Invoice saved from UI", invoice_id=self.invoice_id)
        return record

    def delete(self, client: DashboardApiClient):
        self._ensure_open()
        if not self.has_identity:
            raise SessionValidationError(["Invoice has not been saved"])
        client.delete_invoice(self.invoice_id)
        self.state = SessionState.DELETED
