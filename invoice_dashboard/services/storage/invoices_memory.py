"""
In-memory invoice records (for tests and local demos without MongoDB).
"""
import copy
import itertools
from datetime import datetime, UTC
from typing import Dict, Optional

from bson import ObjectId

from .invoice_store_base import InvoiceStoreBase, MUTABLE_FIELDS


class InMemoryInvoiceStore(InvoiceStoreBase):
    def __init__(self):
        self._invoices: Dict[str, dict] = {}
        # Breaks createdAt ties so ordering stays newest-first within one clock tick
        self._sequence = itertools.count()
        self._order: Dict[str, int] = {}

    @staticmethod
    def _matches(record: dict, term: str) -> bool:
        term = term.lower()
        vendor_name = str((record.get("vendor") or {}).get("name") or "")
        number = str((record.get("invoice") or {}).get("number") or "")
        return term in vendor_name.lower() or term in number.lower()

    def list(self, search: Optional[str] = None, limit: int = 100) -> list:
        records = list(self._invoices.values())
        if search:
            records = [r for r in records if self._matches(r, search)]
        records.sort(key=lambda r: (r["createdAt"], self._order[r["id"]]), reverse=True)
        return [copy.deepcopy(r) for r in records[:limit]]

    def get(self, invoice_id: str) -> Optional[dict]:
        record = self._invoices.get(invoice_id)
        return copy.deepcopy(record) if record else None

    def create(self, data: dict) -> dict:
        invoice_id = str(ObjectId())
        record = {field: copy.deepcopy(data.get(field)) for field in MUTABLE_FIELDS}
        record.update({
            "id": invoice_id,
            "createdAt": datetime.now(UTC),
            "updatedAt": None,
        })
        self._invoices[invoice_id] = record
        self._order[invoice_id] = next(self._sequence)
        return copy.deepcopy(record)

    def update(self, invoice_id: str, changes: dict) -> Optional[dict]:
        record = self._invoices.get(invoice_id)
        if record is None:
            return None

        for field in MUTABLE_FIELDS:
            if field in changes:
                record[field] = copy.deepcopy(changes[field])
        record["updatedAt"] = datetime.now(UTC)
        return copy.deepcopy(record)

    def delete(self, invoice_id: str) -> bool:
        if invoice_id not in self._invoices:
            return False
        del self._invoices[invoice_id]
        del self._order[invoice_id]
        return True

    def ping(self) -> bool:
        return True
