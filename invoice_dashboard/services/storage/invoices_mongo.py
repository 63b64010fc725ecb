"""
MongoDB-backed invoice records.

Provides persistent storage with text search over vendor name and
invoice number.
"""

import re
from datetime import datetime, UTC
from typing import Optional

from bson import ObjectId
from loguru import logger
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from .errors import StoreUnavailableError
from .invoice_store_base import InvoiceStoreBase, MUTABLE_FIELDS


def _now() -> datetime:
    # BSON dates hold milliseconds; truncate so returned records match what is stored
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class MongoInvoiceStore(InvoiceStoreBase):
    """
    Invoice records in the `invoices` collection.

    Documents keep the wire field names (fileId, vendor.name, invoice.number,
    createdAt, ...) so queries read the same as the API.
    """

    def __init__(self, db: Database, collection_name: str = "invoices"):
        self._collection = db[collection_name]
        self._init_indexes()

    def _init_indexes(self):
        """Create indexes for common queries"""
        try:
            self._collection.create_index([("createdAt", DESCENDING)])
            self._collection.create_index("fileId")
        except PyMongoError as e:
            # Not fatal: queries still work without the indexes
            logger.warning(f"Could not create invoice indexes: {e}")

    @staticmethod
    def _to_record(doc: dict) -> dict:
        record = {field: doc.get(field) for field in MUTABLE_FIELDS}
        record.update({
            "id": str(doc["_id"]),
            "createdAt": doc.get("createdAt"),
            "updatedAt": doc.get("updatedAt"),
        })
        return record

    def list(self, search: Optional[str] = None, limit: int = 100) -> list:
        query = {}
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query = {"$or": [{"vendor.name": pattern}, {"invoice.number": pattern}]}

        try:
            cursor = (
                self._collection.find(query)
                .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
                .limit(limit)
            )
            return [self._to_record(doc) for doc in cursor]
        except PyMongoError as e:
            raise StoreUnavailableError(f"Failed to fetch invoices: {e}")

    def get(self, invoice_id: str) -> Optional[dict]:
        if not ObjectId.is_valid(invoice_id):
            return None
        try:
            doc = self._collection.find_one({"_id": ObjectId(invoice_id)})
        except PyMongoError as e:
            raise StoreUnavailableError(f"Failed to fetch invoice: {e}")
        return self._to_record(doc) if doc else None

    def create(self, data: dict) -> dict:
        doc = {field: data.get(field) for field in MUTABLE_FIELDS}
        doc["createdAt"] = _now()
        doc["updatedAt"] = None

        try:
            result = self._collection.insert_one(doc)
        except PyMongoError as e:
            raise StoreUnavailableError(f"Failed to create invoice: {e}")

        doc["_id"] = result.inserted_id
        logger.info("Invoice created", invoice_id=str(result.inserted_id), file_id=doc["fileId"])
        return self._to_record(doc)

    def update(self, invoice_id: str, changes: dict) -> Optional[dict]:
        if not ObjectId.is_valid(invoice_id):
            return None

        update = {field: changes[field] for field in MUTABLE_FIELDS if field in changes}
        update["updatedAt"] = _now()

        try:
            doc = self._collection.find_one_and_update(
                {"_id": ObjectId(invoice_id)},
                {"$set": update},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise StoreUnavailableError(f"Failed to update invoice: {e}")
        return self._to_record(doc) if doc else None

    def delete(self, invoice_id: str) -> bool:
        if not ObjectId.is_valid(invoice_id):
            return False
        try:
            result = self._collection.delete_one({"_id": ObjectId(invoice_id)})
        except PyMongoError as e:
            raise StoreUnavailableError(f"Failed to delete invoice: {e}")
        return result.deleted_count > 0

    def ping(self) -> bool:
        try:
            self._collection.database.command("ping")
            return True
        except PyMongoError as e:
            logger.error(f"Database ping failed: {e}")
            return False
