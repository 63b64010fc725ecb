"""
Abstract base class for invoice record storage.

Records are plain dicts keyed by their wire field names. The API layer only
talks to this interface, so tests run on the in-memory store and production
on MongoDB.
"""

from abc import ABC, abstractmethod
from typing import Optional

# Top-level fields a client may set; everything else is assigned by the store
MUTABLE_FIELDS = ("fileId", "fileName", "vendor", "invoice")


class InvoiceStoreBase(ABC):
    """
    Abstract base class for invoice records.

    Records are returned as dictionaries with keys:
        - id: Store-assigned identifier
        - fileId, fileName, vendor, invoice: As supplied by the client
        - createdAt: datetime set on insert
        - updatedAt: datetime of the last update, or None
    """

    @abstractmethod
    def list(self, search: Optional[str] = None, limit: int = 100) -> list:
        """
        List records, newest first.

        Args:
            search: Case-insensitive substring matched against vendor.name
                or invoice.number; None or empty returns everything
            limit: Maximum number of records returned

        Returns:
            List of record dictionaries
        """
        pass

    @abstractmethod
    def get(self, invoice_id: str) -> Optional[dict]:
        """
        Get a record by ID.

        Returns:
            Record dictionary, or None if not found (including malformed IDs)
        """
        pass

    @abstractmethod
    def create(self, data: dict) -> dict:
        """
        Insert a record and return it with id and createdAt assigned.

        Args:
            data: Dictionary with the mutable fields
        """
        pass

    @abstractmethod
    def update(self, invoice_id: str, changes: dict) -> Optional[dict]:
        """
        Replace the supplied mutable fields wholesale and stamp updatedAt.

        Args:
            invoice_id: Record identifier
            changes: Subset of the mutable fields

        Returns:
            The updated record, or None if not found
        """
        pass

    @abstractmethod
    def delete(self, invoice_id: str) -> bool:
        """
        Delete a record permanently.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    def ping(self) -> bool:
        """Return True if the store is reachable"""
        pass
