"""Invoice data normalizer.

Turns whatever object a model returned into a NormalizedInvoice:
- Text fields: non-strings become ""
- Currency defaults to USD
- Numbers: numeric strings are parsed, anything else becomes 0
  (line-item quantity becomes 1)
- lineItems: non-lists become [], non-object items are dropped
"""

import math
from typing import Any

from ...models.invoice import (
    ExtractedInvoiceDetails,
    ExtractedVendor,
    LineItem,
    NormalizedInvoice,
)

_CURRENCY_MARKS = ("$", "€", "£", "¥", "₹", ",", "USD", "AUD", "EUR", "GBP", "CAD", "JPY", "CNY", "INR")


def as_text(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value.strip()
    return default


def as_number(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return default
    elif isinstance(value, str):
        cleaned = value
        for mark in _CURRENCY_MARKS:
            cleaned = cleaned.replace(mark, "")
        cleaned = cleaned.strip().rstrip("%").strip()
        try:
            number = float(cleaned)
        except ValueError:
            return default
    else:
        return default
    return number if math.isfinite(number) else default


def _as_object(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def normalize_line_item(item: dict) -> LineItem:
    return LineItem(
        description=as_text(item.get("description")),
        unitPrice=as_number(item.get("unitPrice")),
        quantity=as_number(item.get("quantity"), default=1.0),
        total=as_number(item.get("total")),
    )


def normalize_invoice(data: Any) -> NormalizedInvoice:
    """Coerce a parsed model reply into the fixed schema. Never raises."""
    data = _as_object(data)
    vendor = _as_object(data.get("vendor"))
    invoice = _as_object(data.get("invoice"))

    raw_items = invoice.get("lineItems")
    if not isinstance(raw_items, list):
        raw_items = []

    return NormalizedInvoice(
        vendor=ExtractedVendor(
            name=as_text(vendor.get("name")),
            address=as_text(vendor.get("address")),
            taxId=as_text(vendor.get("taxId")),
        ),
        invoice=ExtractedInvoiceDetails(
            number=as_text(invoice.get("number")),
            date=as_text(invoice.get("date")),
            currency=as_text(invoice.get("currency")) or "USD",
            subtotal=as_number(invoice.get("subtotal")),
            taxPercent=as_number(invoice.get("taxPercent")),
            total=as_number(invoice.get("total")),
            poNumber=as_text(invoice.get("poNumber")),
            poDate=as_text(invoice.get("poDate")),
            lineItems=[normalize_line_item(item) for item in raw_items if isinstance(item, dict)],
        ),
    )
