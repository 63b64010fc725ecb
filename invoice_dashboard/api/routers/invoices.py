from fastapi import APIRouter, Body, Depends, Query
from fastapi.concurrency import run_in_threadpool
from loguru import logger
from pydantic import ValidationError

from ..deps import get_invoice_store
from ...core.config import settings
from ...core.errors import BadRequestError, NotFoundError
from ...models.invoice import InvoiceRecordIn, InvoiceRecordUpdate
from ...services.storage.invoice_store_base import InvoiceStoreBase

router = APIRouter(prefix="/api/invoices", tags=["invoices"])

REQUIRED_FIELDS = ("fileId", "fileName", "vendor", "invoice")


def _validation_details(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )


def _not_found() -> NotFoundError:
    return NotFoundError("Invoice not found", error="Invoice not found")


def _stored_fields(model: InvoiceRecordIn | InvoiceRecordUpdate) -> dict:
    """Only the fields the client sent; line items are always stored whole"""
    data = model.model_dump(exclude_unset=True)
    if model.invoice is not None:
        data["invoice"]["lineItems"] = [item.model_dump() for item in model.invoice.lineItems]
    return data


@router.get("")
async def list_invoices(
    q: str | None = Query(default=None, description="Matches vendor name or invoice number"),
    store: InvoiceStoreBase = Depends(get_invoice_store),
):
    """
    List invoices, newest first, capped at the page size (100).

    With `q`, only records whose vendor name or invoice number contains the
    term (case-insensitive) are returned.
    """
    invoices = await run_in_threadpool(store.list, q or None, settings.invoice_page_size)
    return {"success": True, "data": invoices, "count": len(invoices)}


@router.get("/{invoice_id}")
async def get_invoice(invoice_id: str, store: InvoiceStoreBase = Depends(get_invoice_store)):
    invoice = await run_in_threadpool(store.get, invoice_id)
    if invoice is None:
        raise _not_found()
    return {"success": True, "data": invoice}


@router.post("", status_code=201)
async def create_invoice(
    payload: dict = Body(...),
    store: InvoiceStoreBase = Depends(get_invoice_store),
):
    """
    Create an invoice record.

    fileId, fileName, vendor and invoice (alias: invoiceDetails) must be
    present; the body is then checked against the record schema.
    """
    if "invoice" not in payload and "invoiceDetails" in payload:
        payload["invoice"] = payload["invoiceDetails"]
    missing = [field for field in REQUIRED_FIELDS if not payload.get(field)]
    if missing:
        raise BadRequestError(
            f"Missing required fields: {', '.join(missing)}", error="Missing required fields"
        )

    try:
        record = InvoiceRecordIn.model_validate(payload)
    except ValidationError as e:
        raise BadRequestError(_validation_details(e), error="Validation Error")

    invoice = await run_in_threadpool(store.create, _stored_fields(record))
    logger.info("Invoice saved", invoice_id=invoice["id"], vendor=record.vendor.name)
    return {"success": True, "data": invoice}


@router.put("/{invoice_id}")
async def update_invoice(
    invoice_id: str,
    payload: dict = Body(...),
    store: InvoiceStoreBase = Depends(get_invoice_store),
):
    """
    Replace an invoice's fields.

    Each supplied top-level field (fileId, fileName, vendor, invoice)
    replaces the stored one wholesale; omitted fields keep their values.
    updatedAt is set to now.
    """
    try:
        changes = InvoiceRecordUpdate.model_validate(payload)
    except ValidationError as e:
        raise BadRequestError(_validation_details(e), error="Validation Error")

    supplied = {field: value for field, value in _stored_fields(changes).items() if value is not None}
    invoice = await run_in_threadpool(store.update, invoice_id, supplied)
    if invoice is None:
        raise _not_found()
    logger.info("Invoice updated", invoice_id=invoice_id)
    return {"success": True, "data": invoice}


@router.delete("/{invoice_id}")
async def delete_invoice(invoice_id: str, store: InvoiceStoreBase = Depends(get_invoice_store)):
    deleted = await run_in_threadpool(store.delete, invoice_id)
    if not deleted:
        raise _not_found()
    logger.info("Invoice deleted", invoice_id=invoice_id)
    return {"success": True, "message": "Invoice deleted successfully"}
