"""Streamlit UI for the PDF invoice dashboard.

Run with: streamlit run invoice_dashboard/ui/app.py
The API must be reachable at DASHBOARD_API_URL (default http://localhost:3001/api).
"""

from __future__ import annotations

import pypdfium2 as pdfium
import streamlit as st

from invoice_dashboard.ui.api_client import DashboardApiClient, DashboardApiError
from invoice_dashboard.ui.pdf_preview import (
    DEFAULT_ZOOM, MAX_ZOOM, MIN_ZOOM, clamp_page, page_count, render_page, zoom_in, zoom_out,
)
from invoice_dashboard.ui.session import EditSession, SessionState, SessionValidationError

PAGES = ("Upload", "Edit invoice", "Invoices")


def _client() -> DashboardApiClient:
    if "api_client" not in st.session_state:
        st.session_state.api_client = DashboardApiClient()
    return st.session_state.api_client


def _session() -> EditSession | None:
    return st.session_state.get("edit_session")


def _open_session(session: EditSession):
    st.session_state.edit_session = session
    for key in ("pdf_bytes", "pdf_page", "pdf_zoom"):
        st.session_state.pop(key, None)
    _bump_revision()
    _navigate("Edit invoice")


def _navigate(page: str):
    # The page radio is already rendered; main() applies this on the next run
    st.session_state.next_page = page


def _bump_revision():
    # Widget keys carry the revision so inputs pick up values replaced in the session
    st.session_state.form_rev = st.session_state.get("form_rev", 0) + 1


def _key(*parts) -> str:
    return "-".join(str(p) for p in (st.session_state.get("form_rev", 0), *parts))


# Pages

def upload_page():
    st.header("Upload a PDF invoice")
    uploaded = st.file_uploader("PDF invoice (max 25MB)", type=["pdf"])
    if not uploaded:
        st.info("Select a PDF to begin.")
        return

    if st.button("Upload"):
        with st.spinner("Uploading..."):
            try:
                result = _client().upload_pdf(uploaded.name, uploaded.getvalue(), uploaded.type or "application/pdf")
            except DashboardApiError as e:
                st.error(f"Upload failed: {e.message}")
                return
        st.success(result.get("message", "File uploaded successfully"))
        _open_session(EditSession(result["fileId"], result["fileName"]))
        st.rerun()


def _change_page(step: int, count: int):
    st.session_state.pdf_page = clamp_page(st.session_state.get("pdf_page", 1) + step, count)


def _change_zoom(step):
    st.session_state.pdf_zoom = step(st.session_state.get("pdf_zoom", DEFAULT_ZOOM))


def _pdf_preview(session: EditSession):
    if "pdf_bytes" not in st.session_state:
        try:
            st.session_state.pdf_bytes = _client().download_pdf(session.file_id)
        except DashboardApiError as e:
            st.error(f"Could not load PDF: {e.message}")
            return

    pdf_bytes = st.session_state.pdf_bytes
    zoom = st.session_state.get("pdf_zoom", DEFAULT_ZOOM)
    try:
        count = page_count(pdf_bytes)
        page = clamp_page(st.session_state.get("pdf_page", 1), count)
        image = render_page(pdf_bytes, page, zoom)
    except pdfium.PdfiumError as e:
        st.error(f"Could not render PDF: {e}")
        return
    if image is None:
        st.warning("This PDF has no pages.")
        return

    prev_col, page_col, next_col, out_col, zoom_col, in_col = st.columns([1, 2, 1, 1, 1, 1])
    prev_col.button("Prev", key="pdf-prev", disabled=page <= 1, on_click=_change_page, args=(-1, count))
    page_col.write(f"Page {page} of {count}")
    next_col.button("Next", key="pdf-next", disabled=page >= count, on_click=_change_page, args=(1, count))
    out_col.button("-", key="pdf-zoom-out", disabled=zoom <= MIN_ZOOM, on_click=_change_zoom, args=(zoom_out,))
    zoom_col.write(f"{zoom:.0%}")
    in_col.button("+", key="pdf-zoom-in", disabled=zoom >= MAX_ZOOM, on_click=_change_zoom, args=(zoom_in,))
    with st.container(height=800):
        st.image(image, caption=f"Page {page}")


def _run_extraction(session: EditSession, model: str):
    with st.spinner(f"Extracting with {model}..."):
        try:
            data = _client().extract(session.file_id, model)
        except DashboardApiError as e:
            hint = " You can try again." if e.retryable else ""
            st.error(f"Extraction failed: {e.message}{hint}")
            return
    session.apply_extraction(data)
    _bump_revision()
    st.success("Invoice data extracted")


def _line_item_changed(session: EditSession, index: int, field: str, widget_key: str, total_key: str):
    session.update_line_item(index, field, st.session_state[widget_key])
    st.session_state[total_key] = session.invoice["lineItems"][index]["total"]


def _line_items(session: EditSession):
    st.subheader("Line items")
    items = session.invoice["lineItems"]
    for index, item in enumerate(items):
        cols = st.columns([4, 2, 2, 2, 1])
        total_key = _key("item", index, "total")
        for col, field in zip(cols[:4], ("description", "unitPrice", "quantity", "total")):
            widget_key = _key("item", index, field)
            label = field if index == 0 else " "
            kwargs = dict(
                key=widget_key,
                on_change=_line_item_changed,
                args=(session, index, field, widget_key, total_key),
                label_visibility="visible" if index == 0 else "collapsed",
            )
            with col:
                if field == "description":
                    st.text_input(label, value=item["description"], **kwargs)
                else:
                    st.number_input(label, value=float(item[field]), **kwargs)
        if cols[4].button("Remove", key=_key("item", index, "remove")):
            session.remove_line_item(index)
            _bump_revision()
            st.rerun()

    if st.button("Add line item"):
        session.add_line_item()
        _bump_revision()
        st.rerun()


def edit_page():
    session = _session()
    if session is None:
        st.info("Upload a PDF or pick an invoice from the list first.")
        return
    if session.state is SessionState.DELETED:
        st.info("This invoice was deleted.")
        return

    st.header(session.file_name)
    st.caption(f"State: {session.state.value}" + (f" | Invoice id: {session.invoice_id}" if session.has_identity else ""))

    left, right = st.columns(2)
    with left:
        _pdf_preview(session)

    with right:
        gemini, groq = st.columns(2)
        if gemini.button("Extract with Gemini"):
            _run_extraction(session, "gemini")
        if groq.button("Extract with Groq"):
            _run_extraction(session, "groq")

        st.subheader("Vendor")
        for field, label in (("name", "Vendor name *"), ("address", "Address"), ("taxId", "Tax ID")):
            value = st.text_input(label, value=session.vendor.get(field) or "", key=_key("vendor", field))
            if value != (session.vendor.get(field) or ""):
                session.set_vendor_field(field, value)

        st.subheader("Invoice")
        for field, label in (
            ("number", "Invoice number *"),
            ("date", "Invoice date * (YYYY-MM-DD)"),
            ("currency", "Currency"),
            ("poNumber", "PO number"),
            ("poDate", "PO date"),
        ):
            value = st.text_input(label, value=session.invoice.get(field) or "", key=_key("invoice", field))
            if value != (session.invoice.get(field) or ""):
                session.set_invoice_field(field, value)
        for field, label in (("subtotal", "Subtotal"), ("taxPercent", "Tax %"), ("total", "Total")):
            value = st.number_input(label, value=float(session.invoice.get(field) or 0), key=_key("invoice", field))
            if value != float(session.invoice.get(field) or 0):
                session.set_invoice_field(field, value)

        _line_items(session)

        save, delete = st.columns(2)
        if save.button("Save invoice", type="primary"):
            try:
                session.save(_client())
                st.success("Invoice saved")
            except SessionValidationError as e:
                for problem in e.problems:
                    st.error(problem)
            except DashboardApiError as e:
                st.error(f"Save failed: {e.message}")

        if session.has_identity and delete.button("Delete invoice"):
            st.session_state.confirm_delete = session.invoice_id
        if st.session_state.get("confirm_delete") == session.invoice_id:
            st.warning("Delete this invoice? This cannot be undone.")
            if st.button("Yes, delete"):
                try:
                    session.delete(_client())
                except DashboardApiError as e:
                    st.error(f"Delete failed: {e.message}")
                else:
                    st.session_state.pop("confirm_delete", None)
                    _navigate("Invoices")
                    st.rerun()


def invoices_page():
    st.header("Invoices")
    search = st.text_input("Search by vendor name or invoice number")
    try:
        invoices = _client().list_invoices(search.strip() or None)
    except DashboardApiError as e:
        st.error(f"Could not load invoices: {e.message}")
        return

    if not invoices:
        st.info("No invoices found.")
        return

    for invoice in invoices:
        details = invoice.get("invoice") or {}
        cols = st.columns([3, 2, 2, 2, 1, 1])
        cols[0].write(invoice.get("vendor", {}).get("name", ""))
        cols[1].write(details.get("number", ""))
        cols[2].write(details.get("date", ""))
        cols[3].write(f"{details.get('total') or 0:.2f} {details.get('currency') or 'USD'}")
        if cols[4].button("Edit", key=f"edit-{invoice['id']}"):
            _open_session(EditSession.from_record(invoice))
            st.rerun()
        if cols[5].button("Delete", key=f"delete-{invoice['id']}"):
            st.session_state.confirm_list_delete = invoice["id"]

        if st.session_state.get("confirm_list_delete") == invoice["id"]:
            st.warning(f"Delete invoice {details.get('number', '')}? This cannot be undone.")
            confirm, cancel = st.columns(2)
            if confirm.button("Yes, delete", key=f"confirm-{invoice['id']}"):
                try:
                    _client().delete_invoice(invoice["id"])
                except DashboardApiError as e:
                    st.error(f"Delete failed: {e.message}")
                else:
                    st.session_state.pop("confirm_list_delete", None)
                    st.rerun()
            if cancel.button("Cancel", key=f"cancel-{invoice['id']}"):
                st.session_state.pop("confirm_list_delete", None)
                st.rerun()


def main() -> None:
    st.set_page_config(page_title="PDF Invoice Dashboard", layout="wide")
    st.title("PDF Invoice Dashboard")

    if "next_page" in st.session_state:
        st.session_state.page = st.session_state.pop("next_page")
    elif "page" not in st.session_state:
        st.session_state.page = PAGES[0]
    st.sidebar.radio("Page", PAGES, key="page")

    {"Upload": upload_page, "Edit invoice": edit_page, "Invoices": invoices_page}[st.session_state.page]()


if __name__ == "__main__":
    main()
