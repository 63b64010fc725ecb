import httpx
from loguru import logger

from ..core.config import settings


class DashboardApiError(Exception):
    """Non-2xx response from the dashboard API"""

    def __init__(self, status_code: int, message: str, retryable: bool | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.retryable = retryable


class DashboardApiClient:
    """
    Synchronous client for the dashboard REST API, used by the Streamlit app.

    Every method returns the decoded JSON body (or raw bytes for downloads)
    and raises DashboardApiError with the server's `details` (falling back to
    `error`) when the response is not 2xx.
    """

    def __init__(self, base_url: str | None = None, timeout: float = 180.0, transport=None):
        self.base_url = (base_url or settings.dashboard_api_url).rstrip("/")
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.bind(method=method, path=path).error(f"API request failed: {e}")
            raise DashboardApiError(0, f"Could not reach the API: {e}") from e

        if response.is_success:
            return response

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("details") or body.get("error") or f"Request failed ({response.status_code})"
        raise DashboardApiError(response.status_code, str(message), body.get("retryable"))

    # Files

    def upload_pdf(self, file_name: str, data: bytes, content_type: str = "application/pdf") -> dict:
        files = {"pdf": (file_name, data, content_type)}
        return self._request("POST", "/upload", files=files).json()

    def download_pdf(self, file_id: str) -> bytes:
        return self._request("GET", f"/upload/{file_id}").content

    def file_info(self, file_id: str) -> dict:
        return self._request("GET", f"/upload/{file_id}/info").json()

    def delete_pdf(self, file_id: str) -> dict:
        return self._request("DELETE", f"/upload/{file_id}").json()

    # Extraction

    def extract(self, file_id: str, model: str) -> dict:
        """Returns the normalized {vendor, invoice} object"""
        body = self._request("POST", "/extract", json={"fileId": file_id, "model": model}).json()
        return body["data"]

    # Invoices

    def list_invoices(self, search: str | None = None) -> list[dict]:
        params = {"q": search} if search else None
        return self._request("GET", "/invoices", params=params).json()["data"]

    def get_invoice(self, invoice_id: str) -> dict:
        return self._request("GET", f"/invoices/{invoice_id}").json()["data"]

    def create_invoice(self, payload: dict) -> dict:
        return self._request("POST", "/invoices", json=payload).json()["data"]

    def update_invoice(self, invoice_id: str, payload: dict) -> dict:
        return self._request("PUT", f"/invoices/{invoice_id}", json=payload).json()["data"]

    def delete_invoice(self, invoice_id: str) -> dict:
        return self._request("DELETE", f"/invoices/{invoice_id}").json()
