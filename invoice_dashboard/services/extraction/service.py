"""
Extraction adapter: blob ID + backend name in, NormalizedInvoice out.

Both backends are black boxes behind the same contract. Whatever goes wrong
upstream is reported as an ExtractionError subtype; whatever comes back is
normalized, so callers always receive the full schema.
"""

import time
from typing import Optional, Protocol

from loguru import logger

from ...core.config import Settings, settings as default_settings
from ...models.invoice import NormalizedInvoice
from ..storage.blob_store_base import BlobStoreBase
from ..storage.errors import BlobNotFoundError, BlobStoreTimeoutError, InvalidFileIdError
from .errors import ConfigurationError, classify_upstream_error
from .normalizer import normalize_invoice

BACKEND_NAMES = ("gemini", "groq")


class ExtractionBackend(Protocol):
    name: str

    def extract(self, pdf_bytes: bytes) -> dict:
        ...


class ExtractionService:
    def __init__(
        self,
        blob_store: BlobStoreBase,
        settings: Optional[Settings] = None,
        backends: Optional[dict] = None,
    ):
        self.blob_store = blob_store
        self.settings = settings or default_settings
        self._backends = dict(backends or {})

    def get_backend(self, name: str) -> ExtractionBackend:
        """Build the named backend; a missing API key is reported here, not at startup"""
        if name in self._backends:
            return self._backends[name]

        if name == "gemini":
            if not self.settings.gemini_api_key:
                logger.warning("Gemini API key not configured")
                raise ConfigurationError("Gemini API key not configured")
            from .gemini_backend import GeminiBackend
            backend = GeminiBackend(
                api_key=self.settings.gemini_api_key,
                model=self.settings.gemini_model,
                timeout_seconds=self.settings.ai_request_timeout_seconds,
            )
        elif name == "groq":
            if not self.settings.groq_api_key:
                logger.warning("Groq API key not configured")
                raise ConfigurationError("Groq API key not configured")
            from .groq_backend import GroqBackend
            backend = GroqBackend(
                api_key=self.settings.groq_api_key,
                models=self.settings.groq_model_list,
                timeout_seconds=self.settings.ai_request_timeout_seconds,
            )
        else:
            raise ConfigurationError(
                'Model must be either "gemini" or "groq"', error="Invalid model"
            )

        self._backends[name] = backend
        return backend

    def load_pdf(self, file_id: str) -> bytes:
        """Read a blob, giving up once the download timeout has passed"""
        deadline = time.monotonic() + self.settings.download_timeout_seconds
        try:
            chunks = []
            for chunk in self.blob_store.iter_chunks(file_id):
                if time.monotonic() > deadline:
                    raise BlobStoreTimeoutError("Download timeout", error="File error")
                chunks.append(chunk)
        except (InvalidFileIdError, BlobNotFoundError) as e:
            raise BlobNotFoundError(e.details, error="File error")

        pdf_bytes = b"".join(chunks)
        if not pdf_bytes:
            raise BlobNotFoundError("Empty file or file not found", error="File error")
        logger.info("PDF loaded", file_id=file_id, size=len(pdf_bytes))
        return pdf_bytes

    def extract(self, file_id: str, backend_name: str) -> NormalizedInvoice:
        backend = self.get_backend(backend_name)
        pdf_bytes = self.load_pdf(file_id)

        logger.info(f"Extracting data using {backend.name}", file_id=file_id)
        started = time.perf_counter()
        try:
            raw = backend.extract(pdf_bytes)
        except Exception as exc:
            error = classify_upstream_error(exc, backend.name)
            # Upstream messages often contain braces, so context goes through bind()
            logger.bind(
                file_id=file_id,
                error_type=type(error).__name__,
                retryable=error.retryable,
            ).error(f"{backend.name} extraction failed: {exc}")
            raise error from exc

        invoice = normalize_invoice(raw)
        logger.info(
            f"{backend.name} extraction completed",
            file_id=file_id,
            line_items=len(invoice.invoice.lineItems),
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return invoice
