"""
Typed extraction failures and the mapping from upstream SDK errors onto them.

Both AI SDKs report failures as exceptions carrying an HTTP status
(`status_code` on groq, `code` on google-genai) and a message; which one we
get depends on the SDK version, so classification looks at both plus the
message text.
"""

from typing import Optional

from ...core.errors import AppError


class ExtractionError(AppError):
    status_code = 500
    error = "Extraction failed"
    retryable = True


class ConfigurationError(ExtractionError):
    status_code = 400
    error = "Configuration error"
    retryable = False


class ServiceUnavailableError(ExtractionError):
    status_code = 503
    error = "Service temporarily unavailable"
    retryable = True


class ThrottledError(ExtractionError):
    status_code = 429
    error = "Quota exceeded"
    retryable = True


class UnsupportedModelError(ExtractionError):
    status_code = 400
    error = "Model not supported"
    retryable = False


class NoExtractableTextError(ExtractionError):
    """The PDF has no text layer (scanned / image-only)"""
    error = "No extractable text"
    retryable = False


class ExtractionFailedError(ExtractionError):
    """Anything else, including model replies that are not parseable JSON"""


def _status_of(exc: Exception) -> Optional[int]:
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    code = getattr(exc, "code", None)
    if isinstance(code, int):
        return code
    return None


def is_model_retired(exc: Exception) -> bool:
    """True when the backend says the requested model no longer exists"""
    if isinstance(exc, UnsupportedModelError):
        return True
    code = getattr(exc, "code", None)
    if code == "model_decommissioned":
        return True
    message = str(exc).lower()
    return "model_decommissioned" in message or "has been decommissioned" in message


def classify_upstream_error(exc: Exception, backend: str) -> ExtractionError:
    """Map an exception raised while talking to an AI backend onto an ExtractionError"""
    if isinstance(exc, ExtractionError):
        return exc

    status = _status_of(exc)
    message = str(exc)
    lowered = message.lower()

    if is_model_retired(exc) or (status == 404 and "model" in lowered):
        return UnsupportedModelError(
            "The requested model is no longer supported. Please try a different model."
        )
    if status == 503 or "503 service unavailable" in lowered or "overloaded" in lowered:
        return ServiceUnavailableError(
            "The AI service is currently overloaded. Please try again in a few minutes."
        )
    if "quota" in lowered or "resource_exhausted" in lowered:
        return ThrottledError("API quota has been exceeded. Please try again later.")
    if status == 429 or "rate limit" in lowered or "rate_limit" in lowered:
        return ThrottledError(
            "API rate limit exceeded. Please try again later.", error="Rate limit exceeded"
        )
    return ExtractionFailedError(f"Failed to extract with {backend}: {message}")
