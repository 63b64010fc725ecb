"""
Gemini extraction: the PDF itself goes to a multimodal model in one call.
"""

from google import genai
from google.genai import types
from loguru import logger

from .errors import ExtractionFailedError
from .parsing import ParsedFail, parse_model_json
from .prompt import EXTRACTION_PROMPT


class GeminiBackend:
    name = "gemini"

    def __init__(self, api_key: str, model: str, timeout_seconds: float = 120.0, client=None):
        self.model = model
        self._client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
        )

    def extract(self, pdf_bytes: bytes) -> dict:
        logger.info("Sending PDF to Gemini", model=self.model, size=len(pdf_bytes))
        response = self._client.models.generate_content(
            model=self.model,
            contents=[
                EXTRACTION_PROMPT,
                types.Part.from_bytes(data=pdf_bytes, mime_type="application/pdf"),
            ],
        )
        text = response.text
        logger.debug("Gemini raw response", text=text)

        result = parse_model_json(text)
        if isinstance(result, ParsedFail):
            raise ExtractionFailedError(f"Invalid JSON response from Gemini API: {result.reason}")
        return result.value
