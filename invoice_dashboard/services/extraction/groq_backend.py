"""
Groq extraction: text is pulled out of the PDF locally, then sent to a text
model. Groq retires models regularly, so a list of model IDs is tried in
order until one is still served.
"""

from typing import Callable, Sequence

from groq import Groq
from loguru import logger

from .errors import (
    ConfigurationError,
    ExtractionFailedError,
    UnsupportedModelError,
    is_model_retired,
)
from .fallback import AllCandidatesFailed, first_success
from .parsing import ParsedFail, parse_model_json
from .pdf_text import extract_pdf_text
from .prompt import TEXT_SYSTEM_PROMPT, TEXT_USER_PROMPT


class GroqBackend:
    name = "groq"

    def __init__(
        self,
        api_key: str,
        models: Sequence[str],
        timeout_seconds: float = 120.0,
        client=None,
        text_extractor: Callable[[bytes], str] = extract_pdf_text,
    ):
        self.models = list(models)
        # SDK retries are off: the only retry behaviour is the model list below
        self._client = client or Groq(api_key=api_key, timeout=timeout_seconds, max_retries=0)
        self._text_extractor = text_extractor

    def extract(self, pdf_bytes: bytes) -> dict:
        if not self.models:
            raise ConfigurationError("No Groq models configured")

        text = self._text_extractor(pdf_bytes)

        try:
            return first_success(
                self.models,
                lambda model: self._extract_with_model(model, text),
                should_skip=is_model_retired,
            )
        except AllCandidatesFailed:
            raise UnsupportedModelError(
                "All Groq models are currently unavailable. Please try Gemini instead."
            )

    def _extract_with_model(self, model: str, text: str) -> dict:
        logger.info(f"Trying Groq model: {model}", text_length=len(text))
        completion = self._client.chat.completions.create(
            messages=[
                {"role": "system", "content": TEXT_SYSTEM_PROMPT},
                {"role": "user", "content": TEXT_USER_PROMPT.format(text=text)},
            ],
            model=model,
            temperature=0.1,
            max_tokens=4096,
        )

        content = completion.choices[0].message.content if completion.choices else None
        logger.debug(f"Groq ({model}) raw response", text=content)

        result = parse_model_json(content, locate_object=True)
        if isinstance(result, ParsedFail):
            raise ExtractionFailedError(f"Invalid JSON response from Groq API ({model}): {result.reason}")

        logger.info(f"Groq model {model} returned invoice data")
        return result.value
