"""
Pull a JSON object out of a language model's free-text reply.

Models wrap JSON in Markdown fences, prefix it with prose, or append
commentary. These helpers undo that without touching the network, and
report the outcome as ParsedOk / ParsedFail instead of raising.
"""

import json
import re
from dataclasses import dataclass
from typing import Optional, Union

_FENCE_OPEN = re.compile(r"```[a-zA-Z]*[ \t]*\n?")


@dataclass(frozen=True)
class ParsedOk:
    value: dict


@dataclass(frozen=True)
class ParsedFail:
    reason: str


ParseResult = Union[ParsedOk, ParsedFail]


def strip_code_fences(text: str) -> str:
    """Remove ```json / ``` fence markers anywhere in the text"""
    return _FENCE_OPEN.sub("", text).replace("```", "").strip()


def find_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced {...} substring, or None.

    Braces inside JSON strings (including escaped quotes) are ignored, so
    `{"note": "use } carefully"}` is returned whole.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # Unbalanced from this brace; try the next one
        start = text.find("{", start + 1)
    return None


def parse_model_json(text: Optional[str], locate_object: bool = False) -> ParseResult:
    """
    Parse a model reply into a JSON object.

    Args:
        text: Raw reply text
        locate_object: After stripping fences, also cut the reply down to the
            first balanced {...} (for chatty models that add prose)
    """
    if not text or not text.strip():
        return ParsedFail("Empty response from model")

    cleaned = strip_code_fences(text)
    if locate_object:
        candidate = find_json_object(cleaned)
        if candidate is not None:
            cleaned = candidate

    try:
        value = json.loads(cleaned)
    except json.JSONDecodeError as e:
        return ParsedFail(f"Invalid JSON in model response: {e.msg} at position {e.pos}")

    if not isinstance(value, dict):
        return ParsedFail(f"Expected a JSON object, got {type(value).__name__}")
    return ParsedOk(value)
