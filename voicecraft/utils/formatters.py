"""
Cleanup helpers for raw model output.
"""

import json
import re
from typing import Any

_CODE_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")
_WRAPPING_QUOTES = "\"'“”‘’«»"


def strip_code_fences(text: str) -> str:
    """Remove a ```json ... ``` wrapper if the model added one."""
    return _CODE_FENCE_RE.sub("", text.strip()).strip()


def strip_wrapping_quotes(text: str) -> str:
    """Trim and drop quote characters wrapping the whole text."""
    return text.strip().strip(_WRAPPING_QUOTES).strip()


def strip_quote_pair(text: str) -> str:
    """Drop one matching pair of quotes around the whole text, if present."""
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1].strip()
    return text


def parse_json_object(text: str) -> dict[str, Any]:
    """
    Parse model output as a JSON object.

    Raises:
        ValueError: If the text is not JSON or not an object
    """
    data = json.loads(strip_code_fences(text))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data
