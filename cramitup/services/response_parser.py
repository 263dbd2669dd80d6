"""
Turns raw model text into the mnemonic payload.

Models wrap JSON in markdown fences or add commentary around it, so parsing
tries the fence-stripped text first and then falls back to the first
brace-delimited span.
"""
import json
import logging
import re
from typing import Any, Dict

from cramitup.core.errors import InvalidResponseStructureError, ResponseParseError

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("primary", "alternatives")

_LEADING_FENCE = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\n?```\s*$")
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def strip_code_fences(text: str) -> str:
    text = text.strip()
    text = _LEADING_FENCE.sub("", text)
    text = _TRAILING_FENCE.sub("", text)
    return text.strip()


def parse_mnemonic_response(text: str) -> Dict[str, Any]:
    candidate = strip_code_fences(text or "")
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning("response_parse_direct_failed err=%s", e)
        match = _JSON_OBJECT.search(text or "")
        if not match:
            raise ResponseParseError() from e
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as inner:
            logger.error("response_parse_extract_failed err=%s", inner)
            raise ResponseParseError() from inner
        logger.info("response_parse_extracted chars=%d", len(match.group(0)))

    if not isinstance(data, dict) or any(key not in data for key in REQUIRED_KEYS):
        logger.error("response_structure_invalid keys=%s", sorted(data) if isinstance(data, dict) else type(data).__name__)
        raise InvalidResponseStructureError()
    return data
