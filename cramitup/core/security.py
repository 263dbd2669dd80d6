"""
Input/output guards for the mnemonic generator: topic and language validation,
prompt-injection detection, input sanitizing and model-output screening.
"""
import logging
import re
import unicodedata
from typing import Any, NamedTuple, Optional

from cramitup.core import config
from cramitup.core.logging import log_security_event

logger = logging.getLogger(__name__)

ALLOWED_LANGUAGES = (
    "English", "Spanish", "French", "German", "Italian",
    "Portuguese", "Russian", "Japanese", "Korean", "Chinese",
    "Hindi", "Arabic", "Tamil", "Bengali", "Telugu",
)

MIN_TOPIC_LEN = 3

_I = re.IGNORECASE

# Order matters: the first match is reported.
PROMPT_INJECTION_PATTERNS = [
    # instruction override
    re.compile(r"system\s*prompt", _I),
    re.compile(r"ignore\s*(previous|above|prior)\s*instructions?", _I),
    re.compile(r"disregard\s*(previous|above|prior)\s*instructions?", _I),
    re.compile(r"forget\s*(previous|above|prior)\s*instructions?", _I),
    # role manipulation
    re.compile(r"you\s+are\s+(now\s+)?(a\s+|an\s+)?(admin|root|system|assistant|ai)", _I),
    re.compile(r"you're\s+(now\s+)?(a\s+|an\s+)?(admin|root|system)", _I),
    re.compile(r"act\s+as\s+(a\s+|an\s+)?(admin|root|system|developer)", _I),
    re.compile(r"pretend\s+(to\s+be|you\s+are)", _I),
    re.compile(r"roleplay\s+as", _I),
    re.compile(r"become\s+(a\s+|an\s+)?(admin|root|system)", _I),
    # output manipulation
    re.compile(r"only\s*respond\s*with", _I),
    re.compile(r"only\s*say", _I),
    re.compile(r"just\s*respond\s*with", _I),
    re.compile(r"just\s*say", _I),
    re.compile(r"respond\s*in\s*the\s*format", _I),
    # system access
    re.compile(r"reveal\s*(your|the)\s*(prompt|instructions|system)", _I),
    re.compile(r"show\s*(me\s*)?(your|the)\s*(prompt|instructions|system)", _I),
    re.compile(r"what\s*(are|is)\s*(your|the)\s*(instructions|prompt)", _I),
    re.compile(r"tell\s*me\s*(your|the)\s*(instructions|prompt|system)", _I),
    # delimiter injection
    re.compile(r"```\s*system", _I),
    re.compile(r"###\s*system", _I),
    re.compile(r"---\s*system", _I),
    # new instructions
    re.compile(r"new\s*instructions?:", _I),
    re.compile(r"updated\s*instructions?:", _I),
    re.compile(r"here\s*are\s*new\s*instructions?", _I),
    # jailbreaks
    re.compile(r"DAN\s*mode", _I),
    re.compile(r"developer\s*mode", _I),
    re.compile(r"jailbreak", _I),
    # encoding tricks
    re.compile(r"base64\s*decode", _I),
    re.compile(r"rot13", _I),
    re.compile(r"reverse\s*engineering", _I),
    # code / SQL
    re.compile(r";\s*drop\s*table", _I),
    re.compile(r"<script[^>]*>", _I),
    re.compile(r"javascript:", _I),
    re.compile(r"onerror\s*=", _I),
    # boundary markers
    re.compile(r"\[SYSTEM\]", _I),
    re.compile(r"\{SYSTEM\}", _I),
    re.compile(r"\(SYSTEM\)", _I),
]

# Logged, never blocked.
SUSPICIOUS_PATTERNS = [
    re.compile(r"api\s*key", _I),
    re.compile(r"token", _I),
    re.compile(r"password", _I),
    re.compile(r"secret", _I),
    re.compile(r"credentials?", _I),
    re.compile(r"authorization", _I),
    re.compile(r"admin", _I),
]

INSTRUCTION_KEYWORDS = ("ignore", "disregard", "forget", "system", "prompt", "instruction")
KEYWORD_THRESHOLD = 3
SPECIAL_CHAR_RATIO_LIMIT = 0.3
SPECIAL_CHAR_MIN_LEN = 20

DATA_LEAK_PATTERNS = [
    re.compile(r"AIza[0-9A-Za-z\-_]{35}", _I),  # Google API key
    re.compile(r"sk-[a-zA-Z0-9]{48}", _I),  # OpenAI API key
    re.compile(r"ghp_[a-zA-Z0-9]{36}", _I),  # GitHub token
    re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]+", _I),
]

_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", _I)
_HTML_TAG = re.compile(r"<[^>]*>")
_SQL_FRAGMENTS = re.compile(r";\s*drop\s+table|;\s*delete\s+from", _I)
_WHITESPACE = re.compile(r"\s+")

TOPIC_REQUIRED = "Topic is required and must be a string"
TOPIC_EMPTY = "Please enter a topic to memorize! 🤔"
TOPIC_TOO_SHORT = "Topic is too short. Please enter at least 3 characters. ✍️"
TOPIC_TOO_LONG = "Topic is too long! Keep it under {limit} characters. ✂️"
TOPIC_REJECTED = "Invalid input detected. Please enter a genuine topic to memorize. 🚫"
LANGUAGE_REQUIRED = "Language is required"
LANGUAGE_UNSUPPORTED = "Unsupported language selected"


class ValidationResult(NamedTuple):
    is_valid: bool
    error: Optional[str] = None
    flagged: bool = False


class InjectionCheck(NamedTuple):
    is_injection: bool
    reason: Optional[str] = None
    detail: Any = None


def _is_special(ch: str) -> bool:
    # Combining marks (Indic vowel signs etc.) belong to words, not punctuation.
    if ch.isalnum() or ch.isspace() or ch == "_":
        return False
    return not unicodedata.category(ch).startswith("M")


def detect_prompt_injection(text: str) -> InjectionCheck:
    for pattern in PROMPT_INJECTION_PATTERNS:
        if pattern.search(text):
            logger.warning("prompt_injection_pattern pattern=%s", pattern.pattern)
            return InjectionCheck(True, "Suspicious instruction pattern detected", pattern.pattern)

    if len(text) > SPECIAL_CHAR_MIN_LEN:
        ratio = sum(1 for ch in text if _is_special(ch)) / len(text)
        if ratio > SPECIAL_CHAR_RATIO_LIMIT:
            logger.warning("prompt_injection_special_chars ratio=%.2f", ratio)
            return InjectionCheck(True, "Excessive special characters (possible obfuscation)", round(ratio, 2))

    lowered = text.lower()
    hits = sum(1 for keyword in INSTRUCTION_KEYWORDS if keyword in lowered)
    if hits >= KEYWORD_THRESHOLD:
        logger.warning("prompt_injection_keywords count=%d", hits)
        return InjectionCheck(True, "Multiple suspicious instruction keywords", hits)

    for pattern in SUSPICIOUS_PATTERNS:
        if pattern.search(text):
            logger.warning("suspicious_pattern_logged pattern=%s", pattern.pattern)

    return InjectionCheck(False)


def sanitize_input(text: Any) -> str:
    """
    Strip markup, SQL fragments and null bytes, collapse whitespace and cap
    the length. Applying it twice gives the same result as applying it once.
    """
    if not isinstance(text, str):
        return ""
    cleaned = text.replace("\0", "")
    cleaned = _SCRIPT_BLOCK.sub("", cleaned)
    cleaned = _HTML_TAG.sub("", cleaned)
    # removing one fragment can join the pieces of another
    while _SQL_FRAGMENTS.search(cleaned):
        cleaned = _SQL_FRAGMENTS.sub("", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return cleaned[: config.settings.MAX_TOPIC_LEN].rstrip()


def validate_topic(topic: Any) -> ValidationResult:
    if not topic or not isinstance(topic, str):
        return ValidationResult(False, TOPIC_REQUIRED)

    trimmed = topic.strip()
    if not trimmed:
        return ValidationResult(False, TOPIC_EMPTY)
    if len(trimmed) < MIN_TOPIC_LEN:
        return ValidationResult(False, TOPIC_TOO_SHORT)
    if len(trimmed) > config.settings.MAX_TOPIC_LEN:
        return ValidationResult(False, TOPIC_TOO_LONG.format(limit=config.settings.MAX_TOPIC_LEN))

    check = detect_prompt_injection(trimmed)
    if check.is_injection:
        log_security_event(
            "prompt_injection_blocked",
            topic=sanitize_input(trimmed),
            reason=check.reason,
            detail=check.detail,
        )
        return ValidationResult(False, TOPIC_REJECTED, flagged=True)

    return ValidationResult(True)


def validate_language(language: Any) -> ValidationResult:
    if not language or not isinstance(language, str):
        return ValidationResult(False, LANGUAGE_REQUIRED)
    if language not in ALLOWED_LANGUAGES:
        return ValidationResult(False, LANGUAGE_UNSUPPORTED)
    return ValidationResult(True)


def validate_output(output: Any) -> bool:
    """Return False for model output that is empty, oversized or looks like it leaks a credential."""
    if not output or not isinstance(output, str):
        return False
    if len(output) > config.settings.MAX_OUTPUT_LEN:
        logger.warning("output_rejected reason=too_long len=%d", len(output))
        return False
    for pattern in DATA_LEAK_PATTERNS:
        if pattern.search(output):
            logger.error("output_rejected reason=possible_data_leak")
            return False
    return True
