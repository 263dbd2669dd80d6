import logging
from typing import Any, Dict, NamedTuple, Optional

from cramitup.clients.gemini_client import GeminiAPIError, GeminiClient, build_client
from cramitup.core.errors import (
    InputValidationError,
    MnemonicError,
    OutputValidationError,
    SafetyBlockedError,
    UpstreamConfigError,
    UpstreamError,
)
from cramitup.core.logging import log_security_event
from cramitup.core.security import sanitize_input, validate_language, validate_output, validate_topic
from cramitup.services.prompt import build_secure_prompt
from cramitup.services.response_parser import parse_mnemonic_response

logger = logging.getLogger(__name__)


class GeneratedMnemonic(NamedTuple):
    data: Dict[str, Any]
    topic: str
    language: str


class FlaggedInputError(InputValidationError):
    """Topic rejected by the injection detector."""


def classify_upstream_error(message: str) -> MnemonicError:
    """Map an upstream error description onto the user-facing taxonomy."""
    text = message or ""
    if "API key" in text or "API_KEY" in text:
        return UpstreamConfigError()
    if "SAFETY" in text or "blocked" in text.lower():
        return SafetyBlockedError()
    return UpstreamError()


class MnemonicService:
    """
    validate -> sanitize -> prompt -> Gemini (raced against its timeout)
    -> screen output -> parse.
    """

    def __init__(self, client: Optional[GeminiClient] = None):
        self.client = client or build_client()

    async def generate(self, topic: Any, language: Any, client_addr: str = "unknown") -> GeneratedMnemonic:
        result = validate_topic(topic)
        if not result.is_valid:
            if result.flagged:
                raise FlaggedInputError(result.error)
            raise InputValidationError(result.error)
        result = validate_language(language)
        if not result.is_valid:
            raise InputValidationError(result.error)

        clean_topic = sanitize_input(topic)
        prompt = build_secure_prompt(clean_topic, language)
        logger.info("mnemonic_generate_start client=%s language=%s topic_len=%d", client_addr, language, len(clean_topic))

        try:
            text = await self.client.generate(prompt)
        except MnemonicError as e:
            log_security_event(
                "upstream_failure",
                kind=type(e).__name__,
                topic=clean_topic,
                client=client_addr,
            )
            raise
        except GeminiAPIError as e:
            error = classify_upstream_error(str(e))
            log_security_event(
                "upstream_failure",
                kind=type(error).__name__,
                error=str(e),
                topic=clean_topic,
                client=client_addr,
            )
            raise error from e

        if not validate_output(text):
            log_security_event("output_validation_failed", topic=clean_topic, client=client_addr, chars=len(text))
            raise OutputValidationError()

        data = parse_mnemonic_response(text)
        logger.info("mnemonic_generate_ok client=%s chars=%d", client_addr, len(text))
        return GeneratedMnemonic(data=data, topic=clean_topic, language=language)
