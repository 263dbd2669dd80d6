"""
HTTP client for the Gemini generateContent endpoint.
"""
import asyncio
import logging
import time
from typing import Any, Dict, Optional

import httpx

from cramitup.core.config import settings
from cramitup.core.errors import UpstreamTimeoutError

logger = logging.getLogger(__name__)

GENERATION_CONFIG = {
    "temperature": 1,
    "topP": 0.95,
    "topK": 64,
    "maxOutputTokens": 8192,
}

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]


MALFORMED_RESPONSE = "Gemini returned a malformed response"


class GeminiAPIError(RuntimeError):
    """Upstream failure; the message is the upstream's own description."""


class GeminiClient:
    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com",
        timeout_seconds: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout_seconds
        self.transport = transport

    @property
    def url(self) -> str:
        return f"{self.base_url}/v1beta/models/{self.model}:generateContent"

    async def generate(self, prompt: str) -> str:
        """
        Run one generateContent call raced against the timeout.
        The losing call is cancelled, which closes its connection.
        Raises UpstreamTimeoutError or GeminiAPIError.
        """
        if not self.api_key:
            raise GeminiAPIError("API key not configured")
        try:
            return await asyncio.wait_for(self._generate(prompt), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(
                "[GEMINI] event=timeout dependency=gemini model=%s timeout_s=%.1f",
                self.model,
                self.timeout,
            )
            raise UpstreamTimeoutError() from None

    async def _generate(self, prompt: str) -> str:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": GENERATION_CONFIG,
            "safetySettings": SAFETY_SETTINGS,
        }
        headers = {"x-goog-api-key": self.api_key}
        # the race in generate() owns the deadline; this only bounds a stuck socket
        timeout = httpx.Timeout(self.timeout + 5)
        start = time.perf_counter()
        logger.info("[GEMINI] event=start dependency=gemini model=%s", self.model)
        async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
            try:
                resp = await client.post(self.url, json=payload, headers=headers)
            except httpx.HTTPError as e:
                logger.exception("[GEMINI] event=error dependency=gemini err=%s", e)
                raise GeminiAPIError(f"Gemini request failed: {e}") from e
        latency_ms = (time.perf_counter() - start) * 1000

        if resp.status_code != 200:
            message = _error_message(resp)
            logger.error(
                "[GEMINI] event=error status=%s dependency=gemini latency_ms=%.2f",
                resp.status_code,
                latency_ms,
            )
            raise GeminiAPIError(message)

        try:
            data = resp.json()
        except ValueError as e:
            logger.error("[GEMINI] event=malformed dependency=gemini reason=not_json")
            raise GeminiAPIError(MALFORMED_RESPONSE) from e
        if not isinstance(data, dict):
            logger.error("[GEMINI] event=malformed dependency=gemini reason=%s", type(data).__name__)
            raise GeminiAPIError(MALFORMED_RESPONSE)
        try:
            text = _extract_text(data)
        except (AttributeError, TypeError) as e:
            logger.error("[GEMINI] event=malformed dependency=gemini err=%s", e)
            raise GeminiAPIError(MALFORMED_RESPONSE) from e
        logger.info(
            "[GEMINI] event=ok dependency=gemini latency_ms=%.2f chars=%d",
            latency_ms,
            len(text),
        )
        return text


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, str) and error.strip():
        return error.strip()
    if not isinstance(error, dict):
        error = {}
    message = error.get("message") or f"Gemini error status {resp.status_code}"
    status = error.get("status")
    # Google reports a bad key as INVALID_ARGUMENT with details naming API_KEY_INVALID
    for detail in error.get("details") or []:
        reason = detail.get("reason") if isinstance(detail, dict) else None
        if reason:
            status = f"{status} {reason}" if status else reason
    return f"{message} ({status})" if status else message


def _extract_text(data: Dict[str, Any]) -> str:
    feedback = data.get("promptFeedback") or {}
    if feedback.get("blockReason"):
        raise GeminiAPIError(f"Prompt was blocked due to {feedback['blockReason']}")

    candidates = data.get("candidates") or []
    if not candidates:
        raise GeminiAPIError("Gemini returned no candidates")
    candidate = candidates[0]
    if candidate.get("finishReason") == "SAFETY":
        raise GeminiAPIError("Response was blocked due to SAFETY")

    parts = (candidate.get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    if not text.strip():
        raise GeminiAPIError("Gemini returned an empty response")
    return text


def build_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> GeminiClient:
    return GeminiClient(
        api_key=settings.GEMINI_API_KEY,
        model=settings.GEMINI_MODEL,
        base_url=settings.GEMINI_BASE_URL,
        timeout_seconds=settings.GEMINI_TIMEOUT_SECONDS,
        transport=transport,
    )
