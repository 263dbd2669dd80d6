import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from cramitup.api.schemas import (
    ErrorResponse,
    FeedbackRequest,
    FeedbackResponse,
    GenerateRequest,
    GenerateResponse,
    HealthResponse,
)
from cramitup.core.errors import InputValidationError, RateLimitExceeded
from cramitup.core.logging import log_security_event
from cramitup.core.rate_limit import RateLimiter
from cramitup.core.security import sanitize_input
from cramitup.middleware.rate_limit import client_address
from cramitup.services.mnemonic import FlaggedInputError, MnemonicService

router = APIRouter()

FEEDBACK_RATINGS = ("up", "down")

_error_responses = {
    400: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def get_mnemonic_service(request: Request) -> MnemonicService:
    return request.app.state.mnemonic_service


def get_strict_limiter(request: Request) -> RateLimiter:
    return request.app.state.strict_limiter


@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="healthy", timestamp=datetime.now(timezone.utc).isoformat())


@router.post("/generate", response_model=GenerateResponse, responses=_error_responses)
async def generate(
    req: GenerateRequest,
    request: Request,
    service: MnemonicService = Depends(get_mnemonic_service),
    strict_limiter: RateLimiter = Depends(get_strict_limiter),
):
    addr = client_address(request)
    if strict_limiter.is_blocked(addr):
        log_security_event("strict_limit_exceeded", client=addr)
        raise RateLimitExceeded(strict_limiter.message, retry_after=strict_limiter.retry_after(addr))

    try:
        result = await service.generate(req.topic, req.language, client_addr=addr)
    except FlaggedInputError:
        # flagged attempts count against the strict window
        strict_limiter.allow(addr)
        raise

    return GenerateResponse(success=True, data=result.data, topic=result.topic, language=result.language)


@router.post("/feedback", response_model=FeedbackResponse, responses={400: {"model": ErrorResponse}})
async def feedback(req: FeedbackRequest, request: Request):
    if req.rating not in FEEDBACK_RATINGS:
        raise InputValidationError("Invalid rating. Must be 'up' or 'down'")
    topic = sanitize_input(req.topic)[:100]
    logging.info(
        "feedback_received rating=%s topic=%r client=%s",
        req.rating,
        topic,
        client_address(request),
    )
    return FeedbackResponse(success=True, message="Thanks for your feedback! 🙏")
