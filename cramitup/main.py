import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from cramitup.api.routes import router as api_router
from cramitup.core.config import settings
from cramitup.core.errors import MnemonicError, RateLimitExceeded
from cramitup.core.logging import configure_logging
from cramitup.core.rate_limit import RateLimiter
from cramitup.middleware.metrics import MetricsMiddleware
from cramitup.middleware.rate_limit import RateLimitMiddleware
from cramitup.middleware.security_headers import SecurityHeadersMiddleware
from cramitup.services.mnemonic import MnemonicService


def check_startup_config():
    if not settings.GEMINI_API_KEY:
        logging.critical("startup_aborted reason=GEMINI_API_KEY_missing")
        raise SystemExit(1)


@asynccontextmanager
async def _server_lifespan(app: FastAPI):
    check_startup_config()
    logging.info("🚀 CramItUp backend starting on port %s", settings.PORT)
    yield


async def _mnemonic_error_handler(request: Request, exc: MnemonicError):
    headers = None
    if isinstance(exc, RateLimitExceeded):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse({"error": exc.message}, status_code=exc.status_code, headers=headers)


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    logging.warning("request_body_invalid path=%s errors=%d", request.url.path, len(exc.errors()))
    return JSONResponse({"error": "Invalid request body"}, status_code=400)


def cors_origins():
    if settings.is_production:
        return settings.ALLOWED_ORIGINS
    return ["*"]


def create_app(service: Optional[MnemonicService] = None, exit_without_api_key: bool = True) -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="CramItUp",
        version="1.0.0",
        lifespan=_server_lifespan if exit_without_api_key else None,
    )

    app.state.mnemonic_service = service or MnemonicService()
    app.state.strict_limiter = RateLimiter(
        max_requests=settings.RATE_LIMIT_STRICT_MAX,
        window_seconds=settings.RATE_LIMIT_STRICT_WINDOW_SECONDS,
        message="Request limit exceeded. Please try again later. 🚫",
    )

    # added innermost first; security headers wrap everything
    app.add_middleware(
        RateLimitMiddleware,
        standard=RateLimiter(
            max_requests=settings.RATE_LIMIT_STANDARD_MAX,
            window_seconds=settings.RATE_LIMIT_STANDARD_WINDOW_SECONDS,
            message="Too many requests from this IP, please try again later! 😴",
        ),
        feedback=RateLimiter(
            max_requests=settings.RATE_LIMIT_FEEDBACK_MAX,
            window_seconds=settings.RATE_LIMIT_FEEDBACK_WINDOW_SECONDS,
            message="Too many feedback submissions. Please try again later! 📝",
        ),
    )
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-Id"],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    app.add_exception_handler(MnemonicError, _mnemonic_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    logging.info(
        "gemini_configured model=%s api_key_present=%s environment=%s",
        settings.GEMINI_MODEL,
        bool(settings.GEMINI_API_KEY),
        settings.ENVIRONMENT,
    )

    app.include_router(api_router, prefix="/api")
    return app


app = create_app()
