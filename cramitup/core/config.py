import os
from typing import List
from dotenv import load_dotenv

load_dotenv()


def _split_origins(raw: str) -> List[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings:
    PORT: int = int(os.environ.get("PORT", 3001))
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development").strip().lower()
    ALLOWED_ORIGINS: List[str] = _split_origins(os.environ.get("ALLOWED_ORIGINS", ""))

    GEMINI_API_KEY: str = os.environ.get("GEMINI_API_KEY", "").strip()
    GEMINI_MODEL: str = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
    GEMINI_BASE_URL: str = os.environ.get("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com")
    GEMINI_TIMEOUT_SECONDS: float = float(os.environ.get("GEMINI_TIMEOUT_SECONDS", 30))

    MAX_TOPIC_LEN: int = int(os.environ.get("MAX_TOPIC_LEN", 500))
    MAX_OUTPUT_LEN: int = int(os.environ.get("MAX_OUTPUT_LEN", 10000))

    # Per-address windows: generate (standard), feedback, and flagged requests (strict)
    RATE_LIMIT_STANDARD_MAX: int = int(os.environ.get("RATE_LIMIT_STANDARD_MAX", 30))
    RATE_LIMIT_STANDARD_WINDOW_SECONDS: int = int(os.environ.get("RATE_LIMIT_STANDARD_WINDOW_SECONDS", 15 * 60))
    RATE_LIMIT_FEEDBACK_MAX: int = int(os.environ.get("RATE_LIMIT_FEEDBACK_MAX", 60))
    RATE_LIMIT_FEEDBACK_WINDOW_SECONDS: int = int(os.environ.get("RATE_LIMIT_FEEDBACK_WINDOW_SECONDS", 15 * 60))
    RATE_LIMIT_STRICT_MAX: int = int(os.environ.get("RATE_LIMIT_STRICT_MAX", 10))
    RATE_LIMIT_STRICT_WINDOW_SECONDS: int = int(os.environ.get("RATE_LIMIT_STRICT_WINDOW_SECONDS", 60 * 60))

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


settings = Settings()
