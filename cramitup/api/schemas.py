from pydantic import BaseModel, Field
from typing import Any, Dict, Optional


class GenerateRequest(BaseModel):
    # Loosely typed so the validators, not the framework, word the 400s.
    topic: Any = None
    language: Any = "English"


class GenerateResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any] = Field(..., description="Mnemonic payload with primary and alternatives")
    topic: str
    language: str


class FeedbackRequest(BaseModel):
    rating: Any = None
    topic: Optional[Any] = None


class FeedbackResponse(BaseModel):
    success: bool = True
    message: str


class HealthResponse(BaseModel):
    status: str = "healthy"
    timestamp: str


class ErrorResponse(BaseModel):
    error: str
