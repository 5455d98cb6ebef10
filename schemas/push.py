from __future__ import annotations
from pydantic import BaseModel, Field

from typing import List, Optional


class SendOptions(BaseModel):
    """Web push delivery hints; mapped onto webpush headers and notification."""

    urgency: str = "normal"  # very-low | low | normal | high
    ttl_seconds: Optional[int] = None
    tag: Optional[str] = None
    renotify: bool = False
    require_interaction: bool = False


class SendResponse(BaseModel):
    success: bool
    error_code: Optional[str] = None
    message_id: Optional[str] = None


class MulticastResult(BaseModel):
    success_count: int = 0
    failure_count: int = 0
    responses: List[SendResponse] = Field(default_factory=list)


class DispatchResult(BaseModel):
    success_count: int = 0
    failure_count: int = 0
    invalid_tokens: List[str] = Field(default_factory=list)
