"""
Pydantic Schemas for Request/Response Validation

Order payloads are validated by hand in the order endpoint (not as a
FastAPI body parameter) so that readiness is checked before the body is
looked at and validation failures surface as ``InvalidPayload``.
"""

import re
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

PHONE_MIN_DIGITS = 7
PHONE_MAX_DIGITS = 15


def normalize_phone(phone: str) -> str:
    """Strip every non-digit character: ``"+91 98765-43210"`` -> ``"919876543210"``."""
    return re.sub(r"\D", "", phone)


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class OrderItem(BaseModel):
    """Single line of an order. Only the quantity and price are range-checked."""
    name: Optional[str] = Field(None, examples=["Margherita"])
    qty: Optional[float] = Field(None, gt=0, examples=[2])
    price: Optional[float] = Field(None, ge=0, examples=[150])


class OrderCreate(BaseModel):
    """Inbound order submission."""

    phone: str = Field(..., examples=["+91 98765-43210"])
    name: Optional[str] = Field(None, examples=["Asha"])
    items: List[OrderItem] = Field(..., min_length=1)
    total: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = Field(None, examples=["less spicy"])

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        digits = normalize_phone(v)
        if not PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS:
            raise ValueError(
                f"Phone number must have {PHONE_MIN_DIGITS}-{PHONE_MAX_DIGITS} digits"
            )
        return v

    @property
    def phone_digits(self) -> str:
        return normalize_phone(self.phone)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class StatusResponse(BaseModel):
    """Messaging session status."""
    ready: bool
    info: Optional[dict[str, Any]] = None


class OrderSubmitResponse(BaseModel):
    """Response after the order message was accepted by WhatsApp."""
    success: bool = True
    id: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    provider: str
    state: str
    timestamp: datetime
