"""Request schemas for Billing API

Pydantic models for validating incoming HTTP requests.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class ConsumeUsageRequestSchema(BaseModel):
    """
    Request schema for consuming quota

    Used for POST /usage:consume endpoint.
    """

    subscription_id: int = Field(
        ...,
        gt=0,
        description="Subscription identifier"
    )

    quantity: Decimal = Field(
        ...,
        gt=0,
        description="Units to consume (must be > 0)"
    )

    idempotency_key: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Caller-generated key, e.g. the call or message ID"
    )

    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Optional context stored on the usage event"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "subscription_id": 1,
                "quantity": "3",
                "idempotency_key": "call_8f2a91",
                "metadata": {"direction": "outbound"}
            }
        }


class EnsureResetRequestSchema(BaseModel):
    """Request schema for POST /usage:ensureReset"""

    subscription_id: int = Field(..., gt=0)


class GenerateInvoiceRequestSchema(BaseModel):
    """
    Request schema for generating an invoice

    Used for POST /billing:generateInvoice endpoint.
    """

    reseller_id: str = Field(..., min_length=1, description="Issuing reseller")
    client_id: str = Field(..., min_length=1, description="Billed client")
    period_start: datetime = Field(..., description="Window start, inclusive (UTC)")
    period_end: datetime = Field(..., description="Window end, exclusive (UTC)")
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("period_start", "period_end")
    @classmethod
    def normalize_period(cls, v):
        return to_naive_utc(v)

    class Config:
        json_schema_extra = {
            "example": {
                "reseller_id": "5b1c1f7e-3f0e-4a53-9d57-0f7c54a1a001",
                "client_id": "c0a8012e-5d6f-4c1e-9a51-2b0f5d7d0c11",
                "period_start": "2024-01-01T00:00:00",
                "period_end": "2024-02-01T00:00:00"
            }
        }


class InvoiceActionRequestSchema(BaseModel):
    """Request schema for POST /billing:sendInvoice and /billing:cancelInvoice"""

    invoice_id: int = Field(..., gt=0)


class MarkPaidRequestSchema(BaseModel):
    """
    Request schema for recording a payment

    Used for POST /billing:markPaid endpoint.
    """

    invoice_id: int = Field(..., gt=0)
    paid_at: Optional[datetime] = Field(default=None, description="Defaults to now")
    payment_method: Optional[str] = Field(default=None, max_length=50)

    @field_validator("paid_at")
    @classmethod
    def normalize_paid_at(cls, v):
        return to_naive_utc(v)
