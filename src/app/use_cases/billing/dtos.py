"""Data Transfer Objects for Billing Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from src.domain.catalog import BillingModel


class ConsumeUsageCommandDTO(BaseModel):
    """
    Command DTO for consuming quota on a subscription

    Used as input to ConsumeUsage. quantity is validated by the use case,
    not here, so that a non-positive value surfaces as INVALID_QUANTITY.
    """

    subscription_id: int = Field(
        ...,
        description="Subscription identifier"
    )

    quantity: Decimal = Field(
        ...,
        description="Units to consume (must be > 0)"
    )

    idempotency_key: str = Field(
        ...,
        description="Caller-generated key, e.g. the originating call or message ID"
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
                "metadata": {"call_id": "call_8f2a91", "direction": "outbound"}
            }
        }


class RecordUsageCommandDTO(BaseModel):
    """
    Command DTO for writing a usage event with an already known price

    Used as input to RecordUsage (no quota check).
    """

    subscription_id: int
    quantity: Decimal
    unit_price: Decimal
    billing_model: BillingModel
    idempotency_key: str
    metadata: Optional[Dict[str, Any]] = None


class UsageEventResponseDTO(BaseModel):
    """
    Response DTO for a committed usage event

    Returned by ConsumeUsage and RecordUsage.
    """

    event_id: int
    subscription_id: int
    client_id: str
    service_id: str
    quantity: Decimal
    unit_cost: Decimal
    total_cost: Decimal
    billing_model: str
    idempotency_key: str
    usage_consumed: Decimal = Field(
        ...,
        description="Counter value after this event"
    )
    usage_limit: Decimal
    quota_mode: str
    reset_performed: bool = Field(
        default=False,
        description="True if the period rolled over before this event was admitted"
    )
    recorded_at: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "event_id": 42,
                "subscription_id": 1,
                "client_id": "c0a8012e-5d6f-4c1e-9a51-2b0f5d7d0c11",
                "service_id": "0d8e7c1a-7c57-4a3e-8a43-2f3f2f1e9b10",
                "quantity": "10",
                "unit_cost": "12.0000",
                "total_cost": "120.00",
                "billing_model": "per_minute",
                "idempotency_key": "call_8f2a91",
                "usage_consumed": "10",
                "usage_limit": "100",
                "quota_mode": "limited",
                "reset_performed": True,
                "recorded_at": "2024-02-03T10:15:00Z"
            }
        }


class ResetResultDTO(BaseModel):
    """Response DTO for EnsureCurrentPeriod"""

    subscription_id: int
    reset_performed: bool
    usage_consumed: Decimal
    last_reset_at: datetime


class ResetSweepResultDTO(BaseModel):
    """Response DTO for SweepResets"""

    total_checked: int
    resets_performed: int
    failures: int
    execution_time_ms: int


class ResolvedPriceDTO(BaseModel):
    """Response DTO for ResolvePrice"""

    service_id: str
    plan_id: Optional[str] = None
    reseller_id: Optional[str] = None
    unit_price: Decimal
    billing_model: str
    source: str = Field(
        ...,
        description="Which rule produced the price (custom, markup, base)"
    )


class GenerateInvoiceCommandDTO(BaseModel):
    """
    Command DTO for generating an invoice from usage

    The window is [period_start, period_end) in UTC and must be closed.
    """

    reseller_id: str
    client_id: str
    period_start: datetime
    period_end: datetime
    notes: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "reseller_id": "5b1c1f7e-3f0e-4a53-9d57-0f7c54a1a001",
                "client_id": "c0a8012e-5d6f-4c1e-9a51-2b0f5d7d0c11",
                "period_start": "2024-01-01T00:00:00",
                "period_end": "2024-02-01T00:00:00"
            }
        }


class InvoiceLineDTO(BaseModel):
    """DTO for invoice line item"""

    id: Optional[int] = None
    service_id: Optional[str] = None
    description: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal


class InvoiceResponseDTO(BaseModel):
    """
    Response DTO for invoice operations

    Returned by GenerateInvoice and the status transition use cases.
    """

    invoice_id: int
    invoice_number: str
    reseller_id: str
    client_id: str
    status: str
    period_start: datetime
    period_end: datetime
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency: str
    invoice_date: date
    due_date: Optional[date] = None
    sent_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    line_items: List[InvoiceLineDTO] = Field(default_factory=list)
    created_at: datetime


class MarkInvoicePaidCommandDTO(BaseModel):
    """Command DTO for recording a payment"""

    invoice_id: int
    paid_at: Optional[datetime] = Field(
        default=None,
        description="Payment timestamp (defaults to now)"
    )
    payment_method: Optional[str] = None


class InvoicePdfResponseDTO(BaseModel):
    """Response DTO for RenderInvoicePdf"""

    invoice_id: int
    invoice_number: str
    status: str
    pdf_base64: str
    generated_at: datetime


class OverdueSweepResultDTO(BaseModel):
    """Response DTO for MarkOverdueInvoices"""

    invoices_checked: int
    invoices_marked_overdue: int
    invoice_ids: List[int] = Field(default_factory=list)


class CommissionDTO(BaseModel):
    """Response DTO for commission on one paid invoice"""

    reseller_id: str
    invoice_id: int
    invoice_total: Decimal
    commission_rate: Decimal
    commission: Decimal


class CommissionSummaryDTO(BaseModel):
    """Response DTO for commission over a window of paid invoices"""

    reseller_id: str
    period_start: datetime
    period_end: datetime
    commission_rate: Decimal
    invoice_count: int
    total_invoiced: Decimal
    total: Decimal = Field(
        ...,
        description="Total commission earned in the window"
    )


class UsageDiscrepancyDTO(BaseModel):
    """DTO for a counter that disagrees with its usage events"""

    subscription_id: int
    client_id: str
    counter_value: Decimal
    event_sum: Decimal
    discrepancy: Decimal


class UsageReconciliationResultDTO(BaseModel):
    """Response DTO for ReconcileUsage"""

    total_subscriptions_checked: int
    discrepancies_found: int
    discrepancies: List[UsageDiscrepancyDTO] = Field(default_factory=list)
    reconciliation_time: datetime
    execution_time_ms: int
