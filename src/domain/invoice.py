"""Invoice Domain Entity

Tracks billing invoices, their payment status and the status state machine.
"""

from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Numeric, String, Date
from src.domain.base import BaseModel, BigIntPK


class InvoiceStatus(str, Enum):
    """Invoice status types"""
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


INVOICE_TRANSITIONS: Dict[InvoiceStatus, FrozenSet[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.CANCELLED}),
    InvoiceStatus.SENT: frozenset({InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED}),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.PAID}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}


def can_transition(current: InvoiceStatus, target: InvoiceStatus) -> bool:
    return target in INVOICE_TRANSITIONS[current]


def period_key(admin_id: str, client_id: str, period_start: datetime, period_end: datetime) -> str:
    """Uniqueness key for one bill per (reseller, client, window)"""
    return f"{admin_id}|{client_id}|{period_start.isoformat()}|{period_end.isoformat()}"


class Invoice(BaseModel, table=True):
    """
    Invoice - Bill for one client's usage over a closed window

    Domain Rules:
    - invoice_number must be unique
    - total_amount = subtotal + tax_amount
    - subtotal = sum of invoice_lines.total_price
    - Status transitions follow INVOICE_TRANSITIONS; paid and cancelled
      are terminal
    - Amounts and lines never change once status leaves draft
    - period_key is unique while the invoice is not cancelled
    """

    __tablename__ = "invoices"
    __table_args__ = (
        Index('ix_invoices_admin_id', 'admin_id'),
        Index('ix_invoices_client_id', 'client_id'),
        Index('ix_invoices_status', 'status'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
        description="Unique invoice identifier (auto-increment)"
    )

    admin_id: str = Field(
        sa_column=Column(String(36), ForeignKey("resellers.id"), nullable=False),
        description="Issuing reseller ID"
    )

    client_id: str = Field(
        sa_column=Column(String(36), ForeignKey("clients.id"), nullable=False),
        description="Billed client ID"
    )

    invoice_number: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Unique invoice number (e.g., INV-2024-000001)"
    )

    status: InvoiceStatus = Field(
        default=InvoiceStatus.DRAFT,
        description="Invoice status (draft, sent, paid, overdue, cancelled)"
    )

    period_start: datetime = Field(description="Billing window start (inclusive, UTC)")

    period_end: datetime = Field(description="Billing window end (exclusive, UTC)")

    period_key: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True, unique=True),
        description="Set while not cancelled; enforces one bill per window"
    )

    subtotal: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Sum of line item totals"
    )

    tax_amount: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Tax computed by the tax policy"
    )

    total_amount: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="subtotal + tax_amount"
    )

    currency: str = Field(
        default="INR",
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217)"
    )

    invoice_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Date the invoice was generated"
    )

    due_date: Optional[date] = Field(
        default=None,
        sa_column=Column(Date, nullable=True),
        description="Payment due date"
    )

    sent_at: Optional[datetime] = Field(default=None)

    paid_at: Optional[datetime] = Field(default=None)

    payment_method: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
    )

    notes: Optional[str] = Field(
        default=None,
        sa_column=Column(String(1000), nullable=True),
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)

    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "admin_id": "5b1c1f7e-3f0e-4a53-9d57-0f7c54a1a001",
                "client_id": "c0a8012e-5d6f-4c1e-9a51-2b0f5d7d0c11",
                "invoice_number": "INV-2024-000001",
                "status": "sent",
                "subtotal": "1000.000000",
                "tax_amount": "180.000000",
                "total_amount": "1180.000000",
                "currency": "INR",
                "invoice_date": "2024-02-01",
                "due_date": "2024-03-02"
            }
        }
