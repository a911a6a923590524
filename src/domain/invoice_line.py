"""Invoice Line Domain Entity

Tracks individual line items within an invoice.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Numeric, String
from src.domain.base import BaseModel, BigIntPK


class InvoiceLine(BaseModel, table=True):
    """
    Invoice Line - Individual line item within an invoice

    Domain Rules:
    - Each line item belongs to exactly one invoice
    - Created in the same transaction as its invoice
    - total_price = quantity * unit_price
    - Immutable once invoice leaves draft
    """

    __tablename__ = "invoice_lines"
    __table_args__ = (
        Index('ix_invoice_lines_invoice_id', 'invoice_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
        description="Unique invoice line identifier (auto-increment)"
    )

    invoice_id: int = Field(
        sa_column=Column(BigIntPK, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Invoice"
    )

    service_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), ForeignKey("services.id"), nullable=True),
        description="Billed service, if the line comes from usage"
    )

    description: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Line item description (e.g., 'AI Voice Telecaller (per_minute)')"
    )

    quantity: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Units billed"
    )

    unit_price: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Price per unit (snapshotted on the usage events)"
    )

    total_price: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Total price (quantity * unit_price)"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)
