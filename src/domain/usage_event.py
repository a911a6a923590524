"""Usage Event Domain Entity

Immutable append-only record of consumption. The source of truth for
invoicing; Subscription.usage_consumed is a cache derived from it.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, ForeignKey, JSON, Numeric, String, UniqueConstraint
from src.domain.base import BaseModel, BigIntPK
from src.domain.catalog import BillingModel


class UsageEvent(BaseModel, table=True):
    """
    Usage Event - One priced unit of consumption

    Domain Rules:
    - Events are immutable (append-only)
    - quantity > 0
    - unit_cost is snapshotted at write time; later pricing changes never
      alter it
    - idempotency_key is unique per subscription (caller retries are
      rejected, not double-counted)
    """

    __tablename__ = "usage_events"
    __table_args__ = (
        CheckConstraint('quantity > 0', name='quantity_positive'),
        UniqueConstraint('subscription_id', 'idempotency_key', name='uq_usage_events_subscription_key'),
        Index('ix_usage_events_subscription_recorded', 'subscription_id', 'recorded_at'),
        Index('ix_usage_events_client_recorded', 'client_id', 'recorded_at'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
        description="Unique event identifier (auto-increment)"
    )

    subscription_id: int = Field(
        sa_column=Column(BigIntPK, ForeignKey("subscriptions.id"), nullable=False),
        description="Subscription the usage is charged to"
    )

    client_id: str = Field(
        sa_column=Column(String(36), nullable=False),
        description="Client ID (denormalized for window aggregation)"
    )

    service_id: str = Field(
        sa_column=Column(String(36), nullable=False),
        description="Service ID (denormalized for invoice grouping)"
    )

    quantity: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Units consumed (minutes, calls, messages, posts)"
    )

    unit_cost: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Unit price snapshot at recording time"
    )

    total_cost: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="quantity * unit_cost"
    )

    billing_model: BillingModel = Field(
        description="Billing model the unit price was resolved under"
    )

    idempotency_key: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Caller-generated key, e.g. the originating call or message ID"
    )

    event_metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
        description="Free-form context from the calling pipeline"
    )

    recorded_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Recording timestamp (UTC, immutable)"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "subscription_id": 1,
                "quantity": "3.000000",
                "unit_cost": "12.000000",
                "total_cost": "36.000000",
                "billing_model": "per_minute",
                "idempotency_key": "call_8f2a91",
                "event_metadata": {"call_id": "call_8f2a91", "direction": "outbound"},
                "recorded_at": "2024-02-03T10:15:00Z"
            }
        }


QUANTITY_QUANTUM = Decimal("0.000001")
MAX_QUANTITY = Decimal("1000000000000")  # Numeric(18, 6) leaves 12 integer digits


def is_valid_quantity(quantity: Decimal) -> bool:
    """Positive and storable in Numeric(18, 6) without rounding"""
    if not quantity.is_finite() or quantity <= 0 or quantity >= MAX_QUANTITY:
        return False
    return quantity == quantity.quantize(QUANTITY_QUANTUM)
