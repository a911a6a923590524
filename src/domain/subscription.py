"""Subscription Domain Entity

A client's assignment of a priced service. Carries the running usage
counter, the quota and the reset schedule.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, ForeignKey, Integer, Numeric, String, UniqueConstraint
from src.domain.base import BaseModel, BigIntPK


class ResetPeriod(str, Enum):
    """How often the usage counter returns to zero"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    NEVER = "never"


class QuotaMode(str, Enum):
    """Explicit quota state; replaces overloading usage_limit = 0"""
    UNLIMITED = "unlimited"
    LIMITED = "limited"
    DISABLED = "disabled"


class Subscription(BaseModel, table=True):
    """
    Subscription - A client's enrollment in one service

    Domain Rules:
    - usage_consumed >= 0, and only the usage ledger and the reset
      scheduler change it (compare-and-swap on version)
    - usage_consumed is a cache of the usage events recorded since
      last_reset_at
    - One subscription per (client_id, service_id)
    - Never hard-deleted while invoices reference it; deactivate instead
    - quota_mode NULL is a legacy row: usage_limit 0 means unlimited
    """

    __tablename__ = "subscriptions"
    __table_args__ = (
        CheckConstraint('usage_consumed >= 0', name='usage_consumed_non_negative'),
        CheckConstraint('usage_limit >= 0', name='usage_limit_non_negative'),
        UniqueConstraint('client_id', 'service_id', name='uq_subscriptions_client_service'),
        Index('ix_subscriptions_client_id', 'client_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
        description="Unique subscription identifier (auto-increment)"
    )

    client_id: str = Field(
        sa_column=Column(String(36), ForeignKey("clients.id"), nullable=False),
        description="Client ID"
    )

    service_id: str = Field(
        sa_column=Column(String(36), ForeignKey("services.id"), nullable=False),
        description="Service ID"
    )

    plan_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), ForeignKey("service_plans.id"), nullable=True),
        description="Optional plan ID"
    )

    assigned_by: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), ForeignKey("resellers.id"), nullable=True),
        description="Reseller that assigned the service"
    )

    is_active: bool = Field(default=True)

    quota_mode: Optional[QuotaMode] = Field(
        default=None,
        description="unlimited, limited or disabled (NULL = derive from usage_limit)"
    )

    usage_limit: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Quota per reset period"
    )

    usage_consumed: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Units consumed since last_reset_at"
    )

    reset_period: ResetPeriod = Field(
        default=ResetPeriod.MONTHLY,
        description="daily, weekly, monthly or never"
    )

    last_reset_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Start anchor of the current accounting period (UTC)"
    )

    timezone: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="IANA zone for period boundaries (NULL = service default)"
    )

    expires_at: Optional[datetime] = Field(
        default=None,
        description="Subscription expiry (UTC); expired subscriptions are inactive"
    )

    version: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Optimistic concurrency token, bumped on every counter change"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)

    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def effective_quota_mode(self) -> QuotaMode:
        if self.quota_mode is not None:
            return self.quota_mode
        if Decimal(self.usage_limit or 0) > 0:
            return QuotaMode.LIMITED
        return QuotaMode.UNLIMITED

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def is_usable(self, now: datetime) -> bool:
        return bool(self.is_active) and not self.is_expired(now)

    def admits(self, quantity: Decimal) -> bool:
        """Whether quantity more units fit in the quota, all or nothing"""
        mode = self.effective_quota_mode()
        if mode == QuotaMode.UNLIMITED:
            return True
        if mode == QuotaMode.DISABLED:
            return False
        return Decimal(self.usage_consumed) + quantity <= Decimal(self.usage_limit)

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "client_id": "c0a8012e-5d6f-4c1e-9a51-2b0f5d7d0c11",
                "service_id": "0d8e7c1a-7c57-4a3e-8a43-2f3f2f1e9b10",
                "plan_id": None,
                "is_active": True,
                "quota_mode": "limited",
                "usage_limit": "100.000000",
                "usage_consumed": "10.000000",
                "reset_period": "monthly",
                "last_reset_at": "2024-02-01T00:00:00Z",
                "timezone": "Asia/Kolkata",
                "version": 4
            }
        }
