"""Service Catalog Domain Entities

Services are what resellers assign to clients. A service carries a base
price and billing model; plans may override the unit price; resellers may
override both with a custom price or a markup.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Numeric, String, UniqueConstraint
from src.domain.base import BaseModel, generate_uuid


class ServiceCategory(str, Enum):
    VOICE = "voice"
    MESSAGING = "messaging"
    SOCIAL_MEDIA = "social_media"


class BillingModel(str, Enum):
    """How a service's unit is counted"""
    PER_MINUTE = "per_minute"
    PER_CALL = "per_call"
    PER_MESSAGE = "per_message"
    MONTHLY = "monthly"


class PlanTier(str, Enum):
    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class Service(BaseModel, table=True):
    """
    Service - Priced capability in the catalog (voice agent, WhatsApp, ...)

    Domain Rules:
    - base_price is the price per unit of pricing_model
    - Inactive services cannot be priced for new consumption
    """

    __tablename__ = "services"

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Service identifier (UUID)"
    )

    name: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True),
        description="Display name, used as invoice line description"
    )

    category: ServiceCategory = Field(
        description="Service category (voice, messaging, social_media)"
    )

    pricing_model: BillingModel = Field(
        description="Billing model of the base price"
    )

    base_price: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Base price per unit"
    )

    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        json_schema_extra = {
            "example": {
                "id": "0d8e7c1a-7c57-4a3e-8a43-2f3f2f1e9b10",
                "name": "AI Voice Telecaller",
                "category": "voice",
                "pricing_model": "per_minute",
                "base_price": "10.000000",
                "is_active": True
            }
        }


class ServicePlan(BaseModel, table=True):
    """
    Service Plan - Tiered variant of a service

    price_per_unit, when set, replaces the service base price for
    subscriptions attached to this plan.
    """

    __tablename__ = "service_plans"
    __table_args__ = (
        Index('ix_service_plans_service_id', 'service_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
    )

    service_id: str = Field(
        sa_column=Column(String(36), ForeignKey("services.id", ondelete="CASCADE"), nullable=False),
    )

    plan_name: str = Field(sa_column=Column(String(100), nullable=False))

    plan_tier: Optional[PlanTier] = Field(default=None)

    usage_limit: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(18, 6), nullable=True),
        description="Suggested usage limit for subscriptions on this plan"
    )

    price_per_unit: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(18, 6), nullable=True),
        description="Unit price overriding the service base price"
    )

    monthly_price: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(18, 6), nullable=True),
    )

    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)


class ResellerPricing(BaseModel, table=True):
    """
    Reseller Pricing - A reseller's override for one service

    Domain Rules:
    - At most one row per (admin_id, service_id)
    - custom_price_per_unit, when set, wins over markup
    - markup_percentage applies to the plan/base price otherwise
    """

    __tablename__ = "reseller_pricing"
    __table_args__ = (
        UniqueConstraint('admin_id', 'service_id', name='uq_reseller_pricing_admin_service'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
    )

    admin_id: str = Field(
        sa_column=Column(String(36), ForeignKey("resellers.id", ondelete="CASCADE"), nullable=False),
    )

    service_id: str = Field(
        sa_column=Column(String(36), ForeignKey("services.id", ondelete="CASCADE"), nullable=False),
    )

    markup_percentage: Optional[Decimal] = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(5, 2), nullable=True),
        description="Markup over the service price, in percent"
    )

    custom_price_per_unit: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(18, 6), nullable=True),
        description="Explicit unit price set by the reseller"
    )

    updated_at: datetime = Field(default_factory=datetime.utcnow)
