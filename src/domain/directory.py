"""Reseller Directory Domain Entities

Resellers ("admins") own clients and earn commission on what their clients
pay. This service reads them; it never creates them on its own.
"""

from datetime import datetime
from decimal import Decimal
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String
from src.domain.base import BaseModel, generate_uuid


class Reseller(BaseModel, table=True):
    """
    Reseller - Admin who resells services to their own clients

    Domain Rules:
    - commission_rate is a percentage between 0 and 100
    - Inactive resellers keep their history but earn nothing new
    """

    __tablename__ = "resellers"
    __table_args__ = (
        CheckConstraint(
            'commission_rate >= 0 AND commission_rate <= 100',
            name='commission_rate_percentage',
        ),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Reseller identifier (UUID)"
    )

    company_name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Reseller company name"
    )

    commission_rate: Decimal = Field(
        default=Decimal("20.00"),
        sa_column=Column(Numeric(5, 2), nullable=False),
        description="Commission percentage earned on paid invoices (0-100)"
    )

    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        json_schema_extra = {
            "example": {
                "id": "5b1c1f7e-3f0e-4a53-9d57-0f7c54a1a001",
                "company_name": "Acme Telecom Partners",
                "commission_rate": "15.00",
                "is_active": True,
                "created_at": "2024-01-01T00:00:00Z"
            }
        }


class Client(BaseModel, table=True):
    """
    Client - End customer managed by exactly one reseller
    """

    __tablename__ = "clients"
    __table_args__ = (
        Index('ix_clients_admin_id', 'admin_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Client identifier (UUID)"
    )

    admin_id: str = Field(
        sa_column=Column(String(36), ForeignKey("resellers.id"), nullable=False),
        description="Owning reseller ID"
    )

    company_name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Client company name"
    )

    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
