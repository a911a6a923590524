from .base import BaseModel, BigIntPK, generate_uuid
from .directory import Reseller, Client
from .catalog import Service, ServicePlan, ResellerPricing, ServiceCategory, BillingModel, PlanTier
from .subscription import Subscription, ResetPeriod, QuotaMode
from .usage_event import UsageEvent
from .invoice import Invoice, InvoiceStatus, INVOICE_TRANSITIONS, can_transition
from .invoice_line import InvoiceLine
from .pricing import PriceSource, ResolvedPrice, resolve_unit_price, commission_amount

__all__ = [
    "BaseModel",
    "BigIntPK",
    "generate_uuid",
    "Reseller",
    "Client",
    "Service",
    "ServicePlan",
    "ResellerPricing",
    "ServiceCategory",
    "BillingModel",
    "PlanTier",
    "Subscription",
    "ResetPeriod",
    "QuotaMode",
    "UsageEvent",
    "Invoice",
    "InvoiceStatus",
    "INVOICE_TRANSITIONS",
    "can_transition",
    "InvoiceLine",
    "PriceSource",
    "ResolvedPrice",
    "resolve_unit_price",
    "commission_amount",
]
