"""Price resolution rules

Pure functions: given a service, an optional plan and an optional reseller
override, pick the effective unit price. No I/O and no state.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional
from src.domain.catalog import BillingModel, ResellerPricing, Service, ServicePlan

UNIT_PRICE_QUANTUM = Decimal("0.0001")
MONEY_QUANTUM = Decimal("0.01")


class PriceSource(str, Enum):
    """Which resolution path produced a unit price"""
    CUSTOM = "custom"
    MARKUP = "markup"
    BASE = "base"


@dataclass(frozen=True)
class ResolvedPrice:
    unit_price: Decimal
    billing_model: BillingModel
    source: PriceSource


def quantize_unit_price(value: Decimal) -> Decimal:
    return Decimal(value).quantize(UNIT_PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def service_price(service: Service, plan: Optional[ServicePlan] = None) -> Decimal:
    """Plan price_per_unit when a plan with a price is attached, else the base price"""
    if plan is not None and plan.price_per_unit is not None:
        return Decimal(plan.price_per_unit)
    return Decimal(service.base_price)


def resolve_unit_price(
    service: Service,
    plan: Optional[ServicePlan] = None,
    override: Optional[ResellerPricing] = None,
) -> ResolvedPrice:
    """
    Resolve the effective unit price, first match wins:

    1. reseller custom price
    2. reseller markup over the service price
    3. the service price itself
    """
    if override is not None:
        if override.custom_price_per_unit is not None:
            return ResolvedPrice(
                unit_price=quantize_unit_price(override.custom_price_per_unit),
                billing_model=service.pricing_model,
                source=PriceSource.CUSTOM,
            )

        markup = Decimal(override.markup_percentage or 0)
        if markup != 0:
            price = service_price(service, plan) * (Decimal(1) + markup / Decimal(100))
            return ResolvedPrice(
                unit_price=quantize_unit_price(price),
                billing_model=service.pricing_model,
                source=PriceSource.MARKUP,
            )

    return ResolvedPrice(
        unit_price=quantize_unit_price(service_price(service, plan)),
        billing_model=service.pricing_model,
        source=PriceSource.BASE,
    )


def commission_amount(invoice_total: Decimal, commission_rate: Decimal) -> Decimal:
    """Reseller share of a paid invoice: total * rate / 100, money precision"""
    return quantize_money(Decimal(invoice_total) * Decimal(commission_rate) / Decimal(100))
