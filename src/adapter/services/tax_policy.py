"""Tax Policy Implementations"""

from decimal import Decimal
from src.app.services.tax_policy import TaxPolicy
from src.domain.pricing import quantize_money


class FlatRateTaxPolicy(TaxPolicy):
    """Single percentage applied to the subtotal (e.g. 18% GST)"""

    def __init__(self, rate_percent: Decimal):
        if Decimal(rate_percent) < 0:
            raise ValueError(f"Tax rate must not be negative, got {rate_percent}")
        self.rate_percent = Decimal(rate_percent)

    def tax_for(self, subtotal: Decimal) -> Decimal:
        return quantize_money(Decimal(subtotal) * self.rate_percent / Decimal(100))


class ZeroTaxPolicy(TaxPolicy):

    def tax_for(self, subtotal: Decimal) -> Decimal:
        return Decimal("0.00")


def create_tax_policy(rate_percent) -> TaxPolicy:
    """Flat rate for a positive rate, zero tax otherwise"""
    rate = Decimal(str(rate_percent or 0))
    if rate == 0:
        return ZeroTaxPolicy()
    return FlatRateTaxPolicy(rate)
