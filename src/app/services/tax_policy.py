"""Tax Policy Interface

Pluggable tax computation for invoice generation.
"""

from abc import ABC, abstractmethod
from decimal import Decimal


class TaxPolicy(ABC):

    @abstractmethod
    def tax_for(self, subtotal: Decimal) -> Decimal:
        """
        Compute tax on an invoice subtotal

        Returns:
            Tax amount, already rounded to money precision
        """
        pass
