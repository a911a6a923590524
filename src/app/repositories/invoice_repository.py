"""Invoice Repository Interface

Defines the contract for invoice persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import List, Optional
from src.domain.invoice import Invoice


class InvoiceRepository(ABC):

    @abstractmethod
    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Raises:
            IntegrityError: If period_key or invoice_number already exists
        """
        pass

    @abstractmethod
    async def get_by_id(self, invoice_id: int, for_update: bool = False) -> Optional[Invoice]:
        pass

    @abstractmethod
    async def update(self, invoice: Invoice) -> Invoice:
        pass

    @abstractmethod
    async def exists_active_for_period(
        self, admin_id: str, client_id: str, period_start: datetime, period_end: datetime
    ) -> bool:
        """True if a non-cancelled invoice covers exactly this window"""
        pass

    @abstractmethod
    async def generate_invoice_number(self, year: int) -> str:
        """Next number in the INV-YYYY-NNNNNN sequence"""
        pass

    @abstractmethod
    async def list_paid_for_reseller(
        self, admin_id: str, paid_from: datetime, paid_to: datetime
    ) -> List[Invoice]:
        """Paid invoices of a reseller with paid_at in [paid_from, paid_to)"""
        pass

    @abstractmethod
    async def list_past_due(self, today: date) -> List[Invoice]:
        """Sent invoices whose due_date is before today"""
        pass
