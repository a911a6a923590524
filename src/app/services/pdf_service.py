"""PDF Generation Service Interface

Defines the contract for rendering invoices as PDF documents.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.directory import Client, Reseller
from src.domain.invoice import Invoice
from src.domain.invoice_line import InvoiceLine


class PdfService(ABC):

    @abstractmethod
    def render_invoice(
        self,
        invoice: Invoice,
        invoice_lines: List[InvoiceLine],
        reseller: Optional[Reseller] = None,
        client: Optional[Client] = None,
    ) -> bytes:
        """
        Render an invoice PDF

        Args:
            invoice: Invoice with totals and status
            invoice_lines: Line items of the invoice
            reseller: Issuing reseller, shown in the header
            client: Billed client, shown under "Bill To"

        Returns:
            PDF document as bytes
        """
        pass
