"""RenderInvoicePdf Use Case

Renders any invoice as a PDF; draft invoices come out marked as proforma.
"""

import base64
from datetime import datetime
from libs.result import Result, Return, Error
from src.app.repositories.directory_repository import DirectoryRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.services.pdf_service import PdfService
from .dtos import InvoicePdfResponseDTO
from .invoice_transitions import invoice_not_found


class RenderInvoicePdf:
    """
    Use Case: Render an invoice PDF

    Flow:
    1. Retrieve invoice, its lines, reseller and client
    2. Render with the PDF service
    3. Return the document as base64
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        invoice_line_repo: InvoiceLineRepository,
        directory_repo: DirectoryRepository,
        pdf_service: PdfService,
    ):
        self.invoice_repo = invoice_repo
        self.invoice_line_repo = invoice_line_repo
        self.directory_repo = directory_repo
        self.pdf_service = pdf_service

    async def render(self, invoice_id: int) -> Result[bytes]:
        """Raw PDF bytes, for streaming responses"""
        try:
            invoice = await self.invoice_repo.get_by_id(invoice_id)
            if not invoice:
                return Return.err(invoice_not_found(invoice_id))

            invoice_lines = await self.invoice_line_repo.get_by_invoice_id(invoice_id)
            reseller = await self.directory_repo.get_reseller(invoice.admin_id)
            client = await self.directory_repo.get_client(invoice.client_id)

            return Return.ok(
                self.pdf_service.render_invoice(
                    invoice=invoice,
                    invoice_lines=invoice_lines,
                    reseller=reseller,
                    client=client,
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="RENDER_INVOICE_PDF_FAILED",
                    message="Failed to render invoice PDF",
                    reason=str(e),
                )
            )

    async def execute(self, invoice_id: int) -> Result[InvoicePdfResponseDTO]:
        invoice = await self.invoice_repo.get_by_id(invoice_id)
        if not invoice:
            return Return.err(invoice_not_found(invoice_id))

        rendered = await self.render(invoice_id)
        if rendered.is_err():
            return rendered

        return Return.ok(
            InvoicePdfResponseDTO(
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                status=invoice.status.value,
                pdf_base64=base64.b64encode(rendered.value).decode("utf-8"),
                generated_at=datetime.utcnow(),
            )
        )
