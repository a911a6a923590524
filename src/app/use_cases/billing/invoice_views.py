"""Invoice response mapping shared by the invoice use cases"""

from typing import List
from src.domain.invoice import Invoice
from src.domain.invoice_line import InvoiceLine
from .dtos import InvoiceLineDTO, InvoiceResponseDTO


def to_line_dto(line: InvoiceLine) -> InvoiceLineDTO:
    return InvoiceLineDTO(
        id=line.id,
        service_id=line.service_id,
        description=line.description,
        quantity=line.quantity,
        unit_price=line.unit_price,
        total_price=line.total_price,
    )


def to_invoice_response(invoice: Invoice, invoice_lines: List[InvoiceLine]) -> InvoiceResponseDTO:
    return InvoiceResponseDTO(
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        reseller_id=invoice.admin_id,
        client_id=invoice.client_id,
        status=invoice.status.value,
        period_start=invoice.period_start,
        period_end=invoice.period_end,
        subtotal=invoice.subtotal,
        tax_amount=invoice.tax_amount,
        total_amount=invoice.total_amount,
        currency=invoice.currency,
        invoice_date=invoice.invoice_date,
        due_date=invoice.due_date,
        sent_at=invoice.sent_at,
        paid_at=invoice.paid_at,
        payment_method=invoice.payment_method,
        notes=invoice.notes,
        line_items=[to_line_dto(line) for line in invoice_lines],
        created_at=invoice.created_at,
    )
