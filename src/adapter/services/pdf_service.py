"""ReportLab PDF Generation Service Implementation

Renders invoices using the ReportLab library.
"""

from io import BytesIO
from typing import List, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate,
    Table,
    TableStyle,
    Paragraph,
    Spacer,
)

from src.app.services.pdf_service import PdfService
from src.domain.directory import Client, Reseller
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.invoice_line import InvoiceLine

STATUS_COLORS = {
    InvoiceStatus.DRAFT: "#E67E22",
    InvoiceStatus.SENT: "#2980B9",
    InvoiceStatus.PAID: "#27AE60",
    InvoiceStatus.OVERDUE: "#E74C3C",
    InvoiceStatus.CANCELLED: "#95A5A6",
}

COLUMN_WIDTHS = [80 * mm, 25 * mm, 30 * mm, 35 * mm]


class ReportLabPdfService(PdfService):
    """
    ReportLab implementation of PdfService

    Draft invoices are rendered with a PROFORMA label and a disclaimer.
    """

    def __init__(self, fallback_company_name: str = "Reseller"):
        self.fallback_company_name = fallback_company_name

    def render_invoice(
        self,
        invoice: Invoice,
        invoice_lines: List[InvoiceLine],
        reseller: Optional[Reseller] = None,
        client: Optional[Client] = None,
    ) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=20 * mm,
            leftMargin=20 * mm,
            topMargin=20 * mm,
            bottomMargin=20 * mm,
            title=invoice.invoice_number,
        )

        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "TitleStyle",
            parent=styles["Heading1"],
            fontSize=22,
            spaceAfter=10,
            textColor=colors.HexColor("#2C3E50"),
        )
        label_style = ParagraphStyle(
            "LabelStyle",
            parent=styles["Heading2"],
            fontSize=14,
            textColor=colors.HexColor(STATUS_COLORS.get(invoice.status, "#2C3E50")),
            spaceAfter=16,
        )
        normal_style = ParagraphStyle("NormalStyle", parent=styles["Normal"], fontSize=10)
        bold_style = ParagraphStyle(
            "BoldStyle",
            parent=styles["Normal"],
            fontSize=10,
            fontName="Helvetica-Bold",
        )

        is_proforma = invoice.status == InvoiceStatus.DRAFT
        elements = [
            Paragraph(reseller.company_name if reseller else self.fallback_company_name, title_style),
            Spacer(1, 6 * mm),
            Paragraph("PROFORMA INVOICE" if is_proforma else f"INVOICE ({invoice.status.value.upper()})", label_style),
            self._details_table(invoice),
            Spacer(1, 8 * mm),
            Paragraph("Bill To:", bold_style),
            Paragraph(client.company_name if client else f"Client ID: {invoice.client_id}", normal_style),
            Spacer(1, 8 * mm),
            self._lines_table(invoice, invoice_lines),
            Spacer(1, 4 * mm),
            self._totals_table(invoice),
        ]

        if invoice.notes:
            elements.append(Spacer(1, 8 * mm))
            elements.append(Paragraph(f"Notes: {invoice.notes}", normal_style))

        if is_proforma:
            elements.append(Spacer(1, 12 * mm))
            elements.append(
                Paragraph(
                    "<i>This is a proforma invoice for preview purposes only. "
                    "It is not a legally binding document until officially issued.</i>",
                    ParagraphStyle(
                        "FooterNote",
                        parent=styles["Normal"],
                        fontSize=9,
                        textColor=colors.HexColor("#95A5A6"),
                    ),
                )
            )

        doc.build(elements)
        pdf_bytes = buffer.getvalue()
        buffer.close()

        return pdf_bytes

    @staticmethod
    def _details_table(invoice: Invoice) -> Table:
        rows = [
            ["Invoice Number:", invoice.invoice_number],
            ["Invoice Date:", invoice.invoice_date.strftime("%Y-%m-%d")],
            [
                "Billing Period:",
                f"{invoice.period_start.strftime('%Y-%m-%d %H:%M')} to "
                f"{invoice.period_end.strftime('%Y-%m-%d %H:%M')} UTC",
            ],
            ["Currency:", invoice.currency],
        ]
        if invoice.due_date:
            rows.append(["Due Date:", invoice.due_date.strftime("%Y-%m-%d")])
        if invoice.paid_at:
            paid = invoice.paid_at.strftime("%Y-%m-%d")
            if invoice.payment_method:
                paid = f"{paid} ({invoice.payment_method})"
            rows.append(["Paid:", paid])

        table = Table(rows, colWidths=[40 * mm, 110 * mm])
        table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 10),
                    ("TEXTCOLOR", (0, 0), (0, -1), colors.HexColor("#7F8C8D")),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        return table

    @staticmethod
    def _lines_table(invoice: Invoice, invoice_lines: List[InvoiceLine]) -> Table:
        data = [["Description", "Quantity", "Unit Price", "Total"]]
        for line in invoice_lines:
            data.append(
                [
                    line.description,
                    f"{line.quantity:,.6f}".rstrip("0").rstrip("."),
                    f"{invoice.currency} {line.unit_price:,.4f}",
                    f"{invoice.currency} {line.total_price:,.2f}",
                ]
            )

        table = Table(data, colWidths=COLUMN_WIDTHS)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2C3E50")),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, 0), 10),
                    ("ALIGN", (0, 0), (-1, 0), "CENTER"),
                    ("FONTSIZE", (0, 1), (-1, -1), 9),
                    ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#BDC3C7")),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                    ("TOPPADDING", (0, 0), (-1, -1), 6),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F8F9F9")]),
                ]
            )
        )
        return table

    @staticmethod
    def _totals_table(invoice: Invoice) -> Table:
        data = [
            ["", "", "Subtotal:", f"{invoice.currency} {invoice.subtotal:,.2f}"],
            ["", "", "Tax:", f"{invoice.currency} {invoice.tax_amount:,.2f}"],
            ["", "", "Total:", f"{invoice.currency} {invoice.total_amount:,.2f}"],
        ]
        table = Table(data, colWidths=COLUMN_WIDTHS)
        table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (2, 0), (-1, -1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 10),
                    ("FONTSIZE", (0, -1), (-1, -1), 11),
                    ("ALIGN", (2, 0), (-1, -1), "RIGHT"),
                    ("LINEABOVE", (2, -1), (-1, -1), 1.5, colors.HexColor("#2C3E50")),
                    ("TOPPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        return table
