"""Invoice API Routes

FastAPI routes for reading invoices and rendering them as PDF.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.services.pdf_service import PdfService
from src.app.use_cases.billing.dtos import InvoicePdfResponseDTO, InvoiceResponseDTO
from src.app.use_cases.billing.invoice_transitions import GetInvoice
from src.app.use_cases.billing.render_invoice_pdf import RenderInvoicePdf
from src.adapter.repositories import (
    SqlAlchemyDirectoryRepository,
    SqlAlchemyInvoiceLineRepository,
    SqlAlchemyInvoiceRepository,
)
from src.depends import get_pdf_service, get_session
from src.api.error import ClientError

router = APIRouter(prefix="/billing/invoices", tags=["Invoices"])


def pdf_use_case(session: AsyncSession, pdf_service: PdfService) -> RenderInvoicePdf:
    return RenderInvoicePdf(
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        invoice_line_repo=SqlAlchemyInvoiceLineRepository(session),
        directory_repo=SqlAlchemyDirectoryRepository(session),
        pdf_service=pdf_service,
    )


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        404: {
            "description": "Invoice not found",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INVOICE_NOT_FOUND",
                            "message": "Invoice with ID 123 not found"
                        }
                    }
                }
            }
        }
    }
)
async def get_invoice(
    invoice_id: int,
    session: AsyncSession = Depends(get_session),
):
    """Invoice with its line items."""
    use_case = GetInvoice(
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        invoice_line_repo=SqlAlchemyInvoiceLineRepository(session),
    )
    result = await use_case.execute(invoice_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get("/{invoice_id}/pdf/base64", response_model=InvoicePdfResponseDTO)
async def get_invoice_pdf_base64(
    invoice_id: int,
    session: AsyncSession = Depends(get_session),
    pdf_service: PdfService = Depends(get_pdf_service),
):
    """
    Invoice PDF as base64 inside JSON.

    Draft invoices are rendered as proforma.
    """
    result = await pdf_use_case(session, pdf_service).execute(invoice_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/{invoice_id}/pdf",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}, "description": "Invoice PDF"}},
)
async def download_invoice_pdf(
    invoice_id: int,
    session: AsyncSession = Depends(get_session),
    pdf_service: PdfService = Depends(get_pdf_service),
):
    """Invoice PDF as a file download."""
    use_case = pdf_use_case(session, pdf_service)
    invoice = await use_case.invoice_repo.get_by_id(invoice_id)
    result = await use_case.render(invoice_id)

    if result.is_err():
        raise ClientError(result.error)

    filename = f"{invoice.invoice_number}.pdf"
    return Response(
        content=result.value,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
