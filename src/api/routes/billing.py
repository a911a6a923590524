"""Billing API Routes

FastAPI routes for invoice generation, invoice status changes, pricing
lookups and reseller commission.
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.schemas.billing_request import (
    GenerateInvoiceRequestSchema,
    InvoiceActionRequestSchema,
    MarkPaidRequestSchema,
    to_naive_utc,
)
from src.app.services.tax_policy import TaxPolicy
from src.app.use_cases.billing.dtos import (
    CommissionDTO,
    CommissionSummaryDTO,
    GenerateInvoiceCommandDTO,
    InvoiceResponseDTO,
    MarkInvoicePaidCommandDTO,
    ResolvedPriceDTO,
)
from src.app.use_cases.billing.generate_invoice import GenerateInvoice
from src.app.use_cases.billing.invoice_transitions import CancelInvoice, MarkInvoicePaid, SendInvoice
from src.app.use_cases.billing.calculate_commission import CalculateCommission, SummarizeCommission
from src.app.use_cases.billing.resolve_price import ResolvePrice
from src.adapter.repositories import (
    SqlAlchemyCatalogRepository,
    SqlAlchemyDirectoryRepository,
    SqlAlchemyInvoiceLineRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyUsageEventRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session, get_tax_policy
from src.api.error import ClientError

router = APIRouter(tags=["Billing"])


def transition_repos(session: AsyncSession) -> dict:
    return {
        "uow": SqlAlchemyUnitOfWork(session),
        "invoice_repo": SqlAlchemyInvoiceRepository(session),
        "invoice_line_repo": SqlAlchemyInvoiceLineRepository(session),
    }


@router.post(
    "/billing:generateInvoice",
    response_model=InvoiceResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {
            "description": "A non-cancelled invoice already covers this window",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "DUPLICATE_INVOICE",
                            "message": "Invoice already exists for client c0a8... for period ..."
                        }
                    }
                }
            }
        },
        422: {"description": "Invalid window or no usage in it"},
    }
)
async def generate_invoice(
    request: GenerateInvoiceRequestSchema,
    session: AsyncSession = Depends(get_session),
    tax_policy: TaxPolicy = Depends(get_tax_policy),
):
    """
    Generate a draft invoice from the client's usage in [period_start, period_end).

    One line item per service and unit price; `total_amount = subtotal + tax_amount`.
    A window without usage is not invoiced: no zero-amount draft is created and
    the call returns 422 NO_BILLABLE_USAGE. The window stays open for a later call.
    """
    use_case = GenerateInvoice(
        uow=SqlAlchemyUnitOfWork(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        invoice_line_repo=SqlAlchemyInvoiceLineRepository(session),
        event_repo=SqlAlchemyUsageEventRepository(session),
        catalog_repo=SqlAlchemyCatalogRepository(session),
        directory_repo=SqlAlchemyDirectoryRepository(session),
        tax_policy=tax_policy,
        currency=ApplicationConfig.DEFAULT_CURRENCY,
        due_days=int(ApplicationConfig.INVOICE_DUE_DAYS),
    )

    command = GenerateInvoiceCommandDTO(
        reseller_id=request.reseller_id,
        client_id=request.client_id,
        period_start=request.period_start,
        period_end=request.period_end,
        notes=request.notes,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post("/billing:sendInvoice", response_model=InvoiceResponseDTO)
async def send_invoice(
    request: InvoiceActionRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """Issue a draft invoice (draft -> sent)."""
    result = await SendInvoice(**transition_repos(session)).execute(request.invoice_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post("/billing:markPaid", response_model=InvoiceResponseDTO)
async def mark_paid(
    request: MarkPaidRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Record payment of an invoice (sent | overdue -> paid).

    Stamps `paid_at`, which the commission calculator windows on.
    """
    command = MarkInvoicePaidCommandDTO(
        invoice_id=request.invoice_id,
        paid_at=request.paid_at,
        payment_method=request.payment_method,
    )
    result = await MarkInvoicePaid(**transition_repos(session)).execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post("/billing:cancelInvoice", response_model=InvoiceResponseDTO)
async def cancel_invoice(
    request: InvoiceActionRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """Void an invoice (draft | sent -> cancelled); the window can be billed again."""
    result = await CancelInvoice(**transition_repos(session)).execute(request.invoice_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get("/billing:commission", response_model=CommissionSummaryDTO)
async def get_commission(
    reseller_id: str = Query(..., min_length=1),
    period_start: datetime = Query(...),
    period_end: datetime = Query(...),
    session: AsyncSession = Depends(get_session),
):
    """
    Total commission over the reseller's invoices paid in [period_start, period_end).

    `total` is the commission; `total_invoiced` the sum of the invoices it applies to.
    """
    use_case = SummarizeCommission(
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        directory_repo=SqlAlchemyDirectoryRepository(session),
    )
    result = await use_case.execute(reseller_id, to_naive_utc(period_start), to_naive_utc(period_end))

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get("/billing/invoices/{invoice_id}/commission", response_model=CommissionDTO)
async def get_invoice_commission(
    invoice_id: int,
    reseller_id: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_session),
):
    """Commission on one paid invoice of the reseller."""
    use_case = CalculateCommission(
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        directory_repo=SqlAlchemyDirectoryRepository(session),
    )
    result = await use_case.execute(reseller_id, invoice_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get("/billing:resolvePrice", response_model=ResolvedPriceDTO)
async def resolve_price(
    service_id: str = Query(..., min_length=1),
    plan_id: Optional[str] = Query(default=None),
    reseller_id: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session),
):
    """Effective unit price and billing model for a service, plan and reseller."""
    result = await ResolvePrice(SqlAlchemyCatalogRepository(session)).execute(service_id, plan_id, reseller_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
