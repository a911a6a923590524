"""Commission Use Cases (commission calculator)

Reseller commission is derived from paid invoices only.
"""

import logging
from datetime import datetime
from decimal import Decimal
from libs.result import Result, Return, Error
from src.app.repositories.directory_repository import DirectoryRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import InvoiceStatus
from src.domain.pricing import commission_amount, quantize_money
from .dtos import CommissionDTO, CommissionSummaryDTO
from .errors import ErrorCode
from .invoice_transitions import invoice_not_found

logger = logging.getLogger(__name__)


def reseller_not_found(reseller_id: str) -> Error:
    return Error(
        code=ErrorCode.RESELLER_NOT_FOUND,
        message=f"Reseller {reseller_id} not found",
    )


class CalculateCommission:
    """
    Use Case: Commission on one invoice

    Business Rules:
    1. Invoice must be paid and issued by the reseller
       (COMMISSION_NOT_APPLICABLE otherwise)
    2. commission = total_amount * commission_rate / 100, rounded to money
    """

    def __init__(self, invoice_repo: InvoiceRepository, directory_repo: DirectoryRepository):
        self.invoice_repo = invoice_repo
        self.directory_repo = directory_repo

    async def execute(self, reseller_id: str, invoice_id: int) -> Result[CommissionDTO]:
        try:
            reseller = await self.directory_repo.get_reseller(reseller_id)
            if not reseller:
                return Return.err(reseller_not_found(reseller_id))

            invoice = await self.invoice_repo.get_by_id(invoice_id)
            if not invoice:
                return Return.err(invoice_not_found(invoice_id))

            if invoice.status != InvoiceStatus.PAID or invoice.admin_id != reseller.id:
                return Return.err(
                    Error(
                        code=ErrorCode.COMMISSION_NOT_APPLICABLE,
                        message=f"No commission on invoice {invoice.invoice_number} for reseller {reseller.id}",
                        reason="Invoice must be paid and issued by this reseller",
                        details={"status": invoice.status.value},
                    )
                )

            return Return.ok(
                CommissionDTO(
                    reseller_id=reseller.id,
                    invoice_id=invoice.id,
                    invoice_total=invoice.total_amount,
                    commission_rate=reseller.commission_rate,
                    commission=commission_amount(invoice.total_amount, reseller.commission_rate),
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="CALCULATE_COMMISSION_FAILED",
                    message="Failed to calculate commission",
                    reason=str(e),
                )
            )


class SummarizeCommission:
    """
    Use Case: Total commission over invoices paid in [period_start, period_end)

    Each paid invoice counts once, by its paid_at. The reseller's current
    commission rate applies.
    """

    def __init__(self, invoice_repo: InvoiceRepository, directory_repo: DirectoryRepository):
        self.invoice_repo = invoice_repo
        self.directory_repo = directory_repo

    async def execute(
        self, reseller_id: str, period_start: datetime, period_end: datetime
    ) -> Result[CommissionSummaryDTO]:
        if period_start >= period_end:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_BILLING_PERIOD,
                    message="period_start must be before period_end",
                )
            )

        try:
            reseller = await self.directory_repo.get_reseller(reseller_id)
            if not reseller:
                return Return.err(reseller_not_found(reseller_id))

            paid = await self.invoice_repo.list_paid_for_reseller(reseller.id, period_start, period_end)
            invoices = list({inv.id: inv for inv in paid}.values())

            total_invoiced = Decimal("0.00")
            total = Decimal("0.00")
            for invoice in invoices:
                total_invoiced += Decimal(invoice.total_amount)
                total += commission_amount(invoice.total_amount, reseller.commission_rate)

            logger.info(
                f"Commission for reseller {reseller.id} over {period_start.isoformat()} - "
                f"{period_end.isoformat()}: invoices={len(invoices)}, total={total}"
            )

            return Return.ok(
                CommissionSummaryDTO(
                    reseller_id=reseller.id,
                    period_start=period_start,
                    period_end=period_end,
                    commission_rate=reseller.commission_rate,
                    invoice_count=len(invoices),
                    total_invoiced=quantize_money(total_invoiced),
                    total=quantize_money(total),
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="SUMMARIZE_COMMISSION_FAILED",
                    message="Failed to summarize commission",
                    reason=str(e),
                )
            )
