"""MarkOverdueInvoices Use Case

Batch move of sent invoices past their due date to overdue.
"""

import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from .dtos import OverdueSweepResultDTO
from .invoice_transitions import MarkInvoiceOverdue

logger = logging.getLogger(__name__)


class MarkOverdueInvoices:
    """
    Use Case: Flag every sent invoice whose due_date has passed

    Each invoice moves in its own transaction; one failure does not stop
    the sweep.
    """

    def __init__(self, invoice_repo: InvoiceRepository, mark_overdue: MarkInvoiceOverdue):
        self.invoice_repo = invoice_repo
        self.mark_overdue = mark_overdue

    async def execute(self, now: Optional[datetime] = None) -> Result[OverdueSweepResultDTO]:
        now = now or datetime.utcnow()

        try:
            past_due = await self.invoice_repo.list_past_due(now.date())
        except Exception as e:
            logger.error(f"Overdue sweep could not list invoices: {e}")
            return Return.err(
                Error(
                    code="OVERDUE_SWEEP_FAILED",
                    message="Failed to list past due invoices",
                    reason=str(e),
                )
            )

        marked = []
        for invoice in past_due:
            result = await self.mark_overdue.execute(invoice.id, now)
            if result.is_ok():
                marked.append(invoice.id)
            else:
                logger.warning(
                    f"Invoice {invoice.invoice_number} not marked overdue: "
                    f"{result.error.code} {result.error.message}"
                )

        logger.info(f"Overdue sweep: {len(marked)}/{len(past_due)} invoices marked overdue")

        return Return.ok(
            OverdueSweepResultDTO(
                invoices_checked=len(past_due),
                invoices_marked_overdue=len(marked),
                invoice_ids=marked,
            )
        )
