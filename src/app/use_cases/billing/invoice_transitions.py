"""Invoice status transition Use Cases

draft -> sent | cancelled, sent -> paid | overdue | cancelled,
overdue -> paid. paid and cancelled are terminal.
"""

import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.domain.invoice import Invoice, InvoiceStatus, can_transition
from .dtos import InvoiceResponseDTO, MarkInvoicePaidCommandDTO
from .errors import ErrorCode
from .invoice_views import to_invoice_response

logger = logging.getLogger(__name__)


def invoice_not_found(invoice_id: int) -> Error:
    return Error(
        code=ErrorCode.INVOICE_NOT_FOUND,
        message=f"Invoice with ID {invoice_id} not found",
        reason="Invoice does not exist",
    )


class InvoiceTransition:
    """
    Base for a single status move on an invoice

    The invoice row is locked, the move is validated against the
    transition table and, if allowed, stamped and committed. A rejected
    move changes nothing.
    """

    target: InvoiceStatus

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        invoice_line_repo: InvoiceLineRepository,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.invoice_line_repo = invoice_line_repo

    def stamp(self, invoice: Invoice, now: datetime) -> None:
        """Set the fields that go with the target status"""

    async def transition(self, invoice_id: int, now: Optional[datetime] = None) -> Result[InvoiceResponseDTO]:
        now = now or datetime.utcnow()

        try:
            invoice = await self.invoice_repo.get_by_id(invoice_id, for_update=True)
            if not invoice:
                await self.uow.rollback()
                return Return.err(invoice_not_found(invoice_id))

            if not can_transition(invoice.status, self.target):
                error = Error(
                    code=ErrorCode.INVALID_INVOICE_TRANSITION,
                    message=f"Invoice {invoice.invoice_number} cannot move from "
                            f"{invoice.status.value} to {self.target.value}",
                    reason="Transition not allowed",
                    details={"current_status": invoice.status.value, "target_status": self.target.value},
                )
                await self.uow.rollback()
                return Return.err(error)

            previous = invoice.status
            invoice.status = self.target
            invoice.updated_at = now
            self.stamp(invoice, now)

            updated = await self.invoice_repo.update(invoice)
            await self.uow.commit()

            logger.info(
                f"Invoice {updated.invoice_number} moved {previous.value} -> {self.target.value}"
            )

            invoice_lines = await self.invoice_line_repo.get_by_invoice_id(updated.id)
            return Return.ok(to_invoice_response(updated, invoice_lines))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="INVOICE_TRANSITION_FAILED",
                    message=f"Failed to move invoice {invoice_id} to {self.target.value}",
                    reason=str(e),
                )
            )


class SendInvoice(InvoiceTransition):
    """Use Case: Issue a draft invoice to the client"""

    target = InvoiceStatus.SENT

    def stamp(self, invoice: Invoice, now: datetime) -> None:
        invoice.sent_at = now

    async def execute(self, invoice_id: int, now: Optional[datetime] = None) -> Result[InvoiceResponseDTO]:
        return await self.transition(invoice_id, now)


class MarkInvoicePaid(InvoiceTransition):
    """
    Use Case: Record payment of a sent or overdue invoice

    paid_at is what the commission calculator windows on.
    """

    target = InvoiceStatus.PAID

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._paid_at: Optional[datetime] = None
        self._payment_method: Optional[str] = None

    def stamp(self, invoice: Invoice, now: datetime) -> None:
        invoice.paid_at = self._paid_at or now
        if self._payment_method:
            invoice.payment_method = self._payment_method

    async def execute(
        self, command: MarkInvoicePaidCommandDTO, now: Optional[datetime] = None
    ) -> Result[InvoiceResponseDTO]:
        self._paid_at = command.paid_at
        self._payment_method = command.payment_method
        return await self.transition(command.invoice_id, now)


class CancelInvoice(InvoiceTransition):
    """
    Use Case: Void a draft or sent invoice

    Releases the window so the same usage can be billed again.
    """

    target = InvoiceStatus.CANCELLED

    def stamp(self, invoice: Invoice, now: datetime) -> None:
        invoice.period_key = None

    async def execute(self, invoice_id: int, now: Optional[datetime] = None) -> Result[InvoiceResponseDTO]:
        return await self.transition(invoice_id, now)


class MarkInvoiceOverdue(InvoiceTransition):
    """Use Case: Flag a sent invoice as past its due date"""

    target = InvoiceStatus.OVERDUE

    async def execute(self, invoice_id: int, now: Optional[datetime] = None) -> Result[InvoiceResponseDTO]:
        return await self.transition(invoice_id, now)


class GetInvoice:
    """Use Case: Read an invoice with its line items"""

    def __init__(self, invoice_repo: InvoiceRepository, invoice_line_repo: InvoiceLineRepository):
        self.invoice_repo = invoice_repo
        self.invoice_line_repo = invoice_line_repo

    async def execute(self, invoice_id: int) -> Result[InvoiceResponseDTO]:
        try:
            invoice = await self.invoice_repo.get_by_id(invoice_id)
            if not invoice:
                return Return.err(invoice_not_found(invoice_id))

            invoice_lines = await self.invoice_line_repo.get_by_invoice_id(invoice_id)
            return Return.ok(to_invoice_response(invoice, invoice_lines))

        except Exception as e:
            return Return.err(
                Error(
                    code="GET_INVOICE_FAILED",
                    message="Failed to load invoice",
                    reason=str(e),
                )
            )
