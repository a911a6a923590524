"""GenerateInvoice Use Case (invoice generator)

Turns a client's usage events over a closed window into a draft invoice
with one line item per service and snapshotted unit price.
"""

import logging
from collections import OrderedDict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.tax_policy import TaxPolicy
from src.app.repositories.catalog_repository import CatalogRepository
from src.app.repositories.directory_repository import DirectoryRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.repositories.usage_event_repository import UsageEventRepository
from src.domain.invoice import Invoice, InvoiceStatus, period_key
from src.domain.invoice_line import InvoiceLine
from src.domain.pricing import quantize_money
from src.domain.usage_event import UsageEvent
from .dtos import GenerateInvoiceCommandDTO, InvoiceResponseDTO
from .errors import ErrorCode
from .invoice_views import to_invoice_response

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAYS = 30


class GenerateInvoice:
    """
    Use Case: Generate a draft invoice for one client over a closed window

    Business Rules:
    1. period_start < period_end <= now (INVALID_BILLING_PERIOD)
    2. Reseller must exist and own the client
    3. At most one non-cancelled invoice per (reseller, client, start, end)
       (DUPLICATE_INVOICE)
    4. One line per service; when the snapshotted unit price changed inside
       the window the service gets one line per price, so that
       line total = quantity * unit_price holds on every line
    5. line total = quantize(sum(quantity) * unit_price)
    6. subtotal = sum(line totals), total = subtotal + tax, exactly
    7. A window without usage is not billed (NO_BILLABLE_USAGE)
    8. Invoice and lines are written in one transaction, status=draft

    Flow:
    1. Validate window
    2. Load reseller and client
    3. Check for an active invoice on the same window
    4. Aggregate usage events into lines
    5. Compute totals and tax
    6. Create invoice + lines, commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        invoice_line_repo: InvoiceLineRepository,
        event_repo: UsageEventRepository,
        catalog_repo: CatalogRepository,
        directory_repo: DirectoryRepository,
        tax_policy: TaxPolicy,
        currency: str = "INR",
        due_days: int = DEFAULT_DUE_DAYS,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.invoice_line_repo = invoice_line_repo
        self.event_repo = event_repo
        self.catalog_repo = catalog_repo
        self.directory_repo = directory_repo
        self.tax_policy = tax_policy
        self.currency = currency
        self.due_days = due_days

    async def execute(
        self, command: GenerateInvoiceCommandDTO, now: Optional[datetime] = None
    ) -> Result[InvoiceResponseDTO]:
        """
        Execute invoice generation

        Args:
            command: GenerateInvoiceCommandDTO with reseller, client and window
            now: Generation time (UTC), defaults to utcnow

        Returns:
            Result[InvoiceResponseDTO]: the draft invoice with its lines or error
        """
        now = now or datetime.utcnow()

        # Step 1: Validate window
        if command.period_start >= command.period_end or command.period_end > now:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_BILLING_PERIOD,
                    message=f"Invalid billing period {command.period_start.isoformat()} "
                            f"to {command.period_end.isoformat()}",
                    reason="period_start must be before period_end and the window must be closed",
                )
            )

        try:
            # Step 2: Reseller and client
            reseller = await self.directory_repo.get_reseller(command.reseller_id)
            if not reseller:
                return Return.err(
                    Error(
                        code=ErrorCode.RESELLER_NOT_FOUND,
                        message=f"Reseller {command.reseller_id} not found",
                    )
                )

            client = await self.directory_repo.get_client(command.client_id)
            if not client or client.admin_id != reseller.id:
                return Return.err(
                    Error(
                        code=ErrorCode.CLIENT_NOT_FOUND,
                        message=f"Client {command.client_id} not found for reseller {reseller.id}",
                    )
                )

            # Step 3: One bill per window
            if await self.invoice_repo.exists_active_for_period(
                reseller.id, client.id, command.period_start, command.period_end
            ):
                return Return.err(self._duplicate_invoice(command))

            # Step 4: Aggregate usage
            events = await self.event_repo.list_for_client(
                client.id, command.period_start, command.period_end
            )
            if not events:
                return Return.err(
                    Error(
                        code=ErrorCode.NO_BILLABLE_USAGE,
                        message=f"No usage recorded for client {client.id} in the billing period",
                    )
                )

            lines = await self._build_lines(events)

            # Step 5: Totals
            subtotal = sum((line.total_price for line in lines), Decimal("0.00"))
            tax_amount = self.tax_policy.tax_for(subtotal)
            total_amount = subtotal + tax_amount

            # Step 6: Persist invoice and lines together
            invoice_number = await self.invoice_repo.generate_invoice_number(now.year)
            today = now.date()
            invoice = Invoice(
                admin_id=reseller.id,
                client_id=client.id,
                invoice_number=invoice_number,
                status=InvoiceStatus.DRAFT,
                period_start=command.period_start,
                period_end=command.period_end,
                period_key=period_key(reseller.id, client.id, command.period_start, command.period_end),
                subtotal=subtotal,
                tax_amount=tax_amount,
                total_amount=total_amount,
                currency=self.currency,
                invoice_date=today,
                due_date=today + timedelta(days=self.due_days),
                notes=command.notes,
                created_at=now,
                updated_at=now,
            )
            created_invoice = await self.invoice_repo.create(invoice)

            for line in lines:
                line.invoice_id = created_invoice.id
            created_lines = await self.invoice_line_repo.create_many(lines)

            await self.uow.commit()

            logger.info(
                f"Invoice {created_invoice.invoice_number} generated for client {client.id}: "
                f"lines={len(created_lines)}, subtotal={subtotal}, tax={tax_amount}, total={total_amount}"
            )

            return Return.ok(to_invoice_response(created_invoice, created_lines))

        except IntegrityError:
            await self.uow.rollback()
            if await self.invoice_repo.exists_active_for_period(
                command.reseller_id, command.client_id, command.period_start, command.period_end
            ):
                return Return.err(self._duplicate_invoice(command))
            return Return.err(
                Error(
                    code=ErrorCode.TRANSIENT_STORE_ERROR,
                    message="Invoice number collision, safe to retry",
                )
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="GENERATE_INVOICE_FAILED",
                    message="Failed to generate invoice",
                    reason=str(e),
                )
            )

    async def _build_lines(self, events: List[UsageEvent]) -> List[InvoiceLine]:
        groups: Dict[Tuple[str, Decimal], List[UsageEvent]] = OrderedDict()
        for event in sorted(events, key=lambda e: (e.service_id, Decimal(e.unit_cost))):
            groups.setdefault((event.service_id, Decimal(event.unit_cost)), []).append(event)

        lines = []
        for (service_id, unit_price), grouped in groups.items():
            quantity = sum((Decimal(e.quantity) for e in grouped), Decimal(0))
            lines.append(
                InvoiceLine(
                    service_id=service_id,
                    description=await self._describe(service_id, grouped[0]),
                    quantity=quantity,
                    unit_price=unit_price,
                    total_price=quantize_money(quantity * unit_price),
                )
            )
        return lines

    async def _describe(self, service_id: str, sample: UsageEvent) -> str:
        service = await self.catalog_repo.get_service(service_id)
        name = service.name if service else service_id
        return f"{name} ({sample.billing_model.value})"

    @staticmethod
    def _duplicate_invoice(command: GenerateInvoiceCommandDTO) -> Error:
        return Error(
            code=ErrorCode.DUPLICATE_INVOICE,
            message=f"Invoice already exists for client {command.client_id} "
                    f"for period {command.period_start.isoformat()} to {command.period_end.isoformat()}",
            reason="Duplicate invoice prevention",
        )
