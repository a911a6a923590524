"""SQLAlchemy Invoice Repository Implementation

Implements invoice persistence using SQLAlchemy async session.
"""

from typing import Optional, List
from datetime import date, datetime
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import Invoice, InvoiceStatus


class SqlAlchemyInvoiceRepository(InvoiceRepository):
    """
    SQLAlchemy implementation of InvoiceRepository

    Uses async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Args:
            invoice: Invoice entity to persist

        Returns:
            Created Invoice with generated ID

        Raises:
            IntegrityError: If period_key or invoice_number is taken
        """
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice

    async def get_by_id(self, invoice_id: int, for_update: bool = False) -> Optional[Invoice]:
        """
        Retrieve invoice by ID

        Args:
            invoice_id: Invoice ID
            for_update: If True, lock the row for a status change

        Returns:
            Invoice if found, None otherwise
        """
        statement = (
            select(Invoice)
            .where(Invoice.id == invoice_id)
            .execution_options(populate_existing=True)
        )

        if for_update:
            statement = statement.with_for_update()

        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def update(self, invoice: Invoice) -> Invoice:
        """
        Update an existing invoice

        Args:
            invoice: Invoice entity with updated values

        Returns:
            Updated Invoice
        """
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice

    async def exists_active_for_period(
        self, admin_id: str, client_id: str, period_start: datetime, period_end: datetime
    ) -> bool:
        """
        Check if a non-cancelled invoice already covers the window

        Returns:
            True if invoice exists, False otherwise
        """
        statement = (
            select(func.count())
            .select_from(Invoice)
            .where(Invoice.admin_id == admin_id)
            .where(Invoice.client_id == client_id)
            .where(Invoice.period_start == period_start)
            .where(Invoice.period_end == period_end)
            .where(Invoice.status != InvoiceStatus.CANCELLED)
        )
        result = await self.session.execute(statement)
        count = result.scalar_one()
        return count > 0

    async def generate_invoice_number(self, year: int) -> str:
        """
        Generate the next invoice number for a year

        Format: INV-YYYY-NNNNNN (e.g., INV-2024-000001)

        Returns:
            Invoice number string; uniqueness is enforced by the column
        """
        prefix = f"INV-{year}-"

        statement = (
            select(func.max(Invoice.invoice_number))
            .where(Invoice.invoice_number.like(f"{prefix}%"))
        )
        result = await self.session.execute(statement)
        max_number = result.scalar_one_or_none()

        if max_number:
            sequence = int(max_number.split("-")[-1]) + 1
        else:
            sequence = 1

        return f"{prefix}{sequence:06d}"

    async def list_paid_for_reseller(
        self, admin_id: str, paid_from: datetime, paid_to: datetime
    ) -> List[Invoice]:
        statement = (
            select(Invoice)
            .where(Invoice.admin_id == admin_id)
            .where(Invoice.status == InvoiceStatus.PAID)
            .where(Invoice.paid_at >= paid_from)
            .where(Invoice.paid_at < paid_to)
            .order_by(Invoice.paid_at, Invoice.id)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def list_past_due(self, today: date) -> List[Invoice]:
        statement = (
            select(Invoice)
            .where(Invoice.status == InvoiceStatus.SENT)
            .where(Invoice.due_date.is_not(None))
            .where(Invoice.due_date < today)
            .order_by(Invoice.due_date, Invoice.id)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())
