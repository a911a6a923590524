"""SQLAlchemy Usage Event Repository Implementation

Append-only persistence of usage events.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.usage_event_repository import UsageEventRepository
from src.domain.usage_event import UsageEvent


class SqlAlchemyUsageEventRepository(UsageEventRepository):
    """
    SQLAlchemy implementation of UsageEventRepository

    Uses async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, event: UsageEvent) -> UsageEvent:
        """
        Append a usage event

        Args:
            event: UsageEvent entity to persist

        Returns:
            Created UsageEvent with generated ID

        Raises:
            IntegrityError: If (subscription_id, idempotency_key) already exists
        """
        self.session.add(event)
        await self.session.flush()
        await self.session.refresh(event)
        return event

    async def get_by_idempotency_key(self, subscription_id: int, idempotency_key: str) -> Optional[UsageEvent]:
        statement = (
            select(UsageEvent)
            .where(UsageEvent.subscription_id == subscription_id)
            .where(UsageEvent.idempotency_key == idempotency_key)
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def list_for_client(
        self, client_id: str, period_start: datetime, period_end: datetime
    ) -> List[UsageEvent]:
        """
        Retrieve a client's events in [period_start, period_end)

        Args:
            client_id: Client identifier
            period_start: Window start, inclusive
            period_end: Window end, exclusive

        Returns:
            Events ordered by recording time
        """
        statement = (
            select(UsageEvent)
            .where(UsageEvent.client_id == client_id)
            .where(UsageEvent.recorded_at >= period_start)
            .where(UsageEvent.recorded_at < period_end)
            .order_by(UsageEvent.recorded_at, UsageEvent.id)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def sum_quantity_since(self, subscription_id: int, since: datetime) -> Decimal:
        statement = (
            select(func.coalesce(func.sum(UsageEvent.quantity), 0))
            .where(UsageEvent.subscription_id == subscription_id)
            .where(UsageEvent.recorded_at >= since)
        )
        result = await self.session.execute(statement)
        return Decimal(str(result.scalar_one()))
