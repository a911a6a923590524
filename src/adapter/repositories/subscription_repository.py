"""SQLAlchemy Subscription Repository Implementation

Implements subscription persistence using SQLAlchemy async session.
Counter writes are single UPDATE statements guarded by the row version.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.subscription import Subscription, ResetPeriod


class SqlAlchemySubscriptionRepository(SubscriptionRepository):
    """
    SQLAlchemy implementation of SubscriptionRepository

    Uses async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, subscription_id: int, for_update: bool = False) -> Optional[Subscription]:
        """
        Retrieve subscription by ID

        The row is always re-read from the database so that counter writes
        made through UPDATE statements are visible on the returned object.

        Args:
            subscription_id: Subscription ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Subscription if found, None otherwise
        """
        statement = (
            select(Subscription)
            .where(Subscription.id == subscription_id)
            .execution_options(populate_existing=True)
        )

        if for_update:
            statement = statement.with_for_update()

        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def create(self, subscription: Subscription) -> Subscription:
        self.session.add(subscription)
        await self.session.flush()
        await self.session.refresh(subscription)
        return subscription

    async def list_resettable(self) -> List[Subscription]:
        statement = (
            select(Subscription)
            .where(Subscription.is_active == True)  # noqa: E712
            .where(Subscription.reset_period != ResetPeriod.NEVER)
            .order_by(Subscription.id)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def list_all(self) -> List[Subscription]:
        statement = select(Subscription).order_by(Subscription.id)
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def increment_usage(
        self, subscription_id: int, quantity: Decimal, expected_version: int, now: datetime
    ) -> bool:
        """
        Add quantity to usage_consumed if the row is still at expected_version

        Returns:
            True if exactly one row was updated
        """
        statement = (
            update(Subscription)
            .where(Subscription.id == subscription_id)
            .where(Subscription.version == expected_version)
            .values(
                usage_consumed=Subscription.usage_consumed + quantity,
                version=Subscription.version + 1,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        return result.rowcount == 1

    async def reset_usage(self, subscription_id: int, reset_at: datetime, expected_version: int) -> bool:
        """
        Zero usage_consumed and move last_reset_at if the row is still at expected_version

        Returns:
            True if exactly one row was updated
        """
        statement = (
            update(Subscription)
            .where(Subscription.id == subscription_id)
            .where(Subscription.version == expected_version)
            .values(
                usage_consumed=0,
                last_reset_at=reset_at,
                version=Subscription.version + 1,
                updated_at=reset_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        return result.rowcount == 1
