"""Subscription Repository Interface

Defines the contract for subscription persistence, including the only two
writes allowed on the usage counter.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from src.domain.subscription import Subscription


class SubscriptionRepository(ABC):
    """
    Repository interface for Subscription persistence

    Counter writes are compare-and-swap on Subscription.version: they
    succeed only if nobody changed the row since it was read.
    """

    @abstractmethod
    async def get_by_id(self, subscription_id: int, for_update: bool = False) -> Optional[Subscription]:
        """
        Retrieve subscription by ID, always re-reading the row

        Args:
            subscription_id: Subscription ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Subscription if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, subscription: Subscription) -> Subscription:
        pass

    @abstractmethod
    async def list_resettable(self) -> List[Subscription]:
        """Active subscriptions whose reset_period is not 'never'"""
        pass

    @abstractmethod
    async def list_all(self) -> List[Subscription]:
        pass

    @abstractmethod
    async def increment_usage(
        self, subscription_id: int, quantity: Decimal, expected_version: int, now: datetime
    ) -> bool:
        """
        Atomically add quantity to usage_consumed

        Returns:
            True if the row was at expected_version and got updated
        """
        pass

    @abstractmethod
    async def reset_usage(self, subscription_id: int, reset_at: datetime, expected_version: int) -> bool:
        """
        Atomically zero usage_consumed and move last_reset_at

        Returns:
            True if the row was at expected_version and got updated
        """
        pass
