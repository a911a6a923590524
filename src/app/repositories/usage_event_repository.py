"""Usage Event Repository Interface

Append-only: there is no update or delete.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from src.domain.usage_event import UsageEvent


class UsageEventRepository(ABC):

    @abstractmethod
    async def create(self, event: UsageEvent) -> UsageEvent:
        """
        Append a usage event

        Raises:
            IntegrityError: If (subscription_id, idempotency_key) already exists
        """
        pass

    @abstractmethod
    async def get_by_idempotency_key(self, subscription_id: int, idempotency_key: str) -> Optional[UsageEvent]:
        pass

    @abstractmethod
    async def list_for_client(
        self, client_id: str, period_start: datetime, period_end: datetime
    ) -> List[UsageEvent]:
        """Events of all the client's subscriptions recorded in [period_start, period_end)"""
        pass

    @abstractmethod
    async def sum_quantity_since(self, subscription_id: int, since: datetime) -> Decimal:
        """Sum of quantities recorded at or after since (0 when none)"""
        pass
