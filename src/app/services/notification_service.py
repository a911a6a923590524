"""Usage Alert Service Interface

Defines the contract for telling the notification collaborator that a
subscription is near or over its quota.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class UsageAlertType(str, Enum):
    NEAR_LIMIT = "near_limit"
    QUOTA_EXCEEDED = "quota_exceeded"


class UsageAlert(BaseModel):
    alert_type: UsageAlertType
    subscription_id: int
    client_id: str
    service_id: str
    usage_consumed: Decimal
    usage_limit: Optional[Decimal] = None
    requested_quantity: Optional[Decimal] = None
    raised_at: datetime = Field(default_factory=datetime.utcnow)


class UsageAlertService(ABC):
    """
    Abstract alert sink

    Implementations can send alerts via:
    - Logging
    - Webhook (HTTP POST)
    - Composite of the above
    """

    @abstractmethod
    async def send_usage_alert(self, alert: UsageAlert) -> bool:
        """
        Send a usage alert

        Args:
            alert: UsageAlert to deliver

        Returns:
            True if delivered, False otherwise
        """
        pass
