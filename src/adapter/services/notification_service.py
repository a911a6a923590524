"""Usage Alert Service Implementations

Delivers near-limit and quota-exceeded alerts to the notification
collaborator.
"""

import logging
from typing import List, Optional
import httpx
from src.app.services.notification_service import UsageAlert, UsageAlertService

logger = logging.getLogger(__name__)


class LoggingUsageAlertService(UsageAlertService):
    """
    Alert sink that only logs

    Default when no webhook is configured.
    """

    async def send_usage_alert(self, alert: UsageAlert) -> bool:
        logger.warning(
            f"[USAGE ALERT] {alert.alert_type.value} "
            f"subscription={alert.subscription_id}, client={alert.client_id}, "
            f"consumed={alert.usage_consumed}, limit={alert.usage_limit}, "
            f"requested={alert.requested_quantity}"
        )
        return True


class WebhookUsageAlertService(UsageAlertService):
    """
    Alert sink that POSTs a JSON payload to a webhook URL
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        """
        Args:
            webhook_url: URL to POST alerts to
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def send_usage_alert(self, alert: UsageAlert) -> bool:
        """
        Send usage alert via webhook

        Returns:
            True if webhook call succeeded, False otherwise
        """
        payload = {"type": "usage_alert", **alert.model_dump(mode="json")}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status()
                logger.info(
                    f"Usage alert {alert.alert_type.value} for subscription "
                    f"{alert.subscription_id} sent to {self.webhook_url}"
                )
                return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send usage alert for subscription {alert.subscription_id}: {e}")
            return False


class CompositeUsageAlertService(UsageAlertService):
    """Delivers to every configured sink; succeeds if any of them does"""

    def __init__(self, services: List[UsageAlertService]):
        self.services = services

    async def send_usage_alert(self, alert: UsageAlert) -> bool:
        success = False
        for service in self.services:
            try:
                if await service.send_usage_alert(alert):
                    success = True
            except Exception as e:
                logger.error(f"Usage alert service {type(service).__name__} failed: {e}")
        return success


def create_usage_alert_service(webhook_url: Optional[str] = None) -> UsageAlertService:
    """
    Factory for the configured alert sink

    Args:
        webhook_url: Optional webhook URL. If provided, alerts are logged and
                     posted. Otherwise they are only logged.
    """
    services: List[UsageAlertService] = [LoggingUsageAlertService()]

    if webhook_url:
        services.append(WebhookUsageAlertService(webhook_url))

    if len(services) == 1:
        return services[0]

    return CompositeUsageAlertService(services)
