"""ReconcileUsage Use Case

Checks every subscription counter against the usage events recorded since
its last reset.
"""

import logging
import time
from datetime import datetime
from typing import List
from libs.result import Result, Return, Error
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.usage_event_repository import UsageEventRepository
from .dtos import UsageDiscrepancyDTO, UsageReconciliationResultDTO

logger = logging.getLogger(__name__)


class ReconcileUsage:
    """
    Use Case: Reconcile usage counters against the event log

    Business Rules:
    1. usage_consumed must equal the sum of event quantities recorded at
       or after last_reset_at
    2. Mismatches are reported and logged, never repaired
    3. Read-only

    Flow:
    1. Get all subscriptions
    2. For each, sum events since its last reset and compare
    3. Return the discrepancies
    """

    def __init__(
        self,
        subscription_repo: SubscriptionRepository,
        event_repo: UsageEventRepository,
    ):
        self.subscription_repo = subscription_repo
        self.event_repo = event_repo

    async def execute(self) -> Result[UsageReconciliationResultDTO]:
        """
        Execute usage reconciliation

        Returns:
            Result[UsageReconciliationResultDTO]: counters checked and any discrepancies
        """
        start_time = time.time()
        reconciliation_time = datetime.utcnow()

        try:
            logger.info("Starting usage counter reconciliation")

            subscriptions = await self.subscription_repo.list_all()
            discrepancies: List[UsageDiscrepancyDTO] = []

            for subscription in subscriptions:
                event_sum = await self.event_repo.sum_quantity_since(
                    subscription.id, subscription.last_reset_at
                )

                if subscription.usage_consumed != event_sum:
                    discrepancy = UsageDiscrepancyDTO(
                        subscription_id=subscription.id,
                        client_id=subscription.client_id,
                        counter_value=subscription.usage_consumed,
                        event_sum=event_sum,
                        discrepancy=subscription.usage_consumed - event_sum,
                    )
                    discrepancies.append(discrepancy)

                    logger.warning(
                        f"Usage discrepancy on subscription {subscription.id} "
                        f"(client_id={subscription.client_id}): "
                        f"counter={subscription.usage_consumed}, events={event_sum}"
                    )

            execution_time_ms = int((time.time() - start_time) * 1000)

            if discrepancies:
                logger.warning(
                    f"Reconciliation complete. Found {len(discrepancies)} discrepancies "
                    f"out of {len(subscriptions)} subscriptions in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. All {len(subscriptions)} counters match "
                    f"in {execution_time_ms}ms"
                )

            return Return.ok(
                UsageReconciliationResultDTO(
                    total_subscriptions_checked=len(subscriptions),
                    discrepancies_found=len(discrepancies),
                    discrepancies=discrepancies,
                    reconciliation_time=reconciliation_time,
                    execution_time_ms=execution_time_ms,
                )
            )

        except Exception as e:
            logger.error(f"Usage reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile usage counters",
                    reason=str(e),
                )
            )
