"""SweepResets Use Case

Proactive pass of the reset scheduler over every resettable subscription,
so counters read by dashboards are fresh even without traffic.
"""

import logging
import time
from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.subscription_repository import SubscriptionRepository
from .dtos import ResetSweepResultDTO
from .ensure_current_period import EnsureCurrentPeriod

logger = logging.getLogger(__name__)


class SweepResets:
    """
    Use Case: Run EnsureCurrentPeriod for all active, resettable subscriptions

    Each subscription is checked in its own locked transaction. Lazy reset
    on consumption stays authoritative; this only keeps reporting fresh.
    """

    def __init__(self, subscription_repo: SubscriptionRepository, ensure_current: EnsureCurrentPeriod):
        self.subscription_repo = subscription_repo
        self.ensure_current = ensure_current

    async def execute(self, now: Optional[datetime] = None) -> Result[ResetSweepResultDTO]:
        now = now or datetime.utcnow()
        start_time = time.time()

        try:
            subscriptions = await self.subscription_repo.list_resettable()
        except Exception as e:
            logger.error(f"Reset sweep could not list subscriptions: {e}")
            return Return.err(
                Error(
                    code="RESET_SWEEP_FAILED",
                    message="Failed to list resettable subscriptions",
                    reason=str(e),
                )
            )

        due = [s.id for s in subscriptions if self.ensure_current.is_due(s, now)]

        resets = 0
        failures = 0
        for subscription_id in due:
            result = await self.ensure_current.execute(subscription_id, now)
            if result.is_err():
                failures += 1
                logger.warning(
                    f"Reset of subscription {subscription_id} failed: {result.error.code} {result.error.message}"
                )
            elif result.value.reset_performed:
                resets += 1

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Reset sweep: checked={len(subscriptions)}, resets={resets}, "
            f"failures={failures} in {execution_time_ms}ms"
        )

        return Return.ok(
            ResetSweepResultDTO(
                total_checked=len(subscriptions),
                resets_performed=resets,
                failures=failures,
                execution_time_ms=execution_time_ms,
            )
        )
