"""EnsureCurrentPeriod Use Case (reset scheduler)

Lazily rolls a subscription's counter over when its accounting period has
elapsed. Called by ConsumeUsage inside its own transaction before every
quota check, and by the reset sweep for reporting freshness.
"""

import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.subscription_locks import SubscriptionLocks, subscription_locks
from src.app.services.store_retry import (
    ConcurrentUpdateError,
    TRANSIENT_STORE_ERRORS,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_MIN_WAIT,
    DEFAULT_RETRY_MAX_WAIT,
    store_retrying,
)
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.accounting_period import is_known_zone, period_elapsed
from src.domain.subscription import Subscription
from .dtos import ResetResultDTO
from .record_usage import evaluation_time, subscription_not_found, transient_store_error

logger = logging.getLogger(__name__)


class EnsureCurrentPeriod:
    """
    Use Case: Reset the usage counter at period boundaries

    Business Rules:
    1. daily/weekly/monthly boundaries are midnight, Monday and the first
       of the month in the subscription's zone (the default zone when it is
       unset or unknown); 'never' is always a no-op
    2. If last_reset_at lies before the current period start, zero
       usage_consumed and set last_reset_at = now, atomically
    3. Usage events are never touched by a reset
    4. A second call in the same period is a no-op
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        locks: SubscriptionLocks = subscription_locks,
        default_timezone: str = "UTC",
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        retry_min_wait: float = DEFAULT_RETRY_MIN_WAIT,
        retry_max_wait: float = DEFAULT_RETRY_MAX_WAIT,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.locks = locks
        self.default_timezone = default_timezone
        self.retry_attempts = retry_attempts
        self.retry_min_wait = retry_min_wait
        self.retry_max_wait = retry_max_wait

    async def execute(self, subscription_id: int, now: Optional[datetime] = None) -> Result[ResetResultDTO]:
        """
        Execute a standalone reset check in its own transaction

        Args:
            subscription_id: Subscription to check
            now: Evaluation time (UTC), defaults to utcnow

        Returns:
            Result[ResetResultDTO]: whether a reset happened and the counter state
        """
        try:
            async with self.locks.hold(subscription_id):
                async for attempt in store_retrying(
                    self.retry_attempts, self.retry_min_wait, self.retry_max_wait
                ):
                    with attempt:
                        return await self._ensure_once(subscription_id, now)

        except TRANSIENT_STORE_ERRORS as e:
            logger.error(f"Reset check on subscription {subscription_id} gave up: {e}")
            return Return.err(transient_store_error(e))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="ENSURE_RESET_FAILED",
                    message="Failed to check usage reset",
                    reason=str(e),
                )
            )

    async def _ensure_once(self, subscription_id: int, now: Optional[datetime]) -> Result[ResetResultDTO]:
        try:
            subscription = await self.subscription_repo.get_by_id(subscription_id, for_update=True)
            if not subscription:
                await self.uow.rollback()
                return Return.err(subscription_not_found(subscription_id))

            now = evaluation_time(subscription, now)
            reset_performed = await self.apply(subscription, now)
            await self.uow.commit()

            if reset_performed:
                subscription = await self.subscription_repo.get_by_id(subscription_id)

            return Return.ok(
                ResetResultDTO(
                    subscription_id=subscription.id,
                    reset_performed=reset_performed,
                    usage_consumed=subscription.usage_consumed,
                    last_reset_at=subscription.last_reset_at,
                )
            )

        except TRANSIENT_STORE_ERRORS:
            await self.uow.rollback()
            raise

    def is_due(self, subscription: Subscription, now: datetime) -> bool:
        return period_elapsed(
            subscription.reset_period,
            subscription.last_reset_at,
            now,
            self.zone_for(subscription),
        )

    def zone_for(self, subscription: Subscription) -> str:
        if subscription.timezone and not is_known_zone(subscription.timezone):
            logger.warning(
                f"Subscription {subscription.id} has unknown timezone '{subscription.timezone}', "
                f"using {self.default_timezone}"
            )
            return self.default_timezone
        return subscription.timezone or self.default_timezone

    async def apply(self, subscription: Subscription, now: datetime) -> bool:
        """
        Reset in the caller's transaction if the period has elapsed

        The caller holds the subscription row and commits. After a reset the
        caller must re-read the subscription.

        Raises:
            ConcurrentUpdateError: If the row version moved since it was read
        """
        if not self.is_due(subscription, now):
            return False

        updated = await self.subscription_repo.reset_usage(subscription.id, now, subscription.version)
        if not updated:
            raise ConcurrentUpdateError(
                f"Subscription {subscription.id} changed during reset (version {subscription.version})"
            )

        logger.info(
            f"Usage reset for subscription {subscription.id}: "
            f"period={subscription.reset_period.value}, "
            f"previous_consumed={subscription.usage_consumed}, "
            f"previous_reset_at={subscription.last_reset_at.isoformat()}"
        )
        return True
