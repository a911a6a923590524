"""ConsumeUsage Use Case (quota enforcer)

Admits or rejects one consumption request against a subscription. Reset,
quota check, pricing and the ledger write run as one locked unit so that
concurrent requests are linearizable on the counter.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import UsageAlert, UsageAlertService, UsageAlertType
from src.app.services.subscription_locks import SubscriptionLocks, subscription_locks
from src.app.services.store_retry import (
    TRANSIENT_STORE_ERRORS,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_MIN_WAIT,
    DEFAULT_RETRY_MAX_WAIT,
    store_retrying,
)
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.usage_event_repository import UsageEventRepository
from src.app.repositories.catalog_repository import CatalogRepository
from src.app.repositories.directory_repository import DirectoryRepository
from src.domain.subscription import QuotaMode, Subscription
from src.domain.usage_event import is_valid_quantity
from .dtos import ConsumeUsageCommandDTO, UsageEventResponseDTO
from .ensure_current_period import EnsureCurrentPeriod
from .errors import ErrorCode
from .record_usage import (
    RecordUsage,
    duplicate_event,
    evaluation_time,
    invalid_quantity,
    subscription_not_found,
    to_event_response,
    transient_store_error,
)
from .resolve_price import ResolvePrice

logger = logging.getLogger(__name__)

DEFAULT_NEAR_LIMIT_PERCENT = Decimal("80")


class ConsumeUsage:
    """
    Use Case: Try to consume quota on a subscription

    Business Rules:
    1. quantity must be > 0 with at most 6 decimal places (INVALID_QUANTITY)
    2. Subscription must be active and not expired (SUBSCRIPTION_INACTIVE)
    3. A repeated idempotency key is rejected with DUPLICATE_EVENT
    4. The period reset is evaluated before the quota check
    5. Limited quota: consumed + quantity must not exceed usage_limit;
       no partial consumption (QUOTA_EXCEEDED)
    6. Disabled quota rejects everything; unlimited admits everything
    7. Unit price is resolved at admission time and snapshotted
    8. Alerts (near limit, quota exceeded) are sent after the lock is
       released, never while holding it
    9. The clock is read once the row is held and never runs behind
       last_reset_at

    Flow (under the per-subscription lock, retried on store conflicts):
    1. Load subscription with row lock
    2. Check active / expiry
    3. Check idempotency key
    4. Lazy reset
    5. Quota check
    6. Resolve price
    7. Append event + increment counter, commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        event_repo: UsageEventRepository,
        catalog_repo: CatalogRepository,
        directory_repo: DirectoryRepository,
        alert_service: Optional[UsageAlertService] = None,
        locks: SubscriptionLocks = subscription_locks,
        default_timezone: str = "UTC",
        near_limit_percent: Decimal = DEFAULT_NEAR_LIMIT_PERCENT,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        retry_min_wait: float = DEFAULT_RETRY_MIN_WAIT,
        retry_max_wait: float = DEFAULT_RETRY_MAX_WAIT,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.directory_repo = directory_repo
        self.alert_service = alert_service
        self.locks = locks
        self.near_limit_percent = Decimal(near_limit_percent)
        self.retry_attempts = retry_attempts
        self.retry_min_wait = retry_min_wait
        self.retry_max_wait = retry_max_wait

        self.reset_scheduler = EnsureCurrentPeriod(
            uow, subscription_repo, locks=locks, default_timezone=default_timezone
        )
        self.price_resolver = ResolvePrice(catalog_repo)
        self.ledger = RecordUsage(uow, subscription_repo, event_repo, locks=locks)

    async def execute(
        self, command: ConsumeUsageCommandDTO, now: Optional[datetime] = None
    ) -> Result[UsageEventResponseDTO]:
        """
        Execute quota-checked consumption

        Args:
            command: ConsumeUsageCommandDTO with subscription_id, quantity, idempotency_key
            now: Evaluation time (UTC), defaults to utcnow once the row is held

        Returns:
            Result[UsageEventResponseDTO]: committed event or a typed rejection
        """
        if not is_valid_quantity(command.quantity):
            return Return.err(invalid_quantity(command.quantity))

        alerts: List[UsageAlert] = []
        result: Optional[Result[UsageEventResponseDTO]] = None

        try:
            async with self.locks.hold(command.subscription_id):
                async for attempt in store_retrying(
                    self.retry_attempts, self.retry_min_wait, self.retry_max_wait
                ):
                    with attempt:
                        alerts.clear()
                        result = await self._consume_once(command, now, alerts)

        except TRANSIENT_STORE_ERRORS as e:
            logger.error(f"Consumption on subscription {command.subscription_id} gave up: {e}")
            return Return.err(transient_store_error(e))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CONSUME_USAGE_FAILED",
                    message="Failed to consume usage",
                    reason=str(e),
                )
            )

        await self._send_alerts(alerts)
        return result

    async def _consume_once(
        self, command: ConsumeUsageCommandDTO, now: Optional[datetime], alerts: List[UsageAlert]
    ) -> Result[UsageEventResponseDTO]:
        try:
            # Step 1: Load and lock the subscription row
            subscription = await self.subscription_repo.get_by_id(command.subscription_id, for_update=True)
            if not subscription:
                await self.uow.rollback()
                return Return.err(subscription_not_found(command.subscription_id))

            now = evaluation_time(subscription, now)

            # Step 2: Active and not expired
            if not subscription.is_usable(now):
                logger.info(f"Consumption rejected, subscription {subscription.id} inactive or expired")
                error = Error(
                    code=ErrorCode.SUBSCRIPTION_INACTIVE,
                    message=f"Subscription {subscription.id} is not active",
                    reason="expired" if subscription.is_expired(now) else "deactivated",
                )
                await self.uow.rollback()
                return Return.err(error)

            # Step 3: Idempotent retry of an already recorded event
            existing = await self.ledger.find_duplicate(subscription.id, command.idempotency_key)
            if existing:
                error = duplicate_event(existing)
                await self.uow.rollback()
                return Return.err(error)

            # Step 4: Lazy reset, same transaction as the check
            reset_performed = await self.reset_scheduler.apply(subscription, now)
            if reset_performed:
                subscription = await self.subscription_repo.get_by_id(command.subscription_id, for_update=True)

            # Step 5: Quota check, all or nothing
            if not subscription.admits(command.quantity):
                await self.uow.commit()
                logger.info(
                    f"Quota exceeded on subscription {subscription.id}: "
                    f"consumed={subscription.usage_consumed}, limit={subscription.usage_limit}, "
                    f"requested={command.quantity}"
                )
                alerts.append(self._alert(UsageAlertType.QUOTA_EXCEEDED, subscription, command.quantity))
                return Return.err(
                    Error(
                        code=ErrorCode.QUOTA_EXCEEDED,
                        message=f"Quota exceeded for subscription {subscription.id}",
                        reason=self._quota_reason(subscription, command.quantity),
                        details={
                            "usage_consumed": str(subscription.usage_consumed),
                            "usage_limit": str(subscription.usage_limit),
                            "requested": str(command.quantity),
                        },
                    )
                )

            # Step 6: Resolve the unit price to snapshot
            price_result = await self.price_resolver.resolve(
                subscription.service_id,
                subscription.plan_id,
                await self._reseller_for(subscription),
            )
            if price_result.is_err():
                await self.uow.rollback()
                return price_result
            price = price_result.value

            # Step 7: Ledger write and commit
            consumed_before = Decimal(subscription.usage_consumed)
            event = await self.ledger.append(
                subscription=subscription,
                quantity=command.quantity,
                unit_price=price.unit_price,
                billing_model=price.billing_model,
                idempotency_key=command.idempotency_key,
                metadata=command.metadata,
                now=now,
            )
            await self.uow.commit()

            consumed_after = consumed_before + command.quantity
            if self._crossed_near_limit(subscription, consumed_before, consumed_after):
                alerts.append(self._alert(UsageAlertType.NEAR_LIMIT, subscription, command.quantity, consumed_after))

            return Return.ok(
                to_event_response(event, subscription, consumed_after, reset_performed=reset_performed)
            )

        except IntegrityError:
            await self.uow.rollback()
            existing = await self.ledger.find_duplicate(command.subscription_id, command.idempotency_key)
            if existing:
                return Return.err(duplicate_event(existing))
            raise

        except TRANSIENT_STORE_ERRORS:
            await self.uow.rollback()
            raise

    async def _reseller_for(self, subscription: Subscription) -> Optional[str]:
        if subscription.assigned_by:
            return subscription.assigned_by
        client = await self.directory_repo.get_client(subscription.client_id)
        return client.admin_id if client else None

    def _crossed_near_limit(self, subscription: Subscription, before: Decimal, after: Decimal) -> bool:
        if subscription.effective_quota_mode() != QuotaMode.LIMITED:
            return False
        limit = Decimal(subscription.usage_limit)
        if limit <= 0:
            return False
        threshold = limit * self.near_limit_percent / Decimal(100)
        return before < threshold <= after

    @staticmethod
    def _quota_reason(subscription: Subscription, quantity: Decimal) -> str:
        if subscription.effective_quota_mode() == QuotaMode.DISABLED:
            return "quota disabled"
        remaining = max(Decimal(subscription.usage_limit) - Decimal(subscription.usage_consumed), Decimal(0))
        return f"requested={quantity}, remaining={remaining}"

    @staticmethod
    def _alert(
        alert_type: UsageAlertType,
        subscription: Subscription,
        quantity: Decimal,
        consumed: Optional[Decimal] = None,
    ) -> UsageAlert:
        return UsageAlert(
            alert_type=alert_type,
            subscription_id=subscription.id,
            client_id=subscription.client_id,
            service_id=subscription.service_id,
            usage_consumed=consumed if consumed is not None else Decimal(subscription.usage_consumed),
            usage_limit=Decimal(subscription.usage_limit),
            requested_quantity=quantity,
        )

    async def _send_alerts(self, alerts: List[UsageAlert]) -> None:
        if not self.alert_service:
            return
        for alert in alerts:
            try:
                await self.alert_service.send_usage_alert(alert)
            except Exception as e:
                logger.error(f"Usage alert for subscription {alert.subscription_id} failed: {e}")
