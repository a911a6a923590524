"""RecordUsage Use Case (usage ledger)

The only write path for usage: appends an immutable usage event and bumps
the subscription counter by the same quantity in one transaction.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from sqlalchemy.exc import IntegrityError
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
from src.app.repositories.usage_event_repository import UsageEventRepository
from src.domain.catalog import BillingModel
from src.domain.pricing import quantize_money, quantize_unit_price
from src.domain.subscription import Subscription
from src.domain.usage_event import UsageEvent, is_valid_quantity
from .dtos import RecordUsageCommandDTO, UsageEventResponseDTO
from .errors import ErrorCode

logger = logging.getLogger(__name__)


class RecordUsage:
    """
    Use Case: Record a usage event against a subscription

    Business Rules:
    1. quantity must be > 0 with at most 6 decimal places (INVALID_QUANTITY)
    2. (subscription, idempotency_key) is recorded at most once
       (DUPLICATE_EVENT, carrying the original event id)
    3. The unit price is snapshotted on the event
    4. Event insert and counter increment commit together or not at all
    5. The counter increment is a compare-and-swap on the row version
    6. The event is never stamped before the subscription's last reset

    execute() is a standalone ledger write without a quota check.
    ConsumeUsage reuses append() inside its own locked transaction.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        event_repo: UsageEventRepository,
        locks: SubscriptionLocks = subscription_locks,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        retry_min_wait: float = DEFAULT_RETRY_MIN_WAIT,
        retry_max_wait: float = DEFAULT_RETRY_MAX_WAIT,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.event_repo = event_repo
        self.locks = locks
        self.retry_attempts = retry_attempts
        self.retry_min_wait = retry_min_wait
        self.retry_max_wait = retry_max_wait

    async def execute(
        self, command: RecordUsageCommandDTO, now: Optional[datetime] = None
    ) -> Result[UsageEventResponseDTO]:
        if not is_valid_quantity(command.quantity):
            return Return.err(invalid_quantity(command.quantity))

        try:
            async with self.locks.hold(command.subscription_id):
                async for attempt in store_retrying(
                    self.retry_attempts, self.retry_min_wait, self.retry_max_wait
                ):
                    with attempt:
                        return await self._record_once(command, now)

        except TRANSIENT_STORE_ERRORS as e:
            logger.error(f"Recording usage on subscription {command.subscription_id} gave up: {e}")
            return Return.err(transient_store_error(e))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="RECORD_USAGE_FAILED",
                    message="Failed to record usage",
                    reason=str(e),
                )
            )

    async def _record_once(
        self, command: RecordUsageCommandDTO, now: Optional[datetime]
    ) -> Result[UsageEventResponseDTO]:
        try:
            subscription = await self.subscription_repo.get_by_id(command.subscription_id, for_update=True)
            if not subscription:
                await self.uow.rollback()
                return Return.err(subscription_not_found(command.subscription_id))

            now = evaluation_time(subscription, now)

            existing = await self.find_duplicate(subscription.id, command.idempotency_key)
            if existing:
                error = duplicate_event(existing)
                await self.uow.rollback()
                return Return.err(error)

            event = await self.append(
                subscription=subscription,
                quantity=command.quantity,
                unit_price=command.unit_price,
                billing_model=command.billing_model,
                idempotency_key=command.idempotency_key,
                metadata=command.metadata,
                now=now,
            )
            await self.uow.commit()

            return Return.ok(
                to_event_response(
                    event,
                    subscription,
                    usage_consumed=Decimal(subscription.usage_consumed) + command.quantity,
                )
            )

        except IntegrityError:
            await self.uow.rollback()
            existing = await self.find_duplicate(command.subscription_id, command.idempotency_key)
            if existing:
                return Return.err(duplicate_event(existing))
            raise

        except TRANSIENT_STORE_ERRORS:
            await self.uow.rollback()
            raise

    async def find_duplicate(self, subscription_id: int, idempotency_key: str) -> Optional[UsageEvent]:
        return await self.event_repo.get_by_idempotency_key(subscription_id, idempotency_key)

    async def append(
        self,
        subscription: Subscription,
        quantity: Decimal,
        unit_price: Decimal,
        billing_model: BillingModel,
        idempotency_key: str,
        metadata: Optional[Dict[str, Any]],
        now: datetime,
    ) -> UsageEvent:
        """
        Write the event and increment the counter in the caller's transaction

        The caller holds the subscription row and commits.

        Raises:
            ConcurrentUpdateError: If the row version moved since it was read
            IntegrityError: If the idempotency key was taken concurrently
        """
        unit_cost = quantize_unit_price(unit_price)
        event = UsageEvent(
            subscription_id=subscription.id,
            client_id=subscription.client_id,
            service_id=subscription.service_id,
            quantity=quantity,
            unit_cost=unit_cost,
            total_cost=quantize_money(quantity * unit_cost),
            billing_model=billing_model,
            idempotency_key=idempotency_key,
            event_metadata=metadata,
            recorded_at=now,
        )
        created = await self.event_repo.create(event)

        updated = await self.subscription_repo.increment_usage(
            subscription.id, quantity, subscription.version, now
        )
        if not updated:
            raise ConcurrentUpdateError(
                f"Subscription {subscription.id} changed during usage write (version {subscription.version})"
            )

        return created


def evaluation_time(subscription: Subscription, now: Optional[datetime]) -> datetime:
    """
    Clock for a locked subscription row

    Read after the row is held, and never earlier than last_reset_at: a
    request whose clock lags a reset committed elsewhere is evaluated in
    the new period.
    """
    now = now or datetime.utcnow()
    if subscription.last_reset_at is not None and now < subscription.last_reset_at:
        return subscription.last_reset_at
    return now


def invalid_quantity(quantity: Decimal) -> Error:
    return Error(
        code=ErrorCode.INVALID_QUANTITY,
        message=f"Quantity must be greater than zero with at most 6 decimal places, got {quantity}",
        reason="quantity <= 0" if quantity.is_finite() and quantity <= 0 else "quantity not representable",
    )


def subscription_not_found(subscription_id: int) -> Error:
    return Error(
        code=ErrorCode.SUBSCRIPTION_NOT_FOUND,
        message=f"Subscription {subscription_id} not found",
    )


def duplicate_event(existing: UsageEvent) -> Error:
    return Error(
        code=ErrorCode.DUPLICATE_EVENT,
        message=f"Usage event with key '{existing.idempotency_key}' already recorded",
        reason="Idempotent retry; the original event stands",
        details={"event_id": existing.id},
    )


def transient_store_error(exc: Exception) -> Error:
    return Error(
        code=ErrorCode.TRANSIENT_STORE_ERROR,
        message="Data store conflict, safe to retry",
        reason=str(exc),
    )


def to_event_response(
    event: UsageEvent,
    subscription: Subscription,
    usage_consumed: Decimal,
    reset_performed: bool = False,
) -> UsageEventResponseDTO:
    return UsageEventResponseDTO(
        event_id=event.id,
        subscription_id=event.subscription_id,
        client_id=event.client_id,
        service_id=event.service_id,
        quantity=event.quantity,
        unit_cost=event.unit_cost,
        total_cost=event.total_cost,
        billing_model=event.billing_model.value,
        idempotency_key=event.idempotency_key,
        usage_consumed=usage_consumed,
        usage_limit=subscription.usage_limit,
        quota_mode=subscription.effective_quota_mode().value,
        reset_performed=reset_performed,
        recorded_at=event.recorded_at,
    )
