"""Unit tests for ConsumeUsage use case

Tests cover:
- Admission within quota, price snapshot and counter increment
- Quota exceeded with no partial consumption
- Inactive, expired and disabled subscriptions
- Idempotent retries
- Reset evaluated before the quota check
- Near-limit and quota-exceeded alerts
- Store conflicts retried then reported
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.services.notification_service import UsageAlertType
from src.app.use_cases.billing.consume_usage import ConsumeUsage
from src.app.use_cases.billing.dtos import ConsumeUsageCommandDTO
from src.app.use_cases.billing.errors import ErrorCode
from src.domain.catalog import ResellerPricing
from src.domain.subscription import QuotaMode, ResetPeriod
from src.domain.usage_event import UsageEvent


@pytest.fixture
def mock_alert_service():
    service = MagicMock()
    service.send_usage_alert = AsyncMock(return_value=True)
    return service


@pytest.fixture
def consume_use_case(
    mock_uow, mock_subscription_repo, mock_event_repo, mock_catalog_repo, mock_directory_repo,
    mock_alert_service, locks,
):
    return ConsumeUsage(
        uow=mock_uow,
        subscription_repo=mock_subscription_repo,
        event_repo=mock_event_repo,
        catalog_repo=mock_catalog_repo,
        directory_repo=mock_directory_repo,
        alert_service=mock_alert_service,
        locks=locks,
        retry_attempts=3,
        retry_min_wait=0,
        retry_max_wait=0,
    )


def command(quantity="10", key="call_1"):
    return ConsumeUsageCommandDTO(subscription_id=1, quantity=Decimal(quantity), idempotency_key=key)


@pytest.mark.asyncio
class TestConsumeUsageSuccess:

    async def test_consume_within_quota(
        self, consume_use_case, mock_subscription_repo, mock_event_repo, mock_uow, make_subscription, now
    ):
        """
        Given: Subscription with 0 of 100 consumed
        When: 10 units are consumed
        Then: Event recorded at base price, counter incremented by 10, committed
        """
        mock_subscription_repo.get_by_id = AsyncMock(return_value=make_subscription())

        result = await consume_use_case.execute(command("10"), now=now)

        assert result.is_ok()
        response = result.value
        assert response.event_id == 42
        assert response.unit_cost == Decimal("10.0000")
        assert response.total_cost == Decimal("100.00")
        assert response.usage_consumed == Decimal("10")
        assert response.billing_model == "per_minute"
        assert response.reset_performed is False

        mock_subscription_repo.increment_usage.assert_called_once_with(1, Decimal("10"), 3, now)
        mock_uow.commit.assert_called_once()

    async def test_reseller_markup_is_snapshotted(
        self, consume_use_case, mock_subscription_repo, mock_event_repo, mock_catalog_repo, make_subscription, now
    ):
        """
        Given: Reseller marks the 10.00 service up by 20%
        When: 3 units are consumed
        Then: Event carries unit cost 12.0000 and total 36.00
        """
        mock_subscription_repo.get_by_id = AsyncMock(return_value=make_subscription())
        mock_catalog_repo.get_reseller_pricing = AsyncMock(
            return_value=ResellerPricing(
                admin_id="reseller_1", service_id="svc_voice", markup_percentage=Decimal("20")
            )
        )

        result = await consume_use_case.execute(command("3"), now=now)

        assert result.is_ok()
        assert result.value.unit_cost == Decimal("12.0000")
        assert result.value.total_cost == Decimal("36.00")
        mock_catalog_repo.get_reseller_pricing.assert_called_once_with("reseller_1", "svc_voice")

    async def test_reseller_falls_back_to_client_owner(
        self, consume_use_case, mock_subscription_repo, mock_catalog_repo, mock_directory_repo,
        make_subscription, now,
    ):
        """
        Given: Subscription without assigned_by
        When: Usage is consumed
        Then: The client's owning reseller prices it
        """
        mock_subscription_repo.get_by_id = AsyncMock(return_value=make_subscription(assigned_by=None))

        result = await consume_use_case.execute(command("1"), now=now)

        assert result.is_ok()
        mock_directory_repo.get_client.assert_called_once_with("client_1")
        mock_catalog_repo.get_reseller_pricing.assert_called_once_with("reseller_1", "svc_voice")

    async def test_exactly_reaching_the_limit(
        self, consume_use_case, mock_subscription_repo, make_subscription, now
    ):
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(usage_consumed=Decimal("95"))
        )

        result = await consume_use_case.execute(command("5"), now=now)

        assert result.is_ok()
        assert result.value.usage_consumed == Decimal("100")

    async def test_unlimited_admits_anything(
        self, consume_use_case, mock_subscription_repo, make_subscription, now
    ):
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(usage_limit=Decimal("0"), usage_consumed=Decimal("5000"))
        )

        result = await consume_use_case.execute(command("1000"), now=now)

        assert result.is_ok()
        assert result.value.quota_mode == "unlimited"


@pytest.mark.asyncio
class TestConsumeUsageRejections:

    async def test_quota_exceeded_has_no_partial_consumption(
        self, consume_use_case, mock_subscription_repo, mock_event_repo, mock_alert_service,
        make_subscription, now,
    ):
        """
        Given: 95 of 100 consumed
        When: 6 units are requested
        Then: QUOTA_EXCEEDED, no event written, counter untouched, alert sent
        """
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(usage_consumed=Decimal("95"))
        )

        result = await consume_use_case.execute(command("6"), now=now)

        assert result.is_err()
        assert result.error.code == ErrorCode.QUOTA_EXCEEDED
        assert result.error.details["usage_consumed"] == "95"
        assert result.error.details["requested"] == "6"
        mock_event_repo.create.assert_not_called()
        mock_subscription_repo.increment_usage.assert_not_called()

        mock_alert_service.send_usage_alert.assert_called_once()
        alert = mock_alert_service.send_usage_alert.call_args[0][0]
        assert alert.alert_type == UsageAlertType.QUOTA_EXCEEDED
        assert alert.requested_quantity == Decimal("6")

    async def test_disabled_quota_rejects(
        self, consume_use_case, mock_subscription_repo, mock_event_repo, make_subscription, now
    ):
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(quota_mode=QuotaMode.DISABLED)
        )

        result = await consume_use_case.execute(command("1"), now=now)

        assert result.is_err()
        assert result.error.code == ErrorCode.QUOTA_EXCEEDED
        assert result.error.reason == "quota disabled"
        mock_event_repo.create.assert_not_called()

    async def test_inactive_subscription(
        self, consume_use_case, mock_subscription_repo, mock_event_repo, mock_uow, make_subscription, now
    ):
        mock_subscription_repo.get_by_id = AsyncMock(return_value=make_subscription(is_active=False))

        result = await consume_use_case.execute(command("1"), now=now)

        assert result.is_err()
        assert result.error.code == ErrorCode.SUBSCRIPTION_INACTIVE
        assert result.error.reason == "deactivated"
        mock_event_repo.create.assert_not_called()
        mock_uow.rollback.assert_called()

    async def test_expired_subscription(
        self, consume_use_case, mock_subscription_repo, make_subscription, now
    ):
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(expires_at=now - timedelta(minutes=1))
        )

        result = await consume_use_case.execute(command("1"), now=now)

        assert result.is_err()
        assert result.error.code == ErrorCode.SUBSCRIPTION_INACTIVE
        assert result.error.reason == "expired"

    async def test_unknown_subscription(self, consume_use_case, mock_subscription_repo, now):
        mock_subscription_repo.get_by_id = AsyncMock(return_value=None)

        result = await consume_use_case.execute(command("1"), now=now)

        assert result.is_err()
        assert result.error.code == ErrorCode.SUBSCRIPTION_NOT_FOUND

    @pytest.mark.parametrize("quantity", ["0", "-3", "0.0000004", "1.0000001", "1000000000000"])
    async def test_invalid_quantity(self, consume_use_case, mock_subscription_repo, quantity, now):
        mock_subscription_repo.get_by_id = AsyncMock()

        result = await consume_use_case.execute(command(quantity), now=now)

        assert result.is_err()
        assert result.error.code == ErrorCode.INVALID_QUANTITY
        mock_subscription_repo.get_by_id.assert_not_called()

    async def test_duplicate_key_returns_original_event(
        self, consume_use_case, mock_subscription_repo, mock_event_repo, make_subscription, now
    ):
        """
        Given: An event already recorded under the idempotency key
        When: The same key is consumed again
        Then: DUPLICATE_EVENT with the original event id, nothing written
        """
        mock_subscription_repo.get_by_id = AsyncMock(return_value=make_subscription())
        mock_event_repo.get_by_idempotency_key = AsyncMock(
            return_value=UsageEvent(id=7, subscription_id=1, idempotency_key="call_1")
        )

        result = await consume_use_case.execute(command("1", key="call_1"), now=now)

        assert result.is_err()
        assert result.error.code == ErrorCode.DUPLICATE_EVENT
        assert result.error.details == {"event_id": 7}
        mock_event_repo.create.assert_not_called()
        mock_subscription_repo.increment_usage.assert_not_called()

    async def test_unknown_service(
        self, consume_use_case, mock_subscription_repo, mock_catalog_repo, mock_event_repo,
        make_subscription, now,
    ):
        mock_subscription_repo.get_by_id = AsyncMock(return_value=make_subscription())
        mock_catalog_repo.get_service = AsyncMock(return_value=None)

        result = await consume_use_case.execute(command("1"), now=now)

        assert result.is_err()
        assert result.error.code == ErrorCode.UNKNOWN_SERVICE
        mock_event_repo.create.assert_not_called()


@pytest.mark.asyncio
class TestConsumeUsageReset:

    async def test_reset_happens_before_quota_check(
        self, consume_use_case, mock_subscription_repo, make_subscription
    ):
        """
        Given: 95 of 100 consumed last month
        When: 10 units are requested after the month boundary
        Then: Counter reset first, request admitted, usage_consumed = 10
        """
        now = datetime(2024, 3, 2, 9, 0)
        stale = make_subscription(usage_consumed=Decimal("95"), last_reset_at=datetime(2024, 2, 1))
        fresh = make_subscription(usage_consumed=Decimal("0"), last_reset_at=now, version=4)
        mock_subscription_repo.get_by_id = AsyncMock(side_effect=[stale, fresh])

        result = await consume_use_case.execute(command("10"), now=now)

        assert result.is_ok()
        assert result.value.reset_performed is True
        assert result.value.usage_consumed == Decimal("10")
        mock_subscription_repo.reset_usage.assert_called_once_with(1, now, 3)
        mock_subscription_repo.increment_usage.assert_called_once_with(1, Decimal("10"), 4, now)

    async def test_clock_behind_latest_reset_is_clamped(
        self, consume_use_case, mock_subscription_repo, mock_event_repo, make_subscription
    ):
        """
        Given: Another worker reset the subscription at Mar 1 00:00:01
        When: A request whose clock still reads Feb 29 23:59:59 gets the row
        Then: Evaluated at the reset anchor, no second reset, event counted in the new period
        """
        anchor = datetime(2024, 3, 1, 0, 0, 1)
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(usage_consumed=Decimal("5"), last_reset_at=anchor, version=4)
        )

        result = await consume_use_case.execute(command("3"), now=datetime(2024, 2, 29, 23, 59, 59))

        assert result.is_ok()
        assert result.value.reset_performed is False
        assert result.value.recorded_at == anchor
        event = mock_event_repo.create.call_args[0][0]
        assert event.recorded_at == anchor
        mock_subscription_repo.reset_usage.assert_not_called()
        mock_subscription_repo.increment_usage.assert_called_once_with(1, Decimal("3"), 4, anchor)

    async def test_never_period_does_not_reset(
        self, consume_use_case, mock_subscription_repo, make_subscription
    ):
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(
                reset_period=ResetPeriod.NEVER,
                usage_consumed=Decimal("95"),
                last_reset_at=datetime(2020, 1, 1),
            )
        )

        result = await consume_use_case.execute(command("10"), now=datetime(2024, 3, 2))

        assert result.is_err()
        assert result.error.code == ErrorCode.QUOTA_EXCEEDED
        mock_subscription_repo.reset_usage.assert_not_called()


@pytest.mark.asyncio
class TestConsumeUsageAlerts:

    async def test_crossing_near_limit_sends_one_alert(
        self, consume_use_case, mock_subscription_repo, mock_alert_service, make_subscription, now
    ):
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(usage_consumed=Decimal("70"))
        )

        result = await consume_use_case.execute(command("15"), now=now)

        assert result.is_ok()
        mock_alert_service.send_usage_alert.assert_called_once()
        alert = mock_alert_service.send_usage_alert.call_args[0][0]
        assert alert.alert_type == UsageAlertType.NEAR_LIMIT
        assert alert.usage_consumed == Decimal("85")

    async def test_already_past_threshold_sends_nothing(
        self, consume_use_case, mock_subscription_repo, mock_alert_service, make_subscription, now
    ):
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(usage_consumed=Decimal("85"))
        )

        result = await consume_use_case.execute(command("5"), now=now)

        assert result.is_ok()
        mock_alert_service.send_usage_alert.assert_not_called()

    async def test_alert_failure_does_not_fail_consumption(
        self, consume_use_case, mock_subscription_repo, mock_alert_service, make_subscription, now
    ):
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(usage_consumed=Decimal("79"))
        )
        mock_alert_service.send_usage_alert = AsyncMock(side_effect=RuntimeError("webhook down"))

        result = await consume_use_case.execute(command("1"), now=now)

        assert result.is_ok()


@pytest.mark.asyncio
class TestConsumeUsageStoreConflicts:

    async def test_conflict_is_retried(
        self, consume_use_case, mock_subscription_repo, mock_uow, make_subscription, now
    ):
        """
        Given: The first compare-and-swap loses a race
        When: Usage is consumed
        Then: The whole check is retried in a fresh transaction and succeeds
        """
        mock_subscription_repo.get_by_id = AsyncMock(return_value=make_subscription())
        mock_subscription_repo.increment_usage = AsyncMock(side_effect=[False, True])

        result = await consume_use_case.execute(command("1"), now=now)

        assert result.is_ok()
        assert mock_subscription_repo.increment_usage.call_count == 2
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_called_once()

    async def test_persistent_conflict_is_transient_error(
        self, consume_use_case, mock_subscription_repo, make_subscription, now
    ):
        mock_subscription_repo.get_by_id = AsyncMock(return_value=make_subscription())
        mock_subscription_repo.increment_usage = AsyncMock(return_value=False)

        result = await consume_use_case.execute(command("1"), now=now)

        assert result.is_err()
        assert result.error.code == ErrorCode.TRANSIENT_STORE_ERROR
        assert mock_subscription_repo.increment_usage.call_count == 3

    async def test_lock_is_released_after_consumption(
        self, consume_use_case, mock_subscription_repo, locks, make_subscription, now
    ):
        mock_subscription_repo.get_by_id = AsyncMock(return_value=make_subscription())

        await consume_use_case.execute(command("1"), now=now)

        assert len(locks) == 0
