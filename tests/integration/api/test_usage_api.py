"""API tests for the usage endpoints"""

import pytest
from decimal import Decimal


def consume_body(subscription_id, quantity="3", key="call_8f2a91"):
    return {"subscription_id": subscription_id, "quantity": quantity, "idempotency_key": key}


@pytest.mark.asyncio
class TestConsumeUsageApi:

    async def test_consume_returns_event(self, client, seed):
        response = await client.post("/usage:consume", json=consume_body(seed["subscription"].id))

        assert response.status_code == 200
        body = response.json()
        assert body["event_id"] > 0
        assert Decimal(body["quantity"]) == Decimal("3")
        assert Decimal(body["unit_cost"]) == Decimal("10")
        assert Decimal(body["total_cost"]) == Decimal("30")
        assert Decimal(body["usage_consumed"]) == Decimal("3")

    async def test_quota_exceeded_is_402(self, client, seed):
        response = await client.post("/usage:consume", json=consume_body(seed["subscription"].id, "101"))

        assert response.status_code == 402
        error = response.json()["error"]
        assert error["code"] == "QUOTA_EXCEEDED"
        assert error["details"]["requested"] == "101"

    async def test_duplicate_key_is_409_with_original_event(self, client, seed):
        first = await client.post("/usage:consume", json=consume_body(seed["subscription"].id))
        second = await client.post("/usage:consume", json=consume_body(seed["subscription"].id))

        assert second.status_code == 409
        error = second.json()["error"]
        assert error["code"] == "DUPLICATE_EVENT"
        assert error["details"]["event_id"] == first.json()["event_id"]

    async def test_inactive_subscription_is_410(self, client, seed, db_session):
        subscription = seed["subscription"]
        subscription.is_active = False
        db_session.add(subscription)
        await db_session.commit()

        response = await client.post("/usage:consume", json=consume_body(subscription.id))

        assert response.status_code == 410
        assert response.json()["error"]["code"] == "SUBSCRIPTION_INACTIVE"

    async def test_unknown_subscription_is_404(self, client, seed):
        response = await client.post("/usage:consume", json=consume_body(9999))

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "SUBSCRIPTION_NOT_FOUND"

    @pytest.mark.parametrize("quantity", ["0", "-1"])
    async def test_non_positive_quantity_is_422(self, client, seed, quantity):
        response = await client.post("/usage:consume", json=consume_body(seed["subscription"].id, quantity))

        assert response.status_code == 422

    async def test_quantity_beyond_six_decimals_is_422(self, client, seed):
        response = await client.post(
            "/usage:consume", json=consume_body(seed["subscription"].id, "0.0000004")
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_QUANTITY"

    async def test_missing_idempotency_key_is_422(self, client, seed):
        response = await client.post(
            "/usage:consume", json={"subscription_id": seed["subscription"].id, "quantity": "1"}
        )

        assert response.status_code == 422


@pytest.mark.asyncio
class TestEnsureResetApi:

    async def test_stale_period_is_reset(self, client, seed):
        """
        Given: Subscription last reset on 2024-01-01
        When: ensureReset is called now
        Then: reset_performed, then a second call is a no-op
        """
        subscription_id = seed["subscription"].id

        first = await client.post("/usage:ensureReset", json={"subscription_id": subscription_id})
        second = await client.post("/usage:ensureReset", json={"subscription_id": subscription_id})

        assert first.status_code == 200
        assert first.json()["reset_performed"] is True
        assert second.json()["reset_performed"] is False

    async def test_unknown_subscription(self, client, seed):
        response = await client.post("/usage:ensureReset", json={"subscription_id": 9999})

        assert response.status_code == 404
