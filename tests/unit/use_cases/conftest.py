import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.services.subscription_locks import SubscriptionLocks
from src.domain.catalog import BillingModel, Service, ServiceCategory
from src.domain.directory import Client, Reseller
from src.domain.subscription import ResetPeriod, Subscription


NOW = datetime(2024, 3, 14, 10, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def locks():
    """Fresh lock registry per test"""
    return SubscriptionLocks()


@pytest.fixture
def voice_service():
    return Service(
        id="svc_voice",
        name="AI Voice Telecaller",
        category=ServiceCategory.VOICE,
        pricing_model=BillingModel.PER_MINUTE,
        base_price=Decimal("10.000000"),
    )


@pytest.fixture
def reseller():
    return Reseller(id="reseller_1", company_name="Acme Telecom", commission_rate=Decimal("15.00"))


@pytest.fixture
def client():
    return Client(id="client_1", admin_id="reseller_1", company_name="Client Co")


@pytest.fixture
def make_subscription():
    """Factory for subscriptions anchored in the current month"""

    def _make(**overrides):
        fields = dict(
            id=1,
            client_id="client_1",
            service_id="svc_voice",
            assigned_by="reseller_1",
            usage_limit=Decimal("100"),
            usage_consumed=Decimal("0"),
            reset_period=ResetPeriod.MONTHLY,
            last_reset_at=datetime(2024, 3, 1),
            version=3,
        )
        fields.update(overrides)
        return Subscription(**fields)

    return _make


@pytest.fixture
def mock_subscription_repo():
    repo = MagicMock()
    repo.increment_usage = AsyncMock(return_value=True)
    repo.reset_usage = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def mock_event_repo():
    """Event repository that assigns ids on create"""
    repo = MagicMock()
    repo.get_by_idempotency_key = AsyncMock(return_value=None)

    async def _create(event):
        event.id = 42
        return event

    repo.create = AsyncMock(side_effect=_create)
    return repo


@pytest.fixture
def mock_catalog_repo(voice_service):
    repo = MagicMock()
    repo.get_service = AsyncMock(return_value=voice_service)
    repo.get_plan = AsyncMock(return_value=None)
    repo.get_reseller_pricing = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def mock_directory_repo(reseller, client):
    repo = MagicMock()
    repo.get_reseller = AsyncMock(return_value=reseller)
    repo.get_client = AsyncMock(return_value=client)
    return repo
