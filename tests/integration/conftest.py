import pytest_asyncio
from datetime import datetime
from decimal import Decimal
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.services.notification_service import LoggingUsageAlertService
from src.depends import get_session, get_usage_alert_service
from src.domain.catalog import BillingModel, Service, ServiceCategory
from src.domain.directory import Client, Reseller
from src.domain.subscription import ResetPeriod, Subscription


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """File-backed SQLite database so that separate sessions see each other's commits"""
    test_db_url = f"sqlite+aiosqlite:///{tmp_path / 'metering_test.db'}"

    engine = create_async_engine(test_db_url, echo=False, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(db_session):
    """One reseller at 15% commission, one client, a 10.00/min voice service and a 100 unit subscription"""
    reseller = Reseller(id="reseller_1", company_name="Acme Telecom", commission_rate=Decimal("15.00"))
    client = Client(id="client_1", admin_id="reseller_1", company_name="Client Co")
    service = Service(
        id="svc_voice",
        name="AI Voice Telecaller",
        category=ServiceCategory.VOICE,
        pricing_model=BillingModel.PER_MINUTE,
        base_price=Decimal("10.000000"),
    )
    db_session.add_all([reseller, client, service])
    await db_session.commit()

    subscription = Subscription(
        client_id="client_1",
        service_id="svc_voice",
        assigned_by="reseller_1",
        usage_limit=Decimal("100"),
        reset_period=ResetPeriod.MONTHLY,
        last_reset_at=datetime(2024, 1, 1),
    )
    db_session.add(subscription)
    await db_session.commit()
    await db_session.refresh(subscription)

    return {"reseller": reseller, "client": client, "service": service, "subscription": subscription}


@pytest_asyncio.fixture
async def client(session_factory):
    """Create test client; every request gets its own session like in production"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_usage_alert_service] = LoggingUsageAlertService

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
