from decimal import Decimal
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.notification_service import create_usage_alert_service
from src.adapter.services.tax_policy import create_tax_policy
from src.adapter.services.pdf_service import ReportLabPdfService

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def get_usage_alert_service():
    return create_usage_alert_service(ApplicationConfig.USAGE_ALERT_WEBHOOK)


def get_tax_policy():
    return create_tax_policy(ApplicationConfig.DEFAULT_TAX_RATE)


def get_pdf_service():
    return ReportLabPdfService()


def store_retry_settings() -> dict:
    return {
        "retry_attempts": int(ApplicationConfig.STORE_RETRY_ATTEMPTS),
        "retry_min_wait": float(ApplicationConfig.STORE_RETRY_MIN_WAIT_SECONDS),
        "retry_max_wait": float(ApplicationConfig.STORE_RETRY_MAX_WAIT_SECONDS),
    }


def near_limit_percent() -> Decimal:
    return Decimal(str(ApplicationConfig.NEAR_LIMIT_THRESHOLD_PERCENT))
