"""Usage API Routes

FastAPI routes for quota-checked consumption and period resets.
"""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.schemas.billing_request import ConsumeUsageRequestSchema, EnsureResetRequestSchema
from src.app.services.notification_service import UsageAlertService
from src.app.use_cases.billing.dtos import ConsumeUsageCommandDTO, ResetResultDTO, UsageEventResponseDTO
from src.app.use_cases.billing.consume_usage import ConsumeUsage
from src.app.use_cases.billing.ensure_current_period import EnsureCurrentPeriod
from src.adapter.repositories import (
    SqlAlchemySubscriptionRepository,
    SqlAlchemyUsageEventRepository,
    SqlAlchemyCatalogRepository,
    SqlAlchemyDirectoryRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session, get_usage_alert_service, near_limit_percent, store_retry_settings
from src.api.error import ClientError

router = APIRouter(tags=["Usage"])


def error_example(code: str, message: str) -> dict:
    return {"content": {"application/json": {"example": {"error": {"code": code, "message": message}}}}}


@router.post(
    "/usage:consume",
    response_model=UsageEventResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        402: {"description": "Quota exceeded", **error_example("QUOTA_EXCEEDED", "Quota exceeded for subscription 1")},
        409: {"description": "Idempotency key already recorded", **error_example("DUPLICATE_EVENT", "Usage event with key 'call_8f2a91' already recorded")},
        410: {"description": "Subscription inactive or expired", **error_example("SUBSCRIPTION_INACTIVE", "Subscription 1 is not active")},
        503: {"description": "Store conflict, safe to retry", **error_example("TRANSIENT_STORE_ERROR", "Data store conflict, safe to retry")},
    }
)
async def consume_usage(
    request: ConsumeUsageRequestSchema,
    session: AsyncSession = Depends(get_session),
    alert_service: UsageAlertService = Depends(get_usage_alert_service),
):
    """
    Consume quota on a subscription and record the usage event.

    The period reset (if due) is applied before the quota check. A request
    either fully succeeds or is fully rejected; there is no partial
    consumption. A 409 on retry means the original event already exists
    (`error.details.event_id`).

    **Returns:**
    - 200: Usage recorded
    - 402: Quota exceeded
    - 409: Duplicate idempotency key
    - 410: Subscription inactive or expired
    - 503: Transient store conflict
    """
    use_case = ConsumeUsage(
        uow=SqlAlchemyUnitOfWork(session),
        subscription_repo=SqlAlchemySubscriptionRepository(session),
        event_repo=SqlAlchemyUsageEventRepository(session),
        catalog_repo=SqlAlchemyCatalogRepository(session),
        directory_repo=SqlAlchemyDirectoryRepository(session),
        alert_service=alert_service,
        default_timezone=ApplicationConfig.DEFAULT_TIMEZONE,
        near_limit_percent=near_limit_percent(),
        **store_retry_settings(),
    )

    command = ConsumeUsageCommandDTO(
        subscription_id=request.subscription_id,
        quantity=request.quantity,
        idempotency_key=request.idempotency_key,
        metadata=request.metadata,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/usage:ensureReset",
    response_model=ResetResultDTO,
    status_code=status.HTTP_200_OK,
)
async def ensure_reset(
    request: EnsureResetRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Reset the subscription's usage counter if its accounting period elapsed.

    Called by the periodic sweep; a second call in the same period is a no-op.
    """
    use_case = EnsureCurrentPeriod(
        uow=SqlAlchemyUnitOfWork(session),
        subscription_repo=SqlAlchemySubscriptionRepository(session),
        default_timezone=ApplicationConfig.DEFAULT_TIMEZONE,
        **store_retry_settings(),
    )
    result = await use_case.execute(request.subscription_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
