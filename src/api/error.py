"""HTTP error mapping

Use case errors are raised as ClientError and rendered as
{"error": {"code", "message", "reason"?, "details"?}}.
"""

import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from libs.result import Error
from src.app.use_cases.billing.errors import ErrorCode, NOT_FOUND_CODES

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.QUOTA_EXCEEDED: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.DUPLICATE_EVENT: status.HTTP_409_CONFLICT,
    ErrorCode.DUPLICATE_INVOICE: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_INVOICE_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.SUBSCRIPTION_INACTIVE: status.HTTP_410_GONE,
    ErrorCode.INVALID_QUANTITY: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INVALID_BILLING_PERIOD: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.NO_BILLABLE_USAGE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.TRANSIENT_STORE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(error: Error) -> int:
    if error.code in NOT_FOUND_CODES:
        return status.HTTP_404_NOT_FOUND
    return STATUS_BY_CODE.get(error.code, status.HTTP_400_BAD_REQUEST)


class ClientError(Exception):
    def __init__(self, error: Error, status_code: int = None):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code or status_for(error)


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error.code}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error.model_dump(mode="json", exclude_none=True)},
    )
