"""Bounded retry for data-store conflicts

A locked read-check-write that loses a race (compare-and-swap miss,
lock timeout, serialization failure) is retried in a fresh transaction
with exponential backoff. Exhausting the attempts re-raises the last
conflict so the use case can report TRANSIENT_STORE_ERROR.
"""

import logging
from sqlalchemy.exc import OperationalError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_MIN_WAIT = 0.05
DEFAULT_RETRY_MAX_WAIT = 1.0


class ConcurrentUpdateError(Exception):
    """The subscription row changed between read and compare-and-swap"""


TRANSIENT_STORE_ERRORS = (ConcurrentUpdateError, OperationalError)


def store_retrying(
    attempts: int = DEFAULT_RETRY_ATTEMPTS,
    min_wait: float = DEFAULT_RETRY_MIN_WAIT,
    max_wait: float = DEFAULT_RETRY_MAX_WAIT,
) -> AsyncRetrying:
    return AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(TRANSIENT_STORE_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
