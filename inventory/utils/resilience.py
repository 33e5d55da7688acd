"""
Bounded retry for store calls made at the HTTP boundary.

A TransientStoreFailure is retried exactly once; the second failure is
re-raised so the boundary can answer with a generic 503.
"""

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from .exceptions import TransientStoreFailure
from .logger import get_logger

logger = get_logger(__name__)

STORE_CALL_ATTEMPTS = 2
STORE_RETRY_WAIT_SECONDS = 0.05


def _log_retry(retry_state) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Transient store failure, retrying",
        attempt=retry_state.attempt_number,
        error=str(exc) if exc else None,
    )


store_call = retry(
    stop=stop_after_attempt(STORE_CALL_ATTEMPTS),
    wait=wait_fixed(STORE_RETRY_WAIT_SECONDS),
    retry=retry_if_exception_type(TransientStoreFailure),
    before_sleep=_log_retry,
    reraise=True,
)
