"""
Retry policy with exponential backoff for upstream requests.

Delay before attempt N+1 is ``base_delay * 2 ** (N - 1)``: 1s, 2s, 4s, ...
"""
import asyncio
from collections.abc import Awaitable, Callable

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from .constants import DEFAULT_RETRY_DELAY, MAX_RETRY_ATTEMPTS
from .logger import logger


def is_retryable_http_status(status_code: int) -> bool:
    """
    Check if HTTP status code is retryable.

    Retryable: 429 (rate limit), 500, 502, 503, 504 (server errors)
    Not retryable: 400, 401, 403, 404 (client errors)
    """
    return status_code in (429, 500, 502, 503, 504)


def _log_retry(retry_state: RetryCallState):
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "retry.attempting",
        function=getattr(retry_state.fn, "__name__", "request"),
        attempt=retry_state.attempt_number,
        delay=round(retry_state.next_action.sleep, 2) if retry_state.next_action else 0,
        error=str(error)[:80]
    )


def async_retrying(
    max_attempts: int = MAX_RETRY_ATTEMPTS,
    base_delay: float = DEFAULT_RETRY_DELAY,
    retryable_exceptions: tuple[type[Exception], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> AsyncRetrying:
    """
    Build a tenacity AsyncRetrying with the screener's backoff policy.

    Exhaustion raises tenacity.RetryError (callers unwrap ``last_attempt``);
    exceptions outside ``retryable_exceptions`` propagate immediately.

    Usage:
        try:
            async for attempt in async_retrying(retryable_exceptions=(FetchTransportError,)):
                with attempt:
                    return await get(url)
        except RetryError as e:
            ...
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, exp_base=2, min=0),
        retry=retry_if_exception_type(retryable_exceptions),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=False,
    )
