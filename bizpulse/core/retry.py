"""
Rate Limit Backoff
Bounded retry for Google Business Profile calls that answer HTTP 429

Strategy:
- Max attempts from settings (default 3)
- Linear backoff: 2s, 4s, ... (never decreasing)
- Sleep function is injected so tests can run with a recording no-op clock
- After the last attempt is still rate limited, raise RateLimitedError with a
  suggested retry delay (upstream Retry-After, else the configured default)
"""
import asyncio
import logging
from typing import Awaitable, Callable

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_incrementing,
)

from bizpulse.core.errors import RateLimitedError

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]
SendFunc = Callable[[], Awaitable[httpx.Response]]


def is_rate_limited(response: httpx.Response) -> bool:
    return response.status_code == 429


def parse_retry_after(response: httpx.Response, default: int) -> int:
    """Read a numeric Retry-After header, falling back to ``default``."""
    value = response.headers.get("Retry-After")
    if value:
        try:
            return max(int(float(value)), 0)
        except ValueError:
            # HTTP-date form is not worth parsing here
            pass
    return default


def _log_rate_limit(description: str, max_attempts: int):
    def before_sleep(retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"Rate limit hit on {description}, retrying in {delay:g}s "
            f"(attempt {retry_state.attempt_number}/{max_attempts})"
        )
    return before_sleep


async def send_with_backoff(
    send: SendFunc,
    *,
    max_attempts: int = 3,
    backoff_seconds: float = 2.0,
    retry_after_default: int = 60,
    sleep: SleepFunc = asyncio.sleep,
    description: str = "Google API request"
) -> httpx.Response:
    """
    Call ``send`` until it returns a non-429 response or attempts run out.

    Transport exceptions are not retried; they propagate to the caller.

    Returns:
        The first response that is not rate limited

    Raises:
        RateLimitedError: every attempt returned 429
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_incrementing(start=backoff_seconds, increment=backoff_seconds),
        retry=retry_if_result(is_rate_limited),
        before_sleep=_log_rate_limit(description, max_attempts),
        retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        sleep=sleep,
    )

    response = await retrying(send)

    if is_rate_limited(response):
        retry_after = parse_retry_after(response, retry_after_default)
        logger.error(f"❌ Max retries reached for rate limit on {description} (retry after {retry_after}s)")
        raise RateLimitedError(retry_after=retry_after, details=f"{description} rate limited after {max_attempts} attempts")

    return response
