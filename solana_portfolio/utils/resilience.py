"""
Resilience primitives shared by every provider call.

``with_retry`` retries rate limiting and timeouts with pure exponential
backoff, ``with_deadline`` bounds an awaitable and cancels it on expiry, and
``pace`` throttles sequential calls to the same endpoint.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx

from solana_portfolio.utils.errors import DeadlineExceededError, PortfolioError, RateLimitError, SolanaRpcError

T = TypeVar('T')

logger = logging.getLogger(__name__)

RATE_LIMIT_RPC_CODES = {-32005, -32429}
RATE_LIMIT_PATTERN = re.compile(r"rate.?limit|too many requests|\b429\b", re.IGNORECASE)
TIMEOUT_PATTERN = re.compile(r"\btimed out\b|\btimeout\b", re.IGNORECASE)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and backoff base for ``with_retry``."""

    max_attempts: int = 3
    base_delay: float = 1.5

    def delay_for(self, attempt: int) -> float:
        """Backoff after the zero-based ``attempt`` failed."""
        return self.base_delay * (2 ** attempt)


def is_rate_limit_error(error: BaseException) -> bool:
    """Check whether an error carries a rate-limit signature."""
    if isinstance(error, RateLimitError):
        return True
    if isinstance(error, httpx.HTTPStatusError) and error.response.status_code == 429:
        return True
    if isinstance(error, SolanaRpcError) and error.error_data.get("code") in RATE_LIMIT_RPC_CODES:
        return True
    # Typed errors are classified by type and RPC code only; node messages embed arbitrary keys.
    if isinstance(error, PortfolioError):
        return False
    return bool(RATE_LIMIT_PATTERN.search(str(error)))


def is_timeout_error(error: BaseException) -> bool:
    """Check whether an error carries a timeout signature."""
    if isinstance(error, (DeadlineExceededError, httpx.TimeoutException, asyncio.TimeoutError)):
        return True
    if isinstance(error, PortfolioError):
        return False
    return bool(TIMEOUT_PATTERN.search(str(error)))


def is_transient_error(error: BaseException) -> bool:
    """Rate limiting and timeouts are the only errors worth retrying."""
    return is_rate_limit_error(error) or is_timeout_error(error)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.5,
    *,
    sleep: Sleep = asyncio.sleep,
    label: str = "operation"
) -> T:
    """
    Execute an operation, retrying transient failures.

    After the n-th failed attempt (zero based) the wrapper sleeps
    ``base_delay * 2**n`` seconds. Non-transient errors are re-raised
    immediately, so such an operation runs exactly once.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        max_attempts: Total number of attempts, including the first one
        base_delay: Delay before the first retry, in seconds
        sleep: Sleep function, replaceable in tests
        label: Name of the operation for logging

    Returns:
        The result of the first successful attempt

    Raises:
        Exception: The last error, once retries are exhausted or the error is not transient
    """
    policy = RetryPolicy(max_attempts=max(1, max_attempts), base_delay=base_delay)
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if not is_transient_error(e) or attempt + 1 >= policy.max_attempts:
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                f"{label} failed with transient error ({e}); "
                f"retry {attempt + 1}/{policy.max_attempts - 1} in {delay}s"
            )
            await sleep(delay)
            attempt += 1


async def with_deadline(
    awaitable: Awaitable[T],
    limit: Optional[float],
    operation: str = "operation"
) -> T:
    """
    Await ``awaitable`` for at most ``limit`` seconds.

    On expiry the in-flight work is cancelled and a ``DeadlineExceededError``
    is raised in its place. A ``limit`` of None disables the deadline.

    Args:
        awaitable: Coroutine or future to await
        limit: Deadline in seconds
        operation: Name of the operation for the error

    Returns:
        The awaited result

    Raises:
        DeadlineExceededError: If the deadline expires first
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=limit)
    except asyncio.TimeoutError:
        logger.warning(f"Deadline of {limit}s exceeded: {operation}")
        raise DeadlineExceededError(operation, limit)


async def pace(duration: float, *, sleep: Sleep = asyncio.sleep) -> None:
    """Throttling delay between sequential calls to one endpoint."""
    if duration > 0:
        await sleep(duration)
