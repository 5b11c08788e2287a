"""
Retry and pacing for remote calls.

Retries use a fixed delay between attempts (no backoff); pacing inserts a
pause after each successful call so the upstream API is not hammered.
All waits go through the injected clock.
"""

from typing import Any, Awaitable, Callable, Optional, TypeVar
import logging

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from core.clock import Clock
from core.exceptions import NonRetryableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    delay: float,
    label: str,
    sleep: Optional[Callable[[float], Awaitable[Any]]] = None
) -> T:
    """
    Call ``operation`` until it succeeds, at most ``max_attempts`` times.

    Args:
        operation: Zero-argument coroutine function to invoke
        max_attempts: Total number of invocations allowed (>= 1)
        delay: Fixed seconds to wait between attempts
        label: Tag used in log messages
        sleep: Async sleep function (defaults to the real clock)

    Returns:
        The first successful result

    Raises:
        The last error once attempts are exhausted. NonRetryableError
        subclasses are raised immediately without another attempt.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 0

    async def attempt_once() -> T:
        nonlocal attempt
        attempt += 1
        try:
            return await operation()
        except NonRetryableError as e:
            logger.warning(f"{label}: {e.message} (not retried)")
            raise
        except Exception as e:
            if attempt < max_attempts:
                logger.warning(
                    f"{label}: attempt {attempt}/{max_attempts} failed: {e}. "
                    f"Retrying in {delay}s"
                )
            else:
                logger.error(f"{label}: failed after {attempt} attempts: {e}")
            raise

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(delay),
        # Cancellation and interrupts (BaseException) are never retried
        retry=retry_if_exception_type(Exception) & retry_if_not_exception_type(NonRetryableError),
        sleep=sleep or Clock().sleep,
        reraise=True,
    )
    return await retrying(attempt_once)


class RateLimitedFetcher:
    """
    Wrap remote calls with bounded retry and inter-request pacing.

    Example:
        fetcher = RateLimitedFetcher(max_attempts=5, retry_delay=2.0,
                                     pause_between_requests=3.0)
        data = await fetcher.fetch_paced(lambda: client.get("/senador/123"),
                                         label="senator 123")
    """

    def __init__(
        self,
        max_attempts: int = 5,
        retry_delay: float = 2.0,
        pause_between_requests: float = 3.0,
        clock: Optional[Clock] = None
    ):
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.pause_between_requests = pause_between_requests
        self.clock = clock or Clock()

    @classmethod
    def from_config(cls, config, clock: Optional[Clock] = None) -> "RateLimitedFetcher":
        return cls(
            max_attempts=config.max_retries,
            retry_delay=config.retry_delay,
            pause_between_requests=config.pause_between_requests,
            clock=clock,
        )

    async def with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        label: str,
        max_attempts: Optional[int] = None,
        delay: Optional[float] = None
    ) -> T:
        return await with_retry(
            operation,
            max_attempts=max_attempts or self.max_attempts,
            delay=self.retry_delay if delay is None else delay,
            label=label,
            sleep=self.clock.sleep,
        )

    async def pace(self) -> None:
        """Wait the configured pause between requests"""
        await self.clock.sleep(self.pause_between_requests)

    async def fetch_paced(self, operation: Callable[[], Awaitable[T]], label: str) -> T:
        """Retried call followed by the pacing delay"""
        result = await self.with_retry(operation, label)
        await self.pace()
        return result
