"""
Retry utilities with exponential backoff for transient persistence failures.

Used by the signal tracker so that a failed write is retried a bounded
number of times before the tick is skipped.
"""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryError(Exception):
    """Raised when retry attempts are exhausted."""

    def __init__(self, message: str, last_exception: Exception | None):
        super().__init__(message)
        self.last_exception = last_exception


class ExponentialBackoff:
    """
    Exponential backoff calculator with optional jitter.

    Args:
        base: Base delay in seconds (default: 0.5)
        multiplier: Exponential growth factor (default: 2.0)
        max_delay: Maximum delay cap in seconds (default: 5.0)
        jitter: Add up to +/-25% random jitter (default: True)

    Example:
        >>> backoff = ExponentialBackoff(base=1.0, multiplier=2.0, jitter=False)
        >>> backoff.calculate(attempt=2)
        4.0
    """

    def __init__(
        self,
        base: float = 0.5,
        multiplier: float = 2.0,
        max_delay: float = 5.0,
        jitter: bool = True,
    ):
        self.base = base
        self.multiplier = multiplier
        self.max_delay = max_delay
        self.jitter = jitter

    def calculate(self, attempt: int) -> float:
        """Delay in seconds before retry ``attempt`` (0-indexed)."""
        delay = min(self.base * (self.multiplier**attempt), self.max_delay)

        if self.jitter:
            jitter_amount = delay * 0.25
            delay += random.uniform(-jitter_amount, jitter_amount)

        return max(0.0, delay)


async def call_with_retry(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = 3,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    backoff: Optional[ExponentialBackoff] = None,
    **kwargs: Any,
) -> T:
    """
    Await ``func(*args, **kwargs)``, retrying on ``exceptions``.

    Raises:
        RetryError: After ``max_attempts`` failed attempts
    """
    backoff = backoff or ExponentialBackoff()
    last_exception: Optional[Exception] = None
    name = getattr(func, "__name__", repr(func))

    for attempt in range(max_attempts):
        try:
            return await func(*args, **kwargs)
        except exceptions as e:
            last_exception = e
            logger.warning(f"Attempt {attempt + 1}/{max_attempts} failed for {name}: {e}")

            # Don't sleep after last attempt
            if attempt < max_attempts - 1:
                delay = backoff.calculate(attempt)
                logger.debug(f"Retrying {name} in {delay:.2f} seconds...")
                await asyncio.sleep(delay)

    error_msg = f"{name} failed after {max_attempts} attempts. Last error: {last_exception}"
    logger.error(error_msg)
    raise RetryError(error_msg, last_exception)
