"""
Retry logic with backoff for transient storage failures.

Only exceptions listed in retry_on are retried; anything else propagates on
the first attempt. With exponential_base=1.0 the delay is fixed.
"""

import asyncio
import logging
from functools import wraps
from typing import Callable, TypeVar, Any

from compendium.core.errors import TransientStorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_with_backoff(
    max_retries: int = 2,
    base_delay: float = 2.0,
    max_delay: float = 30.0,
    exponential_base: float = 1.0,
    retry_on: tuple = (TransientStorageError,),
    sleep: Callable[[float], Any] = asyncio.sleep,
):
    """
    Decorator for retrying async functions with backoff.

    Args:
        max_retries: Retries after the first attempt (2 → 3 attempts total)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay cap
        exponential_base: Multiplier per attempt (1.0 → fixed delay)
        retry_on: Tuple of exceptions to retry on
        sleep: Awaitable used between attempts

    Usage:
        @retry_with_backoff(max_retries=2)
        async def store():
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = getattr(func, "__name__", repr(func))

        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            last_exception = None

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except retry_on as exc:
                    last_exception = exc

                    if attempt < max_retries:
                        delay = min(base_delay * (exponential_base ** attempt), max_delay)
                        logger.debug(
                            "%s: Attempt %d/%d failed (%s), retrying in %.1fs",
                            name,
                            attempt + 1,
                            max_retries + 1,
                            type(exc).__name__,
                            delay,
                        )
                        await sleep(delay)
                    else:
                        logger.warning(
                            "%s: All %d attempts failed: %s",
                            name,
                            max_retries + 1,
                            last_exception,
                        )

            # If we get here, all retries failed
            if last_exception:
                raise last_exception

        return wrapper

    return decorator


async def retry_async(
    func: Callable[..., T],
    *args,
    max_attempts: int = 3,
    delay: float = 2.0,
    sleep: Callable[[float], Any] = asyncio.sleep,
    **kwargs,
) -> T:
    """
    Programmatic retry with a fixed delay (alternative to decorator).

    Usage:
        row_id = await retry_async(store.store_nft, nft, max_attempts=3)
    """
    retry_decorator = retry_with_backoff(
        max_retries=max(max_attempts - 1, 0),
        base_delay=delay,
        exponential_base=1.0,
        sleep=sleep,
    )
    retried_func = retry_decorator(func)
    return await retried_func(*args, **kwargs)
