"""
Retry with exponential backoff for transient failures of outbound calls.
"""

import asyncio
import functools
import logging
from typing import Any, Callable, Optional, Tuple, Type

logger = logging.getLogger(__name__)

DEFAULT_TRANSIENT_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    ConnectionError,
    TimeoutError,
)


def exponential_backoff(
    attempt: int,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    exponential_base: float = 2.0,
) -> float:
    """
    Calculate the delay before retry number ``attempt`` (0-indexed).

    Example:
        >>> exponential_backoff(2, base_delay=0.5)
        2.0
    """
    delay = base_delay * (exponential_base ** attempt)
    return min(delay, max_delay)


def async_retry(
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator for retrying async functions with exponential backoff.

    Exceptions outside ``retryable_exceptions`` propagate immediately; the
    last retryable exception propagates once attempts are exhausted.

    Args:
        max_attempts: Maximum number of attempts (including the first)
        base_delay: Initial delay in seconds
        max_delay: Upper bound on any single delay
        retryable_exceptions: Exception types that trigger a retry
    """
    retry_on = retryable_exceptions or DEFAULT_TRANSIENT_EXCEPTIONS

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    if attempt >= max_attempts - 1:
                        logger.warning(
                            f"Max retry attempts ({max_attempts}) reached for "
                            f"{func.__name__}, raising exception"
                        )
                        raise

                    delay = exponential_backoff(attempt, base_delay, max_delay)
                    logger.info(
                        f"Retry attempt {attempt + 1}/{max_attempts} for "
                        f"{func.__name__} after {delay:.2f}s "
                        f"(error: {type(e).__name__}: {e})"
                    )
                    await asyncio.sleep(delay)

            raise RuntimeError("Retry logic error: no attempts were made")

        return wrapper

    return decorator
