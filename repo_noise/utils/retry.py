"""Retry utilities for handling transient failures.

Only idempotent calls should be wrapped: a retried POST that actually
succeeded the first time would create a duplicate resource.

Example:
    >>> from repo_noise.utils.retry import async_retry
    >>>
    >>> @async_retry(max_attempts=3, exceptions=(TransientPlatformError,))
    ... async def lookup() -> dict:
    ...     return await client.get_repository()

Backoff Formula:
    delay = backoff_factor ** attempt_number
    For backoff_factor=2.0: 2s, 4s, 8s, ...
"""

import asyncio
import functools
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")


def async_retry(
    max_attempts: int = 3,
    backoff_factor: float = 2.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator for async functions with exponential backoff retry logic.

    Args:
        max_attempts: Maximum number of calls before giving up
        backoff_factor: Base of the exponential delay between attempts
        exceptions: Exception types that trigger a retry; anything else
            propagates immediately

    Returns:
        A decorator wrapping an async function with retry logic.

    Raises:
        The last caught exception once all attempts are exhausted.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_attempts:
                        log.error(
                            "retry_exhausted",
                            function=func.__name__,
                            attempts=attempt,
                            error=str(e),
                        )
                        raise

                    delay = backoff_factor**attempt
                    log.warning(
                        "retry_attempt",
                        function=func.__name__,
                        attempt=attempt,
                        max_attempts=max_attempts,
                        delay=delay,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)
                    attempt += 1

        return wrapper

    return decorator
