"""
Retry support for the one-time fetches made while the service starts.
"""

import asyncio
import functools
import random
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from shared.logging import get_logger


class RetryConfig:
    """How often and how patiently to retry.

    ``backoff_strategy`` is ``fixed`` (wait ``base_delay`` every time),
    ``linear`` or ``exponential``; every wait is capped at ``max_delay``.
    """

    def __init__(self,
                 max_attempts: int = 30,
                 base_delay: float = 10.0,
                 max_delay: float = 60.0,
                 exponential_base: float = 2.0,
                 jitter: bool = False,
                 backoff_strategy: str = "fixed"):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if backoff_strategy not in ("fixed", "linear", "exponential"):
            raise ValueError(f"Unknown backoff strategy '{backoff_strategy}'")

        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.backoff_strategy = backoff_strategy

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        if self.backoff_strategy == "exponential":
            delay = self.base_delay * (self.exponential_base ** (attempt - 1))
        elif self.backoff_strategy == "linear":
            delay = self.base_delay * attempt
        else:
            delay = self.base_delay

        delay = min(delay, self.max_delay)
        if self.jitter:
            delay += random.uniform(-0.1 * delay, 0.1 * delay)
        return max(0.0, delay)


class RetryError(Exception):
    """Every attempt failed."""

    def __init__(self, message: str, last_exception: BaseException, attempts: int):
        super().__init__(message)
        self.last_exception = last_exception
        self.attempts = attempts


def retry_on_exception(exceptions: Tuple[Type[BaseException], ...] = (Exception,),
                       config: Optional[RetryConfig] = None) -> Callable:
    """Retry an async callable while it raises one of ``exceptions``.

    Other exceptions propagate at once. When the attempts run out a
    ``RetryError`` carrying the last failure is raised.
    """
    config = config or RetryConfig()

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        logger = get_logger(f"retry.{func.__name__}")

        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            attempt = 1
            while True:
                try:
                    result = await func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= config.max_attempts:
                        logger.error(
                            "Giving up after repeated failures",
                            attempts=attempt,
                            error=str(e),
                        )
                        raise RetryError(
                            f"{func.__name__} failed after {attempt} attempts",
                            last_exception=e,
                            attempts=attempt,
                        ) from e

                    delay = config.delay_for(attempt)
                    logger.warning(
                        "Attempt failed, retrying",
                        attempt=attempt,
                        max_attempts=config.max_attempts,
                        delay=delay,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)
                    attempt += 1
                    continue

                if attempt > 1:
                    logger.info("Succeeded after retrying", attempts=attempt)
                return result

        return wrapper

    return decorator
