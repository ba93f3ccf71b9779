"""
Bounded retry with backoff for transient per-record sub-fetches.

Example:
    >>> policy = RetryPolicy(max_attempts=3, base_delay=0.5)
    >>> notes = retry_call(store.fetch_notes, record_id, policy=policy)

Delays grow geometrically: base_delay, base_delay * multiplier, ... capped at
max_delay. A multiplier of 1.0 gives a linear (constant) schedule.
"""

import functools
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

from ..core.exceptions import StoreError

module_logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_ON: Tuple[Type[BaseException], ...] = (StoreError, ConnectionError, TimeoutError)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Configuration for retry behavior.

    Attributes:
        max_attempts: Total number of calls, including the first (default: 3)
        base_delay: Delay in seconds before the first retry (default: 0.5)
        multiplier: Backoff multiplier applied per retry (default: 2.0)
        max_delay: Upper bound on a single delay in seconds (default: 30.0)
    """

    max_attempts: int = 3
    base_delay: float = 0.5
    multiplier: float = 2.0
    max_delay: float = 30.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")

    def delay_for(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-indexed)."""
        return min(self.base_delay * (self.multiplier ** (attempt - 1)), self.max_delay)


def _is_retryable(exc: BaseException, retry_on: Tuple[Type[BaseException], ...]) -> bool:
    if not isinstance(exc, retry_on):
        return False
    # Stores flag permanent failures explicitly
    if isinstance(exc, StoreError) and not exc.transient:
        return False
    return True


def retry_call(
    func: Callable[..., T],
    *args: Any,
    policy: Optional[RetryPolicy] = None,
    retry_on: Tuple[Type[BaseException], ...] = DEFAULT_RETRY_ON,
    logger: Optional[logging.Logger] = None,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: Any,
) -> T:
    """
    Call ``func`` until it succeeds or ``policy.max_attempts`` is exhausted.

    Only exceptions matching ``retry_on`` are retried; a ``StoreError`` is
    retried only when marked transient. The last exception is re-raised.
    """
    policy = policy or RetryPolicy()
    log = logger or module_logger

    attempt = 1
    while True:
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            if attempt >= policy.max_attempts or not _is_retryable(exc, retry_on):
                raise
            delay = policy.delay_for(attempt)
            log.warning(
                "Attempt %d/%d of %s failed: %s; retrying in %.2fs",
                attempt,
                policy.max_attempts,
                getattr(func, "__name__", repr(func)),
                exc,
                delay,
            )
            sleep(delay)
            attempt += 1


def with_retry(
    policy: Optional[RetryPolicy] = None,
    retry_on: Tuple[Type[BaseException], ...] = DEFAULT_RETRY_ON,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator form of :func:`retry_call`."""

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return retry_call(func, *args, policy=policy, retry_on=retry_on, **kwargs)

        return wrapper

    return decorator
