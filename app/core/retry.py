"""
Retry with exponential backoff for persistence calls.

The default policy retries every failure, including logically permanent
ones such as a duplicate resource. Callers needing fail-fast semantics
either pre-check or pass `retry_on=is_transient`.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional, TypeVar

from app.core import config
from app.core.errors import AppError, InternalError, StoreError, handle_error
from app.core.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def is_transient(error: AppError) -> bool:
    """True for store/unclassified failures, the only kinds worth retrying."""
    return isinstance(error, (StoreError, InternalError))


def with_retry(
    operation: Callable[[], T],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    retry_on: Optional[Callable[[AppError], bool]] = None,
) -> T:
    """
    Run `operation`, retrying on failure with exponential backoff.

    Sleeps `base_delay * 2 ** (attempt - 1)` seconds between attempts, no
    jitter. Once `max_attempts` is exhausted the last failure is raised as
    its classified AppError.

    Args:
        operation: Zero-argument callable to run
        max_attempts: Total number of calls, at least 1
        base_delay: Delay before the second attempt, in seconds
        sleep: Blocking sleep function
        retry_on: Predicate over the classified error; None retries everything

    Returns:
        Whatever `operation` returns
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except Exception as e:
            error = handle_error(e)

            if attempt == max_attempts or (retry_on is not None and not retry_on(error)):
                logger.error(f"Giving up after {attempt} attempt(s): {error.message}")
                if error is e:
                    raise
                raise error from e

            delay = base_delay * (2 ** (attempt - 1))
            logger.warning(
                f"Attempt {attempt}/{max_attempts} failed ({error.code}): {error.message}; "
                f"retrying in {delay:.2f}s"
            )
            sleep(delay)


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)
    retry_on: Optional[Callable[[AppError], bool]] = field(default=None, repr=False)

    @classmethod
    def from_config(cls) -> "RetryPolicy":
        return cls(
            max_attempts=config.RETRY_MAX_ATTEMPTS,
            base_delay=config.RETRY_BASE_DELAY_SECONDS,
            retry_on=is_transient if config.RETRY_TRANSIENT_ONLY else None,
        )

    def run(self, operation: Callable[[], T]) -> T:
        return with_retry(
            operation,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            sleep=self.sleep,
            retry_on=self.retry_on,
        )
