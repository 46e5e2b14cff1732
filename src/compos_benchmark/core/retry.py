"""
Polling-with-timeout helper used for flaky device operations.
"""

import logging
import time
from typing import Callable, Tuple, Type, TypeVar

from .errors import RetryTimeoutError, TransientFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


def poll_until(
    attempt: Callable[[], T],
    *,
    timeout: float,
    interval: float,
    description: str,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
    retry_on: Tuple[Type[BaseException], ...] = (TransientFailure,),
) -> T:
    """Call ``attempt`` until it returns without raising, or time runs out.

    The deadline is only checked after a failed attempt, so an attempt that
    starts just before the deadline still runs to completion. Total time spent
    can therefore exceed ``timeout`` by up to one ``interval``.

    Args:
        attempt: Callable performing one try; raises one of ``retry_on`` to
            signal a failure worth retrying
        timeout: Nominal time budget in seconds
        interval: Sleep between attempts in seconds
        description: Operation name, used in log lines and the final error
        clock: Monotonic time source in seconds
        sleep: Sleep function
        retry_on: Exception types treated as transient

    Returns:
        Whatever the first successful attempt returned

    Raises:
        RetryTimeoutError: If the deadline passed after a failed attempt
    """
    deadline = clock() + timeout
    attempts = 0

    while True:
        attempts += 1
        try:
            return attempt()
        except retry_on as e:
            logger.info("Attempt %d to %s failed: %s", attempts, description, e)
            last_error = e

        if clock() > deadline:
            logger.error(
                "Tried to %s %d times but all failed.", description, attempts
            )
            raise RetryTimeoutError(
                f"Failed to {description}.", attempts=attempts
            ) from last_error

        sleep(interval)
