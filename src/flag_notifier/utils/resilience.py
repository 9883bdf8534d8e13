"""Resilience utilities for the flag notifier.

This module provides the retry policy for backend connections made at start-up
and the bounded readiness wait used before the first poll.
"""

import logging
from typing import Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

logger = logging.getLogger(__name__)


# Standard retry policy for start-up connections (e.g. the Redis snapshot backend)
# - Wait 2^x * 1 seconds between retries (2s, 4s, 8s, 16s)
# - Stop after 5 attempts
# - Re-raise the exception if all retries fail
service_startup_retry = retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=2, max=32),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


def _log_not_ready(retry_state: RetryCallState) -> None:
    if retry_state.attempt_number % 10 == 0:
        logger.debug(
            f"[Resilience] Still waiting after {retry_state.attempt_number} checks "
            f"({retry_state.seconds_since_start:.1f}s)"
        )


async def wait_until_ready(
    predicate: Callable[[], bool],
    interval: float,
    max_attempts: int,
) -> bool:
    """Poll a readiness predicate at a fixed interval, a bounded number of times.

    Args:
        predicate: Returns True once the dependency is ready
        interval: Seconds between checks
        max_attempts: Total number of checks, including the first one

    Returns:
        True if the predicate became true, False once the bound was reached

    Example:
        ```python
        ready = await wait_until_ready(provider.is_ready, interval=0.25, max_attempts=40)
        if not ready:
            logger.warning("Proceeding without identity")
        ```
    """

    async def _check() -> bool:
        return bool(predicate())

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(interval),
        retry=retry_if_result(lambda ready: not ready),
        before_sleep=_log_not_ready,
        retry_error_callback=lambda retry_state: False,
    )
    return await retrying(_check)
