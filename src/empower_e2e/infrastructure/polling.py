"""Bounded polling with exponential backoff.

Used for both transaction confirmation and network liveness. ``sleep`` and
``clock`` are injectable so tests run without waiting.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from empower_e2e.config.models import RetryPolicy
from empower_e2e.errors import PollTimeoutError

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


def poll(  # noqa: UP047
    check: Callable[[], _T | None],
    *,
    policy: RetryPolicy,
    what: str,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> _T:
    """Call *check* until it returns something other than ``None``.

    Stops after ``policy.max_attempts`` calls, or when the next sleep would
    carry the total past ``policy.timeout_seconds``.

    Raises:
        PollTimeoutError: The check never produced a result.
    """
    start = clock()
    delay = policy.initial_delay_seconds
    attempts = 0
    while True:
        attempts += 1
        result = check()
        if result is not None:
            logger.debug("%s ready after %d attempt(s)", what, attempts)
            return result

        elapsed = clock() - start
        if attempts >= policy.max_attempts or elapsed + delay > policy.timeout_seconds:
            raise PollTimeoutError(what, attempts, elapsed)

        logger.debug("%s not ready (attempt %d), retrying in %.2fs", what, attempts, delay)
        sleep(delay)
        delay = min(delay * policy.backoff_multiplier, policy.max_delay_seconds)
