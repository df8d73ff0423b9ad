"""
Reliability Utilities.

Bounded retry for optimistic-concurrency conflicts on balance updates.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from getlife.app.core.exceptions import ConcurrentModificationError

logger = logging.getLogger("getlife")

T = TypeVar("T")


async def retry_on_conflict(
    operation: Callable[[int], Awaitable[T]],
    attempts: int = 3,
    backoff_seconds: float = 0.0,
    retry_on: Tuple[Type[Exception], ...] = (ConcurrentModificationError,),
) -> T:
    """
    Run operation(attempt) until it stops raising a conflict.

    The operation must re-read whatever state it depends on every time it is
    called, so each attempt recomputes from fresh data.

    Args:
        operation: Coroutine factory receiving the 1-based attempt number
        attempts: Maximum number of tries (>= 1)
        backoff_seconds: Linear delay between tries
        retry_on: Exception types that trigger another attempt

    Raises:
        The last conflict error once the attempts are used up
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    for attempt in range(1, attempts + 1):
        try:
            return await operation(attempt)
        except retry_on as e:
            if attempt == attempts:
                logger.warning("Giving up after %d conflicting attempts: %s", attempt, e)
                raise
            logger.info("Conflict on attempt %d, retrying: %s", attempt, e)
            if backoff_seconds:
                await asyncio.sleep(backoff_seconds * attempt)
