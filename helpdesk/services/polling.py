"""
Bounded polling

Used to observe completion of the out-of-band ticket creation pipeline.
Polling always terminates: either a result or PollingExhausted.
"""
import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from helpdesk.exceptions import PollingExhausted
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def poll_until(
    fetch: Callable[[], Awaitable[Optional[T]]],
    max_attempts: int = 10,
    interval: float = 3.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
) -> T:
    """
    Call `fetch` until it returns a truthy value

    Args:
        fetch: Async callable returning the result or None while not ready
        max_attempts: Upper bound on calls
        interval: Seconds between attempts
        sleep: Injectable sleep for tests

    Returns:
        First truthy result

    Raises:
        PollingExhausted: No result after max_attempts calls
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        result = await fetch()
        if result:
            logger.debug(f"Polling succeeded on attempt {attempt}/{max_attempts}")
            return result
        if attempt < max_attempts:
            await sleep(interval)

    logger.warning(f"Polling gave up after {max_attempts} attempts")
    raise PollingExhausted(max_attempts)
