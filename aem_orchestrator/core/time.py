"""Clock abstraction and bounded retry for eventually-consistent reads."""

import time
from typing import Callable, Protocol, Tuple, TypeVar

from .log import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class Clock(Protocol):
    """Protocol for time sources to enable dependency injection."""

    def sleep(self, seconds: float) -> None:
        """Block the calling thread."""

    def monotonic(self) -> float:
        """Return a monotonic timestamp in seconds."""


class SystemClock:
    """Clock backed by the real wall clock."""

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)

    def monotonic(self) -> float:
        return time.monotonic()


def retry_until(
    fetch: Callable[[], T],
    until: Callable[[T], bool],
    *,
    max_attempts: int,
    delay: float,
    clock: Clock,
    description: str = "value",
) -> Tuple[T, bool]:
    """Call ``fetch`` until ``until`` accepts its result or attempts run out.

    The delay is only slept between attempts, never after the last one, so
    ``max_attempts`` calls cost at most ``max_attempts - 1`` sleeps.

    Args:
        fetch: Remote read to repeat
        until: Predicate deciding whether the fetched value is final
        max_attempts: Total number of ``fetch`` calls allowed
        delay: Seconds to sleep between attempts
        clock: Time source used for sleeping
        description: Human readable name of the awaited value for logs

    Returns:
        Tuple of (last fetched value, whether ``until`` accepted it)

    Raises:
        ValueError: If max_attempts is below 1
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    start = clock.monotonic()
    value = fetch()
    attempt = 1
    while not until(value):
        if attempt >= max_attempts:
            logger.debug(
                "Gave up waiting for %s after %d attempts (%.1fs)",
                description,
                attempt,
                clock.monotonic() - start,
            )
            return value, False
        logger.debug(
            "%s not ready after attempt %d/%d, retrying in %.1fs",
            description,
            attempt,
            max_attempts,
            delay,
        )
        clock.sleep(delay)
        value = fetch()
        attempt += 1

    return value, True
