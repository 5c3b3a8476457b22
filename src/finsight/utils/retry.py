"""Retry-with-backoff helper for unreliable async calls."""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from finsight.logging_setup import get_logger

T = TypeVar("T")

_logger = get_logger("finsight.utils.retry")


def _retry_everything(exc: BaseException) -> bool:
    """Default predicate: no error is fatal."""
    return False


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    is_non_retryable: Callable[[BaseException], bool] = _retry_everything,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    label: str = "operation",
) -> T:
    """Await ``operation`` until it succeeds or attempts run out.

    Delays double after each failure: ``base_delay``, ``2 * base_delay``,
    ``4 * base_delay``... No delay follows the final attempt. Errors matching
    ``is_non_retryable`` propagate immediately without further attempts.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        max_attempts: Total number of attempts (>= 1)
        base_delay: Delay in seconds before the second attempt
        is_non_retryable: Predicate selecting errors that must not be retried
        sleep: Awaitable sleep function (defaults to ``asyncio.sleep``)
        label: Name used in log lines

    Returns:
        The operation's result

    Raises:
        ValueError: If max_attempts is not a positive integer
        Exception: The last error raised by ``operation``
    """
    if not isinstance(max_attempts, int) or max_attempts < 1:
        raise ValueError("max_attempts must be a positive integer")

    sleep = sleep or asyncio.sleep
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as e:
            if is_non_retryable(e):
                _logger.warning(
                    "retry:non_retryable label=%s attempt=%d error=%s",
                    label,
                    attempt,
                    e.__class__.__name__,
                )
                raise
            if attempt >= max_attempts:
                _logger.warning(
                    "retry:exhausted label=%s attempts=%d error=%s",
                    label,
                    attempt,
                    e.__class__.__name__,
                )
                raise
            delay = base_delay * (2 ** (attempt - 1))
            _logger.warning(
                "retry:scheduled label=%s attempt=%d delay_s=%.2f error=%s",
                label,
                attempt,
                delay,
                e.__class__.__name__,
            )
            await sleep(delay)
            attempt += 1
