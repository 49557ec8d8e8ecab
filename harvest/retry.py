"""
Fixed-delay retry combinator wrapped around every catalog call and store write.

The upstream catalog is already rate limited, so the delay between attempts is
constant: no exponential backoff and no jitter.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from core.exceptions import PreconditionError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 10
DEFAULT_DELAY_SECONDS = 10


def is_retryable(error: BaseException) -> bool:
    """Default predicate: everything except NonRetryableError gets another attempt"""
    return getattr(error, "retryable", True)


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt ceiling and fixed delay shared by one family of call sites"""
    attempts: int = DEFAULT_ATTEMPTS
    delay: float = DEFAULT_DELAY_SECONDS

    def __post_init__(self):
        _check_policy(self.attempts, self.delay)

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(attempts=settings.RETRY_ATTEMPTS, delay=settings.RETRY_DELAY_SECONDS)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        description: str,
        context: Optional[Dict[str, Any]] = None,
        retry_on: Callable[[BaseException], bool] = is_retryable,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> T:
        return await run_with_retry(
            operation,
            attempts=self.attempts,
            delay=self.delay,
            description=description,
            context=context,
            retry_on=retry_on,
            sleep=sleep,
        )


def _check_policy(attempts: int, delay: float) -> None:
    if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
        raise PreconditionError(
            "Retry attempts must be an integer >= 1",
            context={"attempts": attempts}
        )
    if delay < 0:
        raise PreconditionError(
            "Retry delay must be >= 0 seconds",
            context={"delay": delay}
        )


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = DEFAULT_ATTEMPTS,
    delay: float = DEFAULT_DELAY_SECONDS,
    description: str = "operation",
    context: Optional[Dict[str, Any]] = None,
    retry_on: Callable[[BaseException], bool] = is_retryable,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Run a zero-argument coroutine factory until it succeeds or runs out of attempts.

    Args:
        operation: Called once per attempt; must return a fresh awaitable
        attempts: Attempt ceiling (>= 1)
        delay: Fixed pause between attempts, in seconds (>= 0)
        description: Short label used in log lines ("fetch members", ...)
        context: Extra fields attached to every log record
        retry_on: Predicate deciding whether a failure is worth another attempt
        sleep: Awaitable sleep, replaceable in tests

    Returns:
        The operation's result from the first successful attempt

    Raises:
        The last error raised by the operation once the ceiling is reached,
        or immediately for errors rejected by ``retry_on``.
        PreconditionError: If attempts or delay are out of range
    """
    _check_policy(attempts, delay)
    context = dict(context or {})

    for attempt in range(1, attempts + 1):
        attempt_context = {**context, "attempt": attempt, "attempts": attempts}
        logger.info(
            f"{description}: attempt {attempt}/{attempts}",
            extra={"retry_context": attempt_context}
        )
        try:
            return await operation()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            failure_context = {
                **attempt_context,
                "error_type": type(e).__name__,
                "error": str(e),
            }

            if not retry_on(e):
                logger.warning(
                    f"{description} failed with a non-retryable error "
                    f"on attempt {attempt}/{attempts}: {e}",
                    extra={"retry_context": failure_context}
                )
                raise

            if attempt == attempts:
                logger.warning(
                    f"{description} failed on final attempt {attempt}/{attempts}: {e}",
                    extra={"retry_context": failure_context}
                )
                raise

            logger.warning(
                f"{description} failed on attempt {attempt}/{attempts}, "
                f"retrying in {delay}s: {e}",
                extra={"retry_context": failure_context}
            )
            await sleep(delay)

    # attempts >= 1, so the loop either returned or raised
    raise AssertionError("unreachable")
