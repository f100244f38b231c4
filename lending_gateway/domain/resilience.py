"""Retry executor with exponential backoff for persistence calls"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from lending_gateway.domain.exceptions import ErrorKind, GENERIC_RETRY_MESSAGE, LendingError

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
Sleep = Callable[[float], Awaitable[None]]
RetryHook = Callable[[ErrorKind], None]

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY = 1.0  # seconds


def classify_error(error: BaseException) -> ErrorKind:
    """Map any failure onto the error taxonomy"""
    if isinstance(error, LendingError):
        return error.kind
    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorKind.NETWORK
    return ErrorKind.SERVER


def is_retryable(error: BaseException) -> bool:
    if isinstance(error, LendingError):
        return error.is_retryable
    return classify_error(error) not in (ErrorKind.VALIDATION, ErrorKind.AUTH)


async def with_retry(
    operation: Operation,
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    sleep: Sleep = asyncio.sleep,
    on_retry: Optional[RetryHook] = None,
) -> T:
    """
    Await `operation()` and retry transient failures.

    Retry strategy:
    - VALIDATION / AUTH (and SERVER errors marked non-retryable) are re-raised at once
    - Anything else is retried up to `max_retries` times
    - Exponential backoff: 1s, 2s, 4s with the defaults
    - Exhausted retries raise a NETWORK LendingError chained to the last failure

    Args:
        operation: Zero-argument coroutine function; called once per attempt
        max_retries: Retries after the first attempt
        initial_delay: Delay before the first retry, in seconds
        sleep: Awaitable sleep, injectable so tests run without wall-clock delay
        on_retry: Called with the error kind before each retry
    """
    retries = max_retries
    delay = initial_delay

    while True:
        try:
            return await operation()
        except Exception as e:
            if not is_retryable(e):
                raise

            if retries <= 0:
                logging.error(
                    "Operation failed after retries",
                    extra={"step": "retry_exhausted", "attempts": max_retries + 1, "error": str(e)},
                )
                raise LendingError(
                    GENERIC_RETRY_MESSAGE,
                    ErrorKind.NETWORK,
                    details={"last_error_kind": classify_error(e).value},
                ) from e

            logging.warning(
                f"Attempt failed, retrying in {delay}s ({retries} left)",
                extra={"step": "retry", "delay_seconds": delay, "error_kind": classify_error(e).value},
            )
            if on_retry is not None:
                on_retry(classify_error(e))
            await sleep(delay)
            retries -= 1
            delay *= 2


class ResilientExecutor:
    """Retry policy bound once and shared by the services that touch persistence"""

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        sleep: Sleep = asyncio.sleep,
        on_retry: Optional[RetryHook] = None,
    ):
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.sleep = sleep
        self.on_retry = on_retry

    async def run(self, operation: Operation) -> T:
        return await with_retry(
            operation,
            max_retries=self.max_retries,
            initial_delay=self.initial_delay,
            sleep=self.sleep,
            on_retry=self.on_retry,
        )
