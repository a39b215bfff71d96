"""Backoff for transient management API failures and bounded status polling."""

import random
import time
from typing import Callable, Optional, TypeVar

from identity_sync.client.base import ManagementAPIError
from identity_sync.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


class RetryableError(Exception):
    """Raised by a poll attempt that should be tried again."""
    pass


class NonRetryableError(Exception):
    """Raised by a poll attempt that must stop the loop.

    The original exception is available as ``cause``.
    """

    def __init__(self, cause: Exception):
        super().__init__(str(cause))
        self.cause = cause


class PollTimeoutError(Exception):
    """Raised when the timeout budget runs out before a poll succeeds."""

    def __init__(self, timeout: float, last_error: Optional[Exception] = None):
        message = f"timeout while waiting for state to become ready ({timeout:.0f}s)"
        if last_error is not None:
            message = f"{message}, last error: {last_error}"
        super().__init__(message)
        self.timeout = timeout
        self.last_error = last_error


def is_transient(error: Exception) -> bool:
    """True for rate limiting, server-side failures and dropped connections."""
    if isinstance(error, (ConnectionError, TimeoutError)):
        return True
    if isinstance(error, ManagementAPIError):
        status = error.status()
        return status == 429 or status >= 500
    return False


class RetryStrategy:
    """Exponential backoff shared by API calls and status polls.

    ``sleep`` and ``clock`` are injectable so tests never wait.
    """

    def __init__(
        self,
        max_retries: int = 5,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        """Initialize retry strategy.

        Args:
            max_retries: Retries after the first attempt of an API call
            base_delay: Delay in seconds before the first retry
            max_delay: Upper bound for any single delay
            exponential_base: Growth factor between consecutive delays
            jitter: Add up to 10% random delay
            sleep: Function used to wait between attempts
            clock: Monotonic clock used to measure the poll budget
        """
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.sleep = sleep
        self.clock = clock

    def should_retry(self, error: Exception, attempt: int) -> bool:
        return attempt < self.max_retries and is_transient(error)

    def get_delay(self, attempt: int) -> float:
        """Delay before retry number attempt (0-indexed)."""
        delay = min(self.base_delay * (self.exponential_base ** attempt), self.max_delay)
        if self.jitter:
            delay += random.uniform(0, delay * 0.1)
        return delay

    def execute_with_retry(self, func: Callable[..., T], *args, **kwargs) -> T:
        """Call func, retrying transient failures.

        Raises:
            The last error once it is not transient or retries run out
        """
        attempt = 0
        while True:
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                if not self.should_retry(e, attempt):
                    raise
                delay = self.get_delay(attempt)
                logger.warning(
                    f"Attempt {attempt + 1}/{self.max_retries + 1} failed ({_describe(e)}), "
                    f"retrying in {delay:.2f}s"
                )
                self.sleep(delay)
                attempt += 1
                continue

            if attempt > 0:
                logger.info(f"Succeeded after {attempt} retries")
            return result

    def poll(self, func: Callable[[], T], timeout: float) -> T:
        """Call func until it succeeds, fails fatally, or the budget runs out.

        Each attempt either returns a result, raises RetryableError to poll
        again, or raises NonRetryableError to stop. Any other exception also
        stops the loop and propagates unchanged. The last sleep is shortened
        so the budget is never overslept.

        Args:
            func: Poll attempt
            timeout: Budget in seconds across all attempts

        Returns:
            Result of the first successful attempt

        Raises:
            PollTimeoutError: If the budget is exhausted
            Exception: The cause of a NonRetryableError
        """
        deadline = self.clock() + timeout
        attempt = 0

        while True:
            try:
                return func()
            except NonRetryableError as e:
                logger.debug(f"Poll attempt {attempt + 1} failed permanently: {e}")
                raise e.cause
            except RetryableError as e:
                last_error = e

            remaining = deadline - self.clock()
            if remaining <= 0:
                logger.error(f"Poll budget of {timeout:.0f}s exhausted after {attempt + 1} attempts")
                raise PollTimeoutError(timeout, last_error)

            delay = min(self.get_delay(attempt), remaining)
            logger.info(f"Not ready yet ({last_error}), polling again in {delay:.2f}s")
            self.sleep(delay)
            attempt += 1


def _describe(error: Exception) -> str:
    if isinstance(error, ManagementAPIError):
        return f"{error.status()}: {error.message}"
    return f"{type(error).__name__}: {error}"
