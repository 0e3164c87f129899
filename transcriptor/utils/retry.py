"""Retry utilities with exponential backoff for transcript API calls.

Two independent mechanisms live here:

- ``RetryEngine`` retries a single fetch while it keeps failing with a
  rate-limit error, bounded by an attempt count and a total wait budget.
- ``retry_until`` re-runs an operation while its *result* is unacceptable
  (e.g. an unresolved title). It never touches the transport budget.
"""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

import httpx

from ..errors import FetchError, RateLimitedError, RetryBudgetExhaustedError, classify_error
from .logging_factory import DEFAULT_LOG_CONTEXT, LogContext

T = TypeVar("T")

SleepFn = Callable[[float], None]
JitterFn = Callable[[float, float], float]


@dataclass
class RetryPolicy:
    """Configuration for rate-limit retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts (including the initial one)
        initial_delay: Delay in seconds before the first retry
        multiplier: Base for exponential backoff calculation
        max_delay: Maximum computed delay in seconds between attempts
        jitter: Symmetric jitter as a fraction of the delay (0.25 = ±25%)
        min_delay: Floor applied after jitter
        total_budget: Ceiling in seconds on the summed waits for one request
        max_retry_after: Cap in seconds applied to a server ``Retry-After`` hint
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 8.0
    jitter: float = 0.25
    min_delay: float = 0.1
    total_budget: float = 60.0
    max_retry_after: float = 300.0

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must be non-negative")
        if self.min_delay < 0:
            raise ValueError("min_delay must be non-negative")
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be >= initial_delay")
        if self.max_delay < self.min_delay:
            raise ValueError("max_delay must be >= min_delay")
        if self.multiplier < 1:
            raise ValueError("multiplier must be >= 1")
        if not 0 <= self.jitter < 1:
            raise ValueError("jitter must be in [0, 1)")
        if self.total_budget < 0:
            raise ValueError("total_budget must be non-negative")
        if self.max_retry_after < 0:
            raise ValueError("max_retry_after must be non-negative")

    def calculate_backoff_delay(self, retry_index: int, uniform: JitterFn = random.uniform) -> float:
        """Calculate exponential backoff delay with jitter and ceiling.

        Args:
            retry_index: Number of retries already made (0 for the first retry)
            uniform: Random source, injectable for tests

        Returns:
            Calculated delay in seconds
        """
        return calculate_delay(
            retry_index,
            self.initial_delay,
            self.max_delay,
            self.multiplier,
            self.jitter,
            self.min_delay,
            uniform,
        )


def apply_jitter(delay: float, jitter: float, uniform: JitterFn = random.uniform) -> float:
    """Spread a delay uniformly over ``[delay*(1-jitter), delay*(1+jitter)]``."""
    jitter_range = delay * jitter
    return delay + uniform(-jitter_range, jitter_range)


def calculate_delay(
    retry_index: int,
    initial_delay: float,
    max_delay: float,
    multiplier: float,
    jitter: float = 0.25,
    min_delay: float = 0.0,
    uniform: JitterFn = random.uniform,
) -> float:
    """Calculate delay for a given retry with exponential backoff and jitter.

    Args:
        retry_index: Number of retries already made (0-based)
        initial_delay: Delay before the first retry, in seconds
        max_delay: Maximum delay in seconds
        multiplier: Base for exponential calculation
        jitter: Symmetric jitter fraction
        min_delay: Floor applied after jitter
        uniform: Random source

    Returns:
        Calculated delay in seconds, always between min_delay and max_delay
    """
    # Calculate exponential backoff with ceiling
    base_backoff = min(initial_delay * (multiplier ** retry_index), max_delay)

    if jitter:
        base_backoff = apply_jitter(base_backoff, jitter, uniform)

    # Final ceiling check and floor
    return max(min_delay, min(base_backoff, max_delay))


def parse_retry_after(value: Optional[str], max_retry_after: float) -> Optional[float]:
    """Validate a ``Retry-After`` header value given in seconds.

    Args:
        value: Raw header value
        max_retry_after: Upper bound in seconds

    Returns:
        Seconds to wait, capped at ``max_retry_after``, or None when the
        header is absent or not a non-negative number
    """
    if value is None or str(value).strip() == "":
        return None

    try:
        seconds = float(str(value).strip())
    except ValueError:
        logging.getLogger(__name__).warning(f"Invalid Retry-After header: {value}")
        return None

    if seconds < 0 or seconds != seconds:
        logging.getLogger(__name__).warning(f"Invalid Retry-After header: {value}")
        return None

    if seconds > max_retry_after:
        logging.getLogger(__name__).warning(
            f"Retry-After {seconds:g}s exceeds maximum {max_retry_after:g}s - capping"
        )
        return max_retry_after

    return seconds


class RetryEngine:
    """Runs a fetch operation, retrying rate-limited attempts with backoff.

    Only ``RATE_LIMITED`` failures are retried. Every other classified
    failure is raised immediately. When retries stop because the attempt
    limit or the wait budget is reached, ``RetryBudgetExhaustedError`` is
    raised; it is a skippable failure for the calling pipeline.
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: SleepFn = time.sleep,
        log_context: LogContext = DEFAULT_LOG_CONTEXT,
        uniform: JitterFn = random.uniform,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._uniform = uniform
        self.logger = log_context.get_logger(__name__)
        self.last_attempts = 0
        self.last_total_waited = 0.0

    def delay_for(self, error: FetchError, retry_index: int) -> float:
        """Delay before the next attempt after ``error``.

        A server ``Retry-After`` hint replaces the computed backoff. A hint of
        zero still waits a jittered minimum delay.
        """
        if isinstance(error, RateLimitedError):
            hinted = parse_retry_after(error.retry_after, self.policy.max_retry_after)
            if hinted is not None:
                if hinted == 0:
                    self.logger.warning("Server requested immediate retry - applying minimum delay")
                    return apply_jitter(self.policy.min_delay, self.policy.jitter, self._uniform)
                self.logger.info(f"Using server-provided Retry-After: {hinted:g}s")
                return hinted

        return self.policy.calculate_backoff_delay(retry_index, self._uniform)

    def execute(self, operation: Callable[[], T], description: str = "request") -> T:
        """Run ``operation`` under the retry policy.

        Args:
            operation: Zero-argument callable performing one fetch attempt
            description: Label used in log messages (usually the video ID)

        Returns:
            The operation's result

        Raises:
            FetchError: Non-retriable failure from the operation
            RetryBudgetExhaustedError: Rate limiting outlasted the policy
        """
        total_waited = 0.0
        attempt = 0

        while True:
            attempt += 1
            self.last_attempts = attempt
            self.last_total_waited = total_waited
            try:
                return operation()
            except (FetchError, httpx.HTTPError, OSError) as exc:
                error = classify_error(exc)
                if error is not exc:
                    self.logger.debug(f"Classified {type(exc).__name__} as {error.kind.value}")

            if not error.is_retriable:
                raise error

            if attempt >= self.policy.max_attempts:
                self.logger.error(
                    f"All retry attempts exhausted for {description} after {attempt} attempts"
                )
                raise RetryBudgetExhaustedError(attempt, total_waited, error, reason="attempts")

            delay = self.delay_for(error, attempt - 1)
            if total_waited + delay > self.policy.total_budget:
                self.logger.error(
                    f"Retry budget exhausted for {description}: waiting {delay:.2f}s more would "
                    f"exceed {self.policy.total_budget:g}s (already waited {total_waited:.2f}s)"
                )
                raise RetryBudgetExhaustedError(attempt, total_waited, error, reason="time budget")

            self.logger.warning(
                f"Rate limited on {description}. Retry {attempt}/{self.policy.max_attempts - 1} "
                f"in {delay:.2f}s (total waited: {total_waited:.2f}s)"
            )
            self._sleep(delay)
            total_waited += delay
            self.last_total_waited = total_waited


def retry_until(
    operation: Callable[[], T],
    accept: Callable[[T], bool],
    retries: int = 3,
    delay: float = 1.0,
    sleep: SleepFn = time.sleep,
    description: str = "operation",
    logger: Optional[logging.Logger] = None,
) -> T:
    """Re-run an operation until its result is acceptable.

    Args:
        operation: Zero-argument callable
        accept: Predicate on the result
        retries: Additional attempts after the first one
        delay: Fixed wait before each additional attempt
        sleep: Sleep function, injectable for tests
        description: Label used in log messages
        logger: Logger to report retries on

    Returns:
        The first acceptable result, or the last result if none was
    """
    log = logger or logging.getLogger(__name__)
    result = operation()
    for attempt in range(1, retries + 1):
        if accept(result):
            return result
        log.info(f"Retrying {description} in {delay:g}s (attempt {attempt}/{retries})")
        sleep(delay)
        result = operation()
    if not accept(result):
        log.warning(f"{description} still unresolved after {retries} retries")
    return result
