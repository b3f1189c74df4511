"""
Retry policy with exponential backoff for upstream lookups.

Wraps a fallible operation with tenacity: the delay before retry ``n``
(counting from zero) is ``base_delay * 2**n``, and persistent failure
collapses into a failed ``LookupOutcome`` instead of an exception.
"""

import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config.logger_module import log_error, log_warning
from .geo_models import FailureReason, LookupOutcome


T = TypeVar("T")


class RetryPolicy:
    """Bounded retries with exponential backoff; never re-raises."""

    def __init__(self,
                 max_retries: int = 2,
                 base_delay: float = 1.0,
                 retry_on: Tuple[Type[BaseException], ...] = (Exception,),
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize the policy.

        Args:
            max_retries: Retries after the first attempt (total attempts = max_retries + 1)
            base_delay: Delay in seconds before the first retry
            retry_on: Exception types that trigger a retry
            sleep: Sleep function, replaceable in tests
        """
        if max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if base_delay < 0:
            raise ValueError("base_delay cannot be negative")

        self.max_retries = max_retries
        self.base_delay = base_delay
        self.retry_on = retry_on
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, attempt: int) -> float:
        """Backoff before retrying after zero-based ``attempt`` failed."""
        return self.base_delay * (2 ** attempt)

    def _retrying(self, description: str) -> Retrying:
        def before_sleep(state: RetryCallState) -> None:
            error = state.outcome.exception() if state.outcome else None
            log_warning(
                f"{description}: attempt {state.attempt_number} failed, retrying",
                error=str(error),
                delay_seconds=state.next_action.sleep if state.next_action else None,
                max_attempts=self.max_attempts,
            )

        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay, exp_base=2, min=0),
            retry=retry_if_exception_type(self.retry_on),
            before_sleep=before_sleep,
            sleep=self._sleep,
            reraise=False,
        )

    def run(self, operation: Callable[[], T], description: str = "operation") -> LookupOutcome[T]:
        """
        Invoke ``operation`` with retries.

        Args:
            operation: Zero-argument callable performing one attempt
            description: Label for log lines

        Returns:
            ``LookupOutcome.ok(result)`` on success, or an ``upstream_failure``
            outcome once every attempt failed
        """
        try:
            result = self._retrying(description)(operation)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            log_error(
                f"{description}: all retry attempts failed",
                error=str(last_error),
                attempts=self.max_attempts,
            )
            return LookupOutcome.failed(FailureReason.UPSTREAM_FAILURE, str(last_error))
        return LookupOutcome.ok(result)

    def call(self, operation: Callable[[], T], description: str = "operation") -> Optional[T]:
        """Invoke ``operation`` with retries, returning None on terminal failure."""
        return self.run(operation, description).value
