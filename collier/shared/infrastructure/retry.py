"""
Bounded Retry Policy
====================
Exponential backoff with jitter for transient ledger failures.

    delay(n) = min(base * 2**(n-1), max) + uniform(0, jitter)

Only retryable NetworkErrors are retried; anything else propagates on the
first attempt. After max_attempts failures the last error is re-raised.
"""

import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

from collier.shared.system.errors import NetworkError
from collier.shared.system.logging import Logger


FailureCallback = Callable[[int, NetworkError], None]


@dataclass
class RetryPolicy:
    max_attempts: int = 5
    base_delay_s: float = 0.5
    max_delay_s: float = 8.0
    jitter_s: float = 0.25
    sleep: Callable[[float], None] = time.sleep

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    def delay_for(self, attempt: int) -> float:
        backoff = min(self.base_delay_s * (2 ** (attempt - 1)), self.max_delay_s)
        jitter = random.uniform(0.0, self.jitter_s) if self.jitter_s > 0 else 0.0
        return backoff + jitter

    def call(
        self,
        fn: Callable,
        *args,
        label: str = "request",
        on_failure: Optional[FailureCallback] = None,
        **kwargs,
    ):
        """
        Invoke fn until it succeeds or max_attempts is reached.

        Args:
            fn: Callable performing one remote request
            label: Short description for diagnostics
            on_failure: Progress callback, called as on_failure(attempt, error)
                after every failed attempt

        Returns:
            Whatever fn returns

        Raises:
            NetworkError: the last failure once attempts are exhausted, or
                immediately when the failure is not retryable
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return fn(*args, **kwargs)
            except NetworkError as e:
                if on_failure:
                    on_failure(attempt, e)
                if not e.retryable or attempt == self.max_attempts:
                    Logger.debug(f"[RPC] {label} gave up after {attempt} attempt(s): {e}")
                    raise
                delay = self.delay_for(attempt)
                Logger.debug(
                    f"[RPC] {label} failed ({attempt}/{self.max_attempts}): {e} - retrying in {delay:.2f}s"
                )
                self.sleep(delay)
