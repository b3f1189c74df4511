"""
Minimum-interval rate limiter for upstream geodata APIs.

Enforces a fixed spacing between consecutive calls to one provider family
(for example the OpenStreetMap services) so bursts never violate its usage
policy, even when several lookups run on worker threads.
"""

import threading
import time
from typing import Dict, Optional

from ..config.logger_module import log_debug, log_info


class IntervalRateLimiter:
    """
    Rate limiter that spaces calls at least ``1 / requests_per_second`` apart.

    A single "time of last permitted call" is kept. ``throttle`` computes the
    remaining wait, sleeps for it and then moves the marker. The lock is held
    while sleeping, so concurrent callers are released one interval apart.
    """

    def __init__(self, requests_per_second: float = 1.0, name: str = "upstream"):
        """
        Initialize the rate limiter.

        Args:
            requests_per_second: Maximum sustained request rate
            name: Provider family label used in log lines
        """
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")

        self.requests_per_second = requests_per_second
        self.interval = 1.0 / requests_per_second
        self.name = name

        self._last_call: Optional[float] = None
        self._lock = threading.Lock()

        log_info(
            f"RateLimiter '{name}' initialized: {requests_per_second}/sec "
            f"(interval {self.interval:.3f}s)"
        )

    def _remaining_wait(self, now: float) -> float:
        if self._last_call is None:
            return 0.0
        return max(0.0, self.interval - (now - self._last_call))

    def throttle(self) -> float:
        """
        Block until the next call is permitted, then record it.

        Returns:
            Seconds spent waiting
        """
        with self._lock:
            wait_time = self._remaining_wait(time.monotonic())
            if wait_time > 0:
                log_debug(f"Rate limited '{self.name}', waiting {wait_time:.3f}s")
                time.sleep(wait_time)
            self._last_call = time.monotonic()
            return wait_time

    def get_wait_time(self) -> float:
        """
        Calculate the wait a caller would face now, without blocking.

        Returns:
            Estimated wait time in seconds (0 if a call is permitted)
        """
        with self._lock:
            return self._remaining_wait(time.monotonic())

    def reset(self) -> None:
        """Forget the last call so the next one is permitted immediately."""
        with self._lock:
            self._last_call = None

    def get_status(self) -> Dict[str, float]:
        """Get current limiter settings and pending wait."""
        return {
            "requests_per_second": self.requests_per_second,
            "wait_time_seconds": self.get_wait_time(),
        }
