"""Client-side request pacing for platform API clients."""

import threading
import time
from collections import deque
from collections.abc import Callable


class RequestPacer:
    """Sliding-window request pacer.

    Tracks the start time of recent requests and blocks the caller when one
    more request would exceed ``requests_per_period`` within the window.
    Safe to share between threads.

    Example:
        >>> pacer = RequestPacer(requests_per_period=600, period_seconds=60)
        >>> pacer.wait_if_needed()  # Blocks if the window is full
    """

    def __init__(
        self,
        requests_per_period: int,
        period_seconds: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the pacer.

        Args:
            requests_per_period: Maximum number of requests allowed per period
            period_seconds: Time period in seconds for the window
            clock: Monotonic clock (seconds)
            sleep: Sleep function (seconds)
        """
        if requests_per_period <= 0 or period_seconds <= 0:
            raise ValueError("requests_per_period and period_seconds must be positive")
        self.requests_per_period = requests_per_period
        self.period_seconds = period_seconds
        self.request_times: deque[float] = deque()
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()

    def wait_if_needed(self) -> float:
        """Block if another request now would exceed the window.

        Call before each API request.

        Returns:
            Seconds slept (0.0 when no wait was needed)
        """
        slept = 0.0
        with self._lock:
            now = self._clock()
            self._expire(now)

            # If at limit, wait until the oldest request leaves the window
            if len(self.request_times) >= self.requests_per_period:
                sleep_time = self.period_seconds - (now - self.request_times[0]) + 0.1
                if sleep_time > 0:
                    self._sleep(sleep_time)
                    slept = sleep_time
                self._expire(self._clock())
                # The clock may not have moved (tests, coarse clocks)
                while len(self.request_times) >= self.requests_per_period:
                    self.request_times.popleft()

            self.request_times.append(self._clock())
        return slept

    def reset(self) -> None:
        """Clear all tracked requests."""
        with self._lock:
            self.request_times.clear()

    def _expire(self, now: float) -> None:
        while self.request_times and self.request_times[0] <= now - self.period_seconds:
            self.request_times.popleft()
