"""
Exponential Backoff
Reconnect delay policy for the progress channel client
"""

from typing import Optional

from .logger import get_logger

logger = get_logger()


class ExponentialBackoff:
    """
    Delay policy doubling on every consecutive failure

    The Nth consecutive failure waits ``min(seed * factor ** (N - 1), cap)``.
    A successful connection resets the counter so the next failure waits
    ``seed`` again. There is no maximum attempt count.
    """

    def __init__(self, seed: float = 1.0, factor: float = 2.0, cap: Optional[float] = None):
        if seed <= 0:
            raise ValueError("seed must be positive")
        self.seed = seed
        self.factor = factor
        self.cap = cap if cap is not None else seed * 30
        self.attempts = 0

    def delay_for(self, attempt: int) -> float:
        """Delay for the given 1-based attempt number"""
        try:
            return min(self.seed * (self.factor ** (attempt - 1)), self.cap)
        except OverflowError:
            # long outages keep retrying at the cap
            return self.cap

    def failure(self) -> float:
        """Record a failed/closed connection and return the delay to wait"""
        self.attempts += 1
        delay = self.delay_for(self.attempts)
        logger.debug(f"Reconnect attempt {self.attempts} scheduled in {delay:.1f}s")
        return delay

    def reset(self):
        """Record a successful connection"""
        self.attempts = 0
