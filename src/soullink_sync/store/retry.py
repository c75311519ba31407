"""Retry policy for remote writes: exponential backoff with jitter."""

import random
from dataclasses import dataclass
from typing import Optional

from ..config import SyncConfig, get_config


def compute_backoff(
    attempt: int,
    base: float,
    max_delay: float,
    jitter_ratio: float
) -> float:
    """
    Compute exponential backoff delay with jitter.

    Args:
        attempt: Attempt number (0-based)
        base: Base delay in seconds
        max_delay: Maximum delay in seconds
        jitter_ratio: Jitter ratio (0.0 to 1.0)

    Returns:
        Delay in seconds (minimum 0.1s)
    """
    # Exponential backoff: base * 2^attempt
    delay = min(max_delay, base * (2 ** attempt))

    # Add jitter: ±jitter_ratio of the delay
    jitter = random.uniform(-jitter_ratio, jitter_ratio) * delay

    return max(0.1, delay + jitter)


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently a failed write is retried."""

    max_attempts: int = 4
    base_delay: float = 0.5
    max_delay: float = 30.0
    jitter_ratio: float = 0.2

    def delay_for(self, attempt: int) -> float:
        """Delay before retrying after failed attempt number ``attempt`` (0-based)."""
        return compute_backoff(attempt, self.base_delay, self.max_delay, self.jitter_ratio)

    def should_retry(self, attempt: int) -> bool:
        return attempt + 1 < self.max_attempts

    @classmethod
    def from_config(cls, sync_config: Optional[SyncConfig] = None) -> "RetryPolicy":
        sync_config = sync_config or get_config().sync
        return cls(
            max_attempts=max(1, sync_config.write_max_attempts),
            base_delay=sync_config.write_backoff_base_secs,
            max_delay=sync_config.write_backoff_max_secs,
            jitter_ratio=sync_config.write_backoff_jitter_ratio,
        )
