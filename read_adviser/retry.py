"""Delay policies for retrying failed fetches."""

from __future__ import annotations

from typing import Callable, Iterator

# Builds a fresh sequence of delays, in seconds
RetryPolicy = Callable[[], Iterator[float]]


def fixed_delays(delay: float) -> RetryPolicy:
    """Retry after the same delay every time."""

    def policy() -> Iterator[float]:
        while True:
            yield delay

    return policy


def backoff_delays(start: float = 1.0, maximum: float = 60.0) -> RetryPolicy:
    """Retry after exponentially growing delays, capped at maximum."""

    def policy() -> Iterator[float]:
        delay = start
        while True:
            yield delay
            delay = min(delay * 2, maximum)

    return policy
