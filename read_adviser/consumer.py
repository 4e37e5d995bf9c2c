"""
Event consumer loop.

Repeatedly fetches a batch of events from the messaging platform, hands each
one to the dispatcher in order and advances the offset past the batch.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterator, Optional, Protocol

from read_adviser.models import Event
from read_adviser.retry import RetryPolicy, fixed_delays

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
DEFAULT_IDLE_DELAY = 1.0
DEFAULT_RETRY_DELAY = 1.0


class Fetcher(Protocol):
    async def fetch(self, offset: int, limit: int) -> list[Event]: ...


class Processor(Protocol):
    async def process(self, event: Event) -> None: ...


class Consumer:
    """
    Sequential fetch-dispatch-advance loop.

    Args:
        fetcher: Source of events
        processor: Handles one event at a time
        batch_size: Maximum events requested per fetch (default: 100)
        offset: Stream position to start from (default: 0)
        idle_delay: Seconds to wait after an empty batch (default: 1)
        retry_policy: Delays to wait after failed fetches (default: fixed 1s)
    """

    def __init__(
        self,
        fetcher: Fetcher,
        processor: Processor,
        batch_size: int = DEFAULT_BATCH_SIZE,
        offset: int = 0,
        idle_delay: float = DEFAULT_IDLE_DELAY,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.fetcher = fetcher
        self.processor = processor
        self.batch_size = batch_size
        self.offset = offset
        self.idle_delay = idle_delay
        self.retry_policy = retry_policy or fixed_delays(DEFAULT_RETRY_DELAY)
        self._stop_event = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Ask the loop to stop after the event currently being handled."""
        self._stop_event.set()

    async def start(self) -> None:
        """Run until stop() is called. Fetch failures never end the loop."""
        logger.info(f"Consumer started at offset={self.offset}")
        delays: Optional[Iterator[float]] = None

        while not self.stopped:
            try:
                fetched = await self.poll_once()
            except Exception as e:
                logger.error(f"Error fetching updates: {type(e).__name__}: {e}")
                if delays is None:
                    delays = self.retry_policy()
                await self._sleep(next(delays))
                continue

            delays = None
            if fetched == 0:
                await self._sleep(self.idle_delay)

        logger.info(f"Consumer stopped at offset={self.offset}")

    async def poll_once(self) -> int:
        """
        Fetch one batch, dispatch it and advance the offset.

        Returns:
            Number of events fetched

        Raises:
            Exception: Whatever the fetcher raised; the offset is unchanged
        """
        events = await self.fetcher.fetch(self.offset, self.batch_size)
        if not events:
            return 0

        for event in events:
            if self.stopped:
                logger.info(f"Stop requested, leaving batch at update {event.offset}")
                self.offset = event.offset
                return len(events)
            try:
                await self.processor.process(event)
            except Exception as e:
                # Continue processing other events even if one fails
                cause = f" (caused by {e.__cause__!r})" if e.__cause__ else ""
                logger.error(f"Failed to handle update {event.offset}: {e}{cause}")

        self.offset = events[-1].offset + 1
        logger.debug(f"Advanced offset to {self.offset}")
        return len(events)

    async def _sleep(self, seconds: float) -> None:
        """Wait for seconds, returning early if stop() is called."""
        if seconds <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
