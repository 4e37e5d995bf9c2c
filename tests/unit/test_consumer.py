"""
Unit tests for consumer module.

Tests cover:
- Batch dispatch order and offset advancement
- Empty batches
- Per-event failures and fetch failures
- Stopping
"""

import sys
import os

import pytest

# Add repo root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from read_adviser.consumer import Consumer
from read_adviser.errors import CommandError, TransportError
from read_adviser.models import Event
from read_adviser.retry import backoff_delays, fixed_delays


def make_events(*offsets):
    return [Event(offset=o, chat_id=1, text=f"/help {o}", sender_name="alice") for o in offsets]


class ScriptedFetcher:
    """Returns scripted batches (or raises scripted errors), then empty batches."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []
        self.on_exhausted = None

    async def fetch(self, offset, limit):
        self.calls.append((offset, limit))
        if not self.results:
            if self.on_exhausted is not None:
                self.on_exhausted()
            return []
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class RecordingProcessor:
    def __init__(self, fail_offsets=()):
        self.seen = []
        self.fail_offsets = set(fail_offsets)

    async def process(self, event):
        self.seen.append(event.offset)
        if event.offset in self.fail_offsets:
            raise CommandError("can't do command: send help") from TransportError("down")


class TestPollOnce:
    """Tests for a single fetch-dispatch-advance step."""

    @pytest.mark.asyncio
    async def test_empty_batch_leaves_offset(self):
        fetcher = ScriptedFetcher([])
        processor = RecordingProcessor()
        consumer = Consumer(fetcher, processor, offset=7)

        assert await consumer.poll_once() == 0
        assert consumer.offset == 7
        assert processor.seen == []

    @pytest.mark.asyncio
    async def test_events_dispatched_in_order(self):
        fetcher = ScriptedFetcher(make_events(3, 4, 5))
        processor = RecordingProcessor()
        consumer = Consumer(fetcher, processor, offset=3)

        assert await consumer.poll_once() == 3
        assert processor.seen == [3, 4, 5]
        assert consumer.offset == 6

    @pytest.mark.asyncio
    async def test_fetch_uses_offset_and_batch_size(self):
        fetcher = ScriptedFetcher(make_events(10))
        consumer = Consumer(fetcher, RecordingProcessor(), batch_size=25, offset=10)

        await consumer.poll_once()
        await consumer.poll_once()

        assert fetcher.calls == [(10, 25), (11, 25)]

    @pytest.mark.asyncio
    async def test_failing_event_does_not_stop_batch(self):
        fetcher = ScriptedFetcher(make_events(1, 2, 3))
        processor = RecordingProcessor(fail_offsets={2})
        consumer = Consumer(fetcher, processor, offset=1)

        assert await consumer.poll_once() == 3
        assert processor.seen == [1, 2, 3]
        assert consumer.offset == 4

    @pytest.mark.asyncio
    async def test_failing_event_is_logged_with_cause(self, caplog):
        fetcher = ScriptedFetcher(make_events(1))
        consumer = Consumer(fetcher, RecordingProcessor(fail_offsets={1}))

        await consumer.poll_once()

        assert "Failed to handle update 1" in caplog.text
        assert "TransportError" in caplog.text

    @pytest.mark.asyncio
    async def test_fetch_error_propagates_and_keeps_offset(self):
        fetcher = ScriptedFetcher(TransportError("timeout"))
        consumer = Consumer(fetcher, RecordingProcessor(), offset=5)

        with pytest.raises(TransportError):
            await consumer.poll_once()
        assert consumer.offset == 5

    @pytest.mark.asyncio
    async def test_stop_mid_batch_keeps_progress(self):
        fetcher = ScriptedFetcher(make_events(1, 2, 3))
        consumer = None

        class StoppingProcessor(RecordingProcessor):
            async def process(self, event):
                await super().process(event)
                consumer.stop()

        processor = StoppingProcessor()
        consumer = Consumer(fetcher, processor, offset=1)

        await consumer.poll_once()

        assert processor.seen == [1]
        assert consumer.offset == 2


class TestStart:
    """Tests for the long-running loop."""

    @pytest.mark.asyncio
    async def test_runs_until_stopped(self):
        fetcher = ScriptedFetcher(make_events(1, 2), make_events(3))
        processor = RecordingProcessor()
        consumer = Consumer(fetcher, processor, offset=1, idle_delay=0)
        fetcher.on_exhausted = consumer.stop

        await consumer.start()

        assert processor.seen == [1, 2, 3]
        assert consumer.offset == 4
        assert consumer.stopped is True

    @pytest.mark.asyncio
    async def test_fetch_error_does_not_stop_loop(self, caplog):
        fetcher = ScriptedFetcher(TransportError("timeout"), make_events(1))
        processor = RecordingProcessor()
        consumer = Consumer(
            fetcher, processor, idle_delay=0, retry_policy=fixed_delays(0)
        )
        fetcher.on_exhausted = consumer.stop

        await consumer.start()

        assert processor.seen == [1]
        assert consumer.offset == 2
        assert "Error fetching updates" in caplog.text

    @pytest.mark.asyncio
    async def test_repeated_fetch_errors_are_retried(self):
        fetcher = ScriptedFetcher(
            TransportError("a"), TransportError("b"), TransportError("c"), make_events(9)
        )
        processor = RecordingProcessor()
        consumer = Consumer(
            fetcher, processor, offset=9, idle_delay=0, retry_policy=fixed_delays(0)
        )
        fetcher.on_exhausted = consumer.stop

        await consumer.start()

        assert len(fetcher.calls) == 5
        assert all(offset == 9 for offset, _ in fetcher.calls[:4])
        assert processor.seen == [9]

    @pytest.mark.asyncio
    async def test_stop_before_start_returns_immediately(self):
        fetcher = ScriptedFetcher(make_events(1))
        consumer = Consumer(fetcher, RecordingProcessor())
        consumer.stop()

        await consumer.start()

        assert fetcher.calls == []

    @pytest.mark.asyncio
    async def test_stop_interrupts_idle_wait(self):
        fetcher = ScriptedFetcher()
        consumer = Consumer(fetcher, RecordingProcessor(), idle_delay=3600)
        fetcher.on_exhausted = consumer.stop

        # Would hang for an hour if the idle wait ignored stop()
        await consumer.start()

        assert len(fetcher.calls) == 1


class TestRetryPolicies:
    def test_fixed_delays(self):
        delays = fixed_delays(2.5)()
        assert [next(delays) for _ in range(3)] == [2.5, 2.5, 2.5]

    def test_backoff_delays_are_capped(self):
        delays = backoff_delays(start=1.0, maximum=5.0)()
        assert [next(delays) for _ in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]

    def test_policy_restarts_fresh(self):
        policy = backoff_delays(start=1.0, maximum=8.0)
        first = policy()
        next(first)
        next(first)
        assert next(policy()) == 1.0
