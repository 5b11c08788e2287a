"""
Unit tests for the progress event channel
"""

import pytest

from core.exceptions import ProgressStateError
from ingestion.progress import ProgressChannel
from models.base import ProcessingStatus


class TestProgressChannel:
    """Test listener delivery and per-run guarantees"""

    def test_emit_without_listeners(self, clock):
        channel = ProgressChannel(clock=clock)

        event = channel.emit(ProcessingStatus.STARTED, 0, "start")

        assert event.status == ProcessingStatus.STARTED
        assert event.timestamp == clock.now()

    def test_listeners_called_in_registration_order(self, clock):
        channel = ProgressChannel(clock=clock)
        calls = []
        channel.subscribe(lambda e: calls.append(("first", e.percent)))
        channel.subscribe(lambda e: calls.append(("second", e.percent)))

        channel.emit(ProcessingStatus.EXTRACTING, 10, "x")

        assert calls == [("first", 10), ("second", 10)]

    def test_no_replay_for_late_subscribers(self, clock):
        channel = ProgressChannel(clock=clock)
        channel.emit(ProcessingStatus.STARTED, 0, "start")

        received = []
        channel.subscribe(received.append)
        channel.emit(ProcessingStatus.EXTRACTING, 5, "x")

        assert [e.status for e in received] == [ProcessingStatus.EXTRACTING]

    def test_unsubscribe(self, clock):
        channel = ProgressChannel(clock=clock)
        received = []
        channel.subscribe(received.append)
        channel.unsubscribe(received.append)

        channel.emit(ProcessingStatus.STARTED, 0, "start")

        assert received == []

    def test_percent_is_clamped_and_non_decreasing(self, clock):
        channel = ProgressChannel(clock=clock)

        assert channel.emit(ProcessingStatus.EXTRACTING, 40, "a").percent == 40
        assert channel.emit(ProcessingStatus.EXTRACTING, 30, "b").percent == 40
        assert channel.emit(ProcessingStatus.LOADING, 150, "c").percent == 100
        assert channel.last_percent == 100

    def test_negative_percent(self, clock):
        channel = ProgressChannel(clock=clock)
        assert channel.emit(ProcessingStatus.STARTED, -5, "a").percent == 0

    @pytest.mark.parametrize("terminal", [ProcessingStatus.FINISHED, ProcessingStatus.FAILED])
    def test_emit_after_terminal_status_raises(self, clock, terminal):
        channel = ProgressChannel(clock=clock)
        channel.emit(terminal, 100, "done")

        with pytest.raises(ProgressStateError):
            channel.emit(ProcessingStatus.LOADING, 100, "late")

    def test_reset_starts_new_run(self, clock):
        channel = ProgressChannel(clock=clock)
        channel.emit(ProcessingStatus.FINISHED, 100, "done")

        channel.reset()

        assert channel.emit(ProcessingStatus.STARTED, 0, "again").percent == 0

    def test_listener_error_propagates(self, clock):
        channel = ProgressChannel(clock=clock)

        def broken(event):
            raise RuntimeError("listener failed")

        channel.subscribe(broken)

        with pytest.raises(RuntimeError):
            channel.emit(ProcessingStatus.STARTED, 0, "start")


class TestProgressQueue:
    """Test bounded queues for decoupled consumers"""

    @pytest.mark.asyncio
    async def test_queue_receives_events(self, clock):
        channel = ProgressChannel(clock=clock)
        queue = channel.open_queue(maxsize=10)

        channel.emit(ProcessingStatus.STARTED, 0, "start")
        channel.emit(ProcessingStatus.EXTRACTING, 10, "extract")

        assert (await queue.get()).status == ProcessingStatus.STARTED
        assert (await queue.get()).status == ProcessingStatus.EXTRACTING

    @pytest.mark.asyncio
    async def test_full_queue_drops_oldest(self, clock):
        channel = ProgressChannel(clock=clock)
        queue = channel.open_queue(maxsize=2)

        for percent in (10, 20, 30):
            channel.emit(ProcessingStatus.EXTRACTING, percent, f"{percent}")

        assert queue.qsize() == 2
        assert [queue.get_nowait().percent, queue.get_nowait().percent] == [20, 30]

    @pytest.mark.asyncio
    async def test_closed_queue_receives_nothing(self, clock):
        channel = ProgressChannel(clock=clock)
        queue = channel.open_queue(maxsize=2)
        channel.close_queue(queue)

        channel.emit(ProcessingStatus.STARTED, 0, "start")

        assert queue.empty()

    def test_invalid_maxsize(self, clock):
        with pytest.raises(ValueError):
            ProgressChannel(clock=clock).open_queue(maxsize=0)
