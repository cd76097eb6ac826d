"""Tests for the undo/redo history and the coalescing scheduler."""

import asyncio

import pytest

from scholarcite.exceptions import HistoryInvariantError
from scholarcite.history import (
    CoalescingScheduler,
    HistoryController,
    HistorySnapshot,
    HistoryState,
)
from scholarcite.models.source import BibliographyEntry, Source


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def history(clock):
    """History with a manually driven scheduler."""
    return HistoryController(
        initial_text="",
        scheduler=CoalescingScheduler(delay=1.0, clock=clock),
    )


@pytest.fixture
def entry():
    source = Source(title="T", author="A", year="2020", publication="P", url="https://e.org")
    return BibliographyEntry(text="A (2020) *T*.", source=source)


# ============================================================================
# CoalescingScheduler
# ============================================================================


class TestCoalescingScheduler:
    """Tests for the coalescing scheduler."""

    def test_poll_before_deadline_does_nothing(self, clock):
        """Test nothing fires before the quiet period ends."""
        calls = []
        scheduler = CoalescingScheduler(delay=1.0, clock=clock)
        scheduler.schedule(lambda: calls.append(1))

        clock.advance(0.5)

        assert scheduler.poll() is False
        assert calls == []
        assert scheduler.pending

    def test_reschedule_replaces_and_restarts(self, clock):
        """Test only the last callback runs, one delay after it was scheduled."""
        calls = []
        scheduler = CoalescingScheduler(delay=1.0, clock=clock)
        scheduler.schedule(lambda: calls.append("first"))
        clock.advance(0.8)
        scheduler.schedule(lambda: calls.append("second"))
        clock.advance(0.8)

        assert scheduler.poll() is False

        clock.advance(0.3)

        assert scheduler.poll() is True
        assert calls == ["second"]
        assert not scheduler.pending

    def test_cancel(self, clock):
        """Test cancelling drops the callback."""
        calls = []
        scheduler = CoalescingScheduler(delay=1.0, clock=clock)
        scheduler.schedule(lambda: calls.append(1))

        assert scheduler.cancel() is True
        assert scheduler.cancel() is False
        clock.advance(5)
        assert scheduler.poll() is False
        assert calls == []

    def test_flush(self, clock):
        """Test flushing runs the callback immediately."""
        calls = []
        scheduler = CoalescingScheduler(delay=1.0, clock=clock)
        scheduler.schedule(lambda: calls.append(1))

        assert scheduler.flush() is True
        assert scheduler.flush() is False
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_fires_on_running_loop(self):
        """Test the timer fires by itself inside an event loop."""
        calls = []
        scheduler = CoalescingScheduler(delay=0.01)
        scheduler.schedule(lambda: calls.append(1))

        await asyncio.sleep(0.05)

        assert calls == [1]
        assert not scheduler.pending

    @pytest.mark.asyncio
    async def test_cancel_on_running_loop(self):
        """Test a cancelled timer never fires."""
        calls = []
        scheduler = CoalescingScheduler(delay=0.01)
        scheduler.schedule(lambda: calls.append(1))
        scheduler.cancel()

        await asyncio.sleep(0.05)

        assert calls == []


# ============================================================================
# HistoryController
# ============================================================================


class TestRecording:
    """Tests for recording snapshots."""

    def test_initial_state(self, history):
        """Test a new history has one snapshot and no moves."""
        assert len(history) == 1
        assert history.index == 0
        assert history.state == HistoryState.NEITHER
        assert history.current == HistorySnapshot("", ())

    def test_coalesced_edits_push_once(self, history, clock):
        """Test rapid edits produce one snapshot holding the final text."""
        for text in ["H", "He", "Hel", "Hell", "Hello"]:
            history.record_edit(text, ())
            clock.advance(0.1)

        assert len(history) == 1

        clock.advance(1.0)
        history.poll()

        assert len(history) == 2
        assert history.current.text == "Hello"

    def test_edit_values_copied_at_call_time(self, history, entry):
        """Test later changes to a live list do not leak into the snapshot."""
        live = [entry]
        history.record_edit("text", live)
        live.clear()
        history.flush_pending()

        assert history.current.bibliography == (entry,)

    def test_immediate_cancels_pending(self, history, clock, entry):
        """Test an immediate push drops the pending typing snapshot."""
        history.record_edit("typed", ())
        history.record_immediate("typed (A, 2020)", (entry,))
        clock.advance(5)
        history.poll()

        assert [s.text for s in history.snapshots] == ["", "typed (A, 2020)"]

    def test_identical_push_skipped(self, history):
        """Test pushing the current state again is a no-op."""
        assert history.record_immediate("a", ()) is True
        assert history.record_immediate("a", ()) is False
        assert len(history) == 2

    def test_push_truncates_redo_branch(self, history):
        """Test recording while not at the newest snapshot discards the redo branch."""
        history.record_immediate("a", ())
        history.record_immediate("b", ())
        history.record_immediate("c", ())
        history.undo()
        history.undo()

        history.record_immediate("x", ())

        assert [s.text for s in history.snapshots] == ["", "a", "x"]
        assert not history.can_redo


class TestNavigation:
    """Tests for undo and redo."""

    def test_undo_at_start_returns_none(self, history):
        """Test undo is a no-op at the oldest snapshot."""
        assert history.undo() is None
        assert history.index == 0

    def test_redo_at_end_returns_none(self, history):
        """Test redo is a no-op at the newest snapshot."""
        history.record_immediate("a", ())

        assert history.redo() is None

    def test_undo_redo_restores_exactly(self, history, entry):
        """Test undo followed by redo returns to the same snapshot."""
        history.record_immediate("a", ())
        history.record_immediate("b", (entry,))
        before = history.current

        assert history.undo() == HistorySnapshot("a", ())
        assert history.redo() == before

    def test_undo_cancels_pending_edit(self, history, clock):
        """Test a pending typing snapshot cannot resurrect undone state."""
        history.record_immediate("a", ())
        history.record_immediate("b", ())
        history.record_edit("b typed", ())

        history.undo()
        clock.advance(5)
        history.poll()

        assert history.current.text == "a"
        assert history.can_redo

    def test_state_values(self, history):
        """Test the derived state at each position."""
        history.record_immediate("a", ())
        history.record_immediate("b", ())

        assert history.state == HistoryState.UNDO
        history.undo()
        assert history.state == HistoryState.BOTH
        history.undo()
        assert history.state == HistoryState.REDO

    def test_corrupt_index_raises(self, history):
        """Test an impossible index is a fatal error."""
        history._index = 5

        with pytest.raises(HistoryInvariantError):
            history.undo()

        assert issubclass(HistoryInvariantError, RuntimeError)
