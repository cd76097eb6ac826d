"""Undo/redo history over document text and bibliography.

Typing is coalesced: every keystroke restarts a short timer and only the last
edit before the timer runs out is recorded. Structural edits (citation
insertion, document import, clearing the bibliography) are recorded at once
and cancel any pending typing snapshot first, so the two paths never push two
entries for the same edit.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from scholarcite.exceptions import HistoryInvariantError
from scholarcite.logging import get_logger
from scholarcite.models.source import BibliographyEntry

logger = get_logger("history")


@dataclass(frozen=True)
class HistorySnapshot:
    """Document text and bibliography at one point in time."""

    text: str
    bibliography: tuple[BibliographyEntry, ...] = ()

    @classmethod
    def capture(cls, text: str, bibliography: Iterable[BibliographyEntry]) -> HistorySnapshot:
        """Copy live state into an immutable snapshot."""
        return cls(text=text, bibliography=tuple(bibliography))


class HistoryState(str, Enum):
    """Which history moves are available."""

    NEITHER = "neither"
    UNDO = "undo"
    REDO = "redo"
    BOTH = "both"


class CoalescingScheduler:
    """Runs the most recently scheduled callback once a quiet period has passed.

    Scheduling again before the delay elapses replaces the pending callback and
    restarts the delay. Inside a running event loop the timer fires on its own;
    without one, callers drive it with :meth:`poll`.
    """

    def __init__(self, delay: float = 1.0, clock: Callable[[], float] = time.monotonic):
        """Initialize the scheduler.

        Args:
            delay: Quiet period in seconds
            clock: Monotonic clock used for deadlines (injectable for tests)
        """
        self.delay = delay
        self._clock = clock
        self._callback: Optional[Callable[[], None]] = None
        self._deadline: Optional[float] = None
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        """True while a callback is waiting to run."""
        return self._callback is not None

    def schedule(self, callback: Callable[[], None]) -> None:
        """Replace any pending callback and restart the delay."""
        self._cancel_timer()
        self._callback = callback
        self._deadline = self._clock() + self.delay

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> bool:
        """Drop the pending callback without running it.

        Returns:
            True if a callback was pending
        """
        was_pending = self.pending
        self._cancel_timer()
        self._callback = None
        self._deadline = None
        return was_pending

    def flush(self) -> bool:
        """Run the pending callback now.

        Returns:
            True if a callback ran
        """
        if not self.pending:
            return False
        self._fire()
        return True

    def poll(self) -> bool:
        """Run the pending callback if its deadline has passed.

        Returns:
            True if a callback ran
        """
        if self.pending and self._deadline is not None and self._clock() >= self._deadline:
            self._fire()
            return True
        return False

    def _fire(self) -> None:
        callback = self._callback
        self._cancel_timer()
        self._callback = None
        self._deadline = None
        if callback is not None:
            callback()

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class HistoryController:
    """Linear undo/redo log of (text, bibliography) snapshots.

    The log always holds at least one snapshot. Pushing while not at the
    newest snapshot discards the redo branch. A push identical to the current
    snapshot is skipped.

    Example usage:
        history = HistoryController(initial_text=text)

        history.record_edit(text, bibliography)       # coalesced typing
        history.record_immediate(text, bibliography)  # citation insert

        snapshot = history.undo()
        if snapshot:
            restore(snapshot.text, snapshot.bibliography)
    """

    def __init__(
        self,
        initial_text: str = "",
        initial_bibliography: Iterable[BibliographyEntry] = (),
        scheduler: Optional[CoalescingScheduler] = None,
        coalesce_seconds: float = 1.0,
    ):
        """Initialize the history with one snapshot.

        Args:
            initial_text: Text of the first snapshot
            initial_bibliography: Bibliography of the first snapshot
            scheduler: Scheduler for coalesced edits (created if not given)
            coalesce_seconds: Quiet period for the default scheduler
        """
        self.scheduler = scheduler or CoalescingScheduler(delay=coalesce_seconds)
        self._log: list[HistorySnapshot] = [
            HistorySnapshot.capture(initial_text, initial_bibliography)
        ]
        self._index = 0

    # ==================== Recording ====================

    def record_edit(self, text: str, bibliography: Iterable[BibliographyEntry]) -> None:
        """Record a typing edit once typing pauses.

        The values are copied now; only the last call before the quiet period
        ends reaches the log.
        """
        snapshot = HistorySnapshot.capture(text, bibliography)
        self.scheduler.schedule(lambda: self._push(snapshot))

    def record_immediate(self, text: str, bibliography: Iterable[BibliographyEntry]) -> bool:
        """Cancel any pending typing snapshot and record this state now.

        Returns:
            True if a snapshot was pushed (False if identical to the current one)
        """
        self.scheduler.cancel()
        return self._push(HistorySnapshot.capture(text, bibliography))

    def flush_pending(self) -> bool:
        """Record a pending typing snapshot immediately."""
        return self.scheduler.flush()

    def poll(self) -> bool:
        """Record a pending typing snapshot if its quiet period has passed."""
        return self.scheduler.poll()

    # ==================== Navigation ====================

    def undo(self) -> Optional[HistorySnapshot]:
        """Step back one snapshot.

        Returns:
            The snapshot to restore, or None if already at the oldest
        """
        self._check_invariant()
        if self._index == 0:
            return None

        # A stale typing snapshot must not resurrect the undone state
        self.scheduler.cancel()
        self._index -= 1
        return self._log[self._index]

    def redo(self) -> Optional[HistorySnapshot]:
        """Step forward one snapshot.

        Returns:
            The snapshot to restore, or None if already at the newest
        """
        self._check_invariant()
        if self._index >= len(self._log) - 1:
            return None

        self.scheduler.cancel()
        self._index += 1
        return self._log[self._index]

    # ==================== State ====================

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> HistorySnapshot:
        """Snapshot at the current index."""
        self._check_invariant()
        return self._log[self._index]

    @property
    def snapshots(self) -> tuple[HistorySnapshot, ...]:
        return tuple(self._log)

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._log) - 1

    @property
    def state(self) -> HistoryState:
        """Derived availability of undo and redo."""
        if self.can_undo and self.can_redo:
            return HistoryState.BOTH
        if self.can_undo:
            return HistoryState.UNDO
        if self.can_redo:
            return HistoryState.REDO
        return HistoryState.NEITHER

    def __len__(self) -> int:
        return len(self._log)

    # ==================== Internals ====================

    def _push(self, snapshot: HistorySnapshot) -> bool:
        self._check_invariant()
        if snapshot == self._log[self._index]:
            return False

        del self._log[self._index + 1 :]
        self._log.append(snapshot)
        self._index = len(self._log) - 1
        logger.debug(f"History push: {len(self._log)} snapshots, index {self._index}")
        return True

    def _check_invariant(self) -> None:
        if not self._log or not 0 <= self._index < len(self._log):
            raise HistoryInvariantError(
                f"History index {self._index} out of bounds for {len(self._log)} snapshots"
            )
