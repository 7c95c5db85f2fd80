import threading
import time
from typing import Callable, List, Optional, Tuple

from keydrill.services.errors import UnknownNoteError

# Clock readings are floats; a quiet period this close to the window counts as complete
SETTLE_TOLERANCE_S = 1e-6


class KeyStateTracker:
    """
    Thread-safe record of the keys currently held down.

    The MIDI callback thread calls note_on/note_off; the drill loop on the
    main thread waits for the held set to settle before judging it. Every
    mutation stamps the last-change time, and the drill loop clears the
    stamp once it has consumed a settled state.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._cond = threading.Condition()
        self._held: List[int] = []
        self._last_change: Optional[float] = None

    # ── Producer side ───────────────────────────────────────────────

    def note_on(self, note: int):
        with self._cond:
            if note not in self._held:
                self._held.append(note)
            self._last_change = self._clock()
            self._cond.notify_all()

    def note_off(self, note: int):
        with self._cond:
            if note not in self._held:
                raise UnknownNoteError(note)
            self._held.remove(note)
            self._last_change = self._clock()
            self._cond.notify_all()

    def reset(self):
        with self._cond:
            self._held.clear()
            self._last_change = None
            self._cond.notify_all()

    # ── Consumer side ───────────────────────────────────────────────

    def snapshot(self) -> Tuple[Tuple[int, ...], Optional[float]]:
        with self._cond:
            return tuple(self._held), self._last_change

    def clear_last_change(self):
        with self._cond:
            self._last_change = None

    def is_settled(self, debounce_s: float) -> bool:
        """True if a change is pending and nothing has moved for debounce_s."""
        with self._cond:
            return self._remaining_quiet(debounce_s) == 0.0

    def _remaining_quiet(self, debounce_s: float) -> Optional[float]:
        # Caller holds the lock. None means no change is pending.
        if self._last_change is None:
            return None
        remaining = debounce_s - (self._clock() - self._last_change)
        return remaining if remaining > SETTLE_TOLERANCE_S else 0.0

    def wait_until_settled(self, debounce_s: float, timeout: Optional[float] = None) -> Optional[Tuple[int, ...]]:
        """
        Block until the held set has been quiet for debounce_s since its
        latest change, consume the change and return the held notes.

        Returns None if timeout (seconds) expires first.
        """
        deadline = None if timeout is None else self._clock() + timeout
        with self._cond:
            while True:
                remaining = self._remaining_quiet(debounce_s)
                if remaining == 0.0:
                    self._last_change = None
                    return tuple(self._held)

                wait_for = remaining
                if deadline is not None:
                    time_left = deadline - self._clock()
                    if time_left <= 0:
                        return None
                    wait_for = time_left if wait_for is None else min(wait_for, time_left)
                self._cond.wait(wait_for)
