import random
from typing import Callable, Optional
from PySide6.QtCore import QObject, Signal # type: ignore

from keydrill.services.key_state import KeyStateTracker


class DrillSession(QObject):
    """
    Shared plumbing for every drill: a shuffled target queue and the
    feedback signals.

    Subclasses build a fresh queue in _generate() and present its head in
    _announce(). Feedback leaves through the signals below so the console
    (or anything else) decides how to present it.
    """
    targetChanged = Signal(str)
    attemptCorrect = Signal(str)
    attemptFailed = Signal(str)
    sessionCompleted = Signal()

    def __init__(self, settings, rng: Optional[random.Random] = None):
        super().__init__()
        self.settings = settings
        self.rng = rng or random.Random()
        self._queue: list = []
        self._stopped = False

    @property
    def remaining(self) -> int:
        return len(self._queue)

    @property
    def is_complete(self) -> bool:
        return not self._queue

    def start_session(self):
        self._stopped = False
        self._queue = self._generate()
        self._announce()

    def stop(self):
        """Ask a running loop to return after its current wait."""
        self._stopped = True

    def _generate(self) -> list:
        raise NotImplementedError

    def _announce(self):
        raise NotImplementedError


class KeyboardDrill(DrillSession):
    """
    A drill answered on the keyboard: settled snapshots from the key
    tracker are judged by evaluate().
    """

    # Seconds to wait on the tracker before re-checking the stop flag
    POLL_TIMEOUT_S = 0.25

    def run(self, tracker: KeyStateTracker, confirm_replay: Callable[[], bool]):
        """Play queues until the user declines a replay."""
        replay = True
        while replay:
            self.start_session()
            self.run_queue(tracker)
            if self._stopped:
                return
            replay = confirm_replay()

    def run_queue(self, tracker: KeyStateTracker):
        debounce_s = self.settings.debounce_s
        while self._queue and not self._stopped:
            held = tracker.wait_until_settled(debounce_s, timeout=self.POLL_TIMEOUT_S)
            if not held:
                continue
            self.evaluate(held)
            self._cooldown(debounce_s)

    def evaluate(self, held_notes) -> bool:
        raise NotImplementedError

    def _cooldown(self, debounce_s: float):
        pass
