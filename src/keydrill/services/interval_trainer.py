import random
import time
from typing import Callable, List, Optional, Tuple
from PySide6.QtCore import Signal # type: ignore

from keydrill.services.drill_session import DrillSession
from keydrill.services.errors import SynthError
from keydrill.services.music_theory import NOTE_NAMES, get_note_name, get_octave, note_number

INTERVAL_NAMES = [
    "0) Unison",
    "1) Minor Second",
    "2) Major Second",
    "3) Minor Third",
    "4) Major Third",
    "5) Perfect Fourth",
    "6) Tritone",
    "7) Perfect Fifth",
    "8) Minor Sixth",
    "9) Major Sixth",
    "10) Minor Seventh",
    "11) Major Seventh",
    "12) Perfect Octave",
]

REFERENCE_OCTAVE = 3


def generate_intervals(rng: Optional[random.Random] = None) -> List[int]:
    rng = rng or random.Random()
    intervals = list(range(len(INTERVAL_NAMES)))
    rng.shuffle(intervals)
    return intervals


def reference_notes(root_index: int, width: int) -> Tuple[int, int]:
    """Note numbers of the root and of the note `width` semitones above it."""
    root = note_number(root_index, REFERENCE_OCTAVE)
    return root, root + width


def judge_guess(width: int, guess: int) -> str:
    if guess == width:
        return "correct"
    return "less" if guess > width else "more"


class IntervalTrainerService(DrillSession):
    """
    Ear-training drill: plays two reference tones and asks for the interval.

    Guesses come from a selection callback rather than the keyboard, so this
    drill drives its own loop instead of waiting on the key tracker.
    """
    playbackFailed = Signal(str)

    def __init__(self, settings, synth, random_root: bool = False, rng: Optional[random.Random] = None):
        super().__init__(settings, rng)
        self.synth = synth
        self.random_root = random_root
        self._root_index = 0

    @property
    def current_width(self) -> Optional[int]:
        return self._queue[0] if self._queue else None

    def _generate(self) -> list:
        return generate_intervals(self.rng)

    def _announce(self):
        if not self._queue:
            self.sessionCompleted.emit()
            return
        self._root_index = self.rng.randrange(len(NOTE_NAMES)) if self.random_root else 0
        self.targetChanged.emit(f"Listen: {NOTE_NAMES[self._root_index][0]}")

    def play_reference(self):
        """Play the current question's two tones. A note that fails to play is reported and skipped."""
        width = self.current_width
        if width is None:
            return
        for note in reference_notes(self._root_index, width):
            if self.settings.verbose:
                print(f"IntervalTrainer: Reference {get_note_name(note)}{get_octave(note)} (note {note})")
            try:
                self.synth.play_midi_note(note, self.settings.noteMs)
            except SynthError as e:
                print(f"IntervalTrainer: Playback failed: {e}")
                self.playbackFailed.emit(str(e))
                continue
            time.sleep(self.settings.noteGapMs / 1000.0)

    def answer(self, guess: int) -> bool:
        """Judge a guessed width; advances to the next question when correct."""
        width = self.current_width
        if width is None:
            return False

        verdict = judge_guess(width, guess)
        if verdict == "correct":
            self._queue.pop(0)
            self.attemptCorrect.emit("Correct!")
            self._announce()
            return True

        self.attemptFailed.emit("Less than that!" if verdict == "less" else "More than that!")
        return False

    def run_intervals(self, ask_interval: Callable[[List[str]], int]):
        """Work through one shuffled queue of intervals."""
        self.start_session()
        while self._queue and not self._stopped:
            self.play_reference()
            while not self._stopped and not self.answer(ask_interval(INTERVAL_NAMES)):
                pass
