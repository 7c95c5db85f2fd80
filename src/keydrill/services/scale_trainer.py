import random
from typing import List, Optional, Sequence, Tuple
from PySide6.QtCore import Signal # type: ignore

from keydrill.services.drill_session import KeyboardDrill
from keydrill.services.music_theory import (
    MAJOR_SCALE_INTERVALS,
    NOTE_NAMES,
    get_note_name,
    note_matches,
)

MODES = [
    "I   - Ionian (major scale)",
    "II  - Dorian (a minor scale with a sharp 6th, gives it a bit of a jazzy/upbeat vibe)",
    "III - Phrygian (very common in metal or spanish classical. Really brooding, depressing mode)",
    "IV  - Lydian (Kind of spacey and dreamy, like a major scale that is tripping)",
    "V   - Mixolydian (bluesy)",
    "VI  - Aeolian (minor scale, omnipresent in music)",
    "VII - Locrian (rarely used)",
]


def spell_scale(root_index: int, mode_offset: int) -> List[str]:
    """
    Spell one octave of a mode up from the root and back down again.

    A note with a sharp/flat alternative is written with the flat when the
    sharp would repeat the previous note's letter (F then F# becomes F then
    Gb), so each letter appears once on the way up.
    """
    steps = len(MAJOR_SCALE_INTERVALS)
    length = steps * 2 + 1
    names = [""] * length
    offset = 0

    for j in range(steps + 1):
        spellings = NOTE_NAMES[(root_index + offset) % len(NOTE_NAMES)]
        if j > 0 and len(spellings) > 1 and spellings[0][0] == names[j - 1][0]:
            name = spellings[1]
        else:
            name = spellings[0]
        names[j] = name
        names[length - 1 - j] = name

        offset += MAJOR_SCALE_INTERVALS[(j + mode_offset) % steps]

    return names


def generate_scales(mode_offset: int, rng: Optional[random.Random] = None) -> List[Tuple[str, List[str]]]:
    """One scale for every root, roots in random order."""
    rng = rng or random.Random()
    root_indices = list(range(len(NOTE_NAMES)))
    rng.shuffle(root_indices)

    scales = []
    for root_index in root_indices:
        notes = spell_scale(root_index, mode_offset)
        scales.append((notes[0], notes))
    return scales


class ScaleTrainerService(KeyboardDrill):
    scaleStarted = Signal(str)
    scaleCompleted = Signal(str)

    def __init__(self, settings, mode_offset: int, rng: Optional[random.Random] = None):
        super().__init__(settings, rng)
        self.mode_offset = mode_offset
        self._note_index = 0

    @property
    def expected_note(self) -> Optional[str]:
        if not self._queue:
            return None
        _, notes = self._queue[0]
        return notes[self._note_index]

    def _generate(self) -> list:
        self._note_index = 0
        return generate_scales(self.mode_offset, self.rng)

    def _announce(self):
        if self._queue:
            root, _ = self._queue[0]
            self.scaleStarted.emit(root)
        else:
            self.sessionCompleted.emit()

    def evaluate(self, held_notes: Sequence[int]) -> bool:
        """Judge the most recently pressed held note against the next scale step."""
        expected = self.expected_note
        if expected is None or not held_notes:
            return False

        latest = held_notes[-1]
        if self.settings.verbose:
            print(f"ScaleTrainer: Held {list(held_notes)}, expecting {expected}")

        if not note_matches(latest, expected):
            self.attemptFailed.emit(get_note_name(latest))
            return False

        self.attemptCorrect.emit(expected)
        self._note_index += 1

        root, notes = self._queue[0]
        if self._note_index >= len(notes):
            self._queue.pop(0)
            self._note_index = 0
            self.scaleCompleted.emit(root)
            self._announce()
        return True
