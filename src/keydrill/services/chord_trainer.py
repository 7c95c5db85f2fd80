import random
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from keydrill.services.chord_recognizer import identify_chord
from keydrill.services.drill_session import KeyboardDrill
from keydrill.services.music_theory import (
    HAND_OCTAVES,
    NOTE_NAMES,
    ChordIdentity,
    ChordType,
    Hand,
)


@dataclass(frozen=True)
class DrillTarget:
    chord: ChordIdentity
    hand: Optional[Hand] = None

    def __str__(self) -> str:
        if self.hand is None:
            return str(self.chord)
        return f"{self.chord}, {self.hand}"


def chord_satisfies(target: DrillTarget, played: ChordIdentity) -> bool:
    """Root, type and inversion must match, and the bass must sit in the hand's octave band."""
    if not target.chord.matches(played):
        return False
    if target.hand is None or played.octave is None:
        return True
    return played.octave in HAND_OCTAVES[target.hand]


def generate_chord_list(chord_type: ChordType, inversion: int, hand: Hand,
                        rng: Optional[random.Random] = None) -> List[DrillTarget]:
    """One target per root for each requested hand, in random order."""
    rng = rng or random.Random()
    hands = [Hand.LEFT, Hand.RIGHT] if hand == Hand.BOTH else [hand]

    chords = [
        DrillTarget(ChordIdentity(names[0], chord_type, inversion), target_hand)
        for target_hand in hands
        for names in NOTE_NAMES
    ]
    rng.shuffle(chords)
    return chords


class ChordTrainerService(KeyboardDrill):
    def __init__(self, settings, chord_type: ChordType, inversion: int, hand: Hand,
                 rng: Optional[random.Random] = None):
        super().__init__(settings, rng)
        self.chord_type = chord_type
        self.inversion = inversion
        self.hand = hand

    @property
    def current_target(self) -> Optional[DrillTarget]:
        return self._queue[0] if self._queue else None

    def _generate(self) -> list:
        return generate_chord_list(self.chord_type, self.inversion, self.hand, self.rng)

    def _announce(self):
        if self._queue:
            self.targetChanged.emit(f"Play {self._queue[0]}")
        else:
            self.sessionCompleted.emit()

    def evaluate(self, held_notes: Sequence[int]) -> bool:
        """Judge a settled set of held notes against the front of the queue."""
        target = self.current_target
        if target is None or not held_notes:
            return False

        played = identify_chord(held_notes)
        if self.settings.verbose:
            print(f"ChordTrainer: Held {list(held_notes)} -> {played} (target {target})")

        if played is None:
            self.attemptFailed.emit(f"unrecognised chord\nTry again: {target}")
            return False

        if not chord_satisfies(target, played):
            self.attemptFailed.emit(f"Try again: {target}")
            return False

        self._queue.pop(0)
        self.attemptCorrect.emit("Correct!")
        self._announce()
        return True

    def _cooldown(self, debounce_s: float):
        # Keys are usually still down right after a judgment
        time.sleep(debounce_s)
