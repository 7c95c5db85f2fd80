"""
Pitch and chord vocabulary shared by the drill services.

Note numbers are raw MIDI note numbers. Names and octaves are counted from
the lowest key of an 88-key keyboard (A0 = MIDI 21), so octave 3 starts on
A3 (MIDI 57) and middle C (MIDI 60) is reported as "C" in octave 3.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

KEYBOARD_START_NOTE = 21

# Canonical spelling first, enharmonic alternate second
NOTE_NAMES: List[List[str]] = [
    ["A"],
    ["A#", "Bb"],
    ["B"],
    ["C"],
    ["C#", "Db"],
    ["D"],
    ["D#", "Eb"],
    ["E"],
    ["F"],
    ["F#", "Gb"],
    ["G"],
    ["G#", "Ab"],
]

MAJOR_SCALE_INTERVALS = [2, 2, 1, 2, 2, 2, 1]


def pitch_class(note: int) -> int:
    """Index into NOTE_NAMES for a raw note number."""
    return (note - KEYBOARD_START_NOTE) % len(NOTE_NAMES)


def get_note_name(note: int) -> str:
    return NOTE_NAMES[pitch_class(note)][0]


def get_octave(note: int) -> Optional[int]:
    """Keyboard octave of a note, or None below the bottom of the keyboard."""
    if note < KEYBOARD_START_NOTE:
        return None
    return (note - KEYBOARD_START_NOTE) // len(NOTE_NAMES)


def note_number(pitch_class_index: int, octave: int) -> int:
    return KEYBOARD_START_NOTE + octave * len(NOTE_NAMES) + pitch_class_index


def note_matches(note: int, name: str) -> bool:
    """True if `name` is one of the spellings of the note's pitch class."""
    return name in NOTE_NAMES[pitch_class(note)]


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


class Hand(Enum):
    LEFT = "left"
    RIGHT = "right"
    BOTH = "both"

    def __str__(self) -> str:
        return HAND_LABELS[self]


HAND_LABELS: Dict[Hand, str] = {
    Hand.LEFT: "Left Hand",
    Hand.RIGHT: "Right Hand",
    Hand.BOTH: "Both Hands",
}

# Keyboard octaves each hand is expected to play in
HAND_OCTAVES: Dict[Hand, Tuple[int, ...]] = {
    Hand.LEFT: (0, 1, 2),
    Hand.RIGHT: (3, 4, 5),
    Hand.BOTH: (0, 1, 2, 3, 4, 5),
}


class ChordType(Enum):
    MAJOR = "major"
    MINOR = "minor"
    DIMINISHED = "diminished"
    MAJOR_SEVENTH = "major_seventh"
    MINOR_SEVENTH = "minor_seventh"
    DOMINANT_SEVENTH = "dominant_seventh"
    AUGMENTED = "augmented"
    SUS_TWO = "sus2"
    SUS_FOUR = "sus4"
    SEVEN_SUS_TWO = "7sus2"
    SEVEN_SUS_FOUR = "7sus4"
    SUS_SIX = "sus6"


# Semitone offsets from the lowest note, in ascending order
CHORD_SIGNATURES: Dict[ChordType, Tuple[int, ...]] = {
    ChordType.MAJOR: (0, 4, 7),
    ChordType.MINOR: (0, 3, 7),
    ChordType.DIMINISHED: (0, 3, 6),
    ChordType.AUGMENTED: (0, 4, 8),
    ChordType.MAJOR_SEVENTH: (0, 4, 7, 11),
    ChordType.MINOR_SEVENTH: (0, 3, 7, 10),
    ChordType.DOMINANT_SEVENTH: (0, 4, 7, 10),
    ChordType.SUS_TWO: (0, 2, 7),
    ChordType.SUS_FOUR: (0, 5, 7),
    ChordType.SEVEN_SUS_TWO: (0, 2, 7, 10),
    ChordType.SEVEN_SUS_FOUR: (0, 5, 7, 10),
    ChordType.SUS_SIX: (0, 4, 7, 9),
}

SIGNATURE_LOOKUP: Dict[Tuple[int, ...], ChordType] = {
    signature: chord_type for chord_type, signature in CHORD_SIGNATURES.items()
}

CHORD_SUFFIXES: Dict[ChordType, str] = {
    ChordType.MAJOR: "",
    ChordType.MINOR: "m",
    ChordType.DIMINISHED: "dim",
    ChordType.MAJOR_SEVENTH: "maj7",
    ChordType.MINOR_SEVENTH: "min7",
    ChordType.DOMINANT_SEVENTH: "dom7",
    ChordType.AUGMENTED: "aug",
    ChordType.SUS_TWO: "sus2",
    ChordType.SUS_FOUR: "sus4",
    ChordType.SEVEN_SUS_TWO: "7sus2",
    ChordType.SEVEN_SUS_FOUR: "7sus4",
    ChordType.SUS_SIX: "sus6",
}

# Menu order for the chord drill launcher
CHORD_TYPE_LABELS: List[Tuple[str, ChordType]] = [
    ("Major", ChordType.MAJOR),
    ("Minor", ChordType.MINOR),
    ("Diminished", ChordType.DIMINISHED),
    ("Major Seventh", ChordType.MAJOR_SEVENTH),
    ("Minor Seventh", ChordType.MINOR_SEVENTH),
    ("Dominant Seventh", ChordType.DOMINANT_SEVENTH),
    ("Augmented", ChordType.AUGMENTED),
    ("sus2", ChordType.SUS_TWO),
    ("sus4", ChordType.SUS_FOUR),
    ("7sus2", ChordType.SEVEN_SUS_TWO),
    ("7sus4", ChordType.SEVEN_SUS_FOUR),
    ("sus6", ChordType.SUS_SIX),
]


@dataclass(frozen=True)
class ChordIdentity:
    root: str
    chord_type: ChordType
    inversion: int = 0
    octave: Optional[int] = None

    def matches(self, other: "ChordIdentity") -> bool:
        """Drill equality: an unknown octave on either side is a wildcard."""
        if (self.root, self.chord_type, self.inversion) != (other.root, other.chord_type, other.inversion):
            return False
        if self.octave is None or other.octave is None:
            return True
        return self.octave == other.octave

    def __str__(self) -> str:
        inversion_str = f", {ordinal(self.inversion)} inversion" if self.inversion else ""
        octave_str = f"({self.octave})" if self.octave is not None else ""
        return f"{self.root}{CHORD_SUFFIXES[self.chord_type]}{inversion_str}{octave_str}"
