from typing import Optional, Sequence

from keydrill.services.music_theory import (
    SIGNATURE_LOOKUP,
    ChordIdentity,
    get_note_name,
    get_octave,
)


def identify_chord(held_notes: Sequence[int]) -> Optional[ChordIdentity]:
    """
    Name the chord formed by the held notes, trying each inversion in turn.

    For every guess the intervals above the current bass note are looked up
    as an exact ordered signature. On a miss the highest note is dropped an
    octave and moved under the bass, which turns a 1st inversion voicing
    back into root position on the next pass.
    """
    if not held_notes:
        return None

    keys_down = sorted(held_notes)

    for inversion in range(len(keys_down)):
        bass = keys_down[0]
        positions = tuple(note - bass for note in keys_down)

        chord_type = SIGNATURE_LOOKUP.get(positions)
        if chord_type is not None:
            return ChordIdentity(
                root=get_note_name(bass),
                chord_type=chord_type,
                inversion=inversion,
                octave=get_octave(bass),
            )

        keys_down.insert(0, keys_down.pop() - 12)

    return None


def identify_note(held_notes: Sequence[int]) -> Optional[str]:
    """Name of the most recently pressed note, if any."""
    if not held_notes:
        return None
    return get_note_name(held_notes[-1])
