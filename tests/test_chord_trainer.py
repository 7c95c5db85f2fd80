import os
import random
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

# Add src to path
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root / "src"))

from PySide6.QtCore import QCoreApplication  # type: ignore
app = QCoreApplication.instance() or QCoreApplication(sys.argv)

from keydrill.services.chord_trainer import (
    ChordTrainerService,
    DrillTarget,
    chord_satisfies,
    generate_chord_list,
)
from keydrill.services.music_theory import (
    CHORD_SIGNATURES,
    NOTE_NAMES,
    ChordIdentity,
    ChordType,
    Hand,
    note_number,
)
from keydrill.services.settings_service import SettingsService


def voicing(target: DrillTarget, octave: int):
    """Notes that play the target chord with its bass in the given keyboard octave."""
    root_index = next(i for i, names in enumerate(NOTE_NAMES) if target.chord.root in names)
    root = note_number(root_index, octave)
    notes = [root + offset for offset in CHORD_SIGNATURES[target.chord.chord_type]]
    for _ in range(target.chord.inversion):
        notes = notes[1:] + [notes[0] + 12]
    return notes


class FakeTracker:
    """Hands out scripted settled snapshots."""

    def __init__(self, snapshots):
        self.snapshots = list(snapshots)

    def wait_until_settled(self, debounce_s, timeout=None):
        if not self.snapshots:
            raise AssertionError("drill asked for more input than scripted")
        return self.snapshots.pop(0)


class TrainerTestCase(unittest.TestCase):
    def setUp(self):
        self.env = patch.dict(os.environ, {"KEYDRILL_DEBOUNCE_MS": "0"})
        self.env.start()
        self.settings = SettingsService()

    def tearDown(self):
        self.env.stop()

    def record(self, trainer):
        events = []
        trainer.targetChanged.connect(lambda text: events.append(("target", text)))
        trainer.attemptCorrect.connect(lambda text: events.append(("correct", text)))
        trainer.attemptFailed.connect(lambda text: events.append(("failed", text)))
        trainer.sessionCompleted.connect(lambda: events.append(("complete", None)))
        return events


class TestGenerateChordList(unittest.TestCase):
    def test_one_target_per_root(self):
        chords = generate_chord_list(ChordType.MINOR, 1, Hand.RIGHT, random.Random(3))
        self.assertEqual(len(chords), 12)
        self.assertEqual({c.chord.root for c in chords}, {names[0] for names in NOTE_NAMES})
        for target in chords:
            self.assertEqual(target.hand, Hand.RIGHT)
            self.assertEqual(target.chord.chord_type, ChordType.MINOR)
            self.assertEqual(target.chord.inversion, 1)
            self.assertIsNone(target.chord.octave)

    def test_both_hands_doubles_the_list(self):
        chords = generate_chord_list(ChordType.MAJOR, 0, Hand.BOTH, random.Random(3))
        self.assertEqual(len(chords), 24)
        self.assertEqual(sum(1 for c in chords if c.hand == Hand.LEFT), 12)
        self.assertEqual(sum(1 for c in chords if c.hand == Hand.RIGHT), 12)

    def test_order_is_shuffled_by_rng(self):
        first = generate_chord_list(ChordType.MAJOR, 0, Hand.LEFT, random.Random(1))
        again = generate_chord_list(ChordType.MAJOR, 0, Hand.LEFT, random.Random(1))
        self.assertEqual(first, again)

    def test_target_display(self):
        target = DrillTarget(ChordIdentity("D", ChordType.MINOR, 2), Hand.LEFT)
        self.assertEqual(str(target), "Dm, 2nd inversion, Left Hand")


class TestHandGating(unittest.TestCase):
    def test_wrong_hand_band_is_rejected(self):
        target = DrillTarget(ChordIdentity("C", ChordType.MAJOR), Hand.LEFT)
        right_hand_c = ChordIdentity("C", ChordType.MAJOR, 0, 3)
        left_hand_c = ChordIdentity("C", ChordType.MAJOR, 0, 1)
        self.assertFalse(chord_satisfies(target, right_hand_c))
        self.assertTrue(chord_satisfies(target, left_hand_c))

    def test_right_hand_band(self):
        target = DrillTarget(ChordIdentity("C", ChordType.MAJOR), Hand.RIGHT)
        self.assertTrue(chord_satisfies(target, ChordIdentity("C", ChordType.MAJOR, 0, 5)))
        self.assertFalse(chord_satisfies(target, ChordIdentity("C", ChordType.MAJOR, 0, 2)))
        self.assertFalse(chord_satisfies(target, ChordIdentity("C", ChordType.MAJOR, 0, 6)))

    def test_unknown_octave_or_no_hand_accepts_any_band(self):
        untagged = DrillTarget(ChordIdentity("C", ChordType.MAJOR))
        self.assertTrue(chord_satisfies(untagged, ChordIdentity("C", ChordType.MAJOR, 0, 6)))
        tagged = DrillTarget(ChordIdentity("C", ChordType.MAJOR), Hand.RIGHT)
        self.assertTrue(chord_satisfies(tagged, ChordIdentity("C", ChordType.MAJOR, 0, None)))

    def test_identity_mismatch_still_rejected(self):
        target = DrillTarget(ChordIdentity("C", ChordType.MAJOR, 1), Hand.RIGHT)
        self.assertFalse(chord_satisfies(target, ChordIdentity("C", ChordType.MAJOR, 0, 3)))


class TestChordTrainerService(TrainerTestCase):
    def test_start_announces_first_target(self):
        trainer = ChordTrainerService(self.settings, ChordType.MAJOR, 0, Hand.RIGHT, rng=random.Random(5))
        events = self.record(trainer)
        trainer.start_session()
        self.assertEqual(trainer.remaining, 12)
        self.assertEqual(events, [("target", f"Play {trainer.current_target}")])

    def test_queue_exhausts_after_n_correct_judgments(self):
        trainer = ChordTrainerService(self.settings, ChordType.DOMINANT_SEVENTH, 1, Hand.BOTH, rng=random.Random(7))
        events = self.record(trainer)
        trainer.start_session()
        total = trainer.remaining
        self.assertEqual(total, 24)

        while not trainer.is_complete:
            target = trainer.current_target
            octave = 1 if target.hand == Hand.LEFT else 4
            # A couple of misses before each hit
            self.assertFalse(trainer.evaluate([60, 61, 62]))
            wrong_hand = 4 if target.hand == Hand.LEFT else 1
            self.assertFalse(trainer.evaluate(voicing(target, wrong_hand)))
            self.assertTrue(trainer.evaluate(voicing(target, octave)))

        kinds = [kind for kind, _ in events]
        self.assertEqual(kinds.count("correct"), total)
        self.assertEqual(kinds.count("failed"), total * 2)
        self.assertEqual(kinds.count("complete"), 1)
        self.assertEqual(kinds[-1], "complete")

    def test_mismatch_keeps_target_and_names_it(self):
        trainer = ChordTrainerService(self.settings, ChordType.MAJOR, 0, Hand.RIGHT, rng=random.Random(2))
        events = self.record(trainer)
        trainer.start_session()
        target = trainer.current_target

        trainer.evaluate([60, 61, 62])
        self.assertEqual(events[-1], ("failed", f"unrecognised chord\nTry again: {target}"))

        other_root = ChordIdentity("C" if target.chord.root != "C" else "D", ChordType.MAJOR)
        trainer.evaluate(voicing(DrillTarget(other_root), 3))
        self.assertEqual(events[-1], ("failed", f"Try again: {target}"))
        self.assertIs(trainer.current_target, target)
        self.assertEqual(trainer.remaining, 12)

    def test_empty_snapshot_is_not_judged(self):
        trainer = ChordTrainerService(self.settings, ChordType.MAJOR, 0, Hand.RIGHT, rng=random.Random(2))
        trainer.start_session()
        events = self.record(trainer)
        self.assertFalse(trainer.evaluate([]))
        self.assertEqual(events, [])

    def test_run_replays_until_declined(self):
        trainer = ChordTrainerService(self.settings, ChordType.MAJOR, 0, Hand.LEFT, rng=random.Random(11))
        events = self.record(trainer)

        class ScriptedTracker(FakeTracker):
            def wait_until_settled(self, debounce_s, timeout=None):
                # Idle polls and misses are interleaved with the right answer
                self.calls = getattr(self, "calls", 0) + 1
                if self.calls % 3 == 0:
                    return None
                if self.calls % 3 == 1:
                    return (60, 61, 62)
                return tuple(voicing(trainer.current_target, 2))

        answers = [True, False]
        trainer.run(ScriptedTracker([]), lambda: answers.pop(0))

        kinds = [kind for kind, _ in events]
        self.assertEqual(kinds.count("correct"), 24)
        self.assertEqual(kinds.count("complete"), 2)
        self.assertEqual(answers, [])


if __name__ == "__main__":
    unittest.main()
