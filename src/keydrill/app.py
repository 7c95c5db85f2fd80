"""
KeyDrill - Main Entry Point

Console front end for the chord, scale and interval drills. Menus and
coloured feedback live here; the drill logic lives in keydrill.services.
"""
import sys
from pathlib import Path
from typing import Callable, List, Optional
from PySide6.QtCore import QObject, Slot # type: ignore

from keydrill.services.chord_trainer import ChordTrainerService
from keydrill.services.errors import KeyDrillError
from keydrill.services.interval_trainer import IntervalTrainerService
from keydrill.services.key_state import KeyStateTracker
from keydrill.services.midi_input import MidiInputService
from keydrill.services.music_theory import CHORD_TYPE_LABELS, Hand
from keydrill.services.scale_trainer import MODES, ScaleTrainerService
from keydrill.services.settings_service import SettingsService, load_env_file
from keydrill.services.synth import WavetableSynth

project_root = Path(__file__).resolve().parent.parent.parent

RST = "\033[0m"
RED = "\033[91m"
GREEN = "\033[92m"

INVERSIONS = [0, 1, 2]
HANDS = [("left", Hand.LEFT), ("right", Hand.RIGHT), ("both", Hand.BOTH)]


def success(text: str) -> str:
    return f"{GREEN}{text}{RST}"


def failure(text: str) -> str:
    return f"{RED}{text}{RST}"


class ConsolePrompter:
    """Numbered-menu selection and yes/no confirmation on stdin."""

    def __init__(self, read: Callable[[str], str] = input, write: Callable[[str], None] = print):
        self._read = read
        self._write = write

    def select(self, prompt: str, items: List[str]) -> int:
        self._write(prompt)
        for i, item in enumerate(items):
            self._write(f"  {i}: {item}")
        while True:
            raw = self._read("> ").strip()
            if raw.isdigit() and int(raw) < len(items):
                return int(raw)
            self._write(f"Please enter a number between 0 and {len(items) - 1}")

    def confirm(self, prompt: str) -> bool:
        while True:
            raw = self._read(f"{prompt} [y/n] ").strip().lower()
            if raw in ("y", "yes"):
                return True
            if raw in ("n", "no"):
                return False


class KeyDrillApp(QObject):
    def __init__(self, settings: Optional[SettingsService] = None, prompter: Optional[ConsolePrompter] = None):
        super().__init__()
        self.settings = settings or SettingsService(project_root / ".env")
        self.prompter = prompter or ConsolePrompter()
        self.tracker = KeyStateTracker()
        self.midi_input = MidiInputService(self.tracker, self.settings, choose_port=self.prompter.select)
        self.synth = WavetableSynth(
            sample_rate=self.settings.sampleRate,
            frames_per_buffer=self.settings.framesPerBuffer,
            table_size=self.settings.tableSize,
            verbose=self.settings.verbose,
        )

    # ── Feedback printing ───────────────────────────────────────────

    def _connect_feedback(self, session):
        session.targetChanged.connect(self._on_target_changed)
        session.attemptCorrect.connect(self._on_attempt_correct)
        session.attemptFailed.connect(self._on_attempt_failed)

    @Slot(str)
    def _on_target_changed(self, text: str):
        print(text)

    @Slot(str)
    def _on_attempt_correct(self, text: str):
        print(success(text))

    @Slot(str)
    def _on_attempt_failed(self, text: str):
        print(failure(text))

    @Slot(str)
    def _on_scale_started(self, root: str):
        print(f"{root}: ", end="", flush=True)

    @Slot(str)
    def _on_scale_note_correct(self, name: str):
        print(success(name), end=" ", flush=True)

    @Slot(str)
    def _on_scale_note_wrong(self, name: str):
        print(failure(name), end=" ", flush=True)

    @Slot(str)
    def _on_scale_completed(self, root: str):
        print("")

    @Slot(str)
    def _on_playback_failed(self, message: str):
        print(failure(f"Could not play reference tones: {message}"))

    # ── Launchers ───────────────────────────────────────────────────

    def practice_chords(self):
        labels = [label for label, _ in CHORD_TYPE_LABELS]
        chord_type = CHORD_TYPE_LABELS[self.prompter.select("Pick a chord variant", labels)][1]
        inversion = INVERSIONS[self.prompter.select("Pick an inversion", [str(i) for i in INVERSIONS])]
        hand = HANDS[self.prompter.select("Which hand?", [name for name, _ in HANDS])][1]

        trainer = ChordTrainerService(self.settings, chord_type, inversion, hand)
        self._connect_feedback(trainer)
        with self.midi_input:
            trainer.run(self.tracker, lambda: self.prompter.confirm("Would you like to practice again?"))

    def practice_scales(self):
        mode_offset = self.prompter.select("Pick a scale type", MODES)

        trainer = ScaleTrainerService(self.settings, mode_offset)
        trainer.scaleStarted.connect(self._on_scale_started)
        trainer.attemptCorrect.connect(self._on_scale_note_correct)
        trainer.attemptFailed.connect(self._on_scale_note_wrong)
        trainer.scaleCompleted.connect(self._on_scale_completed)
        with self.midi_input:
            trainer.run(self.tracker, lambda: self.prompter.confirm("Would you like to practice again?"))

    def practice_intervals(self):
        random_root = self.prompter.confirm("Would you like to use random starting pitches?")

        trainer = IntervalTrainerService(self.settings, self.synth, random_root=random_root)
        self._connect_feedback(trainer)
        trainer.playbackFailed.connect(self._on_playback_failed)
        trainer.run_intervals(lambda items: self.prompter.select("What interval was this?", items))

    # ── Main menu ───────────────────────────────────────────────────

    def run(self):
        commands = [
            ("Practice chords", self.practice_chords),
            ("Practice scales", self.practice_scales),
            ("Practice intervals", self.practice_intervals),
            ("Quit", None),
        ]
        while True:
            choice = self.prompter.select("What would you like to do?", [name for name, _ in commands])
            action = commands[choice][1]
            if action is None:
                return
            try:
                action()
            except KeyDrillError as e:
                print(f"Error: {e}")


def main():
    load_env_file(project_root / ".env")
    app = KeyDrillApp()
    try:
        app.run()
    except (KeyboardInterrupt, EOFError):
        print("")
    finally:
        app.midi_input.close()


if __name__ == "__main__":
    main()
