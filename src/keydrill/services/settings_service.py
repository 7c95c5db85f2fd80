import os
from pathlib import Path
from typing import Optional
from PySide6.QtCore import QObject, Property, Signal # type: ignore

DEFAULTS = {
    "KEYDRILL_DEBOUNCE_MS": "100",
    "KEYDRILL_SAMPLE_RATE": "64000",
    "KEYDRILL_FRAMES_PER_BUFFER": "64",
    "KEYDRILL_TABLE_SIZE": "200",
    "KEYDRILL_NOTE_MS": "1000",
    "KEYDRILL_NOTE_GAP_MS": "50",
    "KEYDRILL_MIDI_PORT": "",
    "KEYDRILL_VERBOSE": "false",
}


def load_env_file(env_file: Path):
    """Copy KEY=value lines from a .env file into os.environ without overriding real env vars."""
    if not env_file.exists():
        return
    try:
        with open(env_file, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except UnicodeDecodeError:
        with open(env_file, "r", encoding="utf-16") as f:
            lines = f.readlines()

    for line in lines:
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, val = line.split("=", 1)
        os.environ.setdefault(key.strip(), val.strip())


class SettingsService(QObject):
    settingsChanged = Signal()

    def __init__(self, env_file: Optional[Path] = None):
        super().__init__()
        self.env_file = env_file

    # ── Generic .env helpers ──────────────────────────────────────────

    def _get_env(self, key: str) -> str:
        return os.environ.get(key, DEFAULTS.get(key, ""))

    def _get_int(self, key: str) -> int:
        raw = self._get_env(key)
        try:
            value = int(raw)
            if value < 0:
                raise ValueError(raw)
            return value
        except ValueError:
            print(f"SettingsService: Ignoring invalid {key}={raw!r}, using {DEFAULTS[key]}")
            return int(DEFAULTS[key])

    def _set_env(self, key: str, val: str):
        if os.environ.get(key) == val:
            return
        os.environ[key] = val
        if self.env_file is None:
            return
        try:
            lines = []
            if self.env_file.exists():
                try:
                    with open(self.env_file, "r", encoding="utf-8") as f:
                        lines = f.readlines()
                except UnicodeDecodeError:
                    with open(self.env_file, "r", encoding="utf-16") as f:
                        lines = f.readlines()

            new_lines = []
            found = False
            for line in lines:
                if line.strip().startswith(f"{key}="):
                    new_lines.append(f"{key}={val}\n")
                    found = True
                else:
                    new_lines.append(line)
            if not found:
                new_lines.append(f"{key}={val}\n")

            with open(self.env_file, "w", encoding="utf-8") as f:
                f.writelines(new_lines)
        except OSError as e:
            print(f"SettingsService: Failed to write {key} to .env: {e}")

    # ── Drill timing ──────────────────────────────────────────────────

    @Property(int, notify=settingsChanged)
    def debounceMs(self) -> int:
        return self._get_int("KEYDRILL_DEBOUNCE_MS")

    @property
    def debounce_s(self) -> float:
        return self.debounceMs / 1000.0

    # ── Synthesizer ───────────────────────────────────────────────────

    @Property(int, notify=settingsChanged)
    def sampleRate(self) -> int:
        return self._get_int("KEYDRILL_SAMPLE_RATE")

    @Property(int, notify=settingsChanged)
    def framesPerBuffer(self) -> int:
        return self._get_int("KEYDRILL_FRAMES_PER_BUFFER")

    @Property(int, notify=settingsChanged)
    def tableSize(self) -> int:
        return self._get_int("KEYDRILL_TABLE_SIZE")

    @Property(int, notify=settingsChanged)
    def noteMs(self) -> int:
        return self._get_int("KEYDRILL_NOTE_MS")

    @Property(int, notify=settingsChanged)
    def noteGapMs(self) -> int:
        return self._get_int("KEYDRILL_NOTE_GAP_MS")

    # ── MIDI port ─────────────────────────────────────────────────────

    @Property(str, notify=settingsChanged)
    def midiPort(self) -> str:
        return self._get_env("KEYDRILL_MIDI_PORT")

    @midiPort.setter # type: ignore
    def midiPort(self, val: str):
        self._set_env("KEYDRILL_MIDI_PORT", val)
        self.settingsChanged.emit()

    # ── Diagnostics ───────────────────────────────────────────────────

    @Property(bool, notify=settingsChanged)
    def verbose(self) -> bool:
        return self._get_env("KEYDRILL_VERBOSE").lower() in ("true", "1", "yes")
