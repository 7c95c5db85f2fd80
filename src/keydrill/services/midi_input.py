import mido  # type: ignore
from typing import Callable, List, Optional
from PySide6.QtCore import QObject, Signal # type: ignore

from keydrill.services.errors import MidiDeviceError
from keydrill.services.key_state import KeyStateTracker


class MidiInputService(QObject):
    """
    Opens a MIDI input port and feeds its key events into a KeyStateTracker.

    mido delivers messages on the backend's own thread, so the callback does
    nothing but update the tracker.
    """
    connectionChanged = Signal(bool)

    def __init__(self, tracker: KeyStateTracker, settings=None,
                 choose_port: Optional[Callable[[str, List[str]], int]] = None):
        super().__init__()
        self.tracker = tracker
        self.settings = settings
        self.choose_port = choose_port
        self.port = None
        self.port_name = ""

    def get_port_names(self) -> List[str]:
        try:
            return list(mido.get_input_names())
        except Exception as e:
            raise MidiDeviceError(f"MIDI backend unavailable: {e}") from e

    def _select_port(self, ports: List[str]) -> str:
        if not ports:
            raise MidiDeviceError("no input port found")

        preferred = self.settings.midiPort if self.settings is not None else ""
        if preferred and preferred in ports:
            print(f"MidiInput: Using configured input port: {preferred}")
            return preferred

        if len(ports) == 1:
            print(f"MidiInput: Choosing the only available input port: {ports[0]}")
            return ports[0]

        if self.choose_port is None:
            print(f"MidiInput: Several ports found, defaulting to {ports[0]}")
            return ports[0]
        return ports[self.choose_port("Please select input port", ports)]

    def open(self):
        if self.port is not None:
            return
        name = self._select_port(self.get_port_names())

        print("\nOpening connection...")
        try:
            self.port = mido.open_input(name, callback=self.handle_message)
        except Exception as e:
            raise MidiDeviceError(f"could not open '{name}': {e}") from e

        self.port_name = name
        if self.settings is not None:
            self.settings.midiPort = name
        print(f"Connection open, reading input from '{name}'. Press ^C to quit\n")
        self.connectionChanged.emit(True)

    def close(self):
        if self.port is None:
            return
        self.port.close()
        self.port = None
        self.tracker.reset()
        print(f"MidiInput: Closed '{self.port_name}'")
        self.connectionChanged.emit(False)

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def handle_message(self, message: mido.Message):
        """Called by the MIDI backend thread for every incoming message."""
        if message.type == "note_on" and message.velocity > 0:
            self.tracker.note_on(message.note)
        elif message.type == "note_off" or (message.type == "note_on" and message.velocity == 0):
            self.tracker.note_off(message.note)
