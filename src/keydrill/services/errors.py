class KeyDrillError(Exception):
    """Base class for errors raised by the drill services."""


class UnknownNoteError(KeyDrillError):
    """A note was released that was never recorded as pressed."""

    def __init__(self, note: int):
        super().__init__(f"note {note} released but not held")
        self.note = note


class MidiDeviceError(KeyDrillError):
    pass


class SynthError(KeyDrillError):
    pass
