"""
Wavetable sine synthesizer used to play reference pitches.

The audio callback runs on the PortAudio thread. Everything it touches is
owned by a WavetableOscillator built before the stream opens, and its
scratch buffers are preallocated so the callback only writes into existing
arrays.
"""
import numpy as np
import pretty_midi  # type: ignore

from keydrill.services.errors import SynthError

SAMPLE_RATE = 64000
FRAMES_PER_BUFFER = 64
TABLE_SIZE = 200
CHANNELS = 2


def build_sine_table(table_size: int = TABLE_SIZE) -> np.ndarray:
    """One cycle of a sine wave, table_size samples long."""
    return np.sin(np.arange(table_size) / table_size * 2.0 * np.pi).astype(np.float32)


class WavetableOscillator:
    def __init__(self, table: np.ndarray, frequency: float, sample_rate: float, max_frames: int = FRAMES_PER_BUFFER):
        self.table = table
        self.table_size = len(table)
        self.increment = self.table_size * frequency / sample_rate
        self.phase = 0.0

        # PortAudio may hand us larger blocks than requested; size generously
        capacity = max(max_frames, 1) * 4
        self._steps = np.arange(capacity, dtype=np.float64)
        self._positions = np.empty(capacity, dtype=np.float64)
        self._indices = np.empty(capacity, dtype=np.intp)
        self._samples = np.empty(capacity, dtype=np.float32)

    def _grow(self, frames: int):
        # Only reached when the host ignores the requested blocksize
        capacity = frames * 2
        self._steps = np.arange(capacity, dtype=np.float64)
        self._positions = np.empty(capacity, dtype=np.float64)
        self._indices = np.empty(capacity, dtype=np.intp)
        self._samples = np.empty(capacity, dtype=np.float32)

    def callback(self, outdata, frames, time_info, status):
        """sounddevice OutputStream callback."""
        if frames > len(self._steps):
            self._grow(frames)

        positions = self._positions[:frames]
        indices = self._indices[:frames]
        samples = self._samples[:frames]

        np.multiply(self._steps[:frames], self.increment, out=positions)
        positions += self.phase
        np.mod(positions, self.table_size, out=positions)
        np.copyto(indices, positions, casting="unsafe")
        np.take(self.table, indices, out=samples, mode="wrap")

        for channel in range(outdata.shape[1]):
            outdata[:, channel] = samples

        self.phase = (self.phase + frames * self.increment) % self.table_size


class WavetableSynth:
    def __init__(self, sample_rate: int = SAMPLE_RATE, frames_per_buffer: int = FRAMES_PER_BUFFER,
                 table_size: int = TABLE_SIZE, channels: int = CHANNELS, verbose: bool = False):
        self.sample_rate = sample_rate
        self.frames_per_buffer = frames_per_buffer
        self.channels = channels
        self.verbose = verbose
        self.table = build_sine_table(table_size)

    def play_note(self, frequency_hz: float, duration_ms: int):
        """Play a sine tone, blocking until duration_ms has elapsed."""
        if frequency_hz <= 0:
            raise ValueError(f"frequency must be positive, got {frequency_hz}")
        if duration_ms < 0:
            raise ValueError(f"duration must not be negative, got {duration_ms}")

        sd = _load_sounddevice()
        oscillator = WavetableOscillator(self.table, frequency_hz, self.sample_rate, self.frames_per_buffer)

        try:
            stream = sd.OutputStream(
                samplerate=self.sample_rate,
                blocksize=self.frames_per_buffer,
                channels=self.channels,
                dtype="float32",
                clip_off=True,
                callback=oscillator.callback,
            )
            # Entering starts the stream, leaving stops and closes it
            with stream:
                if self.verbose:
                    print(f"Synth: Play {frequency_hz:.2f}Hz for {duration_ms} milliseconds.")
                sd.sleep(int(duration_ms))
        except sd.PortAudioError as e:
            raise SynthError(f"audio output failed: {e}") from e

    def play_midi_note(self, note: int, duration_ms: int):
        self.play_note(float(pretty_midi.note_number_to_hz(note)), duration_ms)


def _load_sounddevice():
    # sounddevice raises OSError at import time when PortAudio is missing
    try:
        import sounddevice as sd  # type: ignore
    except OSError as e:
        raise SynthError(f"PortAudio is not available: {e}") from e
    return sd
