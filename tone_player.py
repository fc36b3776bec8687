#!/usr/bin/env python3
"""
Tone Player

Audio collaborators for the morse transcoder. Tones are synthesized with
numpy, written to or read from WAV files with the wave module, and played
through sounddevice.
"""

import sys
import wave
from enum import Enum
from typing import Optional

import numpy as np


class AudioError(Exception):
    """Audio could not be loaded or played."""


class ToneKind(Enum):
    """The two tones a morse code is made of."""
    DOT = '.'
    DASH = '_'

    @classmethod
    def from_symbol(cls, symbol: str) -> Optional['ToneKind']:
        """Return the tone for a code symbol, or None for anything else."""
        try:
            return cls(symbol)
        except ValueError:
            return None


class ToneSynthesizer:
    """
    Generates morse tones using standard unit timing.

    A dit lasts one unit, a dah three. Symbols within a character are
    separated by one unit of silence, characters by three, words by seven.
    """

    def __init__(
        self,
        sample_rate: int = 8000,
        frequency: float = 700.0,
        dit_duration: float = 0.06,
        amplitude: float = 0.3
    ):
        """
        Initialize the synthesizer.

        Args:
            sample_rate: Sample rate in Hz
            frequency: Tone frequency in Hz
            dit_duration: Duration of a dit in seconds (0.06s is ~20 WPM)
            amplitude: Amplitude (0-1)
        """
        self.sample_rate = sample_rate
        self.frequency = frequency
        self.dit_duration = dit_duration
        self.amplitude = amplitude

    def tone(self, kind: ToneKind) -> np.ndarray:
        """
        Generate the samples of one dit or dah.

        Args:
            kind: Tone to generate

        Returns:
            Audio samples
        """
        units = 1 if kind is ToneKind.DOT else 3
        t = np.arange(self._samples(units)) / self.sample_rate

        carrier = np.sin(2 * np.pi * self.frequency * t)

        # Rise/fall envelope to reduce key clicks
        rise_fall_samples = int(0.002 * self.sample_rate)
        envelope = np.ones_like(t)
        if rise_fall_samples > 0 and len(envelope) > 2 * rise_fall_samples:
            envelope[:rise_fall_samples] = np.linspace(0, 1, rise_fall_samples)
            envelope[-rise_fall_samples:] = np.linspace(1, 0, rise_fall_samples)

        return self.amplitude * carrier * envelope

    def _samples(self, units: int) -> int:
        return units * int(round(self.dit_duration * self.sample_rate))

    def silence(self, units: int) -> np.ndarray:
        return np.zeros(self._samples(units))

    def render(self, code_text: str) -> np.ndarray:
        """
        Render an encoded message as one block of audio.

        Args:
            code_text: Encoded message (codes separated by spaces,
                words separated by tabs)

        Returns:
            Audio samples
        """
        segments = []
        words = [w for w in code_text.strip().split('\t') if w.strip()]

        for w, word in enumerate(words):
            if w > 0:
                segments.append(self.silence(7))
            codes = word.split()
            for c, code in enumerate(codes):
                if c > 0:
                    segments.append(self.silence(3))
                tones = [ToneKind.from_symbol(s) for s in code]
                tones = [kind for kind in tones if kind is not None]
                for i, kind in enumerate(tones):
                    if i > 0:
                        segments.append(self.silence(1))
                    segments.append(self.tone(kind))

        if segments:
            return np.concatenate(segments)
        return np.array([])


def save_wav(filename: str, audio: np.ndarray, sample_rate: int):
    """Save audio to a 16-bit mono WAV file."""
    audio_int = (np.clip(audio, -1.0, 1.0) * 32767).astype(np.int16)

    with wave.open(str(filename), 'wb') as wav_file:
        wav_file.setnchannels(1)
        wav_file.setsampwidth(2)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(audio_int.tobytes())


def load_wav(filename: str):
    """
    Load a WAV file as float samples.

    Args:
        filename: Path to the WAV file

    Returns:
        Tuple of (mono float32 samples, sample rate)

    Raises:
        AudioError: file is unreadable or its sample width is unsupported
    """
    try:
        with wave.open(str(filename), 'rb') as wav_file:
            channels = wav_file.getnchannels()
            sample_width = wav_file.getsampwidth()
            rate = wav_file.getframerate()
            audio_bytes = wav_file.readframes(wav_file.getnframes())
    except (OSError, EOFError, wave.Error) as e:
        raise AudioError(f"Can't read {filename}: {e}")

    if sample_width == 1:
        audio = np.frombuffer(audio_bytes, dtype=np.uint8).astype(np.float32)
        audio = (audio - 128) / 128.0
    elif sample_width == 2:
        audio = np.frombuffer(audio_bytes, dtype=np.int16).astype(np.float32)
        audio = audio / 32768.0
    elif sample_width == 4:
        audio = np.frombuffer(audio_bytes, dtype=np.int32).astype(np.float32)
        audio = audio / 2147483648.0
    else:
        raise AudioError(f"Unsupported sample width in {filename}: {sample_width}")

    # Mix down to mono
    if channels > 1:
        audio = audio.reshape(-1, channels).mean(axis=1)

    return audio, rate


def _sounddevice():
    try:
        import sounddevice
    except OSError as e:
        # Raised when the PortAudio library is missing
        raise AudioError(f"Audio output unavailable: {e}")
    return sounddevice


class SoundDevicePlayer:
    """Plays synthesized tones on the default output device."""

    def __init__(self, synthesizer: Optional[ToneSynthesizer] = None):
        self.synthesizer = synthesizer or ToneSynthesizer()
        self._sd = None
        self._tones = {}

    def play(self, kind: ToneKind):
        if self._sd is None:
            self._sd = _sounddevice()
        if kind not in self._tones:
            self._tones[kind] = self.synthesizer.tone(kind).astype(np.float32)
        self._sd.play(self._tones[kind], self.synthesizer.sample_rate)
        self._sd.wait()


class WaveClipPlayer:
    """Plays one of two pre-recorded WAV clips for each tone."""

    def __init__(self, dot_clip: str, dash_clip: str):
        """
        Load the clips.

        Args:
            dot_clip: WAV file played for a dit
            dash_clip: WAV file played for a dah

        Raises:
            AudioError: a clip can't be loaded
        """
        self._clips = {
            ToneKind.DOT: load_wav(dot_clip),
            ToneKind.DASH: load_wav(dash_clip),
        }
        self._sd = None

    def play(self, kind: ToneKind):
        if self._sd is None:
            self._sd = _sounddevice()
        audio, rate = self._clips[kind]
        self._sd.play(audio, rate)
        self._sd.wait()


def main():
    """Command line interface: render an encoded message to WAV."""
    import argparse

    parser = argparse.ArgumentParser(
        description='Render encoded morse (e.g. "... ___ ...") as a WAV file'
    )
    parser.add_argument('code', help='Encoded message, words separated by tabs')
    parser.add_argument('output', help='Output WAV file')
    parser.add_argument('--sample-rate', type=int, default=8000,
                        help='Sample rate in Hz (default: 8000)')
    parser.add_argument('--frequency', type=float, default=700.0,
                        help='Tone frequency in Hz (default: 700)')
    parser.add_argument('--dit', type=float, default=0.06,
                        help='Dit duration in seconds (default: 0.06)')

    args = parser.parse_args()

    synthesizer = ToneSynthesizer(
        sample_rate=args.sample_rate,
        frequency=args.frequency,
        dit_duration=args.dit
    )
    audio = synthesizer.render(args.code)
    save_wav(args.output, audio, args.sample_rate)
    print(f"Wrote {len(audio) / args.sample_rate:.2f}s to {args.output}", file=sys.stderr)
    return 0


if __name__ == '__main__':
    sys.exit(main())
