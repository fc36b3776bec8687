#!/usr/bin/env python3
"""
Morse Transcoder

This module translates text into morse code and back using a symbol table
loaded from a text file. Encoded output separates the codes of a word with
spaces and marks word boundaries with tab characters. The encoded message
can also be played as tones or rendered to a WAV file.
"""

import sys
import threading
import wave
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, TextIO

from morse_table import (
    DEFAULT_CHARSET,
    DEFAULT_SEPARATOR,
    DEFAULT_TABLE_PATH,
    ConfigError,
    MorseError,
    SymbolTable,
    load_symbol_table,
)
from tone_player import (
    AudioError,
    SoundDevicePlayer,
    ToneKind,
    ToneSynthesizer,
    WaveClipPlayer,
    save_wav,
)


WORD_SEPARATOR = '\t'
CODE_SEPARATOR = ' '


@dataclass(frozen=True)
class MorseConfig:
    """Settings a transcoder is created with."""
    table_path: Path = DEFAULT_TABLE_PATH
    separator: str = DEFAULT_SEPARATOR
    charset: str = DEFAULT_CHARSET
    word_delay: float = 1.0  # Seconds of silence between played words

    def __post_init__(self):
        if self.table_path is None:
            raise ConfigError("The path to the symbol table can't be None")
        if self.word_delay < 0:
            raise ConfigError(f"word_delay must not be negative: {self.word_delay}")


def split_fields(text: str, separator: str) -> List[str]:
    """
    Split text on a separator, dropping trailing empty fields.

    Text without the separator yields a single field, even when empty.
    """
    if separator not in text:
        return [text]
    fields = text.split(separator)
    while fields and fields[-1] == '':
        fields.pop()
    return fields


class Transcoder:
    """
    Encodes text to morse code and decodes it back.

    Unmapped characters encode to an empty code and unmapped codes decode
    to a single space; neither is an error.
    """

    def __init__(
        self,
        config: Optional[MorseConfig] = None,
        table: Optional[SymbolTable] = None,
        player=None,
        out: Optional[TextIO] = None,
        debug: bool = False
    ):
        """
        Initialize the transcoder.

        Args:
            config: Table location and playback settings (defaults if None)
            table: Prebuilt symbol table; loaded from config if None
            player: Object with play(ToneKind); a SoundDevicePlayer is
                created on first playback if None
            out: Stream playback is echoed to (stdout if None)
            debug: Enable debug output
        """
        self.config = config or MorseConfig()
        self.debug = debug
        if table is None:
            table = load_symbol_table(
                self.config.table_path,
                separator=self.config.separator,
                charset=self.config.charset,
                debug=debug
            )
        self.table = table
        self.player = player
        self.out = out
        self._stop = threading.Event()

    def encode(self, text: str) -> str:
        """
        Encode text as morse code.

        Args:
            text: Plain text (case is ignored)

        Returns:
            Codes separated by spaces, words separated by tabs
        """
        parts = []
        for char in text.upper().strip():
            parts.append(self.table.encode(char, ''))
            if char == ' ':
                parts.append(WORD_SEPARATOR)
            else:
                parts.append(CODE_SEPARATOR)
        return ''.join(parts).strip()

    def _decode_word(self, word: str) -> str:
        return ''.join(self.table.decode(code, ' ')
                       for code in split_fields(word, CODE_SEPARATOR))

    def decode(self, code_text: str) -> str:
        """
        Decode morse code back into text.

        Args:
            code_text: Codes separated by spaces, words separated by tabs

        Returns:
            Upper case text
        """
        words = split_fields(code_text.strip(), WORD_SEPARATOR)
        return ''.join(self._decode_word(word) + ' ' for word in words).strip()

    def _echo(self, text: str):
        print(text, end='', file=self.out or sys.stdout, flush=True)

    def _play_word(self, word: str):
        for symbol in word.strip():
            if self._stop.is_set():
                return
            kind = ToneKind.from_symbol(symbol)
            if kind is not None:
                if self.player is None:
                    self.player = SoundDevicePlayer()
                self.player.play(kind)
            self._echo(symbol)

    def encode_and_play_audio(self, text: str) -> str:
        """
        Encode text and play it, echoing each symbol as it sounds.

        Words are separated by a tab and a pause of config.word_delay
        seconds. cancel() from another thread ends the pause early and
        stops playback.

        Args:
            text: Plain text to play

        Returns:
            The encoded message
        """
        self._stop.clear()
        encoded = self.encode(text)
        words = encoded.split(WORD_SEPARATOR)

        for i, word in enumerate(words):
            self._play_word(word)
            if self._stop.is_set():
                break
            if i < len(words) - 1:
                self._echo(WORD_SEPARATOR)
                if self._stop.wait(self.config.word_delay):
                    break

        self._echo('\n')
        if self.debug and self._stop.is_set():
            print("Playback cancelled", file=sys.stderr)
        return encoded

    def cancel(self):
        """Stop a running encode_and_play_audio call."""
        self._stop.set()

    def write_results_to_file(self, data: str, path) -> Optional[Exception]:
        """
        Write a result to a file, creating or replacing it.

        The data is encoded with the table's charset before the file is
        opened, so an existing file is left untouched if encoding fails.

        Args:
            data: Encoded or decoded message
            path: Output file

        Returns:
            None on success, the OSError or UnicodeEncodeError otherwise
        """
        try:
            payload = data.encode(self.table.charset)
            with open(path, 'wb') as f:
                f.write(payload)
        except (OSError, UnicodeEncodeError) as e:
            print(f"Error writing {path}: {e}", file=sys.stderr)
            return e
        if self.debug:
            print(f"Wrote {len(data)} characters to {path}", file=sys.stderr)
        return None

    def render_to_wav(
        self,
        text: str,
        path,
        synthesizer: Optional[ToneSynthesizer] = None
    ) -> str:
        """
        Encode text and save it as a WAV file.

        Args:
            text: Plain text to render
            path: Output WAV file
            synthesizer: Tone settings (defaults if None)

        Returns:
            The encoded message
        """
        synthesizer = synthesizer or ToneSynthesizer()
        encoded = self.encode(text)
        save_wav(path, synthesizer.render(encoded), synthesizer.sample_rate)
        return encoded


def main():
    """Command line interface for the morse transcoder."""
    import argparse

    parser = argparse.ArgumentParser(
        description='Translate text to morse code and back'
    )
    parser.add_argument(
        'text',
        nargs='*',
        help='Text to encode, or with -r one argument per encoded word '
             '(default: read stdin)'
    )
    parser.add_argument(
        '-r', '--reverse',
        action='store_true',
        help='Decode morse code instead of encoding text'
    )
    parser.add_argument(
        '-t', '--table',
        default=str(DEFAULT_TABLE_PATH),
        help='Symbol table file (default: bundled morse_code.txt)'
    )
    parser.add_argument(
        '-s', '--separator',
        default=DEFAULT_SEPARATOR,
        help='Regex separating a character from its code in the table'
    )
    parser.add_argument(
        '-c', '--charset',
        default=DEFAULT_CHARSET,
        help='Encoding of the table and output files (default: utf-8)'
    )
    parser.add_argument(
        '-o', '--output',
        help='Also write the result to this file'
    )
    parser.add_argument(
        '-p', '--play',
        action='store_true',
        help='Play the encoded message'
    )
    parser.add_argument(
        '--word-delay',
        type=float,
        default=1.0,
        help='Pause between played words in seconds (default: 1.0)'
    )
    parser.add_argument(
        '--wav',
        help='Render the encoded message to this WAV file'
    )
    parser.add_argument(
        '--dot-clip',
        help='WAV clip played for a dit (requires --dash-clip)'
    )
    parser.add_argument(
        '--dash-clip',
        help='WAV clip played for a dah (requires --dot-clip)'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug output'
    )

    args = parser.parse_args()

    if bool(args.dot_clip) != bool(args.dash_clip):
        parser.error('--dot-clip and --dash-clip must be given together')

    if args.text:
        joiner = WORD_SEPARATOR if args.reverse else ' '
        message = joiner.join(args.text)
    else:
        message = sys.stdin.read()

    try:
        config = MorseConfig(
            table_path=Path(args.table),
            separator=args.separator,
            charset=args.charset,
            word_delay=args.word_delay
        )
        player = None
        if args.dot_clip:
            player = WaveClipPlayer(args.dot_clip, args.dash_clip)
        transcoder = Transcoder(config, player=player, debug=args.debug)
    except (MorseError, AudioError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.reverse:
        result = transcoder.decode(message)
        print(result)
    elif args.play:
        try:
            result = transcoder.encode_and_play_audio(message)
        except AudioError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        except KeyboardInterrupt:
            transcoder.cancel()
            print()
            return 130
    else:
        result = transcoder.encode(message)
        print(result)

    if args.wav and not args.reverse:
        try:
            transcoder.render_to_wav(message, args.wav)
        except (OSError, wave.Error) as e:
            print(f"Error: can't write {args.wav}: {e}", file=sys.stderr)
            return 1

    if args.output and transcoder.write_results_to_file(result, args.output):
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
