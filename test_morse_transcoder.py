#!/usr/bin/env python3
"""
Test script for the Morse Transcoder

Checks encoding, decoding, playback pacing and file output against small
symbol tables and the bundled one.
"""

import io
import os
import subprocess
import sys
import tempfile
import threading
import time

from morse_table import ConfigError, StartupError, SymbolTable
from morse_transcoder import MorseConfig, Transcoder, split_fields
from tone_player import ToneKind, ToneSynthesizer, load_wav


HERE = os.path.dirname(os.path.abspath(__file__))


class RecordingPlayer:
    """Collects the tones it is asked to play."""

    def __init__(self, on_play=None):
        self.played = []
        self.on_play = on_play

    def play(self, kind):
        self.played.append(kind)
        if self.on_play:
            self.on_play(kind)


def make_transcoder(contents="A ._\nB _...\nC _._.\n", word_delay=0.0, player=None):
    """Create a transcoder over a temporary table; playback goes to a buffer."""
    path = os.path.join(tempfile.mkdtemp(), 'table.txt')
    with open(path, 'w', encoding='utf-8') as f:
        f.write(contents)
    config = MorseConfig(table_path=path, word_delay=word_delay)
    return Transcoder(config, player=player or RecordingPlayer(), out=io.StringIO())


def test_split_fields():
    assert split_fields('', ' ') == ['']
    assert split_fields('abc', ' ') == ['abc']
    assert split_fields('a b ', ' ') == ['a', 'b']
    assert split_fields('a  b', ' ') == ['a', '', 'b']
    assert split_fields(' a', ' ') == ['', 'a']
    assert split_fields('  ', ' ') == []


def test_encode_example():
    transcoder = make_transcoder()

    assert transcoder.encode('a b') == '._ \t_...'
    assert transcoder.encode('ABC') == '._ _... _._.'


def test_decode_example():
    transcoder = make_transcoder()

    assert transcoder.decode('._ \t_...') == 'A B'
    assert transcoder.decode('._ _... _._.') == 'ABC'


def test_encode_strips_and_uppercases():
    transcoder = make_transcoder()

    assert transcoder.encode('  cab \n') == '_._. ._ _...'
    assert transcoder.encode('') == ''
    assert transcoder.encode('   ') == ''


def test_encode_unmapped_character():
    """Unmapped characters leave an empty code between the separators."""
    transcoder = make_transcoder()

    assert transcoder.encode('a#b') == '._  _...'
    assert transcoder.encode('#') == ''


def test_decode_unmapped_code():
    """Unknown codes decode to a single space."""
    transcoder = make_transcoder()

    assert transcoder.decode('._ ...... _...') == 'A B'
    assert transcoder.decode('...... ._') == 'A'
    assert transcoder.decode('') == ''


def test_unmapped_character_round_trip():
    transcoder = make_transcoder()

    assert transcoder.decode(transcoder.encode('a#b')) == 'A B'


def test_spacing_not_preserved():
    transcoder = make_transcoder()

    encoded = transcoder.encode('a  b')
    assert encoded == '._ \t\t_...'
    assert transcoder.decode(encoded) == 'A   B'


def test_round_trip_bundled_table():
    transcoder = Transcoder(out=io.StringIO())

    for text in ('cool java', 'SOS', 'cq de w1abk', 'hello, world! 1234', 'what?'):
        expected = text.upper().strip()
        assert transcoder.decode(transcoder.encode(text)) == expected, text


def test_round_trip_custom_table():
    contents = "H ....\nI ..\nT _\nO ___\n"
    transcoder = make_transcoder(contents)

    assert transcoder.decode(transcoder.encode('hi to hot')) == 'HI TO HOT'


def test_config_defaults():
    config = MorseConfig()

    assert config.separator == ' '
    assert config.charset == 'utf-8'
    assert config.word_delay == 1.0
    assert os.path.basename(str(config.table_path)) == 'morse_code.txt'


def test_config_rejects_negative_delay():
    try:
        MorseConfig(word_delay=-1)
    except ConfigError:
        pass
    else:
        assert False, "negative word_delay should raise ConfigError"


def test_missing_table():
    missing = os.path.join(tempfile.mkdtemp(), 'missing.txt')
    try:
        Transcoder(MorseConfig(table_path=missing))
    except StartupError:
        pass
    else:
        assert False, "missing table should raise StartupError"


def test_prebuilt_table():
    path = os.path.join(tempfile.mkdtemp(), 'table.txt')
    with open(path, 'w', encoding='utf-8') as f:
        f.write("X _.._\n")
    transcoder = Transcoder(table=SymbolTable(path))

    assert transcoder.encode('x') == '_.._'


def test_play_audio():
    player = RecordingPlayer()
    transcoder = make_transcoder(player=player)

    encoded = transcoder.encode_and_play_audio('ab c')

    assert encoded == '._ _... \t_._.'
    dot, dash = ToneKind.DOT, ToneKind.DASH
    assert player.played == [dot, dash, dash, dot, dot, dot, dash, dot, dash, dot]
    assert transcoder.out.getvalue() == '._ _...\t_._.\n'


def test_play_audio_unmapped_symbols_echoed():
    """Characters other than '.' and '_' are printed but not played."""
    player = RecordingPlayer()
    transcoder = make_transcoder("A ._\nB _-.\n", player=player)

    transcoder.encode_and_play_audio('b')

    assert player.played == [ToneKind.DASH, ToneKind.DOT]
    assert transcoder.out.getvalue() == '_-.\n'


def test_play_audio_word_delay():
    transcoder = make_transcoder(word_delay=0.05)

    start = time.monotonic()
    transcoder.encode_and_play_audio('a b c')
    elapsed = time.monotonic() - start

    # Two pauses, none after the last word
    assert elapsed >= 0.09
    assert transcoder.out.getvalue().count('\t') == 2


def test_cancel_interrupts_delay():
    transcoder = make_transcoder(word_delay=10.0)
    timer = threading.Timer(0.05, transcoder.cancel)

    start = time.monotonic()
    timer.start()
    transcoder.encode_and_play_audio('a b c')
    elapsed = time.monotonic() - start
    timer.cancel()

    assert elapsed < 5.0
    assert transcoder.out.getvalue() == '._\t\n'


def test_cancel_stops_tones():
    transcoder = make_transcoder()
    transcoder.player = RecordingPlayer(on_play=lambda kind: transcoder.cancel())

    transcoder.encode_and_play_audio('abc')

    assert transcoder.player.played == [ToneKind.DOT]
    assert transcoder.out.getvalue() == '.\n'


def test_playback_restarts_after_cancel():
    player = RecordingPlayer()
    transcoder = make_transcoder(player=player)
    transcoder.cancel()

    transcoder.encode_and_play_audio('a')

    assert player.played == [ToneKind.DOT, ToneKind.DASH]


def test_write_results_to_file():
    transcoder = make_transcoder()
    path = os.path.join(tempfile.mkdtemp(), 'out.txt')

    assert transcoder.write_results_to_file('._ \t_...', path) is None
    with open(path, 'r', encoding='utf-8') as f:
        assert f.read() == '._ \t_...'

    # Existing content is replaced
    assert transcoder.write_results_to_file('A', path) is None
    with open(path, 'r', encoding='utf-8') as f:
        assert f.read() == 'A'


def test_write_results_to_file_error():
    transcoder = make_transcoder()
    path = os.path.join(tempfile.mkdtemp(), 'no', 'such', 'dir', 'out.txt')

    error = transcoder.write_results_to_file('A', path)
    assert isinstance(error, OSError)
    assert not os.path.exists(path)


def test_write_results_unencodable_text():
    """Text the charset can't encode is reported and the file is left alone."""
    path = os.path.join(tempfile.mkdtemp(), 'table.txt')
    with open(path, 'w', encoding='ascii') as f:
        f.write("A ._\n")
    transcoder = Transcoder(table=SymbolTable(path, charset='ascii'))
    out_path = os.path.join(tempfile.mkdtemp(), 'out.txt')
    with open(out_path, 'w', encoding='ascii') as f:
        f.write('previous')

    error = transcoder.write_results_to_file('A Ä', out_path)

    assert isinstance(error, UnicodeEncodeError)
    with open(out_path, 'r', encoding='ascii') as f:
        assert f.read() == 'previous'


def test_render_to_wav():
    transcoder = make_transcoder("E .\nT _\n")
    synthesizer = ToneSynthesizer(sample_rate=8000, dit_duration=0.01)
    path = os.path.join(tempfile.mkdtemp(), 'out.wav')

    encoded = transcoder.render_to_wav('e t', path, synthesizer)
    audio, rate = load_wav(path)

    assert encoded == '. \t_'
    assert rate == 8000
    # dit + word space + dah = 1 + 7 + 3 units of 80 samples
    assert len(audio) == 11 * 80


def run_cli(*args, stdin=None):
    return subprocess.run(
        [sys.executable, os.path.join(HERE, 'morse_transcoder.py')] + list(args),
        input=stdin,
        capture_output=True,
        text=True,
        cwd=HERE
    )


def test_cli_encode():
    result = run_cli('sos', 'sos')

    assert result.returncode == 0
    assert result.stdout == '... ___ ... \t... ___ ...\n'


def test_cli_decode_from_stdin():
    result = run_cli('-r', stdin='... ___ ...\t._ \n')

    assert result.returncode == 0
    assert result.stdout == 'SOS A\n'


def test_cli_decode_arguments_are_words():
    result = run_cli('-r', '... ___ ...', '._')

    assert result.returncode == 0
    assert result.stdout == 'SOS A\n'


def test_cli_output_file():
    path = os.path.join(tempfile.mkdtemp(), 'out.txt')
    result = run_cli('-o', path, 'e')

    assert result.returncode == 0
    with open(path, 'r', encoding='utf-8') as f:
        assert f.read() == '.'


def test_cli_missing_table():
    missing = os.path.join(tempfile.mkdtemp(), 'missing.txt')
    result = run_cli('-t', missing, 'sos')

    assert result.returncode == 1
    assert result.stderr.startswith('Error:')


def test_cli_unwritable_wav():
    path = os.path.join(tempfile.mkdtemp(), 'no', 'such', 'dir', 'out.wav')
    result = run_cli('--wav', path, 'e')

    assert result.returncode == 1
    assert result.stderr.startswith('Error:')
    assert 'Traceback' not in result.stderr


def test_cli_clips_required_together():
    result = run_cli('--dot-clip', 'di.wav', 'e')

    assert result.returncode == 2
    assert '--dash-clip' in result.stderr


def test_cli_missing_clip():
    missing = os.path.join(tempfile.mkdtemp(), 'di.wav')
    result = run_cli('--dot-clip', missing, '--dash-clip', missing, '-p', 'e')

    assert result.returncode == 1
    assert result.stderr.startswith('Error:')


def main():
    """Run all tests."""
    print("\n")
    print("*" * 60)
    print("* Transcoder Test Suite")
    print("*" * 60)
    print("\n")

    tests = [obj for name, obj in sorted(globals().items())
             if name.startswith('test_') and callable(obj)]

    passed = 0
    failed = 0
    for test in tests:
        try:
            test()
            print(f"✓ {test.__name__}")
            passed += 1
        except Exception as e:
            print(f"✗ {test.__name__}: {e!r}")
            failed += 1

    print("=" * 60)
    print(f"Test Summary: {passed} passed, {failed} failed")
    print("=" * 60)

    if failed > 0:
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
