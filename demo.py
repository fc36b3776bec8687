#!/usr/bin/env python3
"""
Demo script for the Morse Transcoder

Encodes sample text with the bundled symbol table, decodes it back and
plays it.
"""

import argparse
import sys

from morse_table import MorseError
from morse_transcoder import MorseConfig, Transcoder
from tone_player import AudioError, WaveClipPlayer


def demo_text(transcoder, text, description=""):
    """Demonstrate encoding and decoding of one sample."""
    print("\n" + "=" * 70)
    print(f"  {description}")
    print("=" * 70)
    print(f"Text: {text!r}\n")

    print("1. Encode:")
    encoded = transcoder.encode(text)
    print(f"   {encoded!r}\n")

    print("2. Decode:")
    decoded = transcoder.decode(encoded)
    print(f"   {decoded!r}")

    if decoded == text.upper().strip():
        print("   ✓ Round trip matches\n")
    else:
        print("   ✗ Round trip differs (unmapped characters?)\n")


def main():
    """Run demo."""
    parser = argparse.ArgumentParser(description='Morse transcoder demo')
    parser.add_argument('--no-audio', action='store_true',
                        help='Skip audio playback')
    parser.add_argument('--word-delay', type=float, default=1.0,
                        help='Pause between played words in seconds')
    parser.add_argument('--dot-clip', help='WAV clip played for a dit')
    parser.add_argument('--dash-clip', help='WAV clip played for a dah')
    args = parser.parse_args()

    print("\n" + "*" * 70)
    print("*" + " " * 68 + "*")
    print("*" + "  Morse Transcoder - Demo".center(68) + "*")
    print("*" + " " * 68 + "*")
    print("*" * 70)

    if bool(args.dot_clip) != bool(args.dash_clip):
        parser.error('--dot-clip and --dash-clip must be given together')

    try:
        player = None
        if args.dot_clip:
            player = WaveClipPlayer(args.dot_clip, args.dash_clip)
        transcoder = Transcoder(MorseConfig(word_delay=args.word_delay), player=player)
    except (MorseError, AudioError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    demos = [
        ('cool java', 'Sample 1: Two words'),
        ('SOS', 'Sample 2: Distress call'),
        ('cq de w1abk', 'Sample 3: CQ call'),
    ]

    for text, description in demos:
        demo_text(transcoder, text, description)

    if not args.no_audio:
        print("3. Playback:")
        try:
            transcoder.encode_and_play_audio('cool java cool')
        except AudioError as e:
            print(f"   ✗ {e}")
        except KeyboardInterrupt:
            transcoder.cancel()
            print()

    print("=" * 70)
    print("  Demo Complete!")
    print("=" * 70)
    print("\nTo translate your own text:")
    print("  python morse_transcoder.py hello world")
    print("  python morse_transcoder.py hello world | python morse_transcoder.py -r")
    print()
    return 0


if __name__ == '__main__':
    sys.exit(main())
