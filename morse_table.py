#!/usr/bin/env python3
"""
Morse Symbol Table

This module loads the bidirectional character <-> code mapping used by the
transcoder. The table is a plain text file with one entry per line: a
character, a separator, and its code written with '.' (dit) and '_' (dah).
"""

import codecs
import re
import sys
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple


DEFAULT_SEPARATOR = ' '
DEFAULT_CHARSET = 'utf-8'
DEFAULT_TABLE_PATH = Path(__file__).resolve().with_name('morse_code.txt')

# Reserved for the codes themselves
CODE_SYMBOLS = ('.', '_')


class MorseError(Exception):
    """Base class for symbol table and transcoder errors."""


class ConfigError(MorseError):
    """Invalid or missing configuration (table path, charset)."""


class StartupError(ConfigError):
    """The symbol table file could not be found or read."""


class DataError(MorseError):
    """A line of the symbol table file is malformed or breaks uniqueness."""


def is_valid_separator(separator: Optional[str]) -> bool:
    """
    Check whether a separator pattern can be used to split table lines.

    The pattern must be a non-empty regular expression that does not
    contain either of the code symbols.
    """
    if not separator:
        return False
    if any(symbol in separator for symbol in CODE_SYMBOLS):
        return False
    try:
        re.compile(separator)
    except re.error:
        return False
    return True


class SymbolTable:
    """
    Immutable bijective mapping between characters and morse codes.

    Built once from a table file; later entries for the same character
    replace earlier ones in both directions.
    """

    def __init__(
        self,
        path,
        separator: Optional[str] = None,
        charset: Optional[str] = None,
        debug: bool = False
    ):
        """
        Load a symbol table.

        Args:
            path: Path to the table file
            separator: Regex separating a character from its code
                (falls back to a single space if unusable)
            charset: Encoding of the table file (default utf-8)
            debug: Enable debug output

        Raises:
            ConfigError: path is None or charset is unknown
            StartupError: table file is missing or unreadable
            DataError: a line is malformed or a code is used twice
        """
        if path is None:
            raise ConfigError("The path to the symbol table can't be None")

        self._path = Path(path).resolve()
        self.debug = debug

        if charset is None:
            charset = DEFAULT_CHARSET
        try:
            self._charset = codecs.lookup(charset).name
        except LookupError:
            raise ConfigError(f"Unknown charset: {charset}")

        if is_valid_separator(separator):
            self._separator = separator
        else:
            if debug and separator is not None:
                print(f"Warning: separator {separator!r} is not usable, "
                      f"falling back to {DEFAULT_SEPARATOR!r}", file=sys.stderr)
            self._separator = DEFAULT_SEPARATOR

        if not self.path.exists():
            raise StartupError(f"Symbol table file doesn't exist: {self.path}")

        forward, inverse = self._populate()
        self._forward = MappingProxyType(forward)
        self._inverse = MappingProxyType(inverse)
        self._key = (str(self._path), frozenset(forward.items()), self._charset)

        if debug:
            print(f"Loaded {len(forward)} symbols from {self.path} "
                  f"({self.charset}, separator {self.separator!r})", file=sys.stderr)

    def _read_lines(self) -> List[str]:
        try:
            with open(self.path, 'r', encoding=self.charset) as f:
                return f.read().splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise StartupError(f"Can't read symbol table {self.path}: {e}")

    def _parse_line(self, line: str, line_number: int) -> Optional[Tuple[str, str]]:
        """
        Parse one table line into a (symbol, code) pair.

        Returns None for blank lines.
        """
        tokens = re.sub(self.separator, ' ', line).strip().split()
        if not tokens:
            return None
        if len(tokens) < 2:
            raise DataError(f"{self.path}:{line_number}: expected a symbol and "
                            f"a code, got {line!r}")
        if len(tokens) > 2:
            print(f"Warning: {self.path}:{line_number}: ignoring extra tokens "
                  f"{tokens[2:]}", file=sys.stderr)
        return tokens[0], tokens[1]

    def _populate(self) -> Tuple[Dict[str, str], Dict[str, str]]:
        forward: Dict[str, str] = {}
        inverse: Dict[str, str] = {}

        for line_number, line in enumerate(self._read_lines(), 1):
            if not line.strip():
                continue
            entry = self._parse_line(line, line_number)
            if entry is None:
                continue
            symbol, code = entry

            owner = inverse.get(code)
            if owner is not None and owner != symbol:
                raise DataError(f"{self.path}:{line_number}: code {code!r} is "
                                f"already used by {owner!r}")

            # Last write wins; drop the replaced code from the inverse side
            previous = forward.get(symbol)
            if previous is not None and previous != code:
                del inverse[previous]
                if self.debug:
                    print(f"  {self.path}:{line_number}: {symbol!r} redefined "
                          f"{previous!r} -> {code!r}", file=sys.stderr)

            forward[symbol] = code
            inverse[code] = symbol

        return forward, inverse

    @property
    def path(self) -> Path:
        """Absolute path of the table file."""
        return self._path

    @property
    def charset(self) -> str:
        return self._charset

    @property
    def separator(self) -> str:
        return self._separator

    @property
    def forward(self) -> Mapping[str, str]:
        """Read-only symbol -> code mapping."""
        return self._forward

    @property
    def inverse(self) -> Mapping[str, str]:
        """Read-only code -> symbol mapping."""
        return self._inverse

    def encode(self, symbol: str, default: str = '') -> str:
        return self._forward.get(symbol, default)

    def decode(self, code: str, default: str = ' ') -> str:
        return self._inverse.get(code, default)

    def symbols(self) -> List[str]:
        return list(self._forward)

    def codes(self) -> List[str]:
        return list(self._inverse)

    def items(self) -> List[Tuple[str, str]]:
        return list(self._forward.items())

    def __len__(self) -> int:
        return len(self._forward)

    def __iter__(self) -> Iterator[str]:
        return iter(self._forward)

    def __contains__(self, symbol) -> bool:
        return symbol in self._forward

    def __eq__(self, other):
        if self is other:
            return True
        if not isinstance(other, SymbolTable):
            return NotImplemented
        return self._key == other._key

    def __hash__(self):
        return hash(self._key)

    def __repr__(self):
        return (f"SymbolTable(path={str(self.path)!r}, entries={len(self)}, "
                f"charset={self.charset!r}, separator={self.separator!r})")


# Tables already built, keyed by path, contents and charset
_table_cache: Dict[SymbolTable, SymbolTable] = {}


def load_symbol_table(
    path=DEFAULT_TABLE_PATH,
    separator: Optional[str] = None,
    charset: Optional[str] = None,
    debug: bool = False
) -> SymbolTable:
    """
    Load a symbol table, reusing an equal table built earlier.

    Args:
        path: Path to the table file
        separator: Regex separating a character from its code
        charset: Encoding of the table file
        debug: Enable debug output

    Returns:
        The cached table if an equal one exists, else the new table
    """
    table = SymbolTable(path, separator=separator, charset=charset, debug=debug)
    return _table_cache.setdefault(table, table)


def clear_cache():
    """Forget every table built by load_symbol_table."""
    _table_cache.clear()


def main():
    """Command line interface: print the entries of a symbol table."""
    import argparse

    parser = argparse.ArgumentParser(
        description='Load a morse symbol table and print its entries'
    )
    parser.add_argument(
        'table',
        nargs='?',
        default=str(DEFAULT_TABLE_PATH),
        help='Symbol table file (default: bundled morse_code.txt)'
    )
    parser.add_argument(
        '-s', '--separator',
        help='Regex separating a character from its code (default: space)'
    )
    parser.add_argument(
        '-c', '--charset',
        help='Encoding of the table file (default: utf-8)'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug output'
    )

    args = parser.parse_args()

    try:
        table = SymbolTable(args.table, args.separator, args.charset, debug=args.debug)
    except MorseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for symbol, code in table.items():
        print(f"{symbol}\t{code}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
