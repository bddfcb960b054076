"""
Reading input words and writing the result table.
"""

import os
import logging
from typing import Iterable, List

from wordcount.common.errors import InvalidTokenError
from wordcount.common.records import WORD_ENCODING, WORD_ERRORS, Entry, Token

logger = logging.getLogger(__name__)


def read_tokens(path: str) -> List[Token]:
    """
    Read whitespace-delimited words from a text file

    Words are separated by ASCII whitespace only (space, tab, newline,
    vertical tab, form feed, carriage return), so a no-break space or other
    Unicode space stays inside its word. The file may be in any encoding;
    bytes that are not UTF-8 pass through as-is.

    Raises:
        FileNotFoundError: If the input file does not exist
        InvalidTokenError: If a word does not fit the key field
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Input file not found: {path}")

    tokens = []
    with open(path, 'rb') as f:
        for line_no, line in enumerate(f, start=1):
            for word in line.split():
                try:
                    tokens.append(Token.from_bytes(word))
                except InvalidTokenError as e:
                    raise InvalidTokenError(f"{path}:{line_no}: {e}") from e

    logger.info(f"Read {len(tokens)} words from {path}")
    return tokens


def write_table(path: str, table: Iterable[Entry]) -> int:
    """Write one '<key> <count>' line per entry, in order. Returns lines written."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    lines = 0
    with open(path, 'w', encoding=WORD_ENCODING, errors=WORD_ERRORS, newline='\n') as f:
        for entry in table:
            f.write(f"{entry.key} {entry.count}\n")
            lines += 1

    logger.info(f"Wrote {lines} entries to {path}")
    return lines
