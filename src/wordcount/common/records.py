"""
Fixed-size records exchanged between coordinator and workers.

Every message is a flat run of equally sized records, so a receiver recovers
the element count from the byte length alone. Words travel in a 50 byte,
NUL-padded UTF-8 field (49 bytes of text plus the terminator); entries add a
little-endian 32-bit count after the word field.

Input is not required to be UTF-8. Bytes that do not decode are carried as
lone surrogates (the surrogateescape error handler) and written back out
unchanged, and keys are ordered by their encoded bytes.
"""

import struct
from dataclasses import dataclass
from typing import Callable, Iterable, List

from wordcount.common.errors import FramingError, InvalidTokenError

MAX_WORD_LENGTH = 50
MAX_WORD_BYTES = MAX_WORD_LENGTH - 1
WORD_ENCODING = 'utf-8'
WORD_ERRORS = 'surrogateescape'


class Token(str):
    """A word that fits the fixed-size key field.

    Construction fails instead of truncating, so an oversized word is
    reported at ingestion rather than corrupted on the wire.
    """

    def __new__(cls, word: str):
        if isinstance(word, Token):
            return word
        try:
            encoded = word.encode(WORD_ENCODING, WORD_ERRORS)
        except UnicodeEncodeError:
            raise InvalidTokenError(f"Word is not encodable: {word!r}")
        if not encoded:
            raise InvalidTokenError("Empty word")
        if b'\x00' in encoded:
            raise InvalidTokenError(f"Word contains NUL byte: {word!r}")
        if len(encoded) > MAX_WORD_BYTES:
            raise InvalidTokenError(
                f"Word is {len(encoded)} bytes, limit is {MAX_WORD_BYTES}: {word[:20]!r}..."
            )
        return super().__new__(cls, word)

    @classmethod
    def from_bytes(cls, raw: bytes) -> 'Token':
        return cls(raw.decode(WORD_ENCODING, WORD_ERRORS))


def word_bytes(word: str) -> bytes:
    """The exact bytes a word had on input"""
    return word.encode(WORD_ENCODING, WORD_ERRORS)


@dataclass
class Entry:
    """A word with its occurrence count"""
    key: str
    count: int = 1


def entry_key(entry: Entry) -> bytes:
    """Sort key: byte-wise order of the word as read"""
    return word_bytes(entry.key)


class RecordType:
    """Packs and unpacks one kind of fixed-size record"""

    def __init__(self, name: str, fmt: str, pack: Callable, unpack: Callable):
        self.name = name
        self._struct = struct.Struct(fmt)
        self._pack = pack
        self._unpack = unpack

    @property
    def size(self) -> int:
        return self._struct.size

    def pack(self, item) -> bytes:
        return self._struct.pack(*self._pack(item))

    def unpack(self, raw: bytes):
        return self._unpack(*self._struct.unpack(raw))

    def encode(self, items: Iterable) -> bytes:
        return b''.join(self.pack(item) for item in items)

    def decode(self, payload: bytes) -> List:
        if len(payload) % self.size:
            raise FramingError(
                f"{len(payload)} byte message is not a multiple of "
                f"{self.size} byte {self.name} records"
            )
        return [self._unpack(*fields) for fields in self._struct.iter_unpack(payload)]

    def __repr__(self):
        return f"RecordType({self.name!r}, size={self.size})"


def _word_field(word: str) -> bytes:
    return word_bytes(Token(word))


def _read_word(field: bytes) -> Token:
    text = field.split(b'\x00', 1)[0]
    try:
        return Token.from_bytes(text)
    except InvalidTokenError as e:
        raise FramingError(f"Malformed word field {field!r}: {e}") from e


def _read_entry(field: bytes, count: int) -> Entry:
    if count < 1:
        raise FramingError(f"Entry count must be positive, got {count}")
    return Entry(_read_word(field), count)


TOKEN = RecordType(
    'token',
    f'<{MAX_WORD_LENGTH}s',
    lambda token: (_word_field(token),),
    _read_word,
)

ENTRY = RecordType(
    'entry',
    f'<{MAX_WORD_LENGTH}si',
    lambda entry: (_word_field(entry.key), entry.count),
    _read_entry,
)
