"""
Unit tests for fixed-size records and message framing
"""

import struct
import pytest

from wordcount.common.errors import FramingError, InvalidTokenError
from wordcount.common.records import ENTRY, MAX_WORD_BYTES, TOKEN, Entry, Token, entry_key, word_bytes


class TestToken:
    """Tests for word validation"""

    def test_accepts_word_within_limit(self):
        token = Token('a' * MAX_WORD_BYTES)
        assert token == 'a' * MAX_WORD_BYTES
        assert isinstance(token, str)

    def test_rejects_word_over_limit(self):
        with pytest.raises(InvalidTokenError):
            Token('a' * (MAX_WORD_BYTES + 1))

    def test_limit_counts_utf8_bytes(self):
        # 25 two-byte characters is 50 bytes
        with pytest.raises(InvalidTokenError):
            Token('é' * 25)
        assert Token('é' * 24) == 'é' * 24

    def test_rejects_empty_and_nul(self):
        with pytest.raises(InvalidTokenError):
            Token('')
        with pytest.raises(InvalidTokenError):
            Token('a\x00b')

    def test_invalid_token_is_value_error(self):
        with pytest.raises(ValueError):
            Token('x' * 100)


class TestFraming:
    """Tests for encoding and decoding record sequences"""

    def test_record_sizes(self):
        assert TOKEN.size == 50
        assert ENTRY.size == 54

    def test_token_message_roundtrip_keeps_order(self):
        words = ['zebra', 'apple', 'mango', 'apple']
        payload = TOKEN.encode(words)
        assert len(payload) == 4 * TOKEN.size
        assert TOKEN.decode(payload) == words

    def test_entry_message_keeps_counts(self):
        sent = [Entry('b', 3), Entry('a', 1), Entry('ünï', 7)]
        assert ENTRY.decode(ENTRY.encode(sent)) == sent

    def test_empty_message(self):
        assert TOKEN.encode([]) == b''
        assert TOKEN.decode(b'') == []
        assert ENTRY.decode(b'') == []

    def test_count_is_little_endian_int32(self):
        payload = ENTRY.encode([Entry('w', 258)])
        assert struct.unpack('<i', payload[50:54]) == (258,)
        assert payload[:2] == b'w\x00'

    def test_partial_record_is_framing_error(self):
        payload = TOKEN.encode(['one', 'two'])
        with pytest.raises(FramingError):
            TOKEN.decode(payload[:-1])

    def test_entry_bytes_read_as_tokens_fail(self):
        payload = ENTRY.encode([Entry('a', 1)])
        with pytest.raises(FramingError):
            TOKEN.decode(payload)

    def test_nonpositive_count_is_rejected(self):
        payload = struct.pack('<50si', b'word', 0)
        with pytest.raises(FramingError):
            ENTRY.decode(payload)

    def test_non_utf8_word_keeps_its_bytes(self):
        payload = struct.pack('<50s', b'caf\xe9')
        [token] = TOKEN.decode(payload)
        assert word_bytes(token) == b'caf\xe9'
        assert TOKEN.encode([token]) == payload

    def test_encoding_oversized_key_fails(self):
        with pytest.raises(InvalidTokenError):
            ENTRY.encode([Entry('k' * 60, 1)])


class TestRawBytes:
    """Words that are not valid UTF-8"""

    def test_from_bytes_accepts_any_encoding(self):
        token = Token.from_bytes(b'na\xefve')
        assert word_bytes(token) == b'na\xefve'

    def test_unpaired_surrogate_is_rejected(self):
        with pytest.raises(InvalidTokenError):
            Token('\ud800')

    def test_entry_key_is_byte_order(self):
        # U+D7FF encodes as ed 9f bf, the escaped byte 0xe9 sorts before it
        low, high = Entry(Token.from_bytes(b'\xe9')), Entry('\ud7ff')
        assert entry_key(low) < entry_key(high)
