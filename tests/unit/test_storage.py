"""
Unit tests for reading input words and writing the result table
"""

import os
import pytest

from wordcount.common.errors import InvalidTokenError
from wordcount.common.records import Entry, Token, word_bytes
from wordcount.common.storage import read_tokens, write_table


class TestReadTokens:

    def test_splits_on_any_whitespace(self, temp_dir):
        path = os.path.join(temp_dir, 'in.txt')
        with open(path, 'w') as f:
            f.write("one  two\tthree\n\nfour\n")
        assert read_tokens(path) == ['one', 'two', 'three', 'four']

    def test_splits_on_ascii_whitespace_only(self, temp_dir):
        path = os.path.join(temp_dir, 'spaces.txt')
        with open(path, 'w', encoding='utf-8') as f:
            f.write("a\u00a0b c\u2003d\ve\ff\rg\u0085h")
        assert read_tokens(path) == ['a\u00a0b', 'c\u2003d', 'e', 'f', 'g\u0085h']

    def test_latin1_input(self, temp_dir):
        path = os.path.join(temp_dir, 'latin1.txt')
        with open(path, 'wb') as f:
            f.write(b'caf\xe9 the caf\xe9\n')
        tokens = read_tokens(path)
        assert [word_bytes(t) for t in tokens] == [b'caf\xe9', b'the', b'caf\xe9']

    def test_empty_file(self, temp_dir):
        path = os.path.join(temp_dir, 'empty.txt')
        open(path, 'w').close()
        assert read_tokens(path) == []

    def test_oversized_word_names_the_line(self, temp_dir):
        path = os.path.join(temp_dir, 'long.txt')
        with open(path, 'w') as f:
            f.write("fine\nalso fine " + 'x' * 80 + "\n")
        with pytest.raises(InvalidTokenError, match=r'long\.txt:2'):
            read_tokens(path)

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            read_tokens(os.path.join(temp_dir, 'nope.txt'))


class TestWriteTable:

    def test_one_line_per_entry_in_order(self, temp_dir):
        path = os.path.join(temp_dir, 'out', 'reduced.txt')
        lines = write_table(path, [Entry('a', 3), Entry('b', 2), Entry('c', 1)])
        assert lines == 3
        with open(path) as f:
            assert f.read() == "a 3\nb 2\nc 1\n"

    def test_empty_table_writes_empty_file(self, temp_dir):
        path = os.path.join(temp_dir, 'reduced.txt')
        assert write_table(path, []) == 0
        assert os.path.getsize(path) == 0

    def test_non_utf8_keys_written_back_unchanged(self, temp_dir):
        path = os.path.join(temp_dir, 'reduced.txt')
        write_table(path, [Entry(Token.from_bytes(b'caf\xe9'), 2), Entry('the', 1)])
        with open(path, 'rb') as f:
            assert f.read() == b'caf\xe9 2\nthe 1\n'
