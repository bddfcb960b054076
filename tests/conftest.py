"""
Pytest configuration and shared fixtures
"""

import pytest
import os
import socket
import tempfile
import shutil


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def sample_text():
    """Sample text for testing"""
    return """the quick brown fox jumps over the lazy dog
the dog was really lazy
the fox was very quick and brown"""


@pytest.fixture
def sample_input_file(temp_dir, sample_text):
    """Create a sample input file for testing"""
    filepath = os.path.join(temp_dir, 'input.txt')
    with open(filepath, 'w') as f:
        f.write(sample_text)
    return filepath


@pytest.fixture
def sample_counts(sample_text):
    """Expected result table for sample_text, as (key, count) pairs"""
    counts = {}
    for word in sample_text.split():
        counts[word] = counts.get(word, 0) + 1
    return sorted(counts.items())


@pytest.fixture
def free_ports():
    """Factory for n currently unused localhost ports"""
    def allocate(n):
        sockets = []
        try:
            for _ in range(n):
                s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
                s.bind(('127.0.0.1', 0))
                sockets.append(s)
            return [s.getsockname()[1] for s in sockets]
        finally:
            for s in sockets:
                s.close()
    return allocate
