"""
Exception types shared by coordinator and workers.
"""


class WordCountError(Exception):
    """Base class for word count failures"""


class ConfigurationError(WordCountError, ValueError):
    """Invalid topology or settings"""


class InvalidTokenError(WordCountError, ValueError):
    """A word that does not fit the fixed-size key field"""


class TransportError(WordCountError, ConnectionError):
    """A message could not be delivered or received. Fatal to the run."""


class FramingError(TransportError):
    """Message length is not a whole number of records"""


class ProtocolError(WordCountError):
    """A worker reply does not match the slice it was sent"""
