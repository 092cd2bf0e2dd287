"""Exception types raised by the marker store."""
from __future__ import annotations


class MarkerStoreError(Exception):
    """Base exception for the marker store."""


class MarkerFormatError(MarkerStoreError):
    """Raised while loading when persisted marker data is malformed or out of range."""


class InvalidArgumentError(MarkerStoreError, ValueError):
    """Raised by setters and constructors that reject their input."""


class NodeValueError(MarkerStoreError, ValueError):
    """Raised when a config node holds a value of the wrong shape."""

    def __init__(self, path: str, expected: str, value: object):
        super().__init__(f"Node '{path}' does not hold a {expected}: {value!r}")
        self.path = path
        self.expected = expected
        self.value = value
