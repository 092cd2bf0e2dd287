"""Persistence and validation of map markers."""

__version__ = "0.1.0"
