"""Verified build webhook relay."""

__version__ = "0.1.0"
