"""Refshelf: local content store for the UI reference board."""

__version__ = "0.4.0"
