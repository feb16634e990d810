"""Routine service - exercise catalog reference resolution."""

__version__ = "0.1.0"
