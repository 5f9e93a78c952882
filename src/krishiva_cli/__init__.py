"""Krishiva CLI - local-first account store with background sync."""

__version__ = "0.1.0"
