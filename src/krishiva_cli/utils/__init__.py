"""Utility helpers for Krishiva CLI."""
