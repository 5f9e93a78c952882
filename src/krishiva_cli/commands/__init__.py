"""Command modules for Krishiva CLI."""
