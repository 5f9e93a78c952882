"""Adapters - storage and backend implementations of the repository interfaces."""
