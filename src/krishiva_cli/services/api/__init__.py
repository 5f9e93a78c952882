"""Krishiva backend API client."""
