"""State/store layer.

This package is the single source of truth for the dashboard snapshot:
refresh cycles propose updates, and only the store merges them.
"""
