"""Ingestion layer.

This package contains the pure functions that turn raw API payloads into
the normalized records stored in a dashboard snapshot.
"""

__all__: list[str] = []
