"""Embedded document database adapters.

Implementations:
- SQLite (single-file, zero-config)
"""
