"""Storage adapters for isolated test directories.

Implementations:
- NativeStorage (directory-scoped filesystem access)
- TemporaryStorage (process-wide sandbox root)
"""
