"""Test suite for the sandboxdb harness.

Organized into four categories:

1. core/: Unit tests for the harness core
   - No filesystem, SQLite or threads
   - Uses in-memory fakes for ports

2. adapters/: Tests for the adapter implementations
   - Real directories under pytest's tmp_path, real SQLite files, real threads

3. integration/: The full harness as test authors use it

4. fakes/: Port implementations for testing
   - In-memory storage, sandbox, database and host doubles
   - Record call order so tests can assert the teardown sequence
"""
