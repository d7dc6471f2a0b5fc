"""Exceptions raised by the sandboxdb harness.

Only two failure classes are owned by the harness itself. Everything a
test body raises is propagated unchanged.
"""


class LifecycleError(RuntimeError):
    """A resource was used out of order.

    Raised for programming errors in a test or in the harness wiring:
    closing a database twice, touching a closed database, compacting an
    open one, executing a work unit twice, reusing a disposed host, or
    advancing a test lifecycle out of sequence.
    """


class SandboxError(OSError):
    """The isolated storage sandbox could not be prepared.

    Fatal for the test process: no test can run without isolated storage.
    """


__all__ = ["LifecycleError", "SandboxError"]
