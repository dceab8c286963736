"""Exception hierarchy for the scanning and reporting engine.

Startup errors (``PathError``, ``ExpansionError``) terminate the process before
any reporting begins. Per-mapping errors (``ScanError``, ``PointError``) and
per-cycle errors (``SinkError``) are logged and counted; they never cross a
mapping or cycle boundary.
"""


class DirSizeError(Exception):
    """Base class for dirsize-reporter errors."""


class PathError(DirSizeError):
    """Raised when a configured directory reference cannot be resolved."""


class ExpansionError(DirSizeError):
    """Raised when a directory cannot be listed during depth expansion."""

    def __init__(self, path: str, cause: OSError) -> None:
        self.path: str = path
        self.cause: OSError = cause
        super().__init__(f"Cannot list directory for expansion: {path}: {cause.strerror or cause}")


class ScanError(DirSizeError):
    """Raised when traversal of a single subtree fails."""

    def __init__(self, path: str, cause: OSError | ValueError) -> None:
        self.path: str = path
        self.cause: OSError | ValueError = cause
        if isinstance(cause, OSError):
            failed_at = cause.filename if cause.filename is not None else path
            reason = cause.strerror or cause
        else:
            failed_at = path
            reason = cause
        super().__init__(f"Scan of {path} failed at {failed_at}: {reason}")


class PointError(DirSizeError):
    """Raised when a metric point cannot be built for a mapping."""


class SinkError(DirSizeError):
    """Raised when a batch cannot be written to the metric sink."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        self.status: int | None = status
        super().__init__(message)
