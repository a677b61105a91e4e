class ProcessingError(Exception):
    """Base class for failures raised while executing a processing job."""


class SourceMediaError(ProcessingError):
    """A job's source media item is missing or cannot be processed."""


class EncodeError(ProcessingError):
    """The encoder exited non-zero or could not be started."""

    def __init__(self, message: str, *, returncode: int | None = None, stderr_tail: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr_tail = stderr_tail


class ProbeError(ProcessingError):
    """ffprobe failed or produced output we could not read."""


class StorageError(ProcessingError):
    """An object store path could not be resolved."""


class JobStateError(ProcessingError):
    """A write was attempted that the job state machine does not allow."""
