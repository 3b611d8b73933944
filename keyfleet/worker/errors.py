"""Worker control channel exceptions."""

from keyfleet.errors import FleetError


class WorkerError(FleetError):
    """Base error raised by the worker control client."""


class WorkerUnavailable(WorkerError):
    """Raised when a worker node cannot be reached."""


class WorkerProtocolError(WorkerError):
    """Raised when a malformed response is received from a worker."""


class WorkerTimeout(WorkerError):
    """Raised when a worker did not answer within the request timeout."""


__all__ = [
    "WorkerError",
    "WorkerUnavailable",
    "WorkerProtocolError",
    "WorkerTimeout",
]
