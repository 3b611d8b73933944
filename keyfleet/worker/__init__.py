"""Worker control channel utilities."""

from .client import WorkerClient, WorkerControl
from .errors import WorkerError

__all__ = ["WorkerClient", "WorkerControl", "WorkerError"]
