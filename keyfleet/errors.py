"""Fleet-level exceptions."""

from __future__ import annotations

from typing import List, Optional


class FleetError(RuntimeError):
    """Base error raised by fleet operations."""


class ConfigurationError(FleetError):
    """Raised when campaign input or settings cannot be resolved."""


class ProviderError(FleetError):
    """Raised when the cloud provider API call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class OperationAborted(FleetError):
    """Raised when the operator declines a confirmation."""


class NodeNotReady(FleetError):
    """Raised when a node has no IPv4 address yet."""


class BatchError(FleetError):
    """Raised after a concurrent batch finished with at least one failure."""

    def __init__(self, operation: str, errors: List[BaseException], total: int) -> None:
        first = errors[0] if errors else None
        message = f"{len(errors)} of {total} {operation} calls failed"
        if first is not None:
            message += f": {first}"
        super().__init__(message)
        self.operation = operation
        self.errors = errors
        self.total = total


__all__ = [
    "FleetError",
    "ConfigurationError",
    "ProviderError",
    "OperationAborted",
    "NodeNotReady",
    "BatchError",
]
