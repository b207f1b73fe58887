"""Error taxonomy for delegen runs."""

from __future__ import annotations

from typing import Optional


class DelegatorError(RuntimeError):
    """Base class for failures that abort a generation run."""


class PathNormalizationError(DelegatorError):
    """Raised when an output path cannot be canonicalized."""

    def __init__(self, path: object, reason: str) -> None:
        super().__init__(f"Cannot normalize output path {path!r}: {reason}")
        self.path = path
        self.reason = reason


class ExtensionFailure(DelegatorError):
    """Raised when an extension hook fails during dispatch."""

    def __init__(self, extension: str, target: str, cause: Optional[BaseException] = None) -> None:
        message = f"Extension '{extension}' failed while emitting {target}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.extension = extension
        self.target = target


class FlushError(DelegatorError):
    """Raised when persistent storage rejects a buffer during flush."""

    def __init__(self, path: str, cause: Optional[BaseException] = None) -> None:
        message = f"Failed to write {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.path = path


class ScopeError(DelegatorError):
    """Raised when scope markers or sections are unbalanced."""


class PlanError(DelegatorError):
    """Raised when a generation plan is malformed."""


__all__ = [
    "DelegatorError",
    "ExtensionFailure",
    "FlushError",
    "PathNormalizationError",
    "PlanError",
    "ScopeError",
]
