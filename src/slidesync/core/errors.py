from __future__ import annotations

from dataclasses import dataclass


class SlideSyncError(Exception):
    """Base class for every error raised by slidesync."""


class HostError(SlideSyncError):
    """A document engine call failed."""


class HostPermissionError(HostError):
    """The engine refused the mutation for this kind of shape."""


class HostArgumentError(HostError):
    """The engine rejected a value or the shape does not expose the property."""


class HostPlatformError(HostError):
    """Any other engine-level failure on a document object."""


class StaleHandleError(HostPlatformError):
    """The shape or slide behind a handle no longer exists."""


class JobError(SlideSyncError):
    """A job file or one of its steps is invalid."""


# Failures that mean "this shape cannot be synced directly".
STRUCTURAL_ERRORS = (HostPermissionError, HostArgumentError, HostPlatformError)


@dataclass(frozen=True)
class StructuralSyncFailure:
    """Outcome of a direct shape sync the engine rejected."""

    reason: str
    error: HostError

    @classmethod
    def from_error(cls, error: HostError) -> "StructuralSyncFailure":
        return cls(reason=type(error).__name__, error=error)
