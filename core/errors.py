"""Exception hierarchy for camera acquisition and the brightness pipeline."""

from __future__ import annotations

from dataclasses import dataclass


class ProximityError(Exception):
    """Base error for the proximity detector."""

    kind = "error"


class FrameSourceError(ProximityError):
    """Raised when the camera cannot be acquired or read."""

    kind = "device_unavailable"


class PermissionDenied(FrameSourceError):
    """Camera access was refused by the operating system."""

    kind = "permission_denied"


class DeviceNotFound(FrameSourceError):
    """No camera device matches the requested constraints."""

    kind = "device_not_found"


class DeviceUnavailable(FrameSourceError):
    """Camera exists but could not be opened or stopped delivering frames."""

    kind = "device_unavailable"


class PipelineError(ProximityError):
    """Raised by a tick of the brightness pipeline."""


class InvalidFrame(PipelineError):
    """Frame has zero area or an unsupported layout."""

    kind = "invalid_frame"


class EmptyRegion(PipelineError):
    """Region of interest contains no pixels."""

    kind = "empty_region"


@dataclass(frozen=True)
class ErrorInfo:
    """Error summary handed to lifecycle listeners."""

    kind: str
    message: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorInfo":
        kind = getattr(exc, "kind", "error")
        message = str(exc) or exc.__class__.__name__
        return cls(kind=kind, message=message)
