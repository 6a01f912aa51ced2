"""Frame source contracts and backend selection."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

from numpy.typing import NDArray

from core.logging import logger

FACING_MODES = ("user", "environment")
CAMERA_BACKENDS = ("opencv", "picamera2")


@dataclass(frozen=True)
class FrameSourceConstraints:
    """Camera request preferences.

    ``manual_focus`` is a hint only; backends that cannot disable autofocus
    ignore it.
    """

    facing_mode: str = "user"
    manual_focus: bool = False
    device_index: int | None = None
    backend: str = "opencv"

    def resolve_device_index(self) -> int:
        if self.device_index is not None:
            return int(self.device_index)
        return 1 if self.facing_mode == "environment" else 0


class FrameSourceHandle(Protocol):
    """Open camera delivering RGB(A) frames."""

    def current_frame(self) -> NDArray[Any]:
        """Return a snapshot of the latest frame."""
        ...

    def release(self) -> None:
        """Stop capture. Safe to call more than once."""
        ...


FrameSourceAcquirer = Callable[[FrameSourceConstraints], Awaitable[FrameSourceHandle]]


def open_frame_source(constraints: FrameSourceConstraints) -> FrameSourceHandle:
    """Open the configured backend synchronously."""

    if constraints.backend == "opencv":
        from hardware.opencv_camera import OpenCvCamera

        return OpenCvCamera(constraints)
    if constraints.backend == "picamera2":
        from hardware.picamera_camera import PiCamera

        return PiCamera(constraints)
    raise ValueError(
        f"Unknown camera backend '{constraints.backend}'. "
        f"Available: {', '.join(CAMERA_BACKENDS)}"
    )


async def acquire_frame_source(constraints: FrameSourceConstraints) -> FrameSourceHandle:
    """Open a camera without blocking the event loop.

    Returns only once the first frame has been read, so the handle is ready
    for ticking immediately.
    """

    logger.info(
        "[CAMERA] Acquiring %s camera (facing=%s, manual_focus=%s)",
        constraints.backend,
        constraints.facing_mode,
        constraints.manual_focus,
    )
    return await asyncio.to_thread(open_frame_source, constraints)
