"""Camera frame sources."""

from hardware.frame_source import (
    FrameSourceAcquirer,
    FrameSourceConstraints,
    FrameSourceHandle,
    acquire_frame_source,
    open_frame_source,
)

__all__ = [
    "FrameSourceAcquirer",
    "FrameSourceConstraints",
    "FrameSourceHandle",
    "acquire_frame_source",
    "open_frame_source",
]
